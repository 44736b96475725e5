"""
Argosy parse results.

A Result is created for every definition at the start of each parse. It holds the
current value (the definition's default until the option is seen), whether the user
supplied the option, and a memoized validation cell.

Validation cell
- PENDING: the validator has not run yet.
- RUNNING: the validator is running; other threads wait for it, while an access
  from inside the validator itself (directly or through another argument's
  validator) sees the value as not valid.
- VALID: the value passed (or there is no validator).
- INVALID: the validator rejected the value; `reason` carries its message.

The validator runs once and outside the per-result lock, so accessors may be
called from several threads after parsing and validators may read other arguments.
"""
import io
import logging
import threading
from enum import Enum

from .values import *

logger = logging.getLogger(__name__)


class ValidationState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    VALID = "valid"
    INVALID = "invalid"


class Result:
    """
    parsed state of one definition.

    attributes
    - definition: the Definition this result belongs to (shared, read-only).
    - value: current ArgumentValue; starts as definition.default.
    - is_set: True once the user supplied the option.
    - state / reason: the validation cell (see module docs).
    """
    __slots__ = ("_definition", "_value", "_set", "_state", "_reason", "_ready", "_owner")

    def __init__(self, definition, /):
        self._definition = definition
        self._value = definition.default
        self._set = False
        self._state = ValidationState.PENDING
        self._reason = None
        self._ready = threading.Condition()
        self._owner = None

    @property
    def definition(self):
        return self._definition

    @property
    def value(self):
        return self._value

    @property
    def is_set(self):
        return self._set

    @property
    def state(self):
        return self._state

    @property
    def reason(self):
        return self._reason

    def assign(self, value, /):
        """
        store a parsed value and mark the option as supplied.

        a later assignment overwrites an earlier one (last occurrence wins).
        """
        if not isinstance(value, ArgumentValue) or value.type is not self._definition.type:
            raise TypeError("%s expects a %s value" % (self._definition.long, self._definition.type.value))
        self._value = value
        self._set = True

    def validate(self, reject=None, /):
        """
        run the definition's validator once and return whether the value is valid.

        the predicate receives (value, type, message) where message is an
        io.StringIO it may write a reason into. a predicate that raises is
        treated as a rejection with the exception text as reason.

        while the predicate runs, callers on other threads wait for its verdict
        and calls made from the predicate's own thread return False at once.

        `reject`, when given, is called with this result exactly once: on the
        call that moves the cell from RUNNING to INVALID.
        """
        with self._ready:
            while self._state is ValidationState.RUNNING:
                if self._owner == threading.get_ident():
                    logger.debug("validator for %s re-entered; value treated as invalid", self._definition.long)
                    return False
                self._ready.wait()

            if self._state is not ValidationState.PENDING:
                return self._state is ValidationState.VALID

            if (validator := self._definition.validator) is None:
                self._state = ValidationState.VALID
                return True

            self._state = ValidationState.RUNNING
            self._owner = threading.get_ident()

        message = io.StringIO()
        valid = False
        try:
            valid = bool(validator(self._value, self._definition.type, message))
        except Exception as exception:
            logger.debug("validator for %s raised %r", self._definition.long, exception)
            if not message.getvalue():
                message.write(str(exception) or type(exception).__name__)
        finally:
            with self._ready:
                if valid:
                    self._state = ValidationState.VALID
                else:
                    self._state = ValidationState.INVALID
                    self._reason = message.getvalue() or None
                self._owner = None
                self._ready.notify_all()
            logger.debug("validated %s=%r: %s", self._definition.long, self._value, self._state.value)

        if not valid and reject is not None:
            reject(self)
        return valid

    def __repr__(self):
        return "result(long=%r, value=%r, is_set=%r, state=%s)" % (
            self._definition.long, self._value, self._set, self._state.value
        )


__all__ = (
    "ValidationState",
    "Result",
)
