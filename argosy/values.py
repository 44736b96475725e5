"""
Argosy value model: argument types and tagged argument values.

Overview
- ArgumentType: the four kinds of declarable arguments (flag, string, int, float).
  Each member knows its zero value, its help placeholder and how raw command
  line text is decoded into a payload.
- ArgumentValue: an immutable (type, payload) pair. The payload is checked
  against the type when the value is built, and the variant accessors
  (.flag/.string/.integer/.floating) refuse to read a payload of another type.

Payload rules
- FLAG   → bool
- STRING → str, or None when a string argument has no value at all
- INT    → int within the signed 32-bit range
- FLOAT  → float, rounded to single precision on construction

Examples
    >>> value = ArgumentValue(ArgumentType.INT, 42)
    >>> value.integer
    42
    >>> value.string
    Traceback (most recent call last):
        ...
    TypeError: int-value has no string payload
"""
from enum import Enum

from rich.text import Text

from .utils import *


class ArgumentType(Enum):
    """
    kinds of arguments a registry can declare.

    the value of each member is its display label; help renders it as the
    `<label>` placeholder after the option names (flags show nothing).
    """
    FLAG = "flag"
    STRING = "string"
    INT = "int"
    FLOAT = "float"

    @property
    def placeholder(self):
        """
        help placeholder for value-bearing types ("<int>"), None for flags.
        """
        if self is ArgumentType.FLAG:
            return None
        return "<%s>" % self.value

    @property
    def zero(self):
        """
        the type's zero value: False, None, 0 or 0.0.
        """
        return ArgumentValue(self, _ZEROS[self])

    def decode(self, text, /):
        """
        decode raw command line text into a value of this type.

        decoding is permissive: ints and floats use the longest numeric prefix
        and fall back to zero (see atoi/atof), strings are kept verbatim.
        flags carry no text; decoding one always yields True.
        """
        match self:
            case ArgumentType.FLAG:
                return ArgumentValue(self, True)
            case ArgumentType.STRING:
                return ArgumentValue(self, str(text))
            case ArgumentType.INT:
                return ArgumentValue(self, atoi(text))
            case ArgumentType.FLOAT:
                return ArgumentValue(self, atof(text))
        raise RuntimeError("unreachable")


_ZEROS = {
    ArgumentType.FLAG: False,
    ArgumentType.STRING: None,
    ArgumentType.INT: 0,
    ArgumentType.FLOAT: 0.0,
}


def _sanitize_payload(type, payload, /):
    """
    check a payload against its tag and return the normalized payload.

    raises
    - TypeError: when the payload's Python type does not fit the tag.
    - ValueError: when an int payload does not fit in 32 bits.
    """
    match type:
        case ArgumentType.FLAG:
            if not isinstance(payload, bool):
                raise TypeError("flag-value payload must be a bool")
            return payload
        case ArgumentType.STRING:
            if not isinstance(payload, str | None):
                raise TypeError("string-value payload must be a string or None")
            return payload
        case ArgumentType.INT:
            # bool is an int subclass; True is not a legal integer payload
            if isinstance(payload, bool) or not isinstance(payload, int):
                raise TypeError("int-value payload must be an integer")
            if int32(payload) != payload:
                raise ValueError("int-value payload %d does not fit in 32 bits" % payload)
            return payload
        case ArgumentType.FLOAT:
            if isinstance(payload, bool) or not isinstance(payload, int | float):
                raise TypeError("float-value payload must be a number")
            return float32(payload)
    raise TypeError("value type must be an ArgumentType")


class ArgumentValue:
    """
    immutable tagged value: one ArgumentType plus the matching payload.

    only the variant named by `type` is live; reading any other variant raises
    TypeError instead of reinterpreting the payload.
    """
    __slots__ = ("_type", "_payload")

    def __init__(self, type, payload, /):
        if not isinstance(type, ArgumentType):
            raise TypeError("value type must be an ArgumentType")
        object.__setattr__(self, "_type", type)
        object.__setattr__(self, "_payload", _sanitize_payload(type, payload))

    def __setattr__(self, name, value, /):
        raise AttributeError("argument values are read-only")

    def __delattr__(self, name, /):
        raise AttributeError("argument values are read-only")

    @property
    def type(self):
        return self._type

    @property
    def payload(self):
        """
        the raw payload, whatever its variant (prefer the typed accessors).
        """
        return self._payload

    def _variant(self, type, label, /):
        if self._type is not type:
            raise TypeError("%s-value has no %s payload" % (self._type.value, label))
        return self._payload

    @property
    def flag(self):
        return self._variant(ArgumentType.FLAG, "flag")

    @property
    def string(self):
        return self._variant(ArgumentType.STRING, "string")

    @property
    def integer(self):
        return self._variant(ArgumentType.INT, "integer")

    @property
    def floating(self):
        return self._variant(ArgumentType.FLOAT, "floating")

    def __eq__(self, other, /):
        if not isinstance(other, ArgumentValue):
            return NotImplemented
        return self._type is other._type and self._payload == other._payload

    def __hash__(self):
        return hash((self._type, self._payload))

    def __repr__(self):
        return "%s-value(%r)" % (self._type.value, self._payload)

    def __rich__(self):
        return Text.assemble((self._type.value, "cyan"), "-value(", (repr(self._payload), "yellow"), ")")

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self


__all__ = (
    "ArgumentType",
    "ArgumentValue",
)
