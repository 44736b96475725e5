r"""
Argosy argument definitions.

Overview
- Definition: the immutable declaration of one named argument:
  short name (optional), long name (required, canonical key), description,
  ArgumentType, required-ness, default ArgumentValue and an optional validator.

- Introspection & representation
  • DefinitionType metaclass provides stable __repr__/__rich_repr__ and exposes the
    fields listed in __introspectable__ as read-only properties.
  • __replace__ returns an updated copy (copy.replace(definition, validator=...)),
    which is how the registry attaches validators without mutating a definition.

Metadata (sanitized on construction)
- short: None | str, matching the name grammar below when provided.
- long: str, required; omitting it is an InvalidDefinitionError.
- descr: Unset | str | Text (short help), non-empty when provided, None otherwise.
- type: ArgumentType.
- required: bool, forced to False for flags (absence of a flag means false).
- default: raw Python payload or ArgumentValue, checked against type.
- validator: None | Callable[[ArgumentValue, ArgumentType, io.StringIO], bool].

Validation highlights
- Names must match r"-[^\s=]+" (a leading dash and no whitespace or '=').
- Short and long names of a single definition must differ.

Example
    >>> Definition("-n", "--count", "Number of iterations", type=ArgumentType.INT, default=10)
    definition(short='-n', long='--count', ...)
"""
import builtins
import functools
import operator
import re

from rich.text import Text

from .faults import *
from .utils import *
from .values import *


class DefinitionType(type):
    """
    Metaclass exposing introspectable fields and a stable representation.

    Responsibilities
    - Expose every name in __introspectable__ as a read-only property via mirror().
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and help output.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, object) pairs for pretty printers.
            """
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_names(cls, metadata, /):
    """
    Internal: validate the short and long names of a definition.

    Rules
    - long is required: Unset (omitted) or None is an InvalidDefinitionError.
    - short is optional: None leaves the definition reachable by long name only.
    - a provided name must be a string starting with '-' and containing neither
      whitespace nor '=' (tokens are matched whole, there is no inline value form).
    - short and long cannot be the same string.

    Raises
    - InvalidDefinitionError for every rule above.
    """
    if metadata["long"] is Unset or metadata["long"] is None:
        raise InvalidDefinitionError(
            "%s requires a long name" % cls.__typename__,
            title="invalid definition",
            code=FaultCode.INVALID_DEFINITION,
            hint="pass a long name such as '--verbose'",
        )

    for field in ("short", "long"):
        if (name := metadata[field]) is None:
            continue
        if not isinstance(name, str):
            raise InvalidDefinitionError(
                "%s %s name must be a string, not %s" % (cls.__typename__, field, type(name).__name__),
                title="invalid definition",
                code=FaultCode.INVALID_DEFINITION,
                hint="pass the %s name as a string such as %r" % (field, "-v" if field == "short" else "--verbose"),
            )
        if not re.fullmatch(r"-[^\s=]+", name):
            raise InvalidDefinitionError(
                "%s %s name %r is not a valid option name" % (cls.__typename__, field, name),
                title="invalid definition",
                code=FaultCode.INVALID_DEFINITION,
                hint="option names start with '-' and contain no spaces or '='",
            )

    if metadata["short"] == metadata["long"]:
        raise InvalidDefinitionError(
            "%s short and long names are both %r" % (cls.__typename__, metadata["long"]),
            title="invalid definition",
            code=FaultCode.INVALID_DEFINITION,
            hint="drop the short name or pick a different one",
        )


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize descr/type/required/default/validator.

    - descr: Unset → None; strings are trimmed and must stay non-empty.
    - type: must be an ArgumentType.
    - required: coerced to bool and forced False for flags.
    - default: Unset → the type's zero value; raw payloads are wrapped into an
      ArgumentValue, whose constructor checks them against the type.
    - validator: None or a callable.
    """
    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise InvalidDefinitionError(
            "%s 'descr' must be a string" % cls.__typename__,
            title="invalid definition",
            code=FaultCode.INVALID_DEFINITION,
            hint="describe %s with a short sentence" % metadata["long"],
        )
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise InvalidDefinitionError(
            "%s 'descr' cannot be empty" % cls.__typename__,
            title="invalid definition",
            code=FaultCode.INVALID_DEFINITION,
            hint="omit the description or describe %s with a short sentence" % metadata["long"],
        )
    metadata["descr"] = coalesce(descr)

    if not isinstance(type := metadata["type"], ArgumentType):
        raise InvalidDefinitionError(
            "%s 'type' must be an ArgumentType" % cls.__typename__,
            title="invalid definition",
            code=FaultCode.INVALID_DEFINITION,
            hint="use one of %s" % ", ".join("ArgumentType." + member.name for member in ArgumentType),
        )

    # A flag's absence simply means false, so it can never be required.
    metadata["required"] = bool(metadata["required"]) and type is not ArgumentType.FLAG

    default = metadata["default"]
    if default is Unset:
        default = type.zero
    elif not isinstance(default, ArgumentValue):
        try:
            default = ArgumentValue(type, default)
        except (TypeError, ValueError) as exception:
            raise InvalidDefinitionError(
                "%s %s default %r is not a valid %s value" % (cls.__typename__, metadata["long"], default, type.value),
                title="invalid definition",
                code=FaultCode.INVALID_DEFINITION,
                hint=str(exception),
            ) from None
    elif default.type is not type:
        raise InvalidDefinitionError(
            "%s %s default is a %s value, expected %s" % (cls.__typename__, metadata["long"], default.type.value, type.value),
            title="invalid definition",
            code=FaultCode.INVALID_DEFINITION,
            hint="pass a default of the declared type",
        )
    metadata["default"] = default

    if metadata["validator"] is not None and not callable(metadata["validator"]):
        raise InvalidDefinitionError(
            "%s %s validator must be callable" % (cls.__typename__, metadata["long"]),
            title="invalid definition",
            code=FaultCode.INVALID_DEFINITION,
            hint="pass a function taking (value, type, message) and returning a bool",
        )


class Definition(metaclass=DefinitionType):
    """
    Immutable declaration of a named, typed argument.

    The long name is the canonical identifier: results, validators and typed
    accessors all key on it. The short name is an alias accepted while parsing.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    """

    __introspectable__ = (
        "short",
        "long",
        "descr",
        "type",
        "required",
        "default",
        "validator",
    )

    __slots__ = tuple("_" + name for name in __introspectable__)

    def __init__(
            self,
            short=None,
            long=Unset,
            descr=Unset,
            /,
            type=ArgumentType.FLAG,
            *,
            required=False,
            default=Unset,
            validator=None
    ):
        metadata = {
            "short": short,
            "long": long,
            "descr": descr,
            "type": type,
            "required": required,
            "default": default,
            "validator": validator,
        }
        _sanitize_names(builtins.type(self), metadata)
        _sanitize_metadata(builtins.type(self), metadata)

        for name, value in metadata.items():
            object.__setattr__(self, "_" + name, value)

    def __setattr__(self, name, value, /):
        raise AttributeError("%s is read-only" % builtins.type(self).__typename__)

    def __delattr__(self, name, /):
        raise AttributeError("%s is read-only" % builtins.type(self).__typename__)

    @property
    def names(self):
        """
        every name this definition answers to while parsing (short first).
        """
        return tuple(name for name in (self._short, self._long) if name is not None)

    def matches(self, token, /):
        """
        exact, case-sensitive match of a raw token against the short or long name.
        """
        return token == self._long or (self._short is not None and token == self._short)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        fields = {name: getattr(self, "_" + name) for name in builtins.type(self).__introspectable__} | overrides
        short = fields.pop("short")
        long = fields.pop("long")
        # a sanitized descr is None when absent; the constructor spells that Unset
        descr = fields.pop("descr")
        return builtins.type(self)(short, long, Unset if descr is None else descr, **fields)

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self


__all__ = (
    "Definition",
)
