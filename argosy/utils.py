"""
Argosy utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the values, arguments and registry layers.
- Public-but-internal leaning: stable enough for consumers, designed primarily
  to support the registry.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/"".

- @rename("name")
  • Name generated getters and reprs after what they expose.

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr).

- ordinal(number)
  • Human-friendly ordinal for 1-based token positions ("first", "second", "11th").

- atoi(text) / atof(text)
  • Permissive decoders with C conversion semantics: the longest numeric prefix
    is decoded, anything unparsable yields zero. They never raise.

- int32(number) / float32(number)
  • Narrow Python numbers to the 32-bit ranges stored by the registry.

Quick examples
    >>> atoi("  42abc")
    42
    >>> atoi("abc")
    0
    >>> atof("2.5e1x")
    25.0
    >>> ordinal(3)
    'third'
"""
import builtins
import functools
import math
import re
import struct
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final

# C isspace() set; \s would also accept unicode separators.
_SPACES = " \t\n\v\f\r"

_INTEGER = re.compile(r"[%s]*([+-]?\d+)" % re.escape(_SPACES), re.ASCII)

_HEXADECIMAL = re.compile(
    r"[%s]*([+-]?)0[xX]((?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)(?:[pP][+-]?\d+)?)" % re.escape(_SPACES),
    re.ASCII
)

_DECIMAL = re.compile(
    r"[%s]*([+-]?(?:inf(?:inity)?|nan|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))" % re.escape(_SPACES),
    re.ASCII | re.IGNORECASE
)

_INT32_MIN = -(1 << 31)


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Used where None is a legitimate user value (e.g. a string argument with no
    default), so the API needs a way to distinguish “not provided” from
    “provided as None”.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and a process-wide singleton.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Falsey values like None, 0, "" are preserved as-is, only Unset is replaced.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(name, /):
    """
    Decorator giving a generated function a stable __name__/__qualname__,
    so properties and reprs built in loops read well in tracebacks.
    """
    if not isinstance(name, str):
        raise TypeError("rename() argument must be a string")

    def decorator(function):
        if not builtins.callable(function):
            raise TypeError("@rename() must be applied to a callable")
        function.__name__ = function.__qualname__ = name
        return function

    return decorator


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The property reads "_{name}" from the instance. Containers are handed out
    as immutable snapshots (tuple / MappingProxyType / frozenset) so callers
    cannot mutate registry state through the public API.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        object = getattr(self, "_" + name)
        if isinstance(object, Sequence) and not isinstance(object, str):
            return tuple(object)
        if isinstance(object, Mapping):
            return MappingProxyType(dict(object))
        if isinstance(object, Set):
            return frozenset(object)
        return object

    return property(getter)


@functools.cache
def ordinal(number, /):
    """
    Return a human-friendly ordinal label for a 1-based position.

    - 1..10 are rendered as words ("first"…"tenth").
    - Other numbers use numeric ordinals with correct English suffixes.
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    # 11th, 12th, 13th (and 111th, 112th, 113th, …)
    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


def int32(number, /):
    """
    Wrap an integer into the signed 32-bit range (two's complement).
    """
    return (number - _INT32_MIN) % (1 << 32) + _INT32_MIN


def float32(number, /):
    """
    Round a float to single precision; out-of-range magnitudes become ±inf.
    """
    try:
        return struct.unpack("<f", struct.pack("<f", float(number)))[0]
    except OverflowError:
        return math.inf if number > 0 else -math.inf


def atoi(text, /):
    """
    Decode the leading decimal integer of `text`, C atoi style.

    rules
    - leading C whitespace is skipped, then an optional sign and digits.
    - decoding stops at the first non-digit; no digits at all yields 0.
    - the result is wrapped to the signed 32-bit range.

    examples
    - atoi("42")     -> 42
    - atoi(" -7px")  -> -7
    - atoi("abc")    -> 0
    - atoi("1e3")    -> 1
    """
    if not isinstance(text, str):
        raise TypeError("atoi() argument must be a string")
    if not (match := _INTEGER.match(text)):
        return 0
    return int32(int(match[1]))


def atof(text, /):
    """
    Decode the leading floating-point number of `text`, C atof style.

    accepted prefixes
    - decimal with optional fraction and exponent ("1.5", ".5", "2e-3").
    - "inf", "infinity", "nan" (case-insensitive), with an optional sign.
    - hexadecimal floats ("0x1.8p1").

    anything else yields 0.0. The result is rounded to single precision.
    """
    if not isinstance(text, str):
        raise TypeError("atof() argument must be a string")
    if match := _HEXADECIMAL.match(text):
        body = match[2]
        if not re.search(r"[pP]", body):
            body += "p0"
        return float32(float.fromhex(match[1] + "0x" + body))
    if match := _DECIMAL.match(text):
        return float32(float(match[1]))
    return 0.0


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Notes
- Singleton: there is only one Unset instance.
- Distinct from None: a string argument may legitimately default to None.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "ordinal",
    "int32",
    "float32",
    "atoi",
    "atof",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
