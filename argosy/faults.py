"""
Argosy faults (errors and warnings) and rendering.

Scope
- FaultCode: numeric identifiers for every fault the registry can raise or warn
  about, one block per stage (definition, parsing, retrieval, warnings).
- ArgumentException / ArgumentWarning: fault bases holding a message plus keyword
  options (code, title, hint, context) and a Rich rendering of themselves.
- trigger(): the one place a fault is surfaced (raised, warned, or printed and exited).

Message style
- Parse faults name the ordinal position of the offending token
  (“unknown argument '--bogus' at first position”).
- Lowercase bodies, a short title, and one hint saying what to type instead.
- Colors come from __styles__ and can be overridden by __styles__ in __main__.

Integration
- The registry builds a fault and calls Registry.trigger(fault, **ctx), which merges
  its own options (registry, shell, fancy, colorful) and hands it to trigger().
- Outside shell mode, exceptions are raised and warnings go through `warnings`;
  in shell mode both are printed on stderr and errors exit with status 1.
"""
import copy
import inspect
import os
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    stable fault codes of the registry, grouped by the stage that raises them.

    - definitions (1110x)
      • INVALID_DEFINITION, DUPLICATE_DEFINITION, ALLOCATION_FAILURE
    - parsing (1111x)
      • UNKNOWN_ARGUMENT, MISSING_VALUE, MISSING_REQUIRED
    - retrieval (1112x)
      • NOT_FOUND, VALIDATOR_REJECTED
    - warnings (12xxx)
      • VALIDATION_FAILED
    """
    # --- definition errors (1110x) ---
    INVALID_DEFINITION          = 11101
    DUPLICATE_DEFINITION        = 11102
    ALLOCATION_FAILURE          = 11103

    # --- parsing errors (1111x) ---
    UNKNOWN_ARGUMENT            = 11111
    MISSING_VALUE               = 11112
    MISSING_REQUIRED            = 11113

    # --- retrieval errors (1112x) ---
    NOT_FOUND                   = 11121
    VALIDATOR_REJECTED          = 11122

    # --- warnings (12xxx) ---
    VALIDATION_FAILED           = 12121

    def normalize(self):
        """
        the code as shown in fault headers.

        a __codes__ mapping in __main__ may relabel any member; otherwise
        the number itself is used.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _program(options):
    """
    program name shown in fault headers: __main__.__prog__, then the registry's prog.
    """
    main = __import__("__main__")
    if hasattr(main, "__prog__"):
        return main.__prog__
    try:
        return options["registry"].prog
    except (KeyError, AttributeError):
        return os.path.basename(sys.argv[0]) or "program"


class _Fault:
    """
    shared rendering and replacement behavior of errors and warnings.

    subclasses provide __styles__ (default palette) and __labels__ (which palette
    keys style the title and the message).
    """
    __styles__ = {}
    __labels__ = ("title", "message")

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message if self.message is not Unset else ""

    def __rich__(self):
        main = __import__("__main__")
        styles = defaultdict(str, self.__styles__ | getattr(main, "__styles__", {}))
        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)
        title, body = self.__labels__

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        header = Text.assemble(
            "[ ",
            text(_program(self.options), styler("prog-name")),
            " — ",
            text(self.options["code"].normalize() if "code" in self.options else "", styler("code")),
            " | ",
            text(self.options.get("title", type(self).__name__).title(), styler(title)),
            " ]"
        )
        message = text(str(self), styler(body))
        hint = Text.assemble(text(" → ", styler("hint-arrow")), text(self.options.get("hint", ""), styler("hint")))

        if fancy:
            return Panel(Group(message, hint), title=header, title_align="left")

        return Group(header, message, hint)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ArgumentException(_Fault, Exception):
    """
    base of every error raised by the registry.

    options commonly carried
    - code: FaultCode; title: short heading; hint: one actionable sentence.
    - token/argument/index/reason: context of the fault, when it applies.
    - registry, shell, fancy, colorful: merged in by Registry.trigger().
    """
    __styles__ = {
        # header
        "prog-name": "bold #F2F2F7",
        "code": "bold #36C5F0",  # sky-blue, matches help sections
        "error-title": "bold #EF4444",

        # body
        "error-message": "#D1D5DB",
        "hint-arrow": "#22C55E dim",
        "hint": "italic #22C55E",
    }
    __labels__ = ("error-title", "error-message")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)


class InvalidDefinitionError(ArgumentException): ...
class DuplicateDefinitionError(InvalidDefinitionError): ...
class AllocationFailureError(ArgumentException): ...
class NotFoundError(ArgumentException, LookupError): ...
class UnknownArgumentError(ArgumentException): ...
class MissingValueError(ArgumentException): ...
class MissingRequiredError(ArgumentException): ...
class ValidatorRejectedError(ArgumentException): ...


class ArgumentWarning(_Fault, ABC, Warning):
    """
    base of every warning surfaced by the registry.
    """
    __styles__ = {
        # header
        "prog-name": "bold #F2F2F7",
        "code": "bold #FFD600",  # amber, matches help metavars
        "warning-title": "bold #FFD600",

        # body
        "warning-message": "#9CA3AF",
        "hint-arrow": "#22C55E dim",
        "hint": "italic #22C55E",
    }
    __labels__ = ("warning-title", "warning-message")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)


class ValidationFailedWarning(ArgumentWarning): ...


def trigger(fault, /, **options):
    """
    merge `options` into `fault` (copy.replace) and surface the copy.

    anything without __trigger__/__replace__ is refused with TypeError, so a
    plain exception never slips through as a registry fault.
    """
    for method in ("__trigger__", "__replace__"):
        if not callable(getattr(fault, method, None)):
            raise TypeError("trigger() argument must be an argosy fault, not %s" % type(fault).__name__)
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "ArgumentException",
    "InvalidDefinitionError",
    "DuplicateDefinitionError",
    "AllocationFailureError",
    "NotFoundError",
    "UnknownArgumentError",
    "MissingValueError",
    "MissingRequiredError",
    "ValidatorRejectedError",
    "ArgumentWarning",
    "ValidationFailedWarning",
    "FaultCode",
    "trigger",
)
