"""
Argosy registry: declare, parse, validate and retrieve command line arguments.

What this module provides
- Registry: owns the whole lifecycle of a program's arguments:
  • a definition table (add_flag/add_string/add_int/add_float, set_validator),
  • a single-pass parser (parse),
  • a result store with lazy, memoized validation (get_* accessors, lookup, result),
  • the positional list (get_positional),
  • a Rich-based help renderer (print_help),
  • one bulk teardown (close, or leaving a `with` block).

Quick start
    from argosy import Registry

    def in_range(value, type, message):
        if not 1 <= value.integer <= 100:
            message.write("count must be between 1 and 100, got %d" % value.integer)
            return False
        return True

    registry = Registry("tool")
    registry.add_flag("-v", "--verbose", "Enable verbose output")
    registry.add_int("-n", "--count", "Number of iterations", default=10)
    registry.set_validator("--count", in_range)
    registry.parse(["--count", "50", "-v", "notes.txt"])

    registry.get_int("--count")   # 50
    registry.get_flag("--verbose")  # True
    registry.get_positional()     # ("notes.txt",)

Parsing rules (single left-to-right pass)
- a token starting with '-' names an option by its exact short or long name;
  any other token is a positional and is kept verbatim.
- flags consume nothing; strings/ints/floats consume the next token whatever it
  looks like. ints and floats are decoded permissively (atoi/atof semantics):
  "abc" is stored as 0 and left to validators to reject.
- the first error aborts the pass: unknown option, missing value, then the
  first missing required argument in registration order.
- an option supplied twice keeps its last value.

Accessor rules
- get_flag/get_string/get_int/get_float never raise: an unknown name, a type
  mismatch or a rejected value all collapse to a fallback (False, None, or the
  int/float definition's default when one exists, else 0/0.0).
- lookup() is the strict alternative: it raises NotFoundError or
  ValidatorRejectedError instead of falling back.
"""
import copy
import difflib
import logging
import os
import shlex
import sys
from collections import defaultdict, deque
from collections.abc import Iterable

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .arguments import *
from .faults import *
from .faults import trigger as _trigger
from .results import *
from .utils import *
from .values import *

logger = logging.getLogger(__name__)


class Registry:
    """
    Argument registry & parser.

    Configuration (keyword-only, exposed as read-only properties)
    - prog: program name for help and fault headers. Falls back to
      __main__.__prog__, then to the basename of sys.argv[0].
    - shell: when True, faults are printed with Rich on stderr and errors exit
      the process with status 1 instead of raising.
    - fancy: wrap help and faults in Rich panels.
    - colorful: style help and faults (palette overridable with __styles__ in __main__).

    Threading
    - registration and parse() mutate the registry and need external locking.
    - accessors may run concurrently once parsed; each result guards its own
      validate-once transition.
    """

    shell = mirror("shell")
    fancy = mirror("fancy")
    colorful = mirror("colorful")
    definitions = mirror("definitions")
    closed = mirror("closed")

    def __init__(self, prog=Unset, /, *, shell=False, fancy=False, colorful=True):
        if not isinstance(prog, str | Unset):
            raise TypeError("registry 'prog' must be a string")
        elif isinstance(prog, str) and not (prog := prog.strip()):
            raise ValueError("registry 'prog' cannot be empty")

        self._prog = prog
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        self._definitions = []
        self._results = {}
        self._positionals = []
        self._closed = False

    @property
    def prog(self):
        if self._prog is not Unset:
            return self._prog
        main = __import__("__main__")
        return getattr(main, "__prog__", None) or os.path.basename(sys.argv[0]) or "program"

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def __repr__(self):
        return "registry(prog=%r, definitions=%d, positionals=%d, closed=%r)" % (
            self.prog, len(self._definitions), len(self._positionals), self._closed
        )

    def __rich_repr__(self):
        yield "prog", self.prog
        yield "shell", self._shell
        yield "fancy", self._fancy
        yield "colorful", self._colorful
        yield "definitions", self.definitions
        yield "positionals", self.get_positional()

    def trigger(self, fault, /, **options):
        """
        surface a fault with this registry's presentation options merged in.
        """
        _trigger(
            copy.replace(fault, **options),
            registry=self,
            shell=self._shell,
            fancy=self._fancy,
            colorful=self._colorful,
        )

    def _ensure_open(self):
        if self._closed:
            raise RuntimeError("registry is closed")

    # --- definition table -------------------------------------------------

    def find(self, name, /):
        """
        return the definition answering to `name` (short or long), or None.
        """
        for definition in self._definitions:
            if definition.matches(name):
                return definition
        return None

    def _register(self, short, long, descr, type, required, default):
        self._ensure_open()
        definition = Definition(short, long, descr, type, required=required, default=default)

        for name in definition.names:
            if (owner := self.find(name)) is not None:
                return self.trigger(DuplicateDefinitionError(
                    "name %r of %s is already used by %s" % (name, definition.long, owner.long),
                    title="duplicate definition",
                    code=FaultCode.DUPLICATE_DEFINITION,
                    hint="give %s a name no other argument uses" % definition.long,
                    argument=definition,
                ))

        try:
            self._definitions.append(definition)
        except MemoryError:
            return self.trigger(AllocationFailureError(
                "out of memory while registering %s" % definition.long,
                title="allocation failure",
                code=FaultCode.ALLOCATION_FAILURE,
                hint="free some memory and try again",
                argument=definition,
            ))

        logger.debug("registered %r", definition)
        return definition

    def add_flag(self, short=None, long=Unset, descr=Unset, *, required=False, default=False):
        """
        declare a presence-only flag. flags are never required; `required` is ignored.
        """
        return self._register(short, long, descr, ArgumentType.FLAG, required, default)

    def add_string(self, short=None, long=Unset, descr=Unset, *, required=False, default=None):
        """
        declare a string option; `default` may be None (no value).
        """
        return self._register(short, long, descr, ArgumentType.STRING, required, default)

    def add_int(self, short=None, long=Unset, descr=Unset, *, required=False, default=0):
        """
        declare a 32-bit integer option.
        """
        return self._register(short, long, descr, ArgumentType.INT, required, default)

    def add_float(self, short=None, long=Unset, descr=Unset, *, required=False, default=0.0):
        """
        declare a single-precision float option.
        """
        return self._register(short, long, descr, ArgumentType.FLOAT, required, default)

    def set_validator(self, long, predicate, /):
        """
        attach `predicate` to the definition whose long name is exactly `long`.

        predicate(value: ArgumentValue, type: ArgumentType, message: io.StringIO) -> bool
        - return True to accept; False to reject, optionally writing a reason to `message`.
        - it runs at most once per parse, on the first accessor call for `long`.
        - results of a parse that already happened keep the previous validator.

        raises NotFoundError when no definition has that long name.
        """
        self._ensure_open()
        if not callable(predicate):
            raise TypeError("set_validator() predicate must be callable")

        for index, definition in enumerate(self._definitions):
            if definition.long == long:
                self._definitions[index] = copy.replace(definition, validator=predicate)
                logger.debug("attached validator %r to %s", predicate, long)
                return self._definitions[index]

        return self.trigger(NotFoundError(
            "no argument is registered as %r" % (long,),
            title="argument not found",
            code=FaultCode.NOT_FOUND,
            hint="validators attach by exact long name, e.g. '--count'",
            input=long,
        ))

    # --- parser -----------------------------------------------------------

    def parse(self, argv=Unset, /):
        """
        parse an argument vector against the definition table.

        parameters
        - argv: Unset | str | Iterable[str]
          • Unset → sys.argv[1:] (the program name is skipped).
          • str   → split shell-style with shlex.split.
          • other → the tokens themselves, program name excluded.

        behavior
        - results are rebuilt from scratch and positionals are reset, so a
          second call replaces the outcome of the first.
        - on error the offending fault is triggered (raised, or printed and exit
          in shell mode); results touched before the error are left as they are
          and the registry should be discarded.

        returns
        - the registry itself, for chaining.
        """
        self._ensure_open()

        if argv is Unset:
            tokens = sys.argv[1:]
        elif isinstance(argv, str):
            tokens = shlex.split(argv)
        elif isinstance(argv, Iterable):
            tokens = list(argv)
        else:
            raise TypeError("parse() argument must be a string or an iterable of strings")
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("parse() argument must be a string or an iterable of strings")

        self._results = {definition.long: Result(definition) for definition in self._definitions}
        self._positionals = []

        tokens = deque(tokens)
        index = 0

        while tokens:
            token = tokens.popleft()
            index += 1

            if not token.startswith("-"):
                try:
                    self._positionals.append(token)
                except MemoryError:
                    return self.trigger(AllocationFailureError(
                        "out of memory while storing positional %r at %s position" % (token, ordinal(index)),
                        title="allocation failure",
                        code=FaultCode.ALLOCATION_FAILURE,
                        hint="pass fewer arguments",
                        token=token,
                        index=index,
                    ))
                logger.debug("positional %r at %s position", token, ordinal(index))
                continue

            if (definition := self.find(token)) is None:
                names = [name for definition in self._definitions for name in definition.names]
                suggestions = difflib.get_close_matches(token, names, 5)
                try:
                    hint = "did you mean %r? you can also run '%s --help' to see all options" % (
                        suggestions[0], self.prog
                    )
                except IndexError:
                    hint = "try '%s --help' to see all available options" % self.prog
                return self.trigger(UnknownArgumentError(
                    "unknown argument %r at %s position" % (token, ordinal(index)),
                    title="unknown argument",
                    code=FaultCode.UNKNOWN_ARGUMENT,
                    hint=hint,
                    token=token,
                    index=index,
                    suggestions=suggestions,
                ))

            result = self._results[definition.long]

            if definition.type is ArgumentType.FLAG:
                result.assign(ArgumentValue(ArgumentType.FLAG, True))
                logger.debug("flag %s set at %s position", definition.long, ordinal(index))
                continue

            if not tokens:
                return self.trigger(MissingValueError(
                    "missing %s value for %r at %s position" % (definition.type.value, token, ordinal(index)),
                    title="missing value",
                    code=FaultCode.MISSING_VALUE,
                    hint="pass a value after it (for example: %s %s)" % (token, definition.type.placeholder),
                    token=token,
                    index=index,
                    argument=definition,
                ))

            text = tokens.popleft()
            index += 1
            result.assign(definition.type.decode(text))
            logger.debug("option %s=%r from %r at %s position", definition.long, result.value, text, ordinal(index))

        for definition in self._definitions:
            if definition.required and not self._results[definition.long].is_set:
                return self.trigger(MissingRequiredError(
                    "required argument %r is missing" % definition.long,
                    title="missing required argument",
                    code=FaultCode.MISSING_REQUIRED,
                    hint="pass it as '%s %s' or run '%s --help' for usage" % (
                        definition.long, definition.type.placeholder, self.prog
                    ),
                    argument=definition,
                ))

        return self

    # --- result store -----------------------------------------------------

    def _reject(self, result):
        """
        report a value rejected by its validator during lossy retrieval.
        """
        self.trigger(ValidationFailedWarning(
            "invalid value %r for %s: %s" % (
                result.value.payload, result.definition.long, result.reason or "rejected by its validator"
            ),
            title="validation failed",
            code=FaultCode.VALIDATION_FAILED,
            hint="the %s fallback is used instead" % result.definition.long,
            argument=result.definition,
            reason=result.reason,
        ))

    def result(self, long, /):
        """
        return the Result stored under `long` once it passed validation, else None.
        """
        if (result := self._results.get(long)) is None:
            return None
        if not result.validate(self._reject):
            return None
        return result

    def lookup(self, long, /):
        """
        strict retrieval: the stored Python value of `long`.

        raises
        - NotFoundError: nothing was parsed under `long`.
        - ValidatorRejectedError: the validator rejected the value (carries its reason).
        """
        if (result := self._results.get(long)) is None:
            return self.trigger(NotFoundError(
                "no parsed argument named %r" % (long,),
                title="argument not found",
                code=FaultCode.NOT_FOUND,
                hint="look arguments up by their long name after parse()",
                input=long,
            ))
        if not result.validate():
            return self.trigger(ValidatorRejectedError(
                "invalid value %r for %s: %s" % (
                    result.value.payload, long, result.reason or "rejected by its validator"
                ),
                title="validator rejected",
                code=FaultCode.VALIDATOR_REJECTED,
                hint="pass a value accepted by %s" % long,
                argument=result.definition,
                reason=result.reason,
            ))
        return result.value.payload

    def _fallback(self, long, type, /):
        """
        value returned when a numeric accessor cannot hand out the stored one.
        """
        for definition in self._definitions:
            if definition.long == long and definition.type is type:
                return definition.default.payload
        return type.zero.payload

    def get_flag(self, long, /):
        if (result := self.result(long)) is None or result.definition.type is not ArgumentType.FLAG:
            return False
        return result.value.flag

    def get_string(self, long, /):
        if (result := self.result(long)) is None or result.definition.type is not ArgumentType.STRING:
            return None
        return result.value.string

    def get_int(self, long, /):
        if (result := self.result(long)) is None or result.definition.type is not ArgumentType.INT:
            return self._fallback(long, ArgumentType.INT)
        return result.value.integer

    def get_float(self, long, /):
        if (result := self.result(long)) is None or result.definition.type is not ArgumentType.FLOAT:
            return self._fallback(long, ArgumentType.FLOAT)
        return result.value.floating

    def is_set(self, long, /):
        """
        whether the user supplied `long` in the last parse (validation is not consulted).
        """
        return (result := self._results.get(long)) is not None and result.is_set

    def get_positional(self):
        """
        positionals of the last parse, in order (count is its len()).
        """
        return tuple(self._positionals)

    # --- help -------------------------------------------------------------

    def _helper(self, prog):
        """
        build the help renderable.

        Palette keys
        - usage-label, program-name, usage-section, group-label
        - option-name, flag-name, metavar, argument-description, required-marker
        - panel-title

        Customization
        - Define a mapping named __styles__ in __main__ to override any palette entry.
        - When colorful is False, styling is suppressed.
        """
        styles = defaultdict(str, {
            # === Head sections ===
            "usage-label": "bold #00E6FF",  # CYAN → signature info color
            "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
            "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan

            # === Arguments ===
            "group-label": "bold #FFFFFF",  # Pure white headers
            "option-name": "bold #00E6FF",  # CYAN for options
            "flag-name": "bold #22C55E",  # GREEN for flags
            "metavar": "bold #FFD600",  # AMBER for placeholders
            "argument-description": "#9CA3AF",  # Muted gray
            "required-marker": "bold #EF4444",  # RED marker

            # === Fancy panel ===
            "panel-title": "bold #FF4D94",  # Magenta branding
        } | getattr(__import__("__main__"), "__styles__", {}))

        def styler(style):
            return styles[style] if self._colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not self._colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        usage = Text()
        usage.append("usage", styler("usage-label")).append(": ")
        usage.append(text(prog, styler("program-name")))
        usage.append(" ")
        usage.append(text("[OPTIONS]...", styler("usage-section")))

        options = Text()
        options.append(text("options", styler("group-label"))).append(":")

        for definition in self._definitions:
            style = "flag-name" if definition.type is ArgumentType.FLAG else "option-name"
            options.append("\n  ")
            options.append(Text(", ").join(text(name, styler(style)) for name in definition.names))
            if definition.type.placeholder:
                options.append(" ").append(text(definition.type.placeholder, styler("metavar")))

            line = []
            if definition.descr:
                line.append(text(definition.descr, styler("argument-description")))
            if definition.required:
                line.append(text("(required)", styler("required-marker")))
            if line:
                options.append("\n      ").append(Text(" ").join(line))

        renderable = Group(usage, Text(""), options)

        if self._fancy:
            renderable = Panel(
                renderable,
                title=Text.assemble("[", " ", f"{prog} HELP".upper(), " ", "]", style=styler("panel-title")),
                title_align="left",
            )
        return renderable

    def print_help(self, prog=Unset, /, *, file=Unset):
        """
        print usage and every definition (registration order) to stdout, or `file`.
        """
        console = Console(file=coalesce(file))
        console.print(self._helper(coalesce(prog, self.prog)))

    # --- teardown ---------------------------------------------------------

    def close(self):
        """
        release every definition, result and positional at once.

        a closed registry answers accessors with their fallbacks and refuses
        registration and parsing. closing twice is harmless.
        """
        if self._closed:
            return
        logger.debug("closing registry %r", self)
        self._definitions.clear()
        self._results.clear()
        self._positionals.clear()
        self._closed = True


__all__ = (
    "Registry",
)
