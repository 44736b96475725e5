# python
"""
Registry behavioral tests.

Scope
- Validate registration (duplicate names, validator attachment by long name).
- Validate the single-pass parser: option matching, value consumption, positionals,
  last-occurrence-wins, permissive numeric decoding and the error order.
- Validate retrieval: lossy accessors with their fallbacks, lazy validate-once gating,
  the strict lookup(), and teardown.
- Validate shell mode (faults printed on stderr, errors exit with status 1).

Conventions
- Test method names follow CamelCase per project convention.
- Every registry mirrors the demo program's arguments unless a test needs otherwise.
"""

from __future__ import annotations

import io
import threading
import unittest
import warnings
from unittest import TestCase, mock

from rich.console import Console

from argosy import *


def in_range(value, type, message):
    if not 1 <= value.integer <= 100:
        message.write("count must be between 1 and 100, got %d" % value.integer)
        return False
    return True


def build(**options):
    registry = Registry("tool", **options)
    registry.add_flag("-v", "--verbose", "Enable verbose output")
    registry.add_string("-o", "--output", "Output file path", default="output.txt")
    registry.add_string("-i", "--input", "Input file path", required=True)
    registry.add_int("-n", "--count", "Number of iterations", default=10)
    registry.add_float("-t", "--threshold", "Threshold value", default=0.5)
    return registry


class TestRegistration(TestCase):
    """Behavioral tests for the definition table."""

    def testAddReturnsDefinition(self):
        registry = Registry("tool")
        d = registry.add_int("-n", "--count", default=10)
        self.assertIsInstance(d, Definition)
        self.assertIs(d.type, ArgumentType.INT)
        self.assertEqual(registry.definitions, (d,))

    def testRegistrationOrderKept(self):
        registry = build()
        self.assertEqual(
            [d.long for d in registry.definitions],
            ["--verbose", "--output", "--input", "--count", "--threshold"],
        )

    def testDuplicateLongNameRejected(self):
        registry = build()
        with self.assertRaises(DuplicateDefinitionError) as context:
            registry.add_flag("-x", "--verbose")
        self.assertIsInstance(context.exception, InvalidDefinitionError)
        self.assertEqual(context.exception.options["code"], FaultCode.DUPLICATE_DEFINITION)

    def testDuplicateShortNameRejected(self):
        registry = build()
        with self.assertRaises(DuplicateDefinitionError):
            registry.add_string("-v", "--value")
        self.assertEqual(len(registry.definitions), 5)

    def testShortNameCannotShadowLongName(self):
        registry = Registry("tool")
        registry.add_flag(None, "-x")
        with self.assertRaises(DuplicateDefinitionError):
            registry.add_flag("-x", "--extra")

    def testInvalidDefinitionRaises(self):
        with self.assertRaises(InvalidDefinitionError):
            Registry("tool").add_flag("-v")

    def testFind(self):
        registry = build()
        self.assertEqual(registry.find("-n").long, "--count")
        self.assertIsNone(registry.find("--missing"))

    def testSetValidatorReplacesDefinition(self):
        registry = build()
        d = registry.set_validator("--count", in_range)
        self.assertIs(d.validator, in_range)
        self.assertIs(registry.find("--count").validator, in_range)

    def testSetValidatorByShortNameNotFound(self):
        registry = build()
        with self.assertRaises(NotFoundError) as context:
            registry.set_validator("-n", in_range)
        self.assertIsInstance(context.exception, LookupError)
        self.assertEqual(context.exception.options["code"], FaultCode.NOT_FOUND)

    def testSetValidatorRequiresCallable(self):
        with self.assertRaises(TypeError):
            build().set_validator("--count", 5)


class TestParsing(TestCase):
    """Behavioral tests for parse()."""

    def testMixedOptionsAndPositionals(self):
        registry = build().parse(["-i", "data.csv", "first", "-v", "second", "-n", "5"])
        self.assertEqual(registry.get_string("--input"), "data.csv")
        self.assertTrue(registry.get_flag("--verbose"))
        self.assertEqual(registry.get_int("--count"), 5)
        self.assertEqual(registry.get_positional(), ("first", "second"))

    def testDefaultsWhenAbsent(self):
        registry = build().parse(["-i", "in.txt"])
        self.assertEqual(registry.get_string("--output"), "output.txt")
        self.assertFalse(registry.is_set("--output"))
        self.assertEqual(registry.get_int("--count"), 10)
        self.assertEqual(registry.get_float("--threshold"), 0.5)
        self.assertFalse(registry.get_flag("--verbose"))
        self.assertFalse(registry.is_set("--verbose"))

    def testIsSetAfterSupplied(self):
        registry = build().parse(["-i", "in.txt", "--output", "out.txt"])
        self.assertTrue(registry.is_set("--output"))
        self.assertTrue(registry.is_set("--input"))

    def testLastOccurrenceWins(self):
        registry = build().parse(["-i", "a", "-n", "5", "--count", "7"])
        self.assertEqual(registry.get_int("--count"), 7)

    def testValueIsConsumedVerbatim(self):
        registry = build().parse(["-i", "a", "-o", "-v"])
        self.assertEqual(registry.get_string("--output"), "-v")
        self.assertFalse(registry.get_flag("--verbose"))

    def testPermissiveNumbers(self):
        registry = build().parse(["-i", "a", "-n", "abc", "-t", "0.75xyz"])
        self.assertEqual(registry.get_int("--count"), 0)
        self.assertTrue(registry.is_set("--count"))
        self.assertEqual(registry.get_float("--threshold"), 0.75)

    def testStringArgvIsSplitShellStyle(self):
        registry = build().parse("-i 'my file.txt' extra")
        self.assertEqual(registry.get_string("--input"), "my file.txt")
        self.assertEqual(registry.get_positional(), ("extra",))

    def testEmptyPositionals(self):
        self.assertEqual(build().parse(["-i", "a"]).get_positional(), ())

    def testParseReturnsRegistry(self):
        registry = build()
        self.assertIs(registry.parse(["-i", "a"]), registry)

    def testNonStringTokensRejected(self):
        with self.assertRaises(TypeError):
            build().parse(["-i", 5])
        with self.assertRaises(TypeError):
            build().parse(5)

    def testUnknownArgument(self):
        registry = build()
        with self.assertRaises(UnknownArgumentError) as context:
            registry.parse(["--verbos", "-i", "a"])
        self.assertEqual(context.exception.options["token"], "--verbos")
        self.assertEqual(context.exception.options["index"], 1)
        self.assertIn("--verbose", context.exception.options["suggestions"])
        self.assertIn("first position", str(context.exception))
        self.assertEqual(registry.get_positional(), ())

    def testUnknownBeatsMissingRequired(self):
        with self.assertRaises(UnknownArgumentError):
            build().parse(["--bogus"])

    def testMissingValue(self):
        with self.assertRaises(MissingValueError) as context:
            build().parse(["-i", "a", "--count"])
        self.assertEqual(context.exception.options["token"], "--count")
        self.assertEqual(context.exception.options["index"], 3)

    def testMissingRequired(self):
        with self.assertRaises(MissingRequiredError) as context:
            build().parse(["-v"])
        self.assertEqual(context.exception.options["argument"].long, "--input")
        self.assertEqual(context.exception.options["code"], FaultCode.MISSING_REQUIRED)

    def testFirstMissingRequiredInRegistrationOrder(self):
        registry = Registry("tool")
        registry.add_string("-a", "--alpha", required=True)
        registry.add_string("-b", "--beta", required=True)
        with self.assertRaises(MissingRequiredError) as context:
            registry.parse([])
        self.assertEqual(context.exception.options["argument"].long, "--alpha")

    def testErrorsCarryRegistry(self):
        registry = build()
        with self.assertRaises(MissingRequiredError) as context:
            registry.parse([])
        self.assertIs(context.exception.options["registry"], registry)

    def testSecondParseResetsState(self):
        registry = build().parse(["-i", "a", "-v", "-n", "3", "pos"])
        registry.parse(["-i", "b"])
        self.assertFalse(registry.get_flag("--verbose"))
        self.assertFalse(registry.is_set("--count"))
        self.assertEqual(registry.get_int("--count"), 10)
        self.assertEqual(registry.get_positional(), ())

    def testDefaultsFromSysArgv(self):
        registry = build()
        with mock.patch("sys.argv", ["tool", "-i", "a", "rest"]):
            registry.parse()
        self.assertEqual(registry.get_positional(), ("rest",))


class TestRetrieval(TestCase):
    """Behavioral tests for accessors, validation gating and lookup()."""

    def testValidValuePassesThrough(self):
        registry = build()
        registry.set_validator("--count", in_range)
        registry.parse(["-i", "a", "-n", "50"])
        self.assertEqual(registry.get_int("--count"), 50)

    def testRejectedValueFallsBackToDefault(self):
        registry = build()
        registry.set_validator("--count", in_range)
        registry.parse(["-i", "a", "-n", "200"])
        with self.assertWarns(ValidationFailedWarning) as context:
            self.assertEqual(registry.get_int("--count"), 10)
        self.assertIn("count must be between 1 and 100, got 200", str(context.warning))
        self.assertTrue(registry.is_set("--count"))

    def testRejectionReportedOnce(self):
        registry = build()
        registry.set_validator("--count", in_range)
        registry.parse(["-i", "a", "-n", "0"])
        with self.assertWarns(ValidationFailedWarning):
            registry.get_int("--count")
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            self.assertEqual(registry.get_int("--count"), 10)
        self.assertEqual(caught, [])

    def testValidatorRunsOncePerParse(self):
        calls = []

        def tracking(value, type, message):
            calls.append(value)
            return True

        registry = build()
        registry.set_validator("--count", tracking)
        registry.parse(["-i", "a", "-n", "5"])
        registry.get_int("--count")
        registry.get_int("--count")
        registry.lookup("--count")
        self.assertEqual(len(calls), 1)
        registry.parse(["-i", "a", "-n", "6"])
        registry.get_int("--count")
        self.assertEqual(len(calls), 2)

    def testValidatorSeesDefaultWhenAbsent(self):
        seen = []

        def tracking(value, type, message):
            seen.append((value.integer, type))
            return True

        registry = build()
        registry.set_validator("--count", tracking)
        registry.parse(["-i", "a"])
        registry.get_int("--count")
        self.assertEqual(seen, [(10, ArgumentType.INT)])

    def testRejectedStringIsNone(self):
        registry = build()
        registry.set_validator("--output", lambda value, type, message: value.string.endswith(".txt"))
        registry.parse(["-i", "a", "-o", "out.csv"])
        with self.assertWarns(ValidationFailedWarning):
            self.assertIsNone(registry.get_string("--output"))

    def testIsSetDoesNotValidate(self):
        calls = []
        registry = build()
        registry.set_validator("--count", lambda value, type, message: calls.append(value))
        registry.parse(["-i", "a", "-n", "5"])
        self.assertTrue(registry.is_set("--count"))
        self.assertEqual(calls, [])

    def testUnknownNamesFallBack(self):
        registry = build().parse(["-i", "a"])
        self.assertFalse(registry.get_flag("--nope"))
        self.assertIsNone(registry.get_string("--nope"))
        self.assertEqual(registry.get_int("--nope"), 0)
        self.assertEqual(registry.get_float("--nope"), 0.0)
        self.assertFalse(registry.is_set("--nope"))

    def testShortNamesDoNotRetrieve(self):
        registry = build().parse(["-i", "a", "-n", "5"])
        self.assertEqual(registry.get_int("-n"), 0)

    def testTypeMismatchFallsBack(self):
        registry = build().parse(["-i", "a", "-n", "5"])
        self.assertIsNone(registry.get_string("--count"))
        self.assertEqual(registry.get_float("--count"), 0.0)
        self.assertEqual(registry.get_int("--input"), 0)

    def testAccessorsBeforeParse(self):
        registry = build()
        self.assertEqual(registry.get_int("--count"), 10)
        self.assertIsNone(registry.get_string("--output"))
        self.assertFalse(registry.is_set("--count"))

    def testLookupReturnsPayload(self):
        registry = build().parse(["-i", "a", "-t", "0.25"])
        self.assertEqual(registry.lookup("--threshold"), 0.25)
        self.assertEqual(registry.lookup("--count"), 10)

    def testLookupNotFound(self):
        with self.assertRaises(NotFoundError):
            build().parse(["-i", "a"]).lookup("--nope")

    def testLookupRejected(self):
        registry = build()
        registry.set_validator("--count", in_range)
        registry.parse(["-i", "a", "-n", "101"])
        with self.assertRaises(ValidatorRejectedError) as context:
            registry.lookup("--count")
        self.assertEqual(context.exception.options["reason"], "count must be between 1 and 100, got 101")

    def testResultExposesState(self):
        registry = build().parse(["-i", "a"])
        result = registry.result("--input")
        self.assertIs(result.state, ValidationState.VALID)
        self.assertEqual(result.value.string, "a")
        self.assertIsNone(registry.result("--nope"))

    def testValidatorAttachedAfterParseAppliesNextParse(self):
        registry = build().parse(["-i", "a", "-n", "500"])
        registry.set_validator("--count", in_range)
        self.assertEqual(registry.get_int("--count"), 500)
        registry.parse(["-i", "a", "-n", "500"])
        with self.assertWarns(ValidationFailedWarning):
            self.assertEqual(registry.get_int("--count"), 10)


    def testCrossFieldValidatorsDoNotDeadlock(self):
        registry = Registry("tool")
        registry.add_int(None, "--low")
        registry.add_int(None, "--high")
        registry.set_validator("--low", lambda value, type, message: value.integer <= registry.get_int("--high"))
        registry.set_validator("--high", lambda value, type, message: value.integer >= registry.get_int("--low"))
        registry.parse(["--low", "2", "--high", "4"])

        outcome = []
        worker = threading.Thread(target=lambda: outcome.append(registry.get_int("--low")), daemon=True)
        worker.start()
        worker.join(5)

        self.assertFalse(worker.is_alive())
        self.assertEqual(outcome, [2])
        self.assertEqual(registry.get_int("--high"), 4)

    def testValidatorReadingItselfDoesNotDeadlock(self):
        registry = build()
        registry.set_validator("--count", lambda value, type, message: registry.get_int("--count") == 10)
        registry.parse(["-i", "a", "-n", "5"])

        outcome = []
        worker = threading.Thread(target=lambda: outcome.append(registry.get_int("--count")), daemon=True)
        worker.start()
        worker.join(5)

        self.assertFalse(worker.is_alive())
        self.assertEqual(outcome, [5])


class TestTeardown(TestCase):
    """Behavioral tests for close() and the context manager."""

    def testContextManagerCloses(self):
        with build() as registry:
            registry.parse(["-i", "a", "x"])
            self.assertFalse(registry.closed)
        self.assertTrue(registry.closed)
        self.assertEqual(registry.definitions, ())
        self.assertEqual(registry.get_positional(), ())
        self.assertEqual(registry.get_int("--count"), 0)

    def testClosedRegistryRefusesWork(self):
        registry = build()
        registry.close()
        registry.close()
        with self.assertRaises(RuntimeError):
            registry.add_flag("-q", "--quiet")
        with self.assertRaises(RuntimeError):
            registry.parse([])
        with self.assertRaises(RuntimeError):
            registry.set_validator("--count", in_range)


class TestShellMode(TestCase):
    """Behavioral tests for shell mode (print and exit)."""

    def setUp(self) -> None:
        self.stream = io.StringIO()
        patcher = mock.patch("argosy.faults.console", Console(file=self.stream, width=200))
        patcher.start()
        self.addCleanup(patcher.stop)

    def testErrorExits(self):
        registry = build(shell=True)
        with self.assertRaises(SystemExit) as context:
            registry.parse(["--bogus"])
        self.assertEqual(context.exception.code, 1)
        self.assertIn("unknown argument '--bogus' at first position", self.stream.getvalue())
        self.assertIn("11111", self.stream.getvalue())

    def testWarningIsPrinted(self):
        registry = build(shell=True)
        registry.set_validator("--count", in_range)
        registry.parse(["-i", "a", "-n", "0"])
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            self.assertEqual(registry.get_int("--count"), 10)
        self.assertEqual(caught, [])
        self.assertIn("got 0", self.stream.getvalue())


if __name__ == "__main__":
    unittest.main()
