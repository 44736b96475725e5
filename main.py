import logging
import sys

from rich.console import Console
from rich.pretty import pprint

from argosy import *

console = Console()


def validate_count(value, type, message):
    if type is not ArgumentType.INT:
        return False
    if not 1 <= value.integer <= 100:
        message.write("count must be between 1 and 100, got %d" % value.integer)
        return False
    return True


def validate_threshold(value, type, message):
    if type is not ArgumentType.FLOAT:
        return False
    if not 0.0 <= value.floating <= 1.0:
        message.write("threshold must be between 0.0 and 1.0, got %.2f" % value.floating)
        return False
    return True


def validate_output(value, type, message):
    if type is not ArgumentType.STRING or value.string is None:
        return False
    if not value.string.endswith(".txt"):
        message.write("output file must have .txt extension, got %r" % value.string)
        return False
    return True


def build(prog):
    registry = Registry(prog, shell=True)

    registry.add_flag("-v", "--verbose", "Enable verbose output")
    registry.add_flag("-h", "--help", "Display this help message")
    registry.add_flag("-d", "--debug", "Log every parsing step")
    registry.add_string("-o", "--output", "Output file path", default="output.txt")
    registry.add_string("-i", "--input", "Input file path", required=True)
    registry.add_int("-n", "--count", "Number of iterations", default=10)
    registry.add_float("-t", "--threshold", "Threshold value", default=0.5)

    registry.set_validator("--count", validate_count)
    registry.set_validator("--threshold", validate_threshold)
    registry.set_validator("--output", validate_output)
    return registry


def main(argv):
    with build(argv[0]) as registry:
        # help wins over any parsing error
        if any(token in ("-h", "--help") for token in argv[1:]):
            registry.print_help()
            return 0

        if "-d" in argv[1:] or "--debug" in argv[1:]:
            logging.basicConfig(level=logging.DEBUG)

        registry.parse(argv[1:])

        verbose = registry.get_flag("--verbose")
        source = registry.get_string("--input")
        output = registry.get_string("--output")
        count = registry.get_int("--count")
        threshold = registry.get_float("--threshold")

        def default(long):
            return "" if registry.is_set(long) else " (default)"

        console.print("=== Program Arguments Example ===")
        console.print("Verbose mode: %s" % ("enabled" if verbose else "disabled"))
        console.print("Input file: %s" % source, markup=False)
        console.print("Output file: %s%s" % (output, default("--output")), markup=False)
        console.print("Count: %d%s" % (count, default("--count")))
        console.print("Threshold: %.2f%s" % (threshold, default("--threshold")))

        if positionals := registry.get_positional():
            console.print("\nPositional arguments:")
            for index, positional in enumerate(positionals):
                console.print("  [%d] %s" % (index, positional), markup=False)

        if verbose:
            console.print("\n=== Verbose Details ===")
            console.print("Processing %d iterations with threshold %.2f" % (count, threshold))
            console.print("Reading from: %s" % source, markup=False)
            console.print("Writing to: %s" % output, markup=False)
            pprint(registry)
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv))
