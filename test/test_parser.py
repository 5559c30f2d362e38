"""
Parser module behavioral tests (state machine, built-ins, faults, invoke).

Scope
- Validate long/short/bare token handling and short clusters.
- Validate positional collection, arity checks and caller buffers.
- Validate help/version precedence and shell-mode termination.
- Validate position-first faults and their hints.

Conventions
- Test method names follow CamelCase per project convention.
- Help/version output is captured through a rich Console writing to StringIO.
"""

from __future__ import annotations

import ctypes
import enum
import io
import unittest
from unittest import TestCase, mock

from rich.console import Console

from argonym import Field, Outcome, Parsed, Parser, Schema, TokenKind, classify, invoke
from argonym.faults import (
    FlagAssignmentError,
    InvalidArgumentOrderError,
    InvalidNumericLiteralError,
    MissingValueError,
    NumericOverflowError,
    OptionAfterPositionalError,
    PositionalBufferError,
    ShadowedSwitchWarning,
    UnknownArgumentError,
    UnknownEnumVariantError,
    WrongNumberOfArgumentsError,
)

Choice = enum.Enum("Choice", ["abc", "def", "ghi"])


def capture():
    return Console(file=io.StringIO(), color_system=None, width=120)


class FullBuffer(list):
    def append(self, value, /):
        raise MemoryError


class TestParserTokens(TestCase):
    """Behavioral tests for optional arguments and short clusters."""

    def setUp(self):
        self.console = capture()
        self.parser = Parser(
            Field("__program", str, default="tool"),
            Field("__version", str, default="1.2.3"),
            Field("format", str, "output format"),
            Field("_verbosity", ctypes.c_uint8, "how chatty"),
            Field("_silent", bool, "say nothing"),
            Field("_output", str, "where to write"),
            Field("choice", Choice, "pick one", default=Choice.abc),
            Field("ratio", float, "a ratio", default=1.0),
            console=self.console,
        )

    def testLongOptionWithValue(self):
        self.assertEqual(self.parser.parse(["--format", "x"])["format"], "x")

    def testShortOptionWithValue(self):
        self.assertEqual(self.parser.parse(["-v", "3"])["verbosity"], 3)

    def testInlineLongValue(self):
        self.assertEqual(self.parser.parse(["--verbosity=7"])["verbosity"], 7)
        self.assertEqual(self.parser.parse(["--format="])["format"], "")

    def testInlineValueOnFlagRaises(self):
        with self.assertRaises(FlagAssignmentError):
            self.parser.parse(["--silent=yes"])

    def testValueTakingShortNotLastRaises(self):
        with self.assertRaises(InvalidArgumentOrderError) as ctx:
            self.parser.parse(["-vs"])
        self.assertIs(type(ctx.exception), InvalidArgumentOrderError)

    def testClusterEndingWithValueTaker(self):
        parsed = self.parser.parse(["-so", "out.txt"])
        self.assertTrue(parsed["silent"])
        self.assertEqual(parsed["output"], "out.txt")

    def testDefaultsWhenAbsent(self):
        parsed = self.parser.parse([])
        self.assertIsNone(parsed["format"])
        self.assertIs(parsed["silent"], False)
        self.assertIs(parsed["choice"], Choice.abc)
        self.assertEqual(parsed["ratio"], 1.0)
        self.assertNotIn("program", parsed)

    def testLastValueWins(self):
        self.assertEqual(self.parser.parse(["--format", "a", "--format", "b"])["format"], "b")

    def testEnumChoice(self):
        value = self.parser.parse(["--choice", "def"])["choice"]
        self.assertIs(value, Choice["def"])
        self.assertEqual(list(Choice).index(value), 1)

    def testUnknownEnumChoiceRaises(self):
        with self.assertRaises(UnknownEnumVariantError):
            self.parser.parse(["--choice", "xyz"])

    def testPendingValueTakenVerbatim(self):
        self.assertEqual(self.parser.parse(["--format", "--silent"])["format"], "--silent")
        self.assertEqual(self.parser.parse(["--ratio", "-0.5"])["ratio"], -0.5)

    def testMissingValueRaises(self):
        with self.assertRaises(MissingValueError) as ctx:
            self.parser.parse(["--silent", "--format"])
        self.assertEqual(ctx.exception.index, 2)

    def testUnknownLongRaisesWithSuggestion(self):
        with self.assertRaises(UnknownArgumentError) as ctx:
            self.parser.parse(["--formt", "x"])
        self.assertIn("--format", ctx.exception.suggestions)
        self.assertIn("--format", ctx.exception.hint)

    def testUnknownShortRaises(self):
        with self.assertRaises(UnknownArgumentError):
            self.parser.parse(["-z"])

    def testBareTokenWithoutPositionalRaises(self):
        with self.assertRaises(UnknownArgumentError):
            self.parser.parse(["file.txt"])

    def testInvalidNumberNamesPosition(self):
        with self.assertRaises(InvalidNumericLiteralError) as ctx:
            self.parser.parse(["--silent", "-v", "lots"])
        self.assertEqual(ctx.exception.index, 3)
        self.assertIn("third position", ctx.exception.message)

    def testOverflowRaises(self):
        with self.assertRaises(NumericOverflowError):
            self.parser.parse(["-v", "300"])

    def testTemplateDefaults(self):
        parsed = self.parser.parse([], template={"format": "json"})
        self.assertEqual(parsed["format"], "json")
        self.assertIsNone(self.parser.parse([])["format"])

    def testTemplateUnknownNameRaises(self):
        with self.assertRaises(TypeError):
            self.parser.parse([], template={"nope": 1})

    def testRejectsStringArgv(self):
        with self.assertRaises(TypeError):
            self.parser.parse("--silent")

    def testRejectsNonStringToken(self):
        with self.assertRaises(TypeError):
            self.parser.parse(["--verbosity", 3])


class TestParserBuiltins(TestCase):
    """Behavioral tests for help and version precedence."""

    def setUp(self):
        self.console = capture()
        self.parser = Parser(
            Field("__program", str, default="tool"),
            Field("__version", str, default="1.2.3"),
            Field("_level", int, "a level"),
            Field("FILE:*", str, "files"),
            console=self.console,
        )

    def testHelpShortCircuits(self):
        parsed = self.parser.parse(["--help", "--level", "not-a-number"])
        self.assertEqual(parsed.outcome, Outcome.HELP)
        self.assertEqual(len(parsed), 0)
        self.assertIn("usage: tool [FILE]...", self.console.file.getvalue())

    def testHelpInShortCluster(self):
        self.assertEqual(self.parser.parse(["-xh"]).outcome, Outcome.HELP)

    def testVersion(self):
        self.assertEqual(self.parser.parse(["-V"]).outcome, Outcome.VERSION)
        self.assertEqual(self.parser.parse(["--version"]).outcome, Outcome.VERSION)
        self.assertIn("tool 1.2.3", self.console.file.getvalue())

    def testHelpAfterPositional(self):
        self.assertEqual(self.parser.parse(["a.txt", "--help"]).outcome, Outcome.HELP)

    def testBuiltinsWinOverShadowingFields(self):
        with self.assertWarns(ShadowedSwitchWarning):
            parser = Parser(Field("_hidden", bool), console=self.console)
        self.assertEqual(parser.parse(["-h"]).outcome, Outcome.HELP)

    def testShellHelpExitsZero(self):
        parser = Parser(self.parser.schema, console=self.console, shell=True)
        with self.assertRaises(SystemExit) as ctx:
            parser.parse(["--help"])
        self.assertEqual(ctx.exception.code, 0)

    def testShellFaultExitsOne(self):
        parser = Parser(self.parser.schema, console=self.console, shell=True)
        stderr = capture()
        with mock.patch("argonym.faults.console", stderr), self.assertRaises(SystemExit) as ctx:
            parser.parse(["--levle", "3"])
        self.assertEqual(ctx.exception.code, 1)
        self.assertIn("Unknown Argument", stderr.file.getvalue())
        self.assertIn("11112", stderr.file.getvalue())


class TestParserPositionals(TestCase):
    """Behavioral tests for positional collection and arity."""

    def testCollectZeroOrMore(self):
        parser = Parser(Field("FILE:*", str))
        parsed = parser.parse(["file1", "file2"])
        self.assertEqual(parsed.positionals, ["file1", "file2"])
        self.assertEqual(parsed["FILE"], ["file1", "file2"])

    def testZeroOrMoreAcceptsNone(self):
        self.assertEqual(Parser(Field("FILE:*", str)).parse([]).positionals, [])

    def testOptionAfterPositionalRaises(self):
        parser = Parser(Field("_x", bool), Field("FILE:*", str))
        with self.assertRaises(OptionAfterPositionalError) as ctx:
            parser.parse(["file1", "-x"])
        self.assertIsInstance(ctx.exception, InvalidArgumentOrderError)
        self.assertEqual(ctx.exception.index, 2)

    def testOptionsBeforePositionals(self):
        parsed = Parser(Field("_x", bool), Field("FILE:*", str)).parse(["-x", "a", "b"])
        self.assertTrue(parsed["x"])
        self.assertEqual(parsed.positionals, ["a", "b"])

    def testLoneDashIsFirstPositional(self):
        self.assertEqual(Parser(Field("FILE:*", str)).parse(["-"]).positionals, ["-"])

    def testLoneDashAfterPositionalRaises(self):
        with self.assertRaises(OptionAfterPositionalError) as ctx:
            Parser(Field("FILE:*", str)).parse(["a", "-"])
        self.assertEqual(ctx.exception.index, 2)

    def testAtLeastOneMessageIsSingular(self):
        with self.assertRaises(WrongNumberOfArgumentsError) as ctx:
            Parser(Field("FILE:+", str)).parse([])
        self.assertEqual(ctx.exception.message, "expected at least one FILE value, got 0")

    def testExactlyNMessageIsPlural(self):
        with self.assertRaises(WrongNumberOfArgumentsError) as ctx:
            Parser(Field("PAIR:2", int)).parse([])
        self.assertEqual(ctx.exception.message, "expected exactly 2 PAIR values, got 0")

    def testExactlyNWithTooFewRaises(self):
        with self.assertRaises(WrongNumberOfArgumentsError) as ctx:
            Parser(Field("PAIR:2", int)).parse(["1"])
        self.assertEqual(ctx.exception.count, 1)

    def testExactlyNWithTooManyRaises(self):
        with self.assertRaises(WrongNumberOfArgumentsError):
            Parser(Field("PAIR:2", int)).parse(["1", "2", "3"])

    def testExactlyNCoerces(self):
        self.assertEqual(Parser(Field("PAIR:2", int)).parse(["1", "2"]).positionals, [1, 2])

    def testAtLeastOneWithNoneRaises(self):
        with self.assertRaises(WrongNumberOfArgumentsError):
            Parser(Field("FILE:+", str)).parse([])

    def testPositionalCoercionFaultNamesPosition(self):
        with self.assertRaises(InvalidNumericLiteralError) as ctx:
            Parser(Field("N:*", int)).parse(["1", "two"])
        self.assertIn("second position", ctx.exception.message)

    def testCallerBuffer(self):
        buffer = []
        parsed = Parser(Field("FILE:*", str)).parse(["a"], positionals=buffer)
        self.assertIs(parsed.positionals, buffer)
        self.assertEqual(buffer, ["a"])

    def testBufferFailureRaises(self):
        with self.assertRaises(PositionalBufferError):
            Parser(Field("FILE:*", str)).parse(["a"], positionals=FullBuffer())


class TestParserSurface(TestCase):
    """Behavioral tests for construction, results and invoke()."""

    def testParserFromSchema(self):
        schema = Schema(Field("name", str))
        self.assertIs(Parser(schema).schema, schema)

    def testParserRejectsOtherEntries(self):
        with self.assertRaises(TypeError):
            Parser("name")

    def testSuppliedConsoleIsKept(self):
        console = capture()
        self.assertIs(Parser(Field("name", str), console=console).console, console)

    def testDefaultConsoleWritesToStdout(self):
        self.assertFalse(Parser(Field("name", str)).console.stderr)

    def testParserRejectsNonConsole(self):
        with self.assertRaises(TypeError):
            Parser(Field("name", str), console=io.StringIO())

    def testParserIsReusable(self):
        parser = Parser(Field("_n", int), Field("FILE:*", str))
        first = parser.parse(["-n", "1", "a"])
        second = parser.parse(["b"])
        self.assertEqual(first.positionals, ["a"])
        self.assertEqual(second.positionals, ["b"])
        self.assertIsNone(second["n"])

    def testParsedIsReadOnly(self):
        parsed = Parser(Field("name", str)).parse(["--name", "x"])
        self.assertEqual(parsed.outcome, Outcome.PARSED)
        with self.assertRaises(TypeError):
            parsed.values["name"] = "y"

    def testParsedEquality(self):
        parser = Parser(Field("name", str))
        self.assertEqual(parser.parse(["--name", "x"]), parser.parse(["--name=x"]))
        self.assertIsInstance(parser.parse([]), Parsed)

    def testClassify(self):
        self.assertEqual(classify("--name"), TokenKind.LONG)
        self.assertEqual(classify("-n"), TokenKind.SHORT)
        self.assertEqual(classify("--"), TokenKind.SHORT)
        self.assertEqual(classify("-"), TokenKind.BARE)
        self.assertEqual(classify("name"), TokenKind.BARE)

    def testInvokeSplitsString(self):
        parser = Parser(Field("_n", int), Field("FILE:*", str))
        parsed = invoke(parser, "-n 2 'a b.txt'")
        self.assertEqual(parsed["n"], 2)
        self.assertEqual(parsed.positionals, ["a b.txt"])

    def testInvokeRunsInShellMode(self):
        parser = Parser(Field("_n", int), console=capture())
        with mock.patch("argonym.faults.console", capture()), self.assertRaises(SystemExit) as ctx:
            invoke(parser, ["-n", "x"])
        self.assertEqual(ctx.exception.code, 1)

    def testInvokeReadsArgv(self):
        parser = Parser(Field("_n", int))
        with mock.patch("sys.argv", ["prog", "-n", "4"]):
            self.assertEqual(invoke(parser)["n"], 4)

    def testInvokeRejectsNonParser(self):
        with self.assertRaises(TypeError):
            invoke(lambda: None, "")


if __name__ == '__main__':
    unittest.main()
