"""
Option parser behavioral tests (both flag forms, environment, conflicts, arity).

Scope
- Validate switches, inline and spaced flags, positionals and "--".
- Validate faults: unknown, missing value, switch assignment, duplicates.
- Validate environment fallback and its precedence under the command line.
- Validate symmetric conflict detection and arity checks.
- Validate unparse() produces tokens that parse back to the same result.

Conventions
- Test method names follow CamelCase per project convention.
- A shared set and a verb set are merged the way the dispatcher does it.
"""

from __future__ import annotations

import unittest
import warnings
from unittest import TestCase

from argosy import (
    Arity,
    ArityError,
    ConflictingOptionsError,
    DuplicateOptionError,
    EmptyValueWarning,
    Flag,
    MissingValueError,
    OptionSet,
    ParseError,
    ParsedOptions,
    Switch,
    SwitchAssignmentError,
    UnknownOptionError,
    merge,
    parse,
    unparse,
)


def _schema():
    shared = OptionSet([
        Flag("--sudo-service-user=", metavar="USER", env="SUDO_USER"),
        Switch("--json", env="JSON_OUTPUT"),
        Switch("-a", "--all"),
    ])
    own = OptionSet([
        Switch("--keep"),
        Switch("--no-wait"),
        Flag("--max-wait=", metavar="SECONDS", conflicts=["--no-wait"]),
    ], closed=False)
    return merge(shared, own)


class TestParse(TestCase):
    """Behavioral tests for parse()."""

    def setUp(self):
        self.schema = _schema()

    def testEveryIdentifierPresent(self):
        parsed = parse([], self.schema, environ={})
        self.assertEqual(dict(parsed), {
            "sudo_service_user": None,
            "json": False,
            "all": False,
            "keep": False,
            "no_wait": False,
            "max_wait": None,
        })
        self.assertEqual(parsed.arguments, ())

    def testSwitchesFlagsAndPositionals(self):
        parsed = parse(["--max-wait=5", "--keep", "web", "-a", "db"], self.schema, environ={})
        self.assertEqual(parsed["max_wait"], "5")
        self.assertTrue(parsed.keep)
        self.assertTrue(parsed.all)
        self.assertFalse(parsed.json)
        self.assertEqual(parsed.arguments, ("web", "db"))
        self.assertEqual(dict(parsed.origins), {"max_wait": "argv", "keep": "argv", "all": "argv"})

    def testSpacedFlagTakesNextTokenEvenWithDash(self):
        parsed = parse(["--sudo-service-user", "-root"], self.schema, environ={})
        self.assertEqual(parsed.sudo_service_user, "-root")
        self.assertEqual(parsed.arguments, ())

    def testInlineValueKeepsEquals(self):
        parsed = parse(["--sudo-service-user=a=b"], self.schema, environ={})
        self.assertEqual(parsed.sudo_service_user, "a=b")

    def testTerminator(self):
        parsed = parse(["--keep", "--", "--json", "-"], self.schema, environ={})
        self.assertTrue(parsed.keep)
        self.assertFalse(parsed.json)
        self.assertEqual(parsed.arguments, ("--json", "-"))

    def testLoneDashIsPositional(self):
        self.assertEqual(parse(["-"], self.schema, environ={}).arguments, ("-",))

    def testUnknownOption(self):
        with self.assertRaises(UnknownOptionError) as cm:
            parse(["web", "--jsno"], self.schema, environ={})
        fault = cm.exception
        self.assertEqual(fault.token, "--jsno")
        self.assertEqual(fault.position, 2)
        self.assertIn("--json", fault.suggestions)
        self.assertEqual(fault.hint, "did you mean '--json'?")
        self.assertIn("second position", str(fault))
        self.assertIsInstance(fault, ParseError)

    def testUnknownInlineOption(self):
        with self.assertRaises(UnknownOptionError) as cm:
            parse(["--zzz=1"], self.schema, environ={})
        self.assertEqual(cm.exception.token, "--zzz")

    def testMissingValue(self):
        with self.assertRaises(MissingValueError) as cm:
            parse(["--keep", "--max-wait"], self.schema, environ={})
        self.assertEqual(cm.exception.position, 2)
        self.assertEqual(cm.exception.hint, "write it as --max-wait=SECONDS")

    def testSwitchAssignment(self):
        with self.assertRaises(SwitchAssignmentError):
            parse(["--keep=yes"], self.schema, environ={})

    def testDuplicateOption(self):
        with self.assertRaises(DuplicateOptionError):
            parse(["--json", "--json"], self.schema, environ={})

    def testDuplicateThroughAnotherSpelling(self):
        with self.assertRaises(DuplicateOptionError) as cm:
            parse(["-a", "--all"], self.schema, environ={})
        self.assertEqual(cm.exception.identifier, "all")

    def testEmptyInlineValueWarns(self):
        with self.assertWarns(EmptyValueWarning):
            parsed = parse(["--max-wait="], self.schema, environ={})
        self.assertEqual(parsed.max_wait, "")

    def testPositionsReferToOriginalVector(self):
        with self.assertRaises(UnknownOptionError) as cm:
            parse(["--zzz"], self.schema, environ={}, positions=[3])
        self.assertEqual(cm.exception.position, 3)
        self.assertIn("third position", str(cm.exception))

    def testPositionsMustMatchTokens(self):
        with self.assertRaises(ValueError):
            parse(["--keep"], self.schema, environ={}, positions=[1, 2])

    def testAcceptsOneShotIterables(self):
        parsed = parse(iter(["--keep", "web"]), self.schema, environ={})
        self.assertTrue(parsed.keep)
        self.assertEqual(parsed.arguments, ("web",))

    def testRejectsBadArguments(self):
        with self.assertRaises(TypeError):
            parse("--keep", self.schema)
        with self.assertRaises(TypeError):
            parse(["--keep"], [Switch("--keep")])
        with self.assertRaises(TypeError):
            parse(["--keep"], self.schema, environ=["JSON_OUTPUT"])


class TestEnvironment(TestCase):
    """Behavioral tests for environment fallbacks."""

    def setUp(self):
        self.schema = _schema()

    def testFlagFromEnvironment(self):
        parsed = parse([], self.schema, environ={"SUDO_USER": "root"})
        self.assertEqual(parsed.sudo_service_user, "root")
        self.assertEqual(parsed.origins["sudo_service_user"], "env")

    def testCommandLineWins(self):
        parsed = parse(["--sudo-service-user=admin"], self.schema, environ={"SUDO_USER": "root"})
        self.assertEqual(parsed.sudo_service_user, "admin")
        self.assertEqual(parsed.origins["sudo_service_user"], "argv")

    def testEmptyFlagVariableIgnored(self):
        parsed = parse([], self.schema, environ={"SUDO_USER": ""})
        self.assertIsNone(parsed.sudo_service_user)
        self.assertNotIn("sudo_service_user", parsed.origins)

    def testSwitchFromDefinedVariable(self):
        self.assertTrue(parse([], self.schema, environ={"JSON_OUTPUT": ""}).json)
        self.assertTrue(parse([], self.schema, environ={"JSON_OUTPUT": "1"}).json)
        self.assertFalse(parse([], self.schema, environ={}).json)


class TestConflicts(TestCase):
    """Behavioral tests for conflicting options."""

    def setUp(self):
        self.schema = _schema()

    def testConflictIsSymmetric(self):
        with self.assertRaises(ConflictingOptionsError) as first:
            parse(["--no-wait", "--max-wait=5"], self.schema, environ={})
        with self.assertRaises(ConflictingOptionsError) as second:
            parse(["--max-wait=5", "--no-wait"], self.schema, environ={})
        self.assertEqual(str(first.exception), str(second.exception))
        self.assertEqual((first.exception.first, first.exception.second), ("no_wait", "max_wait"))

    def testSingleSideIsFine(self):
        self.assertTrue(parse(["--no-wait"], self.schema, environ={}).no_wait)
        self.assertEqual(parse(["--max-wait", "5"], self.schema, environ={}).max_wait, "5")


class TestArity(TestCase):
    """Behavioral tests for positional arity checks."""

    def setUp(self):
        self.schema = _schema()

    def testTooMany(self):
        with self.assertRaises(ArityError) as cm:
            parse(["web", "db"], self.schema, 1, environ={})
        self.assertEqual(cm.exception.expected, Arity.exactly(1))
        self.assertEqual(cm.exception.got, 2)
        self.assertEqual(str(cm.exception), "expected exactly 1 argument but got 2")
        self.assertEqual(cm.exception.hint, "remove the extra arguments")

    def testTooFew(self):
        with self.assertRaises(ArityError) as cm:
            parse([], self.schema, "+", environ={})
        self.assertIsNone(cm.exception.hint)

    def testArityCheckedAfterOptions(self):
        with self.assertRaises(UnknownOptionError):
            parse(["web", "db", "--zzz"], self.schema, 1, environ={})

    def testUnlimitedByDefault(self):
        self.assertEqual(len(parse(["a"] * 10, self.schema, environ={}).arguments), 10)


class TestParsedOptions(TestCase):
    """Behavioral tests for ParsedOptions and unparse()."""

    def setUp(self):
        self.schema = _schema()

    def testAttributeAccess(self):
        parsed = ParsedOptions({"max_wait": "5"}, ["web"])
        self.assertEqual(parsed.max_wait, "5")
        with self.assertRaises(AttributeError):
            parsed.keep

    def testImmutableMapping(self):
        parsed = ParsedOptions({"keep": True})
        with self.assertRaises(TypeError):
            parsed["keep"] = False

    def testEquality(self):
        self.assertEqual(
            ParsedOptions({"keep": True}, ["web"], {"keep": "argv"}),
            ParsedOptions({"keep": True}, ["web"], {"keep": "env"}),
        )
        self.assertNotEqual(ParsedOptions({"keep": True}, ["web"]), ParsedOptions({"keep": True}, ["db"]))

    def testRepr(self):
        self.assertEqual(repr(ParsedOptions({"keep": True})), "parsed-options(keep=True, arguments=())")

    def testUnparseRoundTrip(self):
        tokens = ["--json", "--sudo-service-user", "root", "--max-wait=5", "web", "--", "-db"]
        parsed = parse(tokens, self.schema, environ={})
        again = unparse(parsed, self.schema)
        self.assertEqual(again, ["--sudo-service-user=root", "--json", "--max-wait=5", "--", "web", "-db"])
        self.assertEqual(parse(again, self.schema, environ={}), parsed)


if __name__ == "__main__":
    unittest.main()
