"""
Token helper behavioral tests (verb extraction, help detection, tokenizing).

Scope
- Validate extract(): empty input, all-dash input, positional removal.
- Validate locate() and wants_help().
- Validate tokenize() for Unset, strings and iterables.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import sys
import unittest
from unittest import TestCase, mock

from argosy import extract, locate, tokenize, wants_help


class TestExtract(TestCase):
    """Behavioral tests for extract() and locate()."""

    def testEmpty(self):
        self.assertEqual(extract([]), (None, []))

    def testOnlyDashTokens(self):
        self.assertEqual(extract(["--json", "-a"]), (None, ["--json", "-a"]))
        self.assertIsNone(locate(["--json", "-a"]))

    def testVerbFirst(self):
        self.assertEqual(extract(["stop", "--keep"]), ("stop", ["--keep"]))

    def testVerbAfterSharedOptions(self):
        self.assertEqual(extract(["--json", "stop", "--keep"]), ("stop", ["--json", "--keep"]))
        self.assertEqual(locate(["--json", "stop", "--keep"]), 1)

    def testRemovesByPositionNotValue(self):
        self.assertEqual(extract(["stop", "--keep", "stop"]), ("stop", ["--keep", "stop"]))

    def testFlagValueIsTakenAsVerb(self):
        self.assertEqual(
            extract(["--sudo-service-user", "root", "start"]),
            ("root", ["--sudo-service-user", "start"]),
        )

    def testInputIsNotModified(self):
        tokens = ["--json", "stop"]
        extract(tokens)
        self.assertEqual(tokens, ["--json", "stop"])

    def testRemainingPlusVerbIsPermutation(self):
        tokens = ["-a", "start", "web", "--", "db"]
        verb, remaining = extract(tokens)
        self.assertEqual(sorted([verb, *remaining]), sorted(tokens))
        self.assertEqual(len(remaining), len(tokens) - 1)

    def testAcceptsOneShotIterables(self):
        self.assertEqual(extract(iter(["--json", "stop", "web"])), ("stop", ["--json", "web"]))
        self.assertEqual(extract(token for token in ["-a"]), (None, ["-a"]))

    def testRejectsBadInput(self):
        with self.assertRaises(TypeError):
            extract("stop")
        with self.assertRaises(TypeError):
            extract(["stop", 3])


class TestWantsHelp(TestCase):
    """Behavioral tests for wants_help()."""

    def testLongAndShort(self):
        self.assertTrue(wants_help(["--help"]))
        self.assertTrue(wants_help(["stop", "-h"]))

    def testNoHelp(self):
        self.assertFalse(wants_help([]))
        self.assertFalse(wants_help(["--helpful", "-hh"]))


class TestTokenize(TestCase):
    """Behavioral tests for tokenize()."""

    def testUnsetReadsArgv(self):
        with mock.patch.object(sys, "argv", ["services", "stop", "--keep"]):
            self.assertEqual(tokenize(), ["stop", "--keep"])

    def testShellString(self):
        self.assertEqual(tokenize("start 'my service' --json"), ["start", "my service", "--json"])

    def testIterable(self):
        self.assertEqual(tokenize(("stop", "--keep")), ["stop", "--keep"])

    def testRejectsBadInput(self):
        with self.assertRaises(TypeError):
            tokenize(3)
        with self.assertRaises(TypeError):
            tokenize(["stop", None])


if __name__ == "__main__":
    unittest.main()
