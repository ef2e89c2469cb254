"""
Verb behavioral tests (descriptors, registry, default verb, module discovery).

Scope
- Validate VerbDescriptor naming, aliases, docstring descriptions and copies.
- Validate VerbRegistry registration, alias collisions and atomicity.
- Validate default verb configuration and lazy resolution.
- Validate sealing and include() discovery of module-level descriptors.

Conventions
- Test method names follow CamelCase per project convention.
- include() tests rely on the argosy_samples package next to this module.
"""

from __future__ import annotations

import copy
import unittest
from unittest import TestCase

from argosy import (
    Arity,
    DuplicateNameError,
    NoDefaultConfiguredError,
    OptionSet,
    Switch,
    UnknownVerbError,
    VerbDescriptor,
    VerbRegistry,
    verb,
)


def handler(options):
    """Do the thing.

    Longer explanation that never shows up in listings.
    """
    return options


class TestVerbDescriptor(TestCase):
    """Behavioral tests for VerbDescriptor and verb()."""

    def testNameFromHandler(self):
        def no_wait(options):
            pass

        self.assertEqual(VerbDescriptor(no_wait).name, "no-wait")

    def testNameStripsUnderscores(self):
        def _list_(options):
            pass

        self.assertEqual(VerbDescriptor(_list_).name, "list")

    def testDescrFromDocstringFirstLine(self):
        self.assertEqual(VerbDescriptor(handler).descr, "Do the thing.")
        self.assertEqual(VerbDescriptor(handler, descr="Other.").descr, "Other.")

    def testDescrNoneWithoutDocstring(self):
        self.assertIsNone(VerbDescriptor(lambda options: None, "quiet").descr)

    def testAliasesDeduplicated(self):
        descriptor = VerbDescriptor(handler, "stop", ["stop", "halt", "halt", "kill"])
        self.assertEqual(descriptor.aliases, ("halt", "kill"))
        self.assertEqual(descriptor.names, ("stop", "halt", "kill"))

    def testInvalidNames(self):
        with self.assertRaises(ValueError):
            VerbDescriptor(handler, "bad name")
        with self.assertRaises(ValueError):
            VerbDescriptor(handler, "-stop")
        with self.assertRaises(ValueError):
            VerbDescriptor(handler, "stop", ["ha lt"])
        with self.assertRaises(TypeError):
            VerbDescriptor(handler, "stop", "halt")

    def testHandlerMustBeCallable(self):
        with self.assertRaises(TypeError):
            VerbDescriptor("stop")

    def testOptionsBecomeOpenSet(self):
        descriptor = VerbDescriptor(handler, "stop", options=[Switch("--keep", conflicts=["--json"])])
        self.assertIsInstance(descriptor.options, OptionSet)
        self.assertFalse(descriptor.options.closed)

    def testArityCoerced(self):
        self.assertEqual(VerbDescriptor(handler, arity="?").arity, Arity.between(0, 1))
        self.assertEqual(VerbDescriptor(handler).arity, Arity.unlimited())

    def testCallForwardsToHandler(self):
        self.assertEqual(VerbDescriptor(handler)({"keep": True}), {"keep": True})

    def testReplace(self):
        descriptor = VerbDescriptor(handler, "stop", ["halt"], arity=1)
        other = copy.replace(descriptor, name="kill")
        self.assertEqual(other.name, "kill")
        self.assertEqual(other.aliases, ("halt",))
        self.assertEqual(other.arity, Arity.exactly(1))
        self.assertIs(other.handler, handler)
        self.assertEqual(descriptor.name, "stop")

    def testVerbFactoryForms(self):
        direct = verb(handler, "stop")
        self.assertIsInstance(direct, VerbDescriptor)

        @verb(aliases=("ls",))
        def inventory(options):
            """List services."""

        self.assertIsInstance(inventory, VerbDescriptor)
        self.assertEqual(inventory.name, "inventory")
        self.assertEqual(inventory.aliases, ("ls",))

    def testRepr(self):
        self.assertTrue(repr(VerbDescriptor(handler, "stop")).startswith("verb-descriptor(name='stop'"))


class TestVerbRegistry(TestCase):
    """Behavioral tests for VerbRegistry."""

    def setUp(self):
        self.registry = VerbRegistry()
        self.inventory = self.registry.register(VerbDescriptor(handler, "list", ["ls", "l"]))
        self.stop = self.registry.register(VerbDescriptor(handler, "stop"))

    def testResolve(self):
        self.assertIs(self.registry.resolve("list"), self.inventory)
        self.assertIs(self.registry.resolve("ls"), self.inventory)
        self.assertIs(self.registry.resolve("l"), self.inventory)
        self.assertIsNone(self.registry.resolve("start"))
        with self.assertRaises(TypeError):
            self.registry.resolve(3)

    def testAllNamesAndDescriptors(self):
        self.assertEqual(self.registry.all_names(), frozenset({"list", "ls", "l", "stop"}))
        self.assertEqual(self.registry.descriptors(), (self.inventory, self.stop))
        self.assertEqual(len(self.registry), 2)
        self.assertIn("ls", self.registry)

    def testRegistrationAliases(self):
        start = self.registry.register(VerbDescriptor(handler, "start", ["launch"]), ["run", "start"])
        self.assertEqual(self.registry.aliases(start), ("launch", "run"))
        self.assertIs(self.registry.resolve("run"), start)

    def testAliasesOfUnregisteredDescriptor(self):
        with self.assertRaises(ValueError):
            self.registry.aliases(VerbDescriptor(handler, "ghost"))

    def testDuplicateAliasRejectedAtomically(self):
        with self.assertRaises(DuplicateNameError) as cm:
            self.registry.register(VerbDescriptor(handler, "start", ["launch", "ls"]))
        self.assertIs(cm.exception.conflicting, self.inventory)
        self.assertEqual(cm.exception.name, "ls")
        self.assertIn("alias of 'list'", str(cm.exception))
        self.assertIsNone(self.registry.resolve("start"))
        self.assertIsNone(self.registry.resolve("launch"))
        self.assertEqual(len(self.registry), 2)

    def testDuplicatePrimaryName(self):
        with self.assertRaises(DuplicateNameError) as cm:
            self.registry.register(VerbDescriptor(handler, "ls"))
        self.assertIs(cm.exception.conflicting, self.inventory)

    def testSameDescriptorTwice(self):
        with self.assertRaises(DuplicateNameError):
            self.registry.register(self.stop)

    def testRegisterRejectsNonDescriptors(self):
        with self.assertRaises(TypeError):
            self.registry.register(handler)

    def testDecorator(self):
        @self.registry.verb(aliases=("launch",), default=True)
        def start(options):
            """Start services."""

        self.assertIs(self.registry.resolve("launch"), start)
        self.assertEqual(self.registry.default, "start")

    def testCheckRunsBeforeRecording(self):
        seen = []

        def check(descriptor):
            seen.append(descriptor.name)
            if descriptor.name == "restart":
                raise ValueError("restart is not allowed")

        self.registry.add_check(check)
        start = self.registry.register(VerbDescriptor(handler, "start"))
        with self.assertRaises(ValueError):
            self.registry.register(VerbDescriptor(handler, "restart", ["reload"]))
        self.assertEqual(seen, ["start", "restart"])
        self.assertIs(self.registry.resolve("start"), start)
        self.assertIsNone(self.registry.resolve("reload"))
        self.assertEqual(len(self.registry), 3)

    def testCheckSkippedForNameCollisions(self):
        seen = []
        self.registry.add_check(seen.append)
        with self.assertRaises(DuplicateNameError):
            self.registry.register(VerbDescriptor(handler, "ls"))
        self.assertEqual(seen, [])

    def testCheckMustBeCallable(self):
        with self.assertRaises(TypeError):
            self.registry.add_check("check")


class TestDefaultVerb(TestCase):
    """Behavioral tests for the default verb."""

    def setUp(self):
        self.registry = VerbRegistry()
        self.inventory = self.registry.register(VerbDescriptor(handler, "list", ["ls"]))

    def testNoDefaultConfigured(self):
        self.assertIsNone(self.registry.default)
        with self.assertRaises(NoDefaultConfiguredError):
            self.registry.resolve_default()

    def testDefaultThroughAlias(self):
        self.registry.set_default("ls")
        self.assertIs(self.registry.resolve_default(), self.inventory)

    def testDefaultResolvedLazily(self):
        self.registry.set_default("stop")
        with self.assertRaises(UnknownVerbError):
            self.registry.resolve_default()
        stop = self.registry.register(VerbDescriptor(handler, "stop"))
        self.assertIs(self.registry.resolve_default(), stop)

    def testDefaultAtRegistration(self):
        stop = self.registry.register(VerbDescriptor(handler, "stop"), default=True)
        self.assertIs(self.registry.resolve_default(), stop)


class TestSealing(TestCase):
    """Behavioral tests for sealed registries."""

    def testWritesRejectedAfterSeal(self):
        registry = VerbRegistry()
        registry.register(VerbDescriptor(handler, "list"))
        registry.seal()
        self.assertTrue(registry.sealed)
        with self.assertRaises(TypeError):
            registry.register(VerbDescriptor(handler, "stop"))
        with self.assertRaises(TypeError):
            registry.set_default("list")
        with self.assertRaises(TypeError):
            registry.include("argosy_samples.*")
        self.assertIsNotNone(registry.resolve("list"))


class TestInclude(TestCase):
    """Behavioral tests for include()."""

    def testIncludeChildren(self):
        registry = VerbRegistry()
        included = registry.include("argosy_samples.*")
        self.assertEqual([descriptor.name for descriptor in included], ["list", "start", "stop"])
        self.assertIs(registry.resolve("ls"), registry.resolve("list"))
        self.assertIs(registry.resolve("launch"), registry.resolve("start"))

    def testIncludeTwiceIsHarmless(self):
        registry = VerbRegistry()
        registry.include("argosy_samples.*")
        self.assertEqual(registry.include("argosy_samples.lifecycle"), ())
        self.assertEqual(len(registry), 3)

    def testIncludeCheck(self):
        seen = []
        registry = VerbRegistry()
        registry.include("argosy_samples.lifecycle", check=lambda descriptor: seen.append(descriptor.name))
        self.assertEqual(seen, ["start", "stop"])

    def testIncludeCollision(self):
        registry = VerbRegistry()
        registry.register(VerbDescriptor(handler, "start"))
        with self.assertRaises(DuplicateNameError):
            registry.include("argosy_samples.lifecycle")

    def testIncludeUnimportable(self):
        with self.assertRaises(TypeError):
            VerbRegistry().include("argosy_samples.missing")
        with self.assertRaises(TypeError):
            VerbRegistry().include(3)


if __name__ == "__main__":
    unittest.main()
