"""
Argosy verbs: descriptors, the registry, and module discovery.

What this module provides
- VerbDescriptor: immutable description of one verb (primary name, aliases,
  own options, handler, help text, positional arity). Calling a descriptor
  forwards the parsed options to its handler.
- verb(...): build a VerbDescriptor from a handler, directly or as a decorator.
- VerbRegistry: name/alias -> descriptor map with an optional default verb.
  Written once while the command is being assembled, read-only afterwards
  (seal() is called by the dispatcher before the first dispatch).

Registry rules
- Every primary name and alias maps to exactly one descriptor.
- Registering a name or alias already owned by another descriptor raises
  DuplicateNameError naming that descriptor; the registry is left unchanged.
- An alias equal to one of the descriptor's own names is ignored.
- Lookups never raise for unknown names (resolve() returns None); only
  resolve_default() raises, when no default verb is configured.

Quick example
    registry = VerbRegistry()

    @registry.verb(aliases=("ls", "l"), default=True)
    def list(options):
        \"\"\"List all managed services.\"\"\"

    registry.resolve("ls").name  # "list"
"""
import functools
import importlib
import inspect
import logging
import operator
import re

from rich.text import Text

from .faults import DuplicateNameError, NoDefaultConfiguredError, UnknownVerbError
from .options import Arity, OptionSet
from .utils import *

logger = logging.getLogger(__name__)


class VerbType(type):
    """
    Metaclass giving verb descriptors a __typename__, mirrored read-only
    properties for __introspectable__ names and a stable __repr__/__rich_repr__.
    """
    __introspectable__ = ()
    __displayable__ = Unset

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
            **options
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_name(cls, name, field, /):
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} {field} must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} {field} cannot be empty")
    elif not re.fullmatch(r"[^\W_](-?[^\W_]+)*", name):
        raise ValueError(f"{cls.__typename__} {field} {name!r} must be a valid verb name (letters, digits and single hyphens)")
    return name


class VerbDescriptor(metaclass=VerbType):
    """
    Immutable description of one verb.

    Parameters
    - handler: Callable[[ParsedOptions], Any], invoked at most once per dispatch.
    - name: primary name; defaults to the handler's __name__ with underscores
      turned into hyphens (`no_wait` -> "no-wait").
    - aliases: alternative names; entries equal to the name are ignored.
    - options: the verb's own options, an OptionSet or an iterable of
      Switch/Flag. Conflicts may point at shared options (the set is open).
    - conflicts: extra conflicting pairs for the own option set.
    - descr: one-line description; defaults to the first line of the
      handler's docstring.
    - usage: explicit usage banner for verb help; synthesized when Unset.
    - arity: positional cardinality (Arity, int, "?", "*", "+"); unlimited when Unset.
    - hidden: suppresses the verb from listings and completions.

    Copies with overrides are made with copy.replace(descriptor, name=...).
    """

    __introspectable__ = (
        "name",
        "aliases",
        "handler",
        "options",
        "descr",
        "usage",
        "arity",
        "hidden",
    )
    __displayable__ = (
        "name",
        "aliases",
        "options",
        "arity",
        "hidden",
    )

    def __new__(
            cls,
            handler,
            /,
            name=Unset,
            aliases=(),
            options=(),
            descr=Unset,
            usage=Unset,
            arity=Unset,
            *,
            conflicts=(),
            hidden=False
    ):
        if not callable(handler):
            raise TypeError(f"{cls.__typename__} handler must be callable")

        if name is Unset:
            name = getattr(handler, "__name__", "").strip("_").replace("_", "-")
        name = _sanitize_name(cls, name, "name")

        if isinstance(aliases, str):
            raise TypeError(f"{cls.__typename__} 'aliases' must be an iterable of strings")
        sanitized = []
        for alias in aliases:
            if (alias := _sanitize_name(cls, alias, "alias")) != name and alias not in sanitized:
                sanitized.append(alias)

        if not isinstance(options, OptionSet):
            options = OptionSet(options, conflicts, closed=False)
        elif conflicts:
            options = OptionSet(options, (*options.pairs, *conflicts), closed=False)

        if not isinstance(descr, str | Text | Unset):
            raise TypeError(f"{cls.__typename__} 'descr' must be a string")
        elif isinstance(descr, str) and not (descr := descr.strip()):
            raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
        if descr is Unset and (docstring := inspect.getdoc(handler)):
            descr = docstring.splitlines()[0].strip()

        if not isinstance(usage, str | Unset):
            raise TypeError(f"{cls.__typename__} 'usage' must be a string")
        elif isinstance(usage, str) and not (usage := usage.strip()):
            raise ValueError(f"{cls.__typename__} 'usage' cannot be empty")

        self = super().__new__(cls)
        self._handler = handler
        self._name = name
        self._aliases = tuple(sanitized)
        self._options = options
        self._descr = coalesce(descr) or None
        self._usage = coalesce(usage)
        self._arity = Arity.coerce(arity)
        self._hidden = bool(hidden)
        return self

    @property
    def names(self):
        return (self.name, *self.aliases)

    def __call__(self, options, /):
        return self.handler(options)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        fields = {
            "name": self.name,
            "aliases": self.aliases,
            "options": self.options,
            "descr": Unset if self.descr is None else self.descr,
            "usage": Unset if self.usage is None else self.usage,
            "arity": self.arity,
            "hidden": self.hidden,
        } | overrides
        return type(self)(fields.pop("handler", self.handler), **fields)


def verb(handler=Unset, /, *args, **kwargs):
    """
    Create a VerbDescriptor, or return a decorator that creates one.

    Forms
    - verb(handler, name="stop", ...) -> VerbDescriptor
    - @verb(aliases=("ls",)) on a function -> VerbDescriptor

    Module-level descriptors built this way are what VerbRegistry.include()
    discovers.
    """
    @rename("verb")
    def wrapper(handler, /):
        if not callable(handler):
            raise TypeError("@verb() must be applied to a callable")
        return VerbDescriptor(handler, *args, **kwargs)

    return wrapper(handler) if handler is not Unset else wrapper


class VerbRegistry:
    """
    Name/alias -> VerbDescriptor map for one command.

    Lookups
    - resolve(name) -> VerbDescriptor | None
    - all_names() -> frozenset of every primary name and alias
    - descriptors() -> unique descriptors in registration order
    - aliases(descriptor) -> aliases recorded at registration
    - default / resolve_default()

    Lifecycle
    - register()/set_default()/include() while assembling the command.
    - add_check() installs a callable run on every descriptor before it is
      recorded; CommandContext uses it to vet verbs against shared options.
    - seal() freezes the registry; later writes raise TypeError.
    """

    def __init__(self):
        self._names = {}
        self._records = {}
        self._default = None
        self._sealed = False
        self._checks = []

    @property
    def default(self):
        return self._default

    @property
    def sealed(self):
        return self._sealed

    def _writable(self, caller):
        if self._sealed:
            raise TypeError(f"{caller}() cannot modify a sealed verb registry")

    def register(self, descriptor, /, aliases=(), *, default=False):
        """
        Register a descriptor under its name, its own aliases and `aliases`.

        Raises
        - DuplicateNameError: a name is already owned by another descriptor, or
          the descriptor itself is already registered. Nothing is recorded.
        - Whatever an installed check raises. Nothing is recorded.
        - TypeError: the registry is sealed, or the arguments have the wrong shape.
        """
        self._writable("register")
        if not isinstance(descriptor, VerbDescriptor):
            raise TypeError("register() first argument must be a verb-descriptor")
        if isinstance(aliases, str):
            raise TypeError("register() 'aliases' must be an iterable of strings")
        if descriptor in self._records:
            raise DuplicateNameError(
                f"verb {descriptor.name!r} is already registered",
                name=descriptor.name,
                conflicting=descriptor,
            )

        names = [descriptor.name]
        for alias in (*descriptor.aliases, *aliases):
            if (alias := _sanitize_name(VerbDescriptor, alias, "alias")) not in names:
                names.append(alias)

        for name in names:
            if (holder := self._names.get(name)) is not None:
                kind = "name" if name == holder.name else "alias"
                raise DuplicateNameError(
                    f"verb name {name!r} is already registered as {kind} of {holder.name!r}",
                    name=name,
                    conflicting=holder,
                    hint=f"pick another name or alias for {descriptor.name!r}",
                )

        for check in self._checks:
            check(descriptor)

        for name in names:
            self._names[name] = descriptor
        self._records[descriptor] = tuple(names[1:])
        logger.debug("registered verb %r (aliases: %s)", descriptor.name, ", ".join(names[1:]) or "none")

        if default:
            self.set_default(descriptor.name)
        return descriptor

    def add_check(self, check, /):
        """
        Install a callable run on each descriptor passed to register(), after
        the name checks and before anything is recorded.
        """
        if not callable(check):
            raise TypeError("add_check() argument must be callable")
        self._checks.append(check)

    def verb(self, handler=Unset, /, *args, aliases=(), default=False, **kwargs):
        """
        Decorator form of verb() that also registers the descriptor here.

        `aliases` and `default` go to register(); everything else to VerbDescriptor.
        """
        @rename("verb")
        def wrapper(handler, /):
            return self.register(verb(handler, *args, **kwargs), aliases, default=default)

        return wrapper(handler) if handler is not Unset else wrapper

    def set_default(self, name, /):
        """
        Configure the verb used when no verb token is given. The name is
        resolved lazily, so the default may be set before its verb is registered.
        """
        self._writable("set_default")
        self._default = _sanitize_name(VerbDescriptor, name, "default")
        logger.debug("default verb set to %r", self._default)

    def resolve(self, name, /):
        if not isinstance(name, str):
            raise TypeError("resolve() argument must be a string")
        return self._names.get(name)

    def resolve_default(self):
        """
        Return the default verb's descriptor.

        Raises
        - NoDefaultConfiguredError: no default verb was configured.
        - UnknownVerbError: a default is configured but no verb answers to it.
        """
        if self._default is None:
            raise NoDefaultConfiguredError("no verb specified and no default verb is configured")
        if (descriptor := self._names.get(self._default)) is None:
            raise UnknownVerbError(
                "default verb %r is not registered" % self._default,
                token=self._default,
                suggestions=(),
            )
        return descriptor

    def all_names(self):
        return frozenset(self._names)

    def descriptors(self):
        return tuple(self._records)

    def aliases(self, descriptor, /):
        try:
            return self._records[descriptor]
        except (KeyError, TypeError):
            raise ValueError("aliases() argument must be a registered verb-descriptor") from None

    def include(self, source, /, *, check=Unset):
        """
        Import modules matching a module glob and register the verb
        descriptors they define at module level.

        Parameters
        - source: str, expanded with mglob() (e.g., "tool.verbs.*").
        - check: optional callable run on each new descriptor before it is
          registered; whatever it raises propagates.

        Behavior
        - Descriptors already registered here are skipped, so overlapping
          patterns are harmless.
        - Name collisions with other descriptors raise DuplicateNameError.

        Returns
        - tuple of the descriptors registered by this call.

        Raises
        - TypeError: source is not a string or a module cannot be imported.
        """
        self._writable("include")
        if not isinstance(source, str):
            raise TypeError("include() argument must be a string")
        if check is not Unset and not callable(check):
            raise TypeError("include() 'check' must be callable")

        def imp(module):
            try:
                return importlib.import_module(module)
            except ImportError:
                raise TypeError(f"unable to import module {module!r}")

        registered = []
        for module in map(imp, mglob(source)):
            for name, object in inspect.getmembers(module, lambda x: isinstance(x, VerbDescriptor)):
                if object in self._records:
                    continue
                if check is not Unset:
                    check(object)
                registered.append(self.register(object))
            logger.debug("included %s", module.__name__)
        return tuple(registered)

    def seal(self):
        self._sealed = True

    def __contains__(self, name):
        return name in self._names

    def __iter__(self):
        return iter(self._records)

    def __len__(self):
        return len(self._records)

    def __repr__(self):
        return f"verb-registry({", ".join(map(repr, self._records))})"


__all__ = (
    "VerbDescriptor",
    "VerbRegistry",
    "verb",
)

del VerbType
