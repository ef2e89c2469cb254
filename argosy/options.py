r"""
Argosy option schemas, positional arity and option sets.

Overview
- Schemas
  • Switch: named, presence-only option (e.g., --json, -a/--all). Parses to a bool.
  • Flag: named, value-bearing option (e.g., --max-wait=SECONDS). Parses to str | None.
  Both share OptionSchema: ordered spellings, identifier, description,
  environment fallback, conflicts and visibility.

- Arity
  • Positional cardinality as (minimum, maximum | None) with the usual
    constructors (exactly, at_least, unlimited, between) and coercion from
    nargs spellings ("?", "*", "+", int).

- Option sets
  • OptionSet: ordered, validated collection of schemas with a spelling index,
    an identifier index and a symmetric conflict map.
  • merge(shared, own): pure union of a command-wide set and a verb's own set,
    returning a new closed set; collisions raise DuplicateNameError.

Metadata (sanitized on construction)
- names: one or more spellings matching r"--?[^\W\d_](-?[^\W_]+)*". A trailing
  "=" on a flag spelling ("--max-wait=") is accepted and stripped. Spellings
  are unique within one schema, and -h/--help are reserved for help.
- identifier: explicit, or derived from the first long spelling
  ("--max-wait" -> "max_wait"), otherwise from the first spelling ("-f" -> "f").
- descr: Unset | str | Text, non-empty when provided.
- env: Unset | str, the environment variable consulted when the option is absent.
- conflicts: identifiers or spellings of options that cannot be combined with
  this one. References are resolved when the option joins a closed set.
- hidden: suppresses the option from help and completions.

Quick example:
    >>> from argosy.options import Switch, Flag, OptionSet, merge
    >>> shared = OptionSet([Switch("--json"), Flag("--sudo-service-user=")])
    >>> own = OptionSet([
    ...     Switch("--no-wait"),
    ...     Flag("--max-wait=", metavar="SECONDS", conflicts=["--no-wait"]),
    ... ], closed=False)
    >>> merge(shared, own).identifiers
    ('json', 'sudo_service_user', 'no_wait', 'max_wait')
"""
import functools
import operator
import re
from collections.abc import Iterable, Mapping
from enum import Enum

from rich.text import Text

from .faults import DuplicateNameError
from .utils import *

HELP = ("-h", "--help")
"""
Spellings reserved for the built-in help request at every scope.
"""

RESERVED = frozenset(name for name in dir(Mapping) if not name.startswith("_")) | {"arguments", "origins"}
"""
Identifiers taken by ParsedOptions attributes; options cannot use them.
"""


class OptionKind(Enum):
    """
    How an option consumes tokens.

    - SWITCH: presence-only, never consumes a following token.
    - FLAG: always takes a value, inline (--name=value) or as the next token.
    """
    SWITCH = "switch"
    FLAG = "flag"


class OptionType(type):
    """
    Metaclass for schema-like value objects.

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens),
      used in every configuration error message.
    - Expose each name listed in __introspectable__ as a read-only property
      backed by a private field (see mirror()).
    - Provide stable __repr__/__rich_repr__ built from __displayable__ (or
      __introspectable__ when unset).
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


def _sanitize_names(cls, metadata, /):
    """
    Internal: validate spellings and derive the identifier.

    Rules
    - at least one spelling; each a non-empty string.
    - a single trailing "=" is stripped from flag spellings and rejected on
      switch spellings (a switch never takes a value).
    - spellings follow the shell-style grammar and cannot repeat.
    - -h/--help are reserved for the help short-circuit.
    - the identifier is validated with str.isidentifier() when explicit.
    - identifiers that ParsedOptions already answers as attributes (keys,
      values, arguments, ...) are rejected; pass another `identifier=`.
    """
    names = []
    if not metadata["names"]:
        raise TypeError(f"{cls.__typename__} must specify at least one name")

    for name in metadata["names"]:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        if name.endswith("="):
            if cls.kind is OptionKind.SWITCH:
                raise ValueError(f"{cls.__typename__} names cannot end with '=' (switches take no value)")
            name = name[:-1]
        if not re.fullmatch(r"--?[^\W\d_](-?[^\W_]+)*", name):
            raise ValueError(f"{cls.__typename__} names must be valid shell-style option names (unicodes are allowed)")
        elif name in HELP:
            raise ValueError(f"{cls.__typename__} names cannot use the reserved help spelling {name!r}")
        elif name in names:
            raise ValueError(f"{cls.__typename__} names cannot contain duplicates")
        names.append(name)

    metadata["names"] = tuple(names)

    if not isinstance(identifier := metadata["identifier"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'identifier' must be a string")
    elif isinstance(identifier, str) and not identifier.isidentifier():
        raise ValueError(f"{cls.__typename__} 'identifier' must be a valid python identifier")

    if identifier is Unset:
        source = next((name for name in names if name.startswith("--")), names[0])
        identifier = source.lstrip("-").replace("-", "_")
    if identifier in RESERVED:
        raise ValueError(
            f"{cls.__typename__} identifier {identifier!r} is reserved by parsed options; pass another 'identifier'"
        )
    metadata["identifier"] = identifier


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize descr/env/conflicts/hidden.
    """
    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if not isinstance(env := metadata["env"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'env' must be a string")
    elif isinstance(env, str) and not (env := env.strip()):
        raise ValueError(f"{cls.__typename__} 'env' cannot be empty")
    metadata["env"] = coalesce(env)

    if isinstance(conflicts := metadata["conflicts"], str) or not isinstance(conflicts, Iterable):
        raise TypeError(f"{cls.__typename__} 'conflicts' must be an iterable of strings")
    references = set()
    for reference in conflicts:
        if not isinstance(reference, str):
            raise TypeError(f"{cls.__typename__} 'conflicts' must be an iterable of strings")
        elif not (reference := reference.strip().removesuffix("=")):
            raise ValueError(f"{cls.__typename__} 'conflicts' cannot contain empty-strings")
        elif reference in metadata["names"] or reference == metadata["identifier"]:
            raise ValueError(f"{cls.__typename__} cannot conflict with itself")
        references.add(reference)
    metadata["conflicts"] = frozenset(references)

    metadata["hidden"] = bool(metadata["hidden"])


class OptionSchema(metaclass=OptionType):
    """
    Common base of Switch and Flag (not instantiable on its own).

    Properties
    - names: tuple[str, ...] in declaration order.
    - identifier: key of the option in ParsedOptions.
    - descr, env, conflicts, hidden: see the module docstring.
    - kind: OptionKind of the concrete schema.
    """

    __introspectable__ = (
        "names",
        "identifier",
        "descr",
        "env",
        "conflicts",
        "hidden",
    )

    kind = Unset

    def __new__(
            cls,
            *names,
            descr=Unset,
            env=Unset,
            conflicts=(),
            identifier=Unset,
            hidden=False
    ):
        if cls.kind is Unset:
            raise TypeError(f"type {cls.__typename__!r} cannot be instantiated directly")

        metadata = {
            "names": names,
            "identifier": identifier,
            "descr": descr,
            "env": env,
            "conflicts": conflicts,
            "hidden": hidden,
        }
        _sanitize_names(cls, metadata)
        _sanitize_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def spelling(self):
        """
        Preferred spelling for messages and help: the first long name, else the first name.
        """
        return next((name for name in self.names if name.startswith("--")), self.names[0])

    @property
    def longs(self):
        return tuple(name for name in self.names if name.startswith("--"))

    @property
    def shorts(self):
        return tuple(name for name in self.names if not name.startswith("--"))


class Switch(OptionSchema):
    """
    Presence-only option: True when given, False when absent (or True through
    its environment variable).

    Example
    - Switch("-a", "--all", descr="act on every service")
    """

    kind = OptionKind.SWITCH

    def __new__(cls, *names, descr=Unset, env=Unset, conflicts=(), identifier=Unset, hidden=False):
        return super().__new__(
            cls, *names, descr=descr, env=env, conflicts=conflicts, identifier=identifier, hidden=hidden
        )


class Flag(OptionSchema):
    """
    Value-bearing option: always takes one value, written --name=value or
    --name value. Absent flags parse to None.

    Example
    - Flag("--max-wait=", metavar="SECONDS", conflicts=["--no-wait"])
    """

    __introspectable__ = (
        "names",
        "identifier",
        "metavar",
        "descr",
        "env",
        "conflicts",
        "hidden",
    )

    kind = OptionKind.FLAG

    def __new__(cls, *names, metavar=Unset, descr=Unset, env=Unset, conflicts=(), identifier=Unset, hidden=False):
        if not isinstance(metavar, str | Unset):
            raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
        elif isinstance(metavar, str) and not (metavar := metavar.strip()):
            raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")

        self = super().__new__(
            cls, *names, descr=descr, env=env, conflicts=conflicts, identifier=identifier, hidden=hidden
        )
        self._metavar = coalesce(metavar, self.identifier.upper())
        return self


class Arity(metaclass=OptionType):
    """
    Positional cardinality: between minimum and maximum (None = unbounded).

    Constructors
    - Arity.exactly(n), Arity.at_least(n), Arity.unlimited(), Arity.between(a, b)
    - Arity.coerce(object): accepts an Arity, an int (exactly n), or one of the
      nargs spellings "?" (0..1), "*" (0..), "+" (1..); Unset means unlimited.
    """

    __introspectable__ = ("minimum", "maximum")

    def __new__(cls, minimum=0, maximum=None):
        if not isinstance(minimum, int) or isinstance(minimum, bool):
            raise TypeError(f"{cls.__typename__} 'minimum' must be an integer")
        elif minimum < 0:
            raise ValueError(f"{cls.__typename__} 'minimum' cannot be negative")
        if maximum is not None:
            if not isinstance(maximum, int) or isinstance(maximum, bool):
                raise TypeError(f"{cls.__typename__} 'maximum' must be an integer")
            elif maximum < minimum:
                raise ValueError(f"{cls.__typename__} 'maximum' cannot be lower than 'minimum'")

        self = super().__new__(cls)
        self._minimum = minimum
        self._maximum = maximum
        return self

    @classmethod
    def exactly(cls, count, /):
        return cls(count, count)

    @classmethod
    def at_least(cls, count, /):
        return cls(count)

    @classmethod
    def unlimited(cls):
        return cls()

    @classmethod
    def between(cls, minimum, maximum, /):
        return cls(minimum, maximum)

    @classmethod
    def coerce(cls, object, /):
        match object:
            case Arity():
                return object
            case UnsetType():
                return cls.unlimited()
            case bool():
                raise TypeError(f"{cls.__typename__} cannot be built from a boolean")
            case int():
                return cls.exactly(object)
            case "?":
                return cls.between(0, 1)
            case "*":
                return cls.unlimited()
            case "+":
                return cls.at_least(1)
            case str():
                raise ValueError(f"{cls.__typename__} must be one of '?', '+', or '*'")
            case _:
                raise TypeError(f"{cls.__typename__} must be an arity, an integer, or a string")

    def accepts(self, count, /):
        return count >= self.minimum and (self.maximum is None or count <= self.maximum)

    def describe(self):
        """
        Human wording used in arity errors, e.g. "exactly 2 arguments".
        """
        if self.maximum == 0:
            return "no arguments"
        if self.maximum is None:
            if not self.minimum:
                return "any number of arguments"
            return "at least " + plural(self.minimum, "argument")
        if self.minimum == self.maximum:
            return "exactly " + plural(self.minimum, "argument")
        if not self.minimum:
            return "at most " + plural(self.maximum, "argument")
        return f"between {self.minimum} and {plural(self.maximum, 'argument')}"

    def __eq__(self, other):
        if not isinstance(other, Arity):
            return NotImplemented
        return (self.minimum, self.maximum) == (other.minimum, other.maximum)

    def __hash__(self):
        return hash((type(self), self.minimum, self.maximum))


class OptionSet(metaclass=OptionType):
    """
    Ordered, validated collection of option schemas.

    Construction
    - OptionSet(options, /, conflicts=(), *, closed=True)
      • options: iterable of Switch/Flag, kept in declaration order.
      • conflicts: extra conflicting pairs at set level, each a pair of
        identifiers or spellings, e.g. [("--max-wait=", "--no-wait")].
      • closed: when True, every conflict reference must name an option of
        this set. Open sets (a verb's own options) may reference options that
        only appear once merged with the shared set.

    Invariants
    - no two options share a spelling or an identifier (DuplicateNameError).
    - conflicts are symmetric: if a conflicts with b then b conflicts with a.

    Lookups
    - lookup(spelling) -> schema | None
    - set[identifier] -> schema (KeyError when absent)
    - conflicting(identifier) -> frozenset of identifiers
    - position(identifier) -> declaration index
    """

    __introspectable__ = (
        "options",
        "pairs",
        "closed",
    )
    __displayable__ = (
        "options",
        "closed",
    )

    def __new__(cls, options=(), /, conflicts=(), *, closed=True):
        if isinstance(options, OptionSchema) or not isinstance(options, Iterable):
            raise TypeError(f"{cls.__typename__} options must be an iterable of switches or flags")
        if not isinstance(conflicts, Iterable):
            raise TypeError(f"{cls.__typename__} 'conflicts' must be an iterable of pairs")

        self = super().__new__(cls)
        self._options = ()
        self._spellings = {}
        self._identifiers = {}

        for option in options:
            if not isinstance(option, OptionSchema):
                raise TypeError(f"{cls.__typename__} options must be switches or flags")
            for name in option.names:
                if (holder := self._spellings.setdefault(name, option)) is not option:
                    raise DuplicateNameError(
                        f"option spelling {name!r} is declared by both {holder.spelling!r} and {option.spelling!r}",
                        name=name,
                        conflicting=holder,
                    )
            if (holder := self._identifiers.setdefault(option.identifier, option)) is not option:
                raise DuplicateNameError(
                    f"option identifier {option.identifier!r} is shared by {holder.spelling!r} and {option.spelling!r}",
                    name=option.identifier,
                    conflicting=holder,
                )
            self._options += (option,)

        pairs = []
        for pair in conflicts:
            if isinstance(pair, str) or not isinstance(pair, Iterable):
                raise TypeError(f"{cls.__typename__} 'conflicts' must be an iterable of pairs")
            if len(pair := tuple(pair)) != 2 or not all(isinstance(x, str) for x in pair):
                raise TypeError(f"{cls.__typename__} 'conflicts' pairs must hold exactly two strings")
            pairs.append(tuple(x.strip().removesuffix("=") for x in pair))

        self._pairs = tuple(pairs)
        self._closed = bool(closed)
        self._conflicts = {option.identifier: set() for option in self._options}

        for option in self._options:
            for reference in option.conflicts:
                self._connect(option.identifier, reference)
        for first, second in self._pairs:
            if (identifier := self._resolve(first)) is None:
                if self._closed:
                    raise ValueError(f"{cls.__typename__} conflict {first!r} does not name a declared option")
                continue
            self._connect(identifier, second)

        self._conflicts = {key: frozenset(value) for key, value in self._conflicts.items()}
        return self

    def _resolve(self, reference):
        if reference in self._identifiers:
            return reference
        if option := self._spellings.get(reference):
            return option.identifier
        return None

    def _connect(self, identifier, reference):
        if (other := self._resolve(reference)) is None:
            if self._closed:
                raise ValueError(
                    f"{type(self).__typename__} conflict {reference!r} of {self[identifier].spelling!r} "
                    f"does not name a declared option"
                )
            return
        if other == identifier:
            raise ValueError(f"{type(self).__typename__} option {self[identifier].spelling!r} cannot conflict with itself")
        self._conflicts[identifier].add(other)
        self._conflicts[other].add(identifier)

    @property
    def identifiers(self):
        return tuple(option.identifier for option in self._options)

    @property
    def spellings(self):
        return tuple(self._spellings)

    def lookup(self, spelling, /):
        return self._spellings.get(spelling)

    def conflicting(self, identifier, /):
        return self._conflicts.get(identifier, frozenset())

    def position(self, identifier, /):
        return self.identifiers.index(identifier)

    def __getitem__(self, identifier):
        return self._identifiers[identifier]

    def __contains__(self, object):
        if isinstance(object, OptionSchema):
            return object in self._options
        return object in self._identifiers or object in self._spellings

    def __iter__(self):
        return iter(self._options)

    def __len__(self):
        return len(self._options)

    def __bool__(self):
        return bool(self._options)


def merge(shared, own, /):
    """
    Union of a command-wide option set and a verb's own option set.

    Pure: neither input is modified. The result is a new closed set holding
    the shared options first, then the verb's options, and every conflict
    pair of both. Spelling or identifier collisions between the two raise
    DuplicateNameError; dangling conflict references raise ValueError.
    """
    if not isinstance(shared, OptionSet) or not isinstance(own, OptionSet):
        raise TypeError("merge() arguments must be option-sets")
    return OptionSet((*shared, *own), (*shared.pairs, *own.pairs), closed=True)


__all__ = (
    # Classes
    "OptionKind",
    "OptionSchema",
    "Switch",
    "Flag",
    "Arity",
    "OptionSet",

    # Functions
    "merge",

    # Constants
    "HELP",
    "RESERVED",
)

# Remove the internal metaclass from the module namespace; it is not part of the public API.
del OptionType
