"""
Argosy utilities (small helpers shared by every layer)

Scope
- Building blocks used by the option, verb, rendering and dispatch layers so
  that defaults, read-only state and diagnostics behave the same everywhere.

Overview
- UnsetType / Unset
  • Singleton sentinel meaning “not provided”, distinct from None.
  • Falsey, printable as "Unset", and sealed against subclassing.

- coalesce(value, default=None)
  • Materialize Unset into a default while preserving None/0/""/().

- rename(callable, name) / @rename("name")
  • Give generated callables a stable __name__/__qualname__.

- mirror("attr")
  • Read-only property over a private backing field (self._attr); containers
    are handed out as fresh copies so public state cannot be mutated.

- plural(count, word)
  • "1 argument", "3 arguments", "no arguments"; used in arity messages.

- ordinal(number)
  • "first", "second", ..., "11th", "22nd"; used in position-first messages.

- mglob(pattern)
  • Expand "pkg.verbs.*" / "pkg.**.cli" style patterns to importable module names.

Stability and contract
- Everything listed in __all__ is re-exported by the package.
"""
import builtins
import functools
import importlib
import pkgutil
import re
from typing import final


@final
class UnsetType:
    """
    Sentinel type for a value that was not provided.

    Used where None is a legitimate user value (an absent flag parses to None,
    for instance) and the API still has to tell “not given” apart from it.

    Characteristics
    - Boolean-false, but never equal to None or 0.
    - repr(Unset) -> "Unset".
    - UnsetType() always returns the same instance.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions such as str | Unset in isinstance checks.
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return object unless it is Unset, in which case return default.

    Falsey values (None, 0, "", ()) are preserved; only Unset is replaced.

    Examples
    - coalesce("list", "fallback") -> "list"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set __name__/__qualname__ on a callable, or build a decorator that does.

    Forms
    - rename(callable, name) -> callable (renamed in place)
    - rename(name) -> decorator

    Raises
    - TypeError: on a non-callable target, a non-string name, a callable whose
      metadata cannot be updated, or a wrong number of arguments.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _detach(object):
    """
    Copy containers so callers never hold a reference to internal state.

    Tuples and frozensets are immutable already and returned as they are;
    lists, dicts and sets are copied recursively into the same kind.
    """
    if isinstance(object, list):
        return list(map(_detach, object))
    if isinstance(object, dict):
        return dict(zip(object.keys(), map(_detach, object.values())))
    if isinstance(object, set):
        return set(map(_detach, object))
    return object


def mirror(name, /):
    """
    Define a read-only property that reads self._{name}.

    Example
    - Given self._aliases, declare aliases = mirror("aliases").
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _detach(getattr(self, "_" + name))

    return property(getter)


def plural(count, word, /):
    """
    Render a count with a naively pluralized noun.

    Examples
    - plural(0, "argument") -> "no arguments"
    - plural(1, "argument") -> "1 argument"
    - plural(2, "alias")    -> "2 aliases"
    """
    if not isinstance(count, int):
        raise TypeError("plural() first argument must be an integer")
    if not isinstance(word, str):
        raise TypeError("plural() second argument must be a string")
    if count == 1:
        return f"1 {word}"
    if word.endswith(("s", "sh", "ch", "x", "z")):
        word += "es"
    elif word.endswith("y") and word[-2:-1] not in tuple("aeiou"):
        word = word[:-1] + "ies"
    else:
        word += "s"
    return f"{count if count else 'no'} {word}"


@functools.cache
def ordinal(number, /):
    """
    Return a human-friendly ordinal for a 1-based position.

    1..10 are spelled out ("first"…"tenth"); larger numbers use numeric
    ordinals with the usual English suffixes (11th, 21st, 112th).
    """
    try:
        return (
            "first", "second", "third", "fourth", "fifth",
            "sixth", "seventh", "eighth", "ninth", "tenth",
        )[number - 1] if number > 0 else str(number)
    except IndexError:
        pass

    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


@functools.cache
def _translate(segment):
    """
    translate one pattern segment into a regex snippet (dots never match).
      *      → zero or more non-dot chars
      ?      → exactly one non-dot char
      [...]  → character class, [!...] negated
      \\x     → literal x
    """
    length = len(segment)
    index = 0
    parts = []
    while index < length:
        char = segment[index]
        if char == '\\' and index + 1 < length:
            parts.append(re.escape(segment[index + 1]))
            index += 2
            continue
        if char == '*':
            parts.append(r'[^.]*')
        elif char == '?':
            parts.append(r'[^.]')
        elif char == '[':
            start = index + 1
            negated = ''
            if start < length and segment[start] in ('!', '^'):
                negated = '^'
                start += 1
            pivot = start
            while pivot < length and segment[pivot] != ']':
                pivot += 2 if segment[pivot] == '\\' and pivot + 1 < length else 1
            if pivot >= length:
                parts.append(r'\[')
            else:
                parts.append(f'[{negated}{segment[start:pivot]}]')
                index = pivot
        else:
            parts.append(re.escape(char))
        index += 1
    return ''.join(parts)


@functools.cache
def _compile(pattern):
    """
    compile a whole module glob; '**' spans zero or more dotted segments.
    """
    parts = []
    for segment in pattern.split('.'):
        if segment == '**':
            parts.append(r'(?:\.[A-Za-z_]\w*)*')
        else:
            parts.append(r'\.' + _translate(segment))
    return re.compile(parts[0][2:] + ''.join(parts[1:]))


def mglob(source, /):
    """
    expand a dot-separated module glob into fully-qualified module names.

    rules
    - the pattern must start with at least one concrete package segment.
    - a pattern without wildcards is returned as-is ([source]).
    - matches are case-sensitive and returned sorted.
    - an unimportable prefix yields no matches.

    examples
    - "tool.verbs.*"     → direct children of tool.verbs
    - "tool.**.commands" → any 'commands' module below tool
    """
    if not isinstance(source, str):
        raise TypeError("mglob() argument must be a string")
    elif not (source := source.strip()):
        raise ValueError("mglob() argument must be a non-empty string")

    if re.fullmatch(r"(?!\d)\w+(\.(?!\d)\w+)*", source):
        return [source]

    prefixes = []
    for segment in source.split('.'):
        if not re.fullmatch(r"(?!\d)\w+", segment):
            break
        prefixes.append(segment)

    if not prefixes:
        raise ValueError("mglob() pattern must start with a concrete package segment")

    try:
        package = importlib.import_module(prefix := ".".join(prefixes))
    except ImportError:
        return []

    matches = set()
    if (pattern := _compile(source)).fullmatch(prefix):
        matches.add(prefix)

    if hasattr(package, "__path__"):
        for metadata in pkgutil.walk_packages(package.__path__, prefix + '.'):
            if pattern.fullmatch(name := metadata.name):
                matches.add(name)

    return sorted(matches)


Unset = UnsetType()
"""
The one and only “not provided” marker; see UnsetType.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "plural",
    "ordinal",
    "mglob",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
