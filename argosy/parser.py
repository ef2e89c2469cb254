"""
Argosy option parser: turn a token list into ParsedOptions against one schema.

Algorithm (left to right, single pass)
1. A switch spelling sets its identifier to True and consumes one token.
2. A flag spelling written --name=value consumes one token; written --name it
   always consumes the next token as the value, even when that token starts
   with a dash. A flag with nothing after it fails with MissingValueError.
3. A token that does not start with a dash is a positional argument (order
   preserved). A bare "--" ends option processing; every later token is
   positional. A lone "-" is positional (conventional stdin marker).
4. A dash token matching no spelling fails with UnknownOptionError, with close
   spellings offered as suggestions.
5. Options still absent fall back to their environment variable: a switch is
   True when the variable is defined, a flag takes the value when non-empty.
   The command line always wins over the environment.
6. Two present options that conflict fail with ConflictingOptionsError. The
   pair is reported in declaration order, so the error does not depend on
   the order in which the user typed them.
7. The positional count is checked last against the arity (ArityError).

Messages are position-first: positions are 1-based and, when the caller passes
`positions`, refer to the user's original argument vector rather than to the
slice being parsed.

Public API
- ParsedOptions: immutable mapping identifier -> value plus `arguments`.
- parse(tokens, schema, /, arity=Unset, *, environ=Unset, positions=Unset)
- unparse(parsed, schema, /)
"""
import difflib
import itertools
import os
import warnings
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from .faults import *
from .options import Arity, OptionKind, OptionSet
from .utils import *


class ParsedOptions(Mapping):
    """
    Result of a successful parse.

    Behavior
    - Mapping from identifier to value: bool for switches, str | None for
      flags. Every identifier of the schema is present (absent switch ->
      False, absent flag -> None).
    - `arguments`: tuple of positional tokens in order.
    - `origins`: identifier -> "argv" | "env" for options actually supplied.
    - Attribute access for identifiers: parsed.max_wait.
    - Equality compares values and arguments (origins are provenance only).
    """

    def __init__(self, values=(), /, arguments=(), origins=()):
        self._values = dict(values)
        self._arguments = tuple(arguments)
        self._origins = MappingProxyType(dict(origins))

    @property
    def arguments(self):
        return self._arguments

    @property
    def origins(self):
        return self._origins

    def __getitem__(self, identifier):
        return self._values[identifier]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __getattr__(self, name):
        try:
            return self.__dict__["_values"][name]
        except KeyError:
            raise AttributeError(f"'parsed-options' object has no attribute {name!r}") from None

    def __eq__(self, other):
        if isinstance(other, ParsedOptions):
            return self._values == other._values and self._arguments == other._arguments
        return super().__eq__(other)

    __hash__ = None

    def __rich_repr__(self):
        yield from self._values.items()
        yield "arguments", self._arguments

    def __repr__(self):
        return "parsed-options(%s)" % ", ".join(f"{name}={value!r}" for name, value in self.__rich_repr__())


def _suggest(token, schema):
    suggestions = difflib.get_close_matches(token, schema.spellings, 5)
    try:
        return tuple(suggestions), "did you mean %r?" % suggestions[0]
    except IndexError:
        return (), None


def parse(tokens, schema, /, arity=Unset, *, environ=Unset, positions=Unset):
    """
    Parse `tokens` against `schema` (an OptionSet, usually a merged one).

    Parameters
    - tokens: Iterable[str], the tokens to parse (the verb token already removed).
    - schema: OptionSet, the options accepted here.
    - arity: Arity | int | "?" | "*" | "+" | Unset; Unset accepts any count.
    - environ: Mapping[str, str] used for environment fallbacks (defaults to os.environ).
    - positions: optional 1-based positions of each token in the original
      argument vector, used only in messages.

    Returns
    - ParsedOptions

    Raises
    - UnknownOptionError, MissingValueError, SwitchAssignmentError,
      DuplicateOptionError, ConflictingOptionsError, ArityError (all ParseError).
    - TypeError on malformed arguments.

    Warns
    - EmptyValueWarning for an explicit empty inline value (--name=).
    """
    if not isinstance(schema, OptionSet):
        raise TypeError("parse() second argument must be an option-set")
    if isinstance(tokens, str) or not isinstance(tokens, Iterable):
        raise TypeError("parse() first argument must be an iterable of strings")
    tokens = list(tokens)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("parse() first argument must be an iterable of strings")

    arity = Arity.coerce(arity)
    environ = coalesce(environ, os.environ)
    if not isinstance(environ, Mapping):
        raise TypeError("parse() 'environ' must be a mapping")
    positions = list(coalesce(positions, range(1, len(tokens) + 1)))
    if len(positions) != len(tokens):
        raise ValueError("parse() 'positions' must have one entry per token")

    values = {}
    origins = {}
    arguments = []
    terminated = False
    index = 0

    while index < len(tokens):
        token = tokens[index]
        position = positions[index]
        index += 1

        if terminated or token == "-" or not token.startswith("-"):
            arguments.append(token)
            continue
        if token == "--":
            terminated = True
            continue

        name, separator, value = token.partition("=")

        if (option := schema.lookup(name)) is None:
            suggestions, hint = _suggest(name, schema)
            raise UnknownOptionError(
                "unknown option %r at %s position" % (name, ordinal(position)),
                token=name,
                position=position,
                suggestions=suggestions,
                hint=hint,
            )

        if option.identifier in values:
            raise DuplicateOptionError(
                "option %r at %s position was already given" % (name, ordinal(position)),
                token=name,
                position=position,
                identifier=option.identifier,
                hint="give %r only once" % option.spelling,
            )

        if option.kind is OptionKind.SWITCH:
            if separator:
                raise SwitchAssignmentError(
                    "switch %r at %s position does not take a value" % (name, ordinal(position)),
                    token=name,
                    position=position,
                    hint="drop the '=%s' part" % value,
                )
            values[option.identifier] = True
        else:
            if not separator:
                if index >= len(tokens):
                    raise MissingValueError(
                        "flag %r at %s position requires a value" % (name, ordinal(position)),
                        token=name,
                        position=position,
                        hint="write it as %s=%s" % (name, option.metavar),
                    )
                value = tokens[index]
                index += 1
            elif not value:
                warnings.warn(EmptyValueWarning(
                    "flag %r at %s position was given an empty value" % (name, ordinal(position)),
                    token=name,
                    position=position,
                    hint="omit %r entirely to leave it unset" % name,
                ), stacklevel=2)
            values[option.identifier] = value
        origins[option.identifier] = "argv"

    for option in schema:
        if option.identifier in values or option.env is None:
            continue
        try:
            value = environ[option.env]
        except KeyError:
            continue
        if option.kind is OptionKind.SWITCH:
            values[option.identifier] = True
        elif value:
            values[option.identifier] = value
        else:
            continue
        origins[option.identifier] = "env"

    present = [identifier for identifier in schema.identifiers if identifier in values]
    for first, second in itertools.combinations(present, 2):
        if second in schema.conflicting(first):
            raise ConflictingOptionsError(
                "options %r and %r cannot be used together" % (schema[first].spelling, schema[second].spelling),
                first=first,
                second=second,
                hint="keep only one of %r or %r" % (schema[first].spelling, schema[second].spelling),
            )

    if not arity.accepts(len(arguments)):
        raise ArityError(
            "expected %s but got %d" % (arity.describe(), len(arguments)),
            expected=arity,
            got=len(arguments),
            hint="remove the extra arguments" if arity.maximum is not None and len(arguments) > arity.maximum else None,
        )

    return ParsedOptions(
        {
            option.identifier: values.get(option.identifier, None if option.kind is OptionKind.FLAG else False)
            for option in schema
        },
        arguments,
        origins,
    )


def unparse(parsed, schema, /):
    """
    Serialize ParsedOptions back into tokens that parse to an equal result.

    Switches set to True become their preferred spelling, flags become
    --name=value, and positionals follow (behind "--" when any of them starts
    with a dash).
    """
    if not isinstance(parsed, ParsedOptions):
        raise TypeError("unparse() first argument must be parsed-options")
    if not isinstance(schema, OptionSet):
        raise TypeError("unparse() second argument must be an option-set")

    tokens = []
    for option in schema:
        value = parsed.get(option.identifier)
        if option.kind is OptionKind.SWITCH:
            if value:
                tokens.append(option.spelling)
        elif value is not None:
            tokens.append(f"{option.spelling}={value}")
    if any(argument.startswith("-") for argument in parsed.arguments):
        tokens.append("--")
    tokens.extend(parsed.arguments)
    return tokens


__all__ = (
    "ParsedOptions",
    "parse",
    "unparse",
)
