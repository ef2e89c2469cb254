"""
Argosy dispatcher: route a token list to exactly one verb handler.

States
    START ──help before the verb──▶ HELP_TOP
      │
      ▼
    EXTRACTING ──no verb, no default──▶ UNKNOWN_VERB
      │ (verb token)                 (no verb token: default verb)──┐
      ▼                                                             │
    RESOLVING ──not registered──▶ UNKNOWN_VERB                      │
      │                                                             │
      ├──help after the verb──▶ HELP_VERB                           │
      ▼                                                             │
    PARSING ◀───────────────────────────────────────────────────────┘
      │ ──ParseError──▶ PARSE_ERROR
      ▼
    INVOKING ──handler raised──▶ HANDLER_ERROR
      │
      ▼
    DONE

Contract
- Dispatcher.dispatch(tokens) never raises for user errors: every failure is
  reported in the returned Outcome (state, fault, exit_code).
- The handler runs at most once, and only after a successful parse.
- Help is a successful outcome: the rendered text is in Outcome.output and no
  handler runs.
- Faults keep their messages verbatim; the dispatcher only adds hints
  (“run 'tool stop --help' for usage”) where the parser left none.
- Anything a handler raises (Exception subclasses) becomes a HandlerError
  with the same message and the original exception as __cause__.

invoke(context, prompt=Unset) is the shell-facing wrapper: it tokenizes the
prompt, dispatches, prints help to stdout and surfaces warnings and faults
through trigger() (raised in library mode, printed to stderr with exit
status 1 in shell mode).
"""
import copy
import difflib
import logging
import sys
import warnings
from collections.abc import Iterable
from enum import Enum

from . import render
from .faults import *
from .options import HELP, OptionKind
from .parser import parse
from .tokens import extract, locate, tokenize, wants_help
from .utils import *

logger = logging.getLogger(__name__)


class DispatchState(Enum):
    START = "start"
    HELP_TOP = "help-top"
    EXTRACTING = "extracting"
    RESOLVING = "resolving"
    HELP_VERB = "help-verb"
    UNKNOWN_VERB = "unknown-verb"
    PARSING = "parsing"
    PARSE_ERROR = "parse-error"
    INVOKING = "invoking"
    DONE = "done"
    HANDLER_ERROR = "handler-error"


_SUCCESSFUL = frozenset((DispatchState.HELP_TOP, DispatchState.HELP_VERB, DispatchState.DONE))


class Outcome:
    """
    Terminal result of one dispatch.

    Properties
    - state: terminal DispatchState.
    - verb: resolved VerbDescriptor, or None.
    - options: ParsedOptions when parsing succeeded, else None.
    - result: the handler's return value (DONE only).
    - fault: CommandException for UNKNOWN_VERB / PARSE_ERROR / HANDLER_ERROR.
    - output: rendered help for HELP_TOP / HELP_VERB.
    - warnings: tuple of CommandWarning recorded during the dispatch.
    - trace: every state visited, START first.
    - ok / exit_code: True and 0 for help and DONE, False and 1 otherwise.
    """

    state = mirror("state")
    verb = mirror("verb")
    options = mirror("options")
    result = mirror("result")
    fault = mirror("fault")
    output = mirror("output")
    warnings = mirror("warnings")
    trace = mirror("trace")

    def __init__(self, state, /, verb=None, options=None, result=None, fault=None, output=None, warnings=(), trace=()):
        if not isinstance(state, DispatchState):
            raise TypeError("outcome state must be a dispatch-state")
        self._state = state
        self._verb = verb
        self._options = options
        self._result = result
        self._fault = fault
        self._output = output
        self._warnings = tuple(warnings)
        self._trace = tuple(trace) or (state,)

    @property
    def ok(self):
        return self._state in _SUCCESSFUL

    @property
    def exit_code(self):
        return 0 if self.ok else 1

    def __rich_repr__(self):
        yield "state", self._state
        yield "verb", getattr(self._verb, "name", None)
        yield "fault", self._fault
        yield "exit_code", self.exit_code

    def __repr__(self):
        return "outcome(%s)" % ", ".join(f"{name}={value!r}" for name, value in self.__rich_repr__())


class Dispatcher:
    """
    Run the dispatch state machine for one CommandContext.

    Parameters
    - context: the CommandContext (shared options, registry, runtime flags).
    - environ: mapping used for option environment fallbacks (os.environ when Unset).

    The registry is sealed on the first dispatch.
    """

    def __init__(self, context, /, *, environ=Unset):
        self._context = context
        self._environ = environ

    @property
    def context(self):
        return self._context

    def _route(self, *names):
        return " ".join((self._context.name, *names))

    def dispatch(self, tokens, /):
        """
        Dispatch one token list (program name excluded) and return an Outcome.
        """
        if isinstance(tokens, str) or not isinstance(tokens, Iterable):
            raise TypeError("dispatch() argument must be an iterable of strings")
        tokens = list(tokens)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("dispatch() argument must be an iterable of strings")

        context = self._context
        registry = context.registry
        registry.seal()

        trace = [DispatchState.START]
        notes = []

        def advance(state):
            logger.debug("dispatch %s -> %s", trace[-1].value, state.value)
            trace.append(state)

        def finish(state, **fields):
            advance(state)
            return Outcome(state, warnings=notes, trace=trace, **fields)

        index = locate(tokens)
        helps = [position for position, token in enumerate(tokens) if token in HELP]
        if helps and (index is None or helps[0] < index):
            return finish(DispatchState.HELP_TOP, output=render.helptext(context))

        advance(DispatchState.EXTRACTING)
        verb, remaining = extract(tokens)
        positions = [position + 1 for position in range(len(tokens)) if position != index]

        if verb is None:
            try:
                descriptor = registry.resolve_default()
            except NoDefaultConfiguredError as error:
                fault = UnknownVerbError(
                    "no verb specified",
                    token=None,
                    suggestions=(),
                    hint="run '%s --help' to see available verbs" % self._route(),
                )
                fault.__cause__ = error
                return finish(DispatchState.UNKNOWN_VERB, fault=fault)
            except UnknownVerbError as fault:
                return finish(DispatchState.UNKNOWN_VERB, fault=fault)
            logger.debug("no verb given, using default %r", descriptor.name)
        else:
            if index and (previous := tokens[index - 1]) and (option := context.options.lookup(previous)):
                if option.kind is OptionKind.FLAG:
                    notes.append(AmbiguousVerbWarning(
                        "%r at %s position follows flag %r and was taken as the verb, not as its value" % (
                            verb, ordinal(index + 1), previous
                        ),
                        token=verb,
                        position=index + 1,
                        hint="write %s=%s to pass it as the value" % (previous, verb),
                    ))

            advance(DispatchState.RESOLVING)
            if (descriptor := registry.resolve(verb)) is None:
                suggestions = difflib.get_close_matches(verb, sorted(registry.all_names()), 5)
                try:
                    hint = "did you mean %r? you can also run '%s --help' to see available verbs" % (
                        suggestions[0], self._route()
                    )
                except IndexError:
                    hint = "run '%s --help' to see available verbs" % self._route()
                return finish(DispatchState.UNKNOWN_VERB, fault=UnknownVerbError(
                    "unknown verb %r at %s position" % (verb, ordinal(index + 1)),
                    token=verb,
                    position=index + 1,
                    suggestions=tuple(suggestions),
                    hint=hint,
                ))

            if wants_help(remaining):
                return finish(DispatchState.HELP_VERB, verb=descriptor, output=render.helptext(context, descriptor))

        advance(DispatchState.PARSING)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", CommandWarning)
            try:
                parsed = parse(
                    remaining,
                    context.merged(descriptor),
                    descriptor.arity,
                    environ=self._environ,
                    positions=positions,
                )
            except ParseError as error:
                fault = error
            else:
                fault = None

        for record in caught:
            if isinstance(record.message, CommandWarning):
                notes.append(record.message)
            else:
                warnings.warn_explicit(record.message, record.category, record.filename, record.lineno)

        if fault is not None:
            if fault.hint is None:
                fault = copy.replace(fault, hint="run '%s --help' for usage" % self._route(descriptor.name))
            return finish(DispatchState.PARSE_ERROR, verb=descriptor, fault=fault)

        advance(DispatchState.INVOKING)
        try:
            result = descriptor(parsed)
        except Exception as error:
            logger.debug("handler of %r raised %s", descriptor.name, type(error).__name__)
            fault = HandlerError(str(error), exception=error, verb=descriptor.name)
            fault.__cause__ = error
            return finish(DispatchState.HANDLER_ERROR, verb=descriptor, options=parsed, fault=fault)

        return finish(DispatchState.DONE, verb=descriptor, options=parsed, result=result)


def invoke(context, prompt=Unset, /):
    """
    Shell-facing runner for a CommandContext.

    Parameters
    - context: CommandContext to run.
    - prompt:
      • Unset: read sys.argv[1:].
      • str: split with shlex.split.
      • Iterable[str]: used as tokens.

    Behavior
    - Help output goes to stdout.
    - Warnings are surfaced with trigger(): warnings.warn in library mode,
      printed to stderr in shell mode.
    - Faults are surfaced with trigger(): raised in library mode; in shell
      mode the relevant usage banner and the fault are printed to stderr and
      the process exits with status 1.

    Returns
    - the Outcome (library mode, or shell mode on success).
    """
    outcome = Dispatcher(context).dispatch(tokenize(prompt))
    options = dict(prog=context.name, shell=context.shell, fancy=context.fancy, colorful=context.colorful)

    if outcome.output is not None:
        sys.stdout.write(outcome.output)

    for warning in outcome.warnings:
        trigger(warning, **options)

    if outcome.fault is not None:
        if context.shell:
            sys.stderr.write(render.usage(context, Unset if outcome.verb is None else outcome.verb))
        trigger(outcome.fault, **options)

    return outcome


__all__ = (
    "DispatchState",
    "Outcome",
    "Dispatcher",
    "invoke",
)
