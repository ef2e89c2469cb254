"""
Argosy command context: one program, its shared options and its verbs.

Overview
- CommandContext ties together everything a dispatch needs:
  • name: program name used in banners, hints and fault headers.
  • options: the shared option set, accepted before and after the verb by
    every verb. Closed: its conflict references must resolve inside it.
  • registry: the VerbRegistry holding the verbs.
  • descr / usage / epilog: top-level help text.
  • shell / fancy / colorful / width: runtime flags for rendering and for
    how faults are surfaced.

Registration goes through the context so that every verb is checked against
the shared options before it lands in the registry, including verbs
registered on the registry directly: a verb whose own options
reuse a shared spelling or identifier fails with DuplicateNameError, and a
conflict naming an option that exists in neither set fails with ValueError.
The merged option set of each verb is computed once and cached.

Quick example
    services = CommandContext("services", [
        Flag("--sudo-service-user", descr="run the services as this user"),
        Switch("--json"),
    ])

    @services.verb(aliases=("ls", "l"), default=True)
    def list(options):
        \"\"\"List all managed services.\"\"\"

    if __name__ == "__main__":
        services.__invoke__()
"""
import sys
from pathlib import Path

from rich.text import Text

from . import render
from .dispatch import Dispatcher, invoke
from .faults import DuplicateNameError
from .options import OptionSet, merge
from .utils import *
from .verbs import VerbDescriptor, VerbRegistry, verb


class CommandContext:
    """
    Program-level container for shared options, verbs and runtime flags.

    Parameters
    - name: program name; defaults to __prog__ in __main__, else the basename
      of sys.argv[0].
    - options: the shared options, an OptionSet or an iterable of Switch/Flag.
    - registry: an existing VerbRegistry; a fresh one when Unset. Verbs it
      already holds are checked against the shared options.
    - conflicts: extra conflicting pairs among the shared options.
    - descr: one-line program description shown in help.
    - usage: explicit top-level usage banner; synthesized when Unset.
    - epilog: text shown after the help body.
    - shell: surface faults by printing them and exiting instead of raising.
    - fancy: wrap help and faults in panels.
    - colorful: enable styles.
    - width: render width for help (default 100).
    """

    def __init__(
            self,
            name=Unset,
            /,
            options=(),
            registry=Unset,
            *,
            conflicts=(),
            descr=Unset,
            usage=Unset,
            epilog=Unset,
            shell=False,
            fancy=False,
            colorful=False,
            width=100
    ):
        if name is Unset:
            name = getattr(__import__("__main__"), "__prog__", Path(sys.argv[0]).name)
        if not isinstance(name, str):
            raise TypeError("command-context name must be a string")
        elif not (name := name.strip()) or any(character.isspace() for character in name):
            raise ValueError("command-context name must be a non-empty word")

        if not isinstance(options, OptionSet):
            options = OptionSet(options, conflicts, closed=True)
        elif conflicts:
            options = OptionSet(options, (*options.pairs, *conflicts), closed=True)
        elif not options.closed:
            options = OptionSet(options, options.pairs, closed=True)

        registry = VerbRegistry() if registry is Unset else registry
        if not isinstance(registry, VerbRegistry):
            raise TypeError("command-context 'registry' must be a verb-registry")

        for field, value in (("descr", descr), ("usage", usage), ("epilog", epilog)):
            if not isinstance(value, str | Text | Unset):
                raise TypeError(f"command-context {field!r} must be a string")

        for field, value in (("shell", shell), ("fancy", fancy), ("colorful", colorful)):
            if not isinstance(value, bool):
                raise TypeError(f"command-context {field!r} must be a boolean")

        if not isinstance(width, int) or isinstance(width, bool):
            raise TypeError("command-context 'width' must be an integer")
        elif width < 20:
            raise ValueError("command-context 'width' must be at least 20")

        self._name = name
        self._options = options
        self._registry = registry
        self._descr = coalesce(descr) or None
        self._usage = coalesce(usage) or None
        self._epilog = coalesce(epilog) or None
        self._shell = shell
        self._fancy = fancy
        self._colorful = colorful
        self._width = width
        self._merged = {}

        for descriptor in registry.descriptors():
            self._check(descriptor)
        registry.add_check(self._check)

    name = mirror("name")
    options = mirror("options")
    registry = mirror("registry")
    descr = mirror("descr")
    usage = mirror("usage")
    epilog = mirror("epilog")
    shell = mirror("shell")
    fancy = mirror("fancy")
    colorful = mirror("colorful")
    width = mirror("width")

    def _check(self, descriptor):
        if not isinstance(descriptor, VerbDescriptor):
            raise TypeError("command-context verbs must be verb-descriptors")
        try:
            merged = merge(self._options, descriptor.options)
        except DuplicateNameError as error:
            raise DuplicateNameError(
                f"verb {descriptor.name!r} redeclares a shared option: {error}",
                name=error.options.get("name"),
                conflicting=error.options.get("conflicting"),
                verb=descriptor.name,
                hint=f"drop or rename the option in {descriptor.name!r}",
            ) from error
        return merged

    def merged(self, descriptor, /):
        """
        Return the option set a verb parses against: the shared options
        followed by the verb's own. Accepts a registered descriptor or any of its
        names. Computed on first use, then cached.
        """
        if isinstance(descriptor, str):
            if (resolved := self._registry.resolve(descriptor)) is None:
                raise ValueError(f"merged() unknown verb {descriptor!r}")
            descriptor = resolved
        elif descriptor not in self._registry.descriptors():
            raise ValueError("merged() argument must be a registered verb-descriptor")
        if descriptor not in self._merged:
            self._merged[descriptor] = self._check(descriptor)
        return self._merged[descriptor]

    def register(self, descriptor, /, aliases=(), *, default=False):
        """
        Check a descriptor against the shared options, then register it.

        Raises
        - DuplicateNameError: a verb name/alias is taken, or the verb's options
          reuse a shared spelling or identifier. Nothing is registered.
        - ValueError: a conflict names an option found in neither set.
        """
        return self._registry.register(descriptor, aliases, default=default)

    def verb(self, handler=Unset, /, *args, aliases=(), default=False, **kwargs):
        """
        Decorator form of register(): build a VerbDescriptor from a handler and
        register it here. `aliases` and `default` go to register(); everything
        else to VerbDescriptor.
        """
        @rename("verb")
        def wrapper(handler, /):
            return self.register(verb(handler, *args, **kwargs), aliases, default=default)

        return wrapper(handler) if handler is not Unset else wrapper

    def include(self, source, /):
        """
        Register the module-level verbs of every module matching `source`
        (see VerbRegistry.include), each checked against the shared options.
        """
        return self._registry.include(source)

    def set_default(self, name, /):
        self._registry.set_default(name)

    def help(self, verb=Unset, /):
        return render.helptext(self, verb)

    def listing(self):
        return render.listing(self)

    def banner(self, verb=Unset, /):
        return render.usage(self, verb)

    def completion(self, shell="bash", /):
        return render.completion(self, shell)

    def manpage(self):
        return render.manpage(self)

    def dispatch(self, tokens, /, *, environ=Unset):
        """
        Dispatch a token list and return the Outcome; never raises for user errors.
        """
        return Dispatcher(self, environ=environ).dispatch(tokens)

    def __invoke__(self, prompt=Unset):
        """
        Run the program with a prompt (Unset: sys.argv[1:], str: shlex-split,
        Iterable[str]: tokens) and surface help, warnings and faults the way
        the runtime flags ask for.
        """
        return invoke(self, prompt)

    def __rich_repr__(self):
        yield "name", self._name
        yield "options", self._options
        yield "verbs", tuple(descriptor.name for descriptor in self._registry.descriptors())

    def __repr__(self):
        return "command-context(%s)" % ", ".join(f"{name}={value!r}" for name, value in self.__rich_repr__())


__all__ = (
    "CommandContext",
)
