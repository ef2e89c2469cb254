"""
Argosy help, completion and manual rendering.

Every function here is a pure function of a command context (any object with
name, descr, usage, epilog, options, registry, colorful, fancy and width,
normally a CommandContext) and returns a string.

Help (rich-based, color-aware)
- usage(context, verb=Unset): the usage banner, top-level or for one verb.
- listing(context): every visible verb, sorted by primary name, aliases
  grouped in parentheses, the default verb marked, descriptions aligned.
- helptext(context, verb=Unset): full help. Top-level help shows the banner,
  the description, the verb listing and the shared options. Verb help shows
  the verb's banner, its description, its own options and the shared ones.

Help is composed from rich Text fragments and exported through a private
Console, so wrapping follows `context.width`. Styles are applied only when
`context.colorful` is set and can be overridden with a __styles__ mapping in
__main__; `context.fancy` wraps help in a panel.

Shell integration (plain text)
- completion(context, shell): bash, zsh or fish completion script. Each
  enumerates the verb names (aliases included) and, per verb, the spellings of
  its merged option set. Any other shell raises ValueError.
- manpage(context): markdown manual page (synopsis, description, verbs with
  aliases, default marker and own options, global options).

Palette keys
- usage-label, program-name, usage-section, description-section, epilog-section
- group-label, verb-name, alias-name, default-marker, verb-description
- option-name, metavar, option-description
- panel-title
"""
import io
import re
from collections import defaultdict

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .options import HELP, OptionKind, merge
from .utils import *


def _plain(fragment, /):
    return fragment.plain if isinstance(fragment, Text) else str(fragment)


def _names(context, descriptor, /):
    return (descriptor.name, *context.registry.aliases(descriptor))


def _is_default(context, descriptor, /):
    return context.registry.default is not None and context.registry.resolve(context.registry.default) is descriptor


def _resolve(context, verb):
    if isinstance(verb, str):
        if (descriptor := context.registry.resolve(verb)) is None:
            raise ValueError(f"unknown verb {verb!r}")
        return descriptor
    return verb


def _styler(context):
    styles = defaultdict(str, {
        # === Head sections ===
        "usage-label": "bold #00E6FF",  # CYAN → signature info color
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan
        "description-section": "italic #A3A3A3",  # Neutral gray
        "epilog-section": "#737373",  # Dim footer gray

        # === Verbs ===
        "group-label": "bold #FFFFFF",  # Pure white headers
        "verb-name": "bold #36C5F0",  # Sky-blue verbs
        "alias-name": "#36C5F0",
        "default-marker": "italic #22C55E",  # Green default marker
        "verb-description": "#9CA3AF",  # Muted gray

        # === Options ===
        "option-name": "bold #00E6FF",  # CYAN for options
        "metavar": "bold #FFD600",  # AMBER for values
        "option-description": "#9CA3AF",

        # === Fancy panel ===
        "panel-title": "bold #FF4D94",  # Magenta branding
    } | getattr(__import__("__main__"), "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment.copy() if context.colorful else Text(fragment.plain)
        return Text(str(fragment), styles[style] if context.colorful else "")

    return text


def _console(context):
    return Console(
        file=io.StringIO(),
        width=context.width,
        color_system="truecolor" if context.colorful else None,
        force_terminal=context.colorful,
        highlight=False,
    )


def _export(context, console, renderable):
    console.print(renderable)
    return "\n".join(line.rstrip() for line in console.file.getvalue().splitlines()).strip("\n") + "\n"


def _columns(console, width, rows, /):
    """
    Lay out (left, description) rows with a shared hanging indent.
    """
    padding = 2
    indent = min(max((len(left) for left, _ in rows), default=0) + padding * 2, 32)

    block = Text()
    for left, descr in rows:
        section = Text(" " * padding) + left
        if descr:
            if len(section) + padding > indent:
                section.append("\n").append(" " * indent)
            else:
                section.append(" " * (indent - len(section)))
            wrapped = descr.wrap(console, max(width - indent, 20))
            try:
                section.append(wrapped.pop(0))
            except IndexError:
                pass
            for line in wrapped:
                section.append("\n").append(" " * indent).append(line)
        block.append(section).append("\n")
    block.rstrip()
    return block


def _arguments(arity, /):
    """
    Positional part of a synthesized banner, e.g. "<arg> [<arg>...]".
    """
    required = ["<arg>"] * arity.minimum
    if arity.maximum is None:
        required.append("[<arg>...]")
    else:
        required.extend(["[<arg>]"] * (arity.maximum - arity.minimum))
    return " ".join(required)


def _banner(context, text, verb=Unset):
    banner = Text()
    banner.append(text("usage", "usage-label")).append(": ")

    explicit = context.usage if verb is Unset else verb.usage
    if explicit:
        return banner.append(text(explicit, "usage-section"))

    banner.append(text(context.name, "program-name"))
    if verb is Unset:
        verbs = "[<verb>]" if context.registry.default else "<verb>"
        return banner.append(f" [options] {verbs} [<verb-options>] [<args>...]")

    banner.append(" ").append(text(verb.name, "verb-name")).append(" [options]")
    if arguments := _arguments(verb.arity):
        banner.append(" ").append(arguments)
    return banner


def _option_rows(text, options, /):
    rows = []
    for option in options:
        if option.hidden:
            continue
        spellings = (*option.shorts, *option.longs)
        left = Text(", ").join(text(name, "option-name") for name in spellings)
        if option.kind is OptionKind.FLAG:
            left.append("=" if spellings[-1].startswith("--") else " ").append(text(option.metavar, "metavar"))
        rows.append((left, text(option.descr, "option-description")))
    return rows


def _help_row(text):
    return (
        Text(", ").join(text(name, "option-name") for name in HELP),
        text("show this message and exit", "option-description"),
    )


def _verb_rows(context, text, /):
    rows = []
    for descriptor in sorted(context.registry.descriptors(), key=lambda x: x.name):
        if descriptor.hidden:
            continue
        left = text(descriptor.name, "verb-name")
        if aliases := context.registry.aliases(descriptor):
            left = Text.assemble(left, " (", Text(", ").join(text(alias, "alias-name") for alias in aliases), ")")
        if _is_default(context, descriptor):
            left = Text.assemble(left, " ", text("(default)", "default-marker"))
        rows.append((left, text(descriptor.descr, "verb-description")))
    return rows


def usage(context, verb=Unset, /):
    """
    Render the usage banner, top-level or for one verb (descriptor or name).
    """
    text = _styler(context)
    return _export(context, _console(context), _banner(context, text, _resolve(context, verb)))


def listing(context, /):
    """
    Render the verb listing: one line per verb, aliases in parentheses and
    the default verb marked “(default)”.
    """
    text = _styler(context)
    console = _console(context)
    return _export(context, console, _columns(console, context.width, _verb_rows(context, text)))


def helptext(context, verb=Unset, /):
    """
    Render complete help for the command (verb Unset) or one verb.
    """
    text = _styler(context)
    console = _console(context)
    width = context.width - 4 * context.fancy
    verb = _resolve(context, verb)

    renders = [_banner(context, text, verb).append("\n")]

    descr = context.descr if verb is Unset else verb.descr
    if descr:
        renders.append(text(descr, "description-section").append("\n"))

    def section(title, rows):
        block = Text()
        block.append(text(title, "group-label")).append(":\n")
        block.append(_columns(console, width, rows))
        renders.append(block.append("\n"))

    if verb is Unset:
        if rows := _verb_rows(context, text):
            section("verbs", rows)
        section("options", _option_rows(text, context.options) + [_help_row(text)])
    else:
        if rows := _option_rows(text, verb.options):
            section("options", rows)
        section("shared options", _option_rows(text, context.options) + [_help_row(text)])

    if verb is Unset and context.epilog:
        renders.append(text(context.epilog, "epilog-section").append("\n"))

    renders[-1].rstrip()
    renderable = Group(*renders)

    if context.fancy:
        title = context.name if verb is Unset else f"{context.name} {verb.name}"
        renderable = Panel(
            renderable,
            title=text(f"[ {title} help ]".upper(), "panel-title"),
            title_align="left",
            width=context.width,
        )

    return _export(context, console, renderable)


def _function(context):
    return re.sub(r"\W", "_", context.name)


def _visible(context):
    return [descriptor for descriptor in context.registry.descriptors() if not descriptor.hidden]


def _spellings(options, /):
    return [name for option in options if not option.hidden for name in option.names]


def _bash(context):
    function = _function(context)
    names = sorted(name for descriptor in _visible(context) for name in _names(context, descriptor))
    shared = " ".join([*_spellings(context.options), *HELP])

    lines = [
        f"_{function}() {{",
        '  local cur="${COMP_WORDS[COMP_CWORD]}"',
        '  local verb="" word i',
        "  for (( i = 1; i < COMP_CWORD; i++ )); do",
        '    word="${COMP_WORDS[i]}"',
        '    if [[ "$word" != -* ]]; then',
        '      verb="$word"',
        "      break",
        "    fi",
        "  done",
        "",
        '  if [[ -z "$verb" ]]; then',
        '    if [[ "$cur" == -* ]]; then',
        f'      COMPREPLY=( $(compgen -W "{shared}" -- "$cur") )',
        "    else",
        f'      COMPREPLY=( $(compgen -W "{" ".join(dict.fromkeys(names))}" -- "$cur") )',
        "    fi",
        "    return",
        "  fi",
        "",
        '  case "$verb" in',
    ]
    for descriptor in sorted(_visible(context), key=lambda x: x.name):
        spellings = " ".join([*_spellings(merge(context.options, descriptor.options)), *HELP])
        lines += [
            f"    {"|".join(_names(context, descriptor))})",
            f'      COMPREPLY=( $(compgen -W "{spellings}" -- "$cur") )',
            "      ;;",
        ]
    lines += [
        "  esac",
        "}",
        "",
        f"complete -F _{function} {context.name}",
    ]
    return "\n".join(lines) + "\n"


def _zsh_quote(value, /):
    return str(value).replace("'", "'\\''").replace("[", "\\[").replace("]", "\\]").replace(":", "\\:")


def _zsh_specs(options, /):
    specs = []
    for option in options:
        if option.hidden:
            continue
        descr = _zsh_quote(_plain(option.descr) if option.descr else "")
        value = f":{option.metavar.lower()}:" if option.kind is OptionKind.FLAG else ""
        for name in option.names:
            suffix = "=" if option.kind is OptionKind.FLAG and name.startswith("--") else ""
            specs.append(f"'{name}{suffix}[{descr}]{value}'")
    return specs


def _zsh(context):
    function = _function(context)
    lines = [
        f"#compdef {context.name}",
        "",
        f"_{function}() {{",
        "  local -a verbs",
        "  verbs=(",
    ]
    for descriptor in sorted(_visible(context), key=lambda x: x.name):
        descr = _zsh_quote(_plain(descriptor.descr) if descriptor.descr else "")
        for name in _names(context, descriptor):
            lines.append(f"    '{_zsh_quote(name)}:{descr}'")
    lines += [
        "  )",
        "",
        "  local state",
        "  _arguments -C \\",
        *(f"    {spec} \\" for spec in _zsh_specs(context.options)),
        "    '(-h --help)'{-h,--help}'[show this message and exit]' \\",
        "    '1: :->verb' \\",
        "    '*:: :->args'",
        "",
        "  case $state in",
        "    verb)",
        "      _describe 'verb' verbs",
        "      ;;",
        "    args)",
        "      case $words[1] in",
    ]
    for descriptor in sorted(_visible(context), key=lambda x: x.name):
        specs = " ".join(_zsh_specs(merge(context.options, descriptor.options)))
        lines += [
            f"        {"|".join(_names(context, descriptor))})",
            f"          _arguments {specs} '(-h --help)'{{-h,--help}}'[show this message and exit]'".rstrip(),
            "          ;;",
        ]
    lines += [
        "      esac",
        "      ;;",
        "  esac",
        "}",
        "",
        f'_{function} "$@"',
    ]
    return "\n".join(lines) + "\n"


def _fish_quote(value, /):
    return "'" + str(value).replace("\\", "\\\\").replace("'", "\\'") + "'"


def _fish_option(prefix, option, /):
    parts = [prefix]
    for name in option.names:
        if name.startswith("--"):
            parts.append(f"-l {name[2:]}")
        elif len(name) == 2:
            parts.append(f"-s {name[1:]}")
        else:
            parts.append(f"-o {name[1:]}")
    if option.kind is OptionKind.FLAG:
        parts.append("-r")
    if option.descr:
        parts.append(f"-d {_fish_quote(_plain(option.descr))}")
    return " ".join(parts)


def _fish(context):
    function = _function(context)
    names = [name for descriptor in _visible(context) for name in _names(context, descriptor)]
    lines = [
        f"function __fish_{function}_needs_verb",
        "    set -l cmd (commandline -opc)",
        "    for token in $cmd[2..-1]",
        f"        if contains -- $token {" ".join(names)}",
        "            return 1",
        "        end",
        "    end",
        "    return 0",
        "end",
        "",
        f"function __fish_{function}_using_verb",
        "    set -l cmd (commandline -opc)",
        "    for token in $cmd[2..-1]",
        "        if contains -- $token $argv",
        "            return 0",
        "        end",
        "    end",
        "    return 1",
        "end",
        "",
    ]
    for descriptor in sorted(_visible(context), key=lambda x: x.name):
        descr = f" -d {_fish_quote(_plain(descriptor.descr))}" if descriptor.descr else ""
        for name in _names(context, descriptor):
            lines.append(f"complete -c {context.name} -f -n '__fish_{function}_needs_verb' -a {name}{descr}")
    lines.append("")
    for option in context.options:
        if not option.hidden:
            lines.append(_fish_option(f"complete -c {context.name}", option))
    lines.append(f"complete -c {context.name} -s h -l help -d 'show this message and exit'")
    for descriptor in sorted(_visible(context), key=lambda x: x.name):
        names = " ".join(_names(context, descriptor))
        for option in descriptor.options:
            if not option.hidden:
                lines.append(_fish_option(f"complete -c {context.name} -n '__fish_{function}_using_verb {names}'", option))
    return "\n".join(lines) + "\n"


def completion(context, shell="bash", /):
    """
    Render a shell completion script for `shell` ("bash", "zsh" or "fish").
    """
    match shell:
        case "bash":
            return _bash(context)
        case "zsh":
            return _zsh(context)
        case "fish":
            return _fish(context)
        case str():
            raise ValueError(f"completion() shell must be one of 'bash', 'zsh', or 'fish', not {shell!r}")
        case _:
            raise TypeError("completion() shell must be a string")


def _manual_option(option, /):
    names = ", ".join(f"`{name}`" for name in option.names)
    if option.kind is OptionKind.FLAG:
        names += f"=*{option.metavar}*"
    return f"* {names}: {_plain(option.descr) if option.descr else ''}".rstrip() + "\n"


def manpage(context, /):
    """
    Render a markdown manual page for the command.
    """
    descr = _plain(context.descr) if context.descr else ""
    page = f"{context.name}(1) -- {descr}".rstrip(" -") + "\n"
    page += "=" * 80 + "\n\n"

    page += "## SYNOPSIS\n\n"
    verb = "[<verb>]" if context.registry.default else "<verb>"
    page += f"`{context.name}` [<options>] {verb} [<verb-options>] [<args>...]\n\n"

    if descr:
        page += "## DESCRIPTION\n\n"
        page += f"{descr}\n\n"

    page += "## VERBS\n\n"
    for descriptor in _visible(context):
        page += f"### `{descriptor.name}`"
        if aliases := context.registry.aliases(descriptor):
            page += f" (aliases: {", ".join(aliases)})"
        if _is_default(context, descriptor):
            page += " (default)"
        page += "\n\n"
        if descriptor.descr:
            page += f"{_plain(descriptor.descr)}\n\n"
        if options := [option for option in descriptor.options if not option.hidden]:
            page += "Options:\n\n"
            page += "".join(map(_manual_option, options))
            page += "\n"

    page += "## GLOBAL OPTIONS\n\n"
    page += "".join(_manual_option(option) for option in context.options if not option.hidden)
    page += "* `-h`, `--help`: Show this message and exit.\n"
    return page


__all__ = (
    "usage",
    "listing",
    "helptext",
    "completion",
    "manpage",
)
