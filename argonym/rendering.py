"""
Argonym help and version rendering.

Both renderers are pure functions of a Schema and return rich Text, so the
caller decides where it goes (the parser prints it to its console).

Help layout
    <program> <version>
    <description>
    usage: <program> <usage> <positional placeholder>

      -h, --help            print this help and exit
      -V, --version         print version information and exit
      -o, --output <str>    where to write
          --level <uint>    verbosity level
          --mode {fast,safe}
                            ...
      FILE...               input files

Placeholders
- positionals: NAME(n) for exactly n, [NAME]... for zero or more, NAME... for at least one.
- values: <str>, <int>, <uint>, <float>; enumerations list their choices {a,b,c}.

Palette keys (override through __main__.__styles__)
- program-name, program-version, description-section, usage-label, usage-section
- option-name, flag-name, metavar, choice, positional, argument-description
"""
from rich.text import Text

from .arguments import Arity, Kind
from .schemas import HELP, VERSION
from .utils import Painter

_PALETTE = {
    # === Head sections ===
    "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
    "program-version": "bold #00E6FF",  # CYAN version
    "description-section": "italic #A3A3A3",  # Neutral gray
    "usage-label": "bold #00E6FF",
    "usage-section": "bold #36C5F0",  # SKY-BLUE

    # === Arguments ===
    "option-name": "bold #00E6FF",  # CYAN for options
    "flag-name": "bold #22C55E",  # GREEN for flags
    "metavar": "bold #FFD600",  # AMBER for value placeholders
    "choice": "bold #FF4D94",  # MAGENTA → choices stand out
    "positional": "bold #FFD600",
    "argument-description": "#9CA3AF",  # Muted gray
}

_METAVARS = {
    Kind.STR: "<str>",
    Kind.INT: "<int>",
    Kind.UINT: "<uint>",
    Kind.FLOAT: "<float>",
}

# Column of the first character of every argument line.
PADDING = 2
# Spaces between the widest left column and the help text.
GUTTER = 2


def placeholder(spec, /):
    """
    Usage placeholder of a positional spec: NAME(n), [NAME]... or NAME....
    """
    quantity = spec.role.quantity
    match quantity.arity:
        case Arity.EXACTLY:
            return f"{spec.name}({quantity.count})"
        case Arity.ZERO_OR_MORE:
            return f"[{spec.name}]..."
        case Arity.AT_LEAST_ONE:
            return f"{spec.name}..."


def _forms(painter, short, long, style):
    # short column is always 4 wide ("-x, ") so long forms line up
    forms = Text()
    if short and long:
        forms.append_text(painter.text(f"-{short}", style)).append(", ")
    elif short:
        forms.append_text(painter.text(f"-{short}", style))
    else:
        forms.append("    ")
    if long:
        forms.append_text(painter.text(f"--{long}", style))
    return forms


def _value(painter, type):
    if type.kind is Kind.ENUM:
        return Text.assemble("{", Text(",").join(painter.text(name, "choice") for name in type.variants), "}")
    return painter.text(_METAVARS[type.kind], "metavar")


def _entries(schema, painter):
    yield _forms(painter, *HELP, "flag-name"), "print this help and exit"
    yield _forms(painter, *VERSION, "flag-name"), "print version information and exit"

    for spec in schema.arguments:
        if spec.positional:
            yield painter.text(placeholder(spec), "positional"), spec.help
            continue
        left = _forms(painter, spec.role.short, spec.role.long, "flag-name" if spec.boolean else "option-name")
        if not spec.boolean:
            left.append(" ").append_text(_value(painter, spec.type))
        yield left, spec.help


def render_help(schema, /, *, colorful=False):
    """
    Render the help text of a schema.

    Every argument line is aligned on the widest option rendering, built-in
    -h/--help and -V/--version included.
    """
    painter = Painter(_PALETTE, colorful=colorful)
    lines = []

    lines.append(Text(" ").join(
        painter.text(fragment, style) for fragment, style in (
            (schema.program, "program-name"),
            (schema.version, "program-version"),
        ) if fragment
    ))

    if schema.description:
        lines.append(painter.text(schema.description, "description-section"))

    usage = Text()
    usage.append_text(painter.text("usage", "usage-label")).append(":")
    for fragment in (
        schema.program,
        schema.usage,
        placeholder(schema.positional) if schema.positional else "",
    ):
        if fragment:
            usage.append(" ").append_text(painter.text(fragment, "usage-section"))
    lines.append(usage)
    lines.append(Text())

    entries = list(_entries(schema, painter))
    width = max(len(left) for left, _ in entries)
    for left, help in entries:
        line = Text(" " * PADDING).append_text(left)
        if help:
            line.append(" " * (width - len(left) + GUTTER)).append_text(painter.text(help, "argument-description"))
        lines.append(line)

    return Text("\n").join(lines)


def render_version(schema, /, *, colorful=False):
    """
    Render "<program> <version>" (either part omitted when empty).
    """
    painter = Painter(_PALETTE, colorful=colorful)
    return Text(" ").join(
        painter.text(fragment, style) for fragment, style in (
            (schema.program, "program-name"),
            (schema.version, "program-version"),
        ) if fragment
    )


__all__ = (
    "placeholder",
    "render_help",
    "render_version",
)
