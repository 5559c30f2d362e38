"""
Argonym parser: the runtime state machine that turns tokens into typed values.

What this module provides
- Parser: wraps a Schema and parses token streams into Parsed results.
- Parsed: outcome + read-only values mapping + positional values.
- invoke(parser, prompt): convenience runner reading sys.argv[1:] in shell mode.

States
- MATCHING_ARG (initial): classify the token.
    • long  ("--name", "--name=value"): help/version, or the option with that long form.
    • short ("-abc"): h/V anywhere in the cluster trigger help/version;
      otherwise each character in order, only the last one may take a value.
    • bare: first positional value (the machine then stays in COLLECTING_POSITIONAL).
- AWAITING_VALUE: the next token, whatever its shape, is the pending option's value.
- COLLECTING_POSITIONAL: every further token is a positional value; any token
  starting with "-" is rejected (help/version requests excepted).

End of input
- a pending option without value is a MissingValueError.
- the positional arity (exactly n / at least one / zero or more) is checked.

Faults
- the first fault aborts the call; nothing is recovered.
- in library mode (shell=False) faults are raised; in shell mode they are
  rendered on stderr and the process exits with status 1. Help and version
  outcomes exit with status 0 in shell mode.

Quick start
    from argonym import Field, Parser

    parser = Parser(
        Field("__program", str, default="grep-lite"),
        Field("__version", str, default="1.0.0"),
        Field("_ignore_case", bool, "match case-insensitively"),
        Field("_max_count", int, "stop after this many matches", default=-1),
        Field("FILE:+", str, "files to search"),
    )
    parsed = parser.parse(["-i", "--max-count", "3", "a.txt", "b.txt"])
    parsed["ignore_case"], parsed["max_count"], parsed.positionals
    # (True, 3, ['a.txt', 'b.txt'])
"""
import difflib
import enum
import logging
import shlex
import sys
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from rich.console import Console

from .arguments import Arity, Field, ArgumentSpec
from .coercion import coerce
from .faults import *
from .rendering import placeholder, render_help, render_version
from .schemas import HELP, VERSION, Schema
from .utils import Unset, coalesce, ordinal

logger = logging.getLogger(__name__)


class Mode(enum.Enum):
    MATCHING_ARG = "matching-arg"
    AWAITING_VALUE = "awaiting-value"
    COLLECTING_POSITIONAL = "collecting-positional"


class Outcome(enum.Enum):
    PARSED = "parsed"
    HELP = "help"
    VERSION = "version"


class TokenKind(enum.Enum):
    LONG = "long"
    SHORT = "short"
    BARE = "bare"


def classify(token, /):
    """
    Classify a raw token: "--x..." is long, "-x..." is short, anything else is bare.
    """
    if token.startswith("--") and len(token) > 2:
        return TokenKind.LONG
    if token.startswith("-") and len(token) > 1:
        return TokenKind.SHORT
    return TokenKind.BARE


class ParseState:
    """
    Per-call machine state: current mode and the option awaiting its value.
    """
    __slots__ = ("mode", "pending", "index")

    def __init__(self):
        self.mode = Mode.MATCHING_ARG
        self.pending = None
        self.index = 0

    def __repr__(self):
        return f"parse-state(mode={self.mode.value!r}, pending={getattr(self.pending, 'name', None)!r})"


class Parsed:
    """
    Result of one parse call.

    - outcome: Outcome.PARSED, or HELP/VERSION when a built-in switch
      short-circuited the call (values and positionals are then empty).
    - values: read-only mapping from argument name to typed value.
    - positionals: list of coerced positional values (the caller-supplied
      buffer when one was given).
    """
    __slots__ = ("outcome", "values", "positionals")

    def __init__(self, outcome, values=MappingProxyType({}), positionals=()):
        self.outcome = outcome
        self.values = values
        self.positionals = positionals

    def __getitem__(self, name, /):
        return self.values[name]

    def __contains__(self, name, /):
        return name in self.values

    def __iter__(self):
        return iter(self.values)

    def __len__(self):
        return len(self.values)

    def __eq__(self, other, /):
        if not isinstance(other, Parsed):
            return NotImplemented
        return (self.outcome, dict(self.values), list(self.positionals)) == (
            other.outcome, dict(other.values), list(other.positionals)
        )

    __hash__ = None

    def __repr__(self):
        return f"parsed(outcome={self.outcome.value!r}, values={dict(self.values)!r}, positionals={list(self.positionals)!r})"


class Parser:
    """
    Parsing engine built once from a schema and reused across calls.

    Parameters
    - *entries: a single Schema, or Field/ArgumentSpec declarations to build one.
    - console: rich Console receiving help/version text (stdout by default).
    - shell: when True, faults are rendered and exit(1); help/version exit(0).
    - colorful: style help/version/fault output.
    - fancy: wrap rendered faults in a panel.

    The parser keeps no per-call state, so a single instance may serve
    concurrent parse() calls.
    """

    def __init__(self, *entries, console=Unset, shell=False, colorful=False, fancy=False):
        if len(entries) == 1 and isinstance(entries[0], Schema):
            schema = entries[0]
        elif all(isinstance(entry, Field | ArgumentSpec) for entry in entries):
            schema = Schema(*entries)
        else:
            raise TypeError("Parser() arguments must be a Schema or Field/ArgumentSpec declarations")

        if console is not Unset and not isinstance(console, Console):
            raise TypeError("Parser() 'console' must be a rich Console")

        self._schema = schema
        self._console = console
        self._shell = bool(shell)
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)

    @property
    def schema(self):
        return self._schema

    @property
    def console(self):
        return self._console if self._console is not Unset else Console()

    @property
    def shell(self):
        return self._shell

    def trigger(self, fault, /, **options):
        """
        Merge the parser's rendering options into a fault and surface it.
        """
        logger.debug("parse fault %s: %s", type(fault).__name__, fault)
        trigger(
            fault,
            **options,
            prog=self._schema.program,
            shell=self._shell,
            fancy=self._fancy,
            colorful=self._colorful,
        )

    def help(self):
        return render_help(self._schema, colorful=self._colorful)

    def version(self):
        return render_version(self._schema, colorful=self._colorful)

    def _terminate(self, outcome):
        """
        Print help or version text and end the call (exit 0 in shell mode).
        """
        logger.debug("built-in switch requested %s", outcome.value)
        self.console.print(self.help() if outcome is Outcome.HELP else self.version(), highlight=False)
        if self._shell:
            sys.exit(0)
        return Parsed(outcome)

    def _coerce(self, token, spec, state):
        try:
            return coerce(token, spec.type)
        except ParseError as fault:
            what = "positional value" if spec.positional else "value for %r" % spec.name
            self.trigger(
                fault,
                message="%s at %s position: %s" % (what, ordinal(state.index), fault.message),
                index=state.index,
                argument=spec,
            )

    def _collect(self, buffer, value, state):
        try:
            buffer.append(value)
        except MemoryError:
            self.trigger(PositionalBufferError(
                "cannot store positional value from %s position" % ordinal(state.index),
                index=state.index,
                argument=self._schema.positional,
                hint="pass fewer positional values",
            ))

    def _unknown(self, switch, state, candidates):
        suggestions = difflib.get_close_matches(switch, candidates, 3)
        try:
            hint = "did you mean %r? run with --help to see the accepted arguments" % suggestions[0]
        except IndexError:
            hint = "run with --help to see the accepted arguments"
        self.trigger(UnknownArgumentError(
            "unknown argument %r at %s position" % (switch, ordinal(state.index)),
            index=state.index,
            token=switch,
            suggestions=suggestions,
            hint=hint,
        ))

    def _requested(self, token):
        """
        The built-in outcome a switch-like token asks for, if any.
        """
        match classify(token):
            case TokenKind.LONG:
                name = token[2:].partition("=")[0]
                if name == HELP[1]:
                    return Outcome.HELP
                if name == VERSION[1]:
                    return Outcome.VERSION
            case TokenKind.SHORT:
                for char in token[1:]:
                    if char == HELP[0]:
                        return Outcome.HELP
                    if char == VERSION[0]:
                        return Outcome.VERSION
        return None

    def _match_long(self, token, state, values):
        name, separator, value = token[2:].partition("=")
        if name == HELP[1]:
            return Outcome.HELP
        if name == VERSION[1]:
            return Outcome.VERSION

        if (spec := self._schema.long(name)) is None:
            return self._unknown("--" + name, state, ["--" + long for long in (*self._schema.longs, HELP[1], VERSION[1])])

        if spec.boolean:
            if separator:
                self.trigger(FlagAssignmentError(
                    "flag '--%s' at %s position does not take a value" % (name, ordinal(state.index)),
                    index=state.index,
                    token=token,
                    argument=spec,
                    hint="remove '=%s'" % value,
                ))
            values[spec.name] = True
        elif separator:
            values[spec.name] = self._coerce(value, spec, state)
        else:
            state.pending = spec
            state.mode = Mode.AWAITING_VALUE
        return None

    def _match_short(self, token, state, values):
        # h/V win over every other character of the cluster
        if outcome := self._requested(token):
            return outcome

        cluster = token[1:]
        for position, char in enumerate(cluster):
            if (spec := self._schema.short(char)) is None:
                return self._unknown("-" + char, state, [])

            if spec.boolean:
                values[spec.name] = True
            elif position < len(cluster) - 1:
                self.trigger(InvalidArgumentOrderError(
                    "option '-%s' takes a value and must be last in %r at %s position" % (
                        char, token, ordinal(state.index)
                    ),
                    index=state.index,
                    token=token,
                    argument=spec,
                    hint="move '-%s' to the end of the group or pass it separately" % char,
                ))
            else:
                state.pending = spec
                state.mode = Mode.AWAITING_VALUE
        return None

    def _match_bare(self, token, state, buffer):
        if (spec := self._schema.positional) is None:
            self.trigger(UnknownArgumentError(
                "unexpected positional argument %r at %s position" % (token, ordinal(state.index)),
                index=state.index,
                token=token,
                hint="this program takes no positional arguments; run with --help to see the expected usage",
            ))
        self._collect(buffer, self._coerce(token, spec, state), state)
        state.mode = Mode.COLLECTING_POSITIONAL

    def _finalize(self, state, buffer):
        if state.mode is Mode.AWAITING_VALUE:
            self.trigger(MissingValueError(
                "option %r at %s position requires a value" % (state.pending.name, ordinal(state.index)),
                index=state.index,
                argument=state.pending,
                hint="provide a value after the option",
            ))

        if (spec := self._schema.positional) is None:
            return

        quantity = spec.role.quantity
        if not quantity.accepts(len(buffer)):
            expected, plural = {
                Arity.EXACTLY: ("exactly %s" % quantity.count, quantity.count != 1),
                Arity.AT_LEAST_ONE: ("at least one", False),
            }[quantity.arity]
            self.trigger(WrongNumberOfArgumentsError(
                "expected %s %s value%s, got %d" % (
                    expected, spec.name, "s" if plural else "", len(buffer)
                ),
                argument=spec,
                count=len(buffer),
                hint="usage: %s" % placeholder(spec),
            ))

    def parse(self, argv=Unset, /, *, template=Unset, positionals=Unset):
        """
        Parse a token stream into a Parsed result.

        Parameters
        - argv: iterable of tokens without the program name; sys.argv[1:] when omitted.
        - template: optional mapping of argument name to default, merged over
          the declared defaults for this call only.
        - positionals: optional caller-owned list that receives the positional
          values (it is returned as Parsed.positionals).

        Raises
        - ParseError subclasses (library mode) for the first fault met.
        """
        tokens = sys.argv[1:] if argv is Unset else argv
        if isinstance(tokens, str) or not isinstance(tokens, Iterable):
            raise TypeError("parse() argument must be an iterable of strings")

        values = {spec.name: spec.default for spec in self._schema.arguments}
        if template is not Unset:
            if not isinstance(template, Mapping):
                raise TypeError("parse() 'template' must be a mapping")
            if unknown := template.keys() - values.keys():
                raise TypeError("parse() 'template' has unknown argument names: %s" % ", ".join(sorted(map(repr, unknown))))
            values.update(template)

        buffer = coalesce(positionals, [])
        if not hasattr(buffer, "append"):
            raise TypeError("parse() 'positionals' must be a growable sequence")

        state = ParseState()
        for state.index, token in enumerate(tokens, start=1):
            if not isinstance(token, str):
                raise TypeError("parse() argument must be an iterable of strings")

            match state.mode:
                case Mode.MATCHING_ARG:
                    match classify(token):
                        case TokenKind.LONG:
                            outcome = self._match_long(token, state, values)
                        case TokenKind.SHORT:
                            outcome = self._match_short(token, state, values)
                        case TokenKind.BARE:
                            outcome = self._match_bare(token, state, buffer)
                    if outcome is not None:
                        return self._terminate(outcome)

                case Mode.AWAITING_VALUE:
                    values[state.pending.name] = self._coerce(token, state.pending, state)
                    state.pending = None
                    state.mode = Mode.MATCHING_ARG

                case Mode.COLLECTING_POSITIONAL:
                    if token.startswith("-"):
                        if outcome := self._requested(token):
                            return self._terminate(outcome)
                        self.trigger(OptionAfterPositionalError(
                            "option %r at %s position comes after positional values" % (token, ordinal(state.index)),
                            index=state.index,
                            token=token,
                            hint="move options before the first positional value",
                        ))
                    self._collect(buffer, self._coerce(token, self._schema.positional, state), state)

            logger.debug("token %r at %s position → %r", token, ordinal(state.index), state)

        self._finalize(state, buffer)

        if (spec := self._schema.positional) is not None:
            values[spec.name] = buffer

        return Parsed(Outcome.PARSED, MappingProxyType(values), buffer)

    def __repr__(self):
        return f"parser({self._schema!r})"


def invoke(parser, prompt=Unset, /):
    """
    Run a parser as a program entry point (shell mode).

    Parameters
    - parser: Parser to run.
    - prompt:
      • Unset: read tokens from sys.argv[1:].
      • str: shell-like string; will be split via shlex.split.
      • Iterable[str]: pre-tokenized sequence.

    Behavior
    - faults are rendered on stderr and exit with status 1.
    - help and version are printed and exit with status 0.
    - otherwise the Parsed result is returned.
    """
    if not isinstance(parser, Parser):
        raise TypeError("invoke() first argument must be a parser")

    if prompt is Unset:
        tokens = sys.argv[1:]
    elif isinstance(prompt, str):
        tokens = shlex.split(prompt)
    elif isinstance(prompt, Iterable):
        tokens = list(prompt)
    else:
        raise TypeError("invoke() argument must be a string or an iterable of strings")

    if not parser.shell:
        parser = Parser(
            parser.schema,
            console=parser._console,
            shell=True,
            colorful=parser._colorful,
            fancy=parser._fancy,
        )
    return parser.parse(tokens)


__all__ = (
    "Mode",
    "Outcome",
    "TokenKind",
    "ParseState",
    "Parsed",
    "Parser",
    "classify",
    "invoke",
)
