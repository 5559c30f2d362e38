"""
Argonym faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every issue the
  library can report. Codes are grouped by domain to keep copy consistent
  and make logs/searches predictable.
- SchemaError and subclasses: raised while a schema is being built. They
  signal a defect in the program's declarations, never bad user input, and
  are always raised (never rendered and swallowed).
- ParseError and subclasses: raised per parse call for bad user input. They
  carry message + options and know how to render themselves in a friendly,
  lowercased, and actionable way.
- SchemaWarning / ShadowedSwitchWarning: non-fatal schema findings.
- trigger(): central entry point to surface a parse fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Position-first messages: runtime messages include the ordinal position of
  the offending token (“at third position”).
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.

Integration
- The parser raises faults through trigger(fault, **ctx).
- In non-shell mode, exceptions are raised; in shell mode, they are rendered
  via rich on stderr and the process exits with status 1.
"""
import inspect
import sys
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, Painter

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping (by high-level domain)
    - switches and tokens (1111x)
      • UNKNOWN_ARGUMENT, FLAG_ASSIGNMENT, INVALID_ARGUMENT_ORDER,
        OPTION_AFTER_POSITIONAL, MISSING_VALUE
    - values (1112x)
      • UNKNOWN_ENUM_VARIANT, WRONG_NUMBER_OF_ARGUMENTS,
        INVALID_NUMERIC_LITERAL, NUMERIC_OVERFLOW
    - resources (1113x)
      • POSITIONAL_BUFFER
    - warnings (1211x)
      • SHADOWED_SWITCH
    - schema construction (1310x)
      • UNSUPPORTED_FIELD_TYPE, UNSUPPORTED_METADATA, MALFORMED_FIELD_NAME,
        MULTIPLE_POSITIONALS, CONFLICTING_FIELD

    normalize() lets the host remap codes to custom labels while keeping the
    numeric identifiers stable.
    """
    # --- switch/token errors (11xxx) ---
    UNKNOWN_ARGUMENT            = 11112
    FLAG_ASSIGNMENT             = 11113
    INVALID_ARGUMENT_ORDER      = 11114
    OPTION_AFTER_POSITIONAL     = 11115
    MISSING_VALUE               = 11117

    # --- value errors (11xxx) ---
    UNKNOWN_ENUM_VARIANT        = 11124
    WRONG_NUMBER_OF_ARGUMENTS   = 11125
    INVALID_NUMERIC_LITERAL     = 11126
    NUMERIC_OVERFLOW            = 11127

    # --- resource errors (11xxx) ---
    POSITIONAL_BUFFER           = 11131

    # --- warnings (12xxx) ---
    SHADOWED_SWITCH             = 12111

    # --- schema construction errors (13xxx) ---
    UNSUPPORTED_FIELD_TYPE      = 13101
    UNSUPPORTED_METADATA        = 13102
    MALFORMED_FIELD_NAME        = 13103
    MULTIPLE_POSITIONALS        = 13104
    CONFLICTING_FIELD           = 13105

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class SchemaError(Exception):
    """
    base class for schema-construction failures.

    raised once, while fields are decoded and assembled; the message names
    the offending field so the defect can be fixed in the declarations.
    """
    code = Unset

    def __init__(self, message, /, **options):
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message


class UnsupportedFieldTypeError(SchemaError):
    code = FaultCode.UNSUPPORTED_FIELD_TYPE
class UnsupportedMetadataError(SchemaError):
    code = FaultCode.UNSUPPORTED_METADATA
class MalformedFieldNameError(SchemaError):
    code = FaultCode.MALFORMED_FIELD_NAME
class MultiplePositionalsError(SchemaError):
    code = FaultCode.MULTIPLE_POSITIONALS
class ConflictingFieldError(SchemaError):
    code = FaultCode.CONFLICTING_FIELD


class ParseError(Exception):
    """
    base class for runtime parse faults.

    options (all optional, merged through __replace__/trigger)
    - index: 1-based position of the offending token.
    - token: the raw token.
    - argument: the ArgumentSpec involved, when known.
    - hint: one actionable sentence.
    - title: short heading (defaults to the class title).
    - prog: program name shown in the rendered header.
    - shell, fancy, colorful: rendering and termination switches.
    """
    code = Unset
    title = "parse error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message)

    def __getattr__(self, name):
        # read-only access to the merged options (fault.index, fault.token, ...)
        try:
            return self.__dict__["options"][name]
        except KeyError:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}") from None

    def __rich__(self):
        painter = Painter({
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        }, colorful=self.options.get("colorful", False))

        prog = painter.text(getattr(__import__("__main__"), "__prog__", self.options.get("prog")) or "argonym", "prog-name")

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            painter.text(self.code.normalize() if self.code else "-", "code"),
            " | ",
            painter.text(self.options.get("title", self.title).title(), "error-title"),
            " ]"
        )
        message = painter.text(self.message, "error-message")
        renders = [message]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(painter.text(" → ", "hint-arrow"), painter.text(hint, "hint")))

        if self.options.get("fancy"):
            return Panel(Group(*renders), title=header, title_align="left", width=console.width - 4)

        return Group(header, *renders)

    def __trigger__(self):
        if not self.options.get("shell"):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        message = overrides.pop("message", self.message)
        replacement = type(self)(message, **{**self.options, **overrides})
        replacement.__cause__ = self.__cause__
        return replacement


class UnknownArgumentError(ParseError):
    code = FaultCode.UNKNOWN_ARGUMENT
    title = "unknown argument"
class FlagAssignmentError(ParseError):
    code = FaultCode.FLAG_ASSIGNMENT
    title = "flag assignment"
class InvalidArgumentOrderError(ParseError):
    code = FaultCode.INVALID_ARGUMENT_ORDER
    title = "invalid argument order"
class OptionAfterPositionalError(InvalidArgumentOrderError):
    code = FaultCode.OPTION_AFTER_POSITIONAL
    title = "option after positional"
class MissingValueError(ParseError):
    code = FaultCode.MISSING_VALUE
    title = "missing value"
class UnknownEnumVariantError(ParseError):
    code = FaultCode.UNKNOWN_ENUM_VARIANT
    title = "unknown choice"
class WrongNumberOfArgumentsError(ParseError):
    code = FaultCode.WRONG_NUMBER_OF_ARGUMENTS
    title = "wrong number of arguments"
class InvalidNumericLiteralError(ParseError):
    code = FaultCode.INVALID_NUMERIC_LITERAL
    title = "invalid number"
class NumericOverflowError(ParseError):
    code = FaultCode.NUMERIC_OVERFLOW
    title = "number out of range"
class PositionalBufferError(ParseError):
    code = FaultCode.POSITIONAL_BUFFER
    title = "positional buffer"


class SchemaWarning(Warning):
    code = Unset

    def __init__(self, message, /, **options):
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message


class ShadowedSwitchWarning(SchemaWarning):
    code = FaultCode.SHADOWED_SWITCH


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see ParseError).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via the rich console; otherwise, the
      fault is raised.

    typical options
    - shell, fancy, colorful, prog, title, hint, and any other context the
      reporter may want to show (index, token, argument).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    lookup
    - the host application may expose a __docs__ mapping in __main__ where keys
      are FaultCode instances and values are short documentation strings.
    - when not found, returns None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return inspect.cleandoc(doc) if (doc := getattr(__import__("__main__"), "__docs__", {}).get(code)) else None


__all__ = (
    "FaultCode",
    "SchemaError",
    "UnsupportedFieldTypeError",
    "UnsupportedMetadataError",
    "MalformedFieldNameError",
    "MultiplePositionalsError",
    "ConflictingFieldError",
    "ParseError",
    "UnknownArgumentError",
    "FlagAssignmentError",
    "InvalidArgumentOrderError",
    "OptionAfterPositionalError",
    "MissingValueError",
    "UnknownEnumVariantError",
    "WrongNumberOfArgumentsError",
    "InvalidNumericLiteralError",
    "NumericOverflowError",
    "PositionalBufferError",
    "SchemaWarning",
    "ShadowedSwitchWarning",
    "trigger",
    "getdoc",
)
