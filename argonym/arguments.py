r"""
Argonym argument specifications and the naming-convention decoder.

Overview
- Declarations
  • Field(name, type, help="", *, default=..., short=..., long=...): one
    entry of a schema table. The name carries the role through a small
    naming convention (see decode()); short/long keywords are the structured
    form of the same overrides.

- Specs
  • ArgType: the value type a token is coerced into (Kind + width + variants).
  • Quantity: arity of the positional spec (exactly n, at least one, zero or more).
  • OptionalArg / Positional / Meta: the role of a spec.
  • ArgumentSpec: name, type, role, help text and default of one field.

Naming convention (decode)
- "__program", "__version", "__usage", "__description"
    metadata, text taken from the field default.
- "FILE:*", "FILE:+", "FILE:3"
    positional with zero-or-more, at-least-one, or exactly-n arity.
- "format"           → --format
- "_format"          → -f, --format
- "dry_run"          → --dry-run
- "level:L"          → -L, --level
- "_level:_"         → --level             (short removed)
- "level:L:lvl"      → -L, --lvl
- "level:L:_"        → -L                  (long removed)

Quick example:
    >>> from argonym.arguments import Field, decode
    >>> decode(Field("_output_dir", str, "where to write")).role
    OptionalArg(short='o', long='output-dir')
    >>> decode(Field("FILE:+", str)).role
    Positional(quantity=Quantity(arity=<Arity.AT_LEAST_ONE: '+'>, count=None))
"""
import ctypes
import enum
import logging
import re
import types
import typing
from typing import NamedTuple

from .faults import (
    UnsupportedFieldTypeError,
    UnsupportedMetadataError,
    MalformedFieldNameError,
)
from .utils import Unset, coalesce

logger = logging.getLogger(__name__)

# Separator between a field name and its override/quantity segments.
SEPARATOR = ":"
# Override placeholder meaning "no such form".
PLACEHOLDER = "_"


class Kind(enum.Enum):
    BOOL = "bool"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    STR = "str"
    ENUM = "enum"


class Arity(enum.Enum):
    EXACTLY = "n"
    AT_LEAST_ONE = "+"
    ZERO_OR_MORE = "*"


class MetaKind(enum.Enum):
    PROGRAM = "program"
    VERSION = "version"
    USAGE = "usage"
    DESCRIPTION = "description"


class ArgType(NamedTuple):
    """
    Value type of a spec.

    - kind: Kind of the value.
    - bits: integer width for INT/UINT declared through ctypes, None when
      unbounded (plain int) or not an integer.
    - variants: variant names in declaration order (ENUM only).
    - source: the declared Python type (the enum class for ENUM).
    """
    kind: Kind
    bits: int | None = None
    variants: tuple[str, ...] = ()
    source: type | None = None

    @property
    def bounds(self):
        """
        Inclusive (low, high) range for sized integers, None otherwise.
        """
        if self.bits is None or self.kind not in (Kind.INT, Kind.UINT):
            return None
        if self.kind is Kind.UINT:
            return 0, (1 << self.bits) - 1
        return -(1 << (self.bits - 1)), (1 << (self.bits - 1)) - 1


class Quantity(NamedTuple):
    arity: Arity
    count: int | None = None

    @classmethod
    def exactly(cls, count, /):
        if not isinstance(count, int) or isinstance(count, bool) or count < 0:
            raise ValueError("exact quantity must be a non-negative integer")
        return cls(Arity.EXACTLY, count)

    @classmethod
    def at_least_one(cls):
        return cls(Arity.AT_LEAST_ONE)

    @classmethod
    def zero_or_more(cls):
        return cls(Arity.ZERO_OR_MORE)

    def accepts(self, count, /):
        """
        Whether a final collected count satisfies this arity.
        """
        match self.arity:
            case Arity.EXACTLY:
                return count == self.count
            case Arity.AT_LEAST_ONE:
                return count >= 1
            case Arity.ZERO_OR_MORE:
                return True


class OptionalArg(NamedTuple):
    short: str | None
    long: str | None


class Positional(NamedTuple):
    quantity: Quantity


class Meta(NamedTuple):
    kind: MetaKind
    text: str


class ArgumentSpec(NamedTuple):
    """
    One decoded schema entry.

    - name: externally visible name (marker and override segments removed);
      this is also the key of the value in a parse result.
    - type: ArgType the tokens are coerced into.
    - role: OptionalArg | Positional | Meta.
    - help: help text ("" when none).
    - default: value a result starts from when the argument is absent.
    """
    name: str
    type: ArgType
    role: OptionalArg | Positional | Meta
    help: str = ""
    default: typing.Any = None

    @property
    def optional(self):
        return isinstance(self.role, OptionalArg)

    @property
    def positional(self):
        return isinstance(self.role, Positional)

    @property
    def meta(self):
        return isinstance(self.role, Meta)

    @property
    def boolean(self):
        return self.type.kind is Kind.BOOL


class Field(NamedTuple):
    """
    Declaration of one schema entry.

    - name: encodes role and overrides (see module documentation).
    - type: declared Python type (bool, int, float, str, an enum.Enum
      subclass, a ctypes scalar, or Optional[...] of those).
    - help: one-line help text.
    - default: default value (required for metadata fields).
    - short / long: structured overrides; a string sets the form, None
      removes it, Unset keeps the naming-convention default.
    """
    name: str
    type: typing.Any
    help: str = ""
    default: typing.Any = Unset
    short: str | None = Unset
    long: str | None = Unset


# Widths come from ctypes itself so that platform-dependent aliases (c_long,
# c_size_t, ...) resolve to the real size of the running interpreter.
_SIGNED = (
    ctypes.c_byte, ctypes.c_short, ctypes.c_int, ctypes.c_long, ctypes.c_longlong,
    ctypes.c_int8, ctypes.c_int16, ctypes.c_int32, ctypes.c_int64, ctypes.c_ssize_t,
)
_UNSIGNED = (
    ctypes.c_ubyte, ctypes.c_ushort, ctypes.c_uint, ctypes.c_ulong, ctypes.c_ulonglong,
    ctypes.c_uint8, ctypes.c_uint16, ctypes.c_uint32, ctypes.c_uint64, ctypes.c_size_t,
)
_FLOATING = (ctypes.c_float, ctypes.c_double, ctypes.c_longdouble)
_TEXTUAL = (ctypes.c_char_p, ctypes.c_wchar_p)


def _unwrap(annotation):
    # Optional[T] / T | None → T
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        members = [member for member in typing.get_args(annotation) if member is not type(None)]
        if len(members) == 1:
            return members[0]
    return annotation


def resolve_type(annotation, /, *, field=""):
    """
    Map a declared Python type to an ArgType.

    Raises
    - UnsupportedFieldTypeError: for anything outside the supported set.
    """
    source = _unwrap(annotation)

    if source is bool or source is ctypes.c_bool:
        return ArgType(Kind.BOOL, source=source)
    if source is int:
        return ArgType(Kind.INT, source=source)
    if source in _SIGNED:
        return ArgType(Kind.INT, 8 * ctypes.sizeof(source), source=source)
    if source in _UNSIGNED:
        return ArgType(Kind.UINT, 8 * ctypes.sizeof(source), source=source)
    if source is float or source in _FLOATING:
        return ArgType(Kind.FLOAT, source=source)
    if source is str or source in _TEXTUAL:
        return ArgType(Kind.STR, source=source)
    if isinstance(source, type) and issubclass(source, enum.Enum):
        if not (variants := tuple(source.__members__)):
            raise UnsupportedFieldTypeError(f"field {field!r} enumeration {source.__name__!r} has no variants", field=field)
        return ArgType(Kind.ENUM, variants=variants, source=source)

    raise UnsupportedFieldTypeError(
        f"unsupported field type {getattr(source, '__name__', source)!r} for field {field!r}",
        field=field,
    )


def _decode_meta(field):
    suffix = field.name[2:]
    try:
        kind = MetaKind(suffix)
    except ValueError:
        raise UnsupportedMetadataError(
            f"unsupported metadata field {field.name!r}; names starting with '__' are reserved for "
            f"{', '.join(repr('__' + kind.value) for kind in MetaKind)}",
            field=field.name,
        ) from None

    if _unwrap(field.type) is not str:
        raise UnsupportedFieldTypeError(f"metadata field {field.name!r} must be a string", field=field.name)
    if not isinstance(field.default, str):
        raise MalformedFieldNameError(f"metadata field {field.name!r} requires a string default", field=field.name)

    return ArgumentSpec(suffix, ArgType(Kind.STR, source=str), Meta(kind, field.default), field.help, field.default)


def _decode_positional(field, head, tail):
    if tail is None:
        raise MalformedFieldNameError(
            f"positional field {field.name!r} requires a quantity ('{head}:*', '{head}:+' or '{head}:<n>')",
            field=field.name,
        )

    match tail:
        case "*":
            quantity = Quantity.zero_or_more()
        case "+":
            quantity = Quantity.at_least_one()
        case _ if tail.isascii() and tail.isdigit():
            quantity = Quantity.exactly(int(tail))
        case _:
            raise MalformedFieldNameError(f"bad positional quantity {tail!r} in field {field.name!r}", field=field.name)

    if field.short is not Unset or field.long is not Unset:
        raise MalformedFieldNameError(f"positional field {field.name!r} cannot have short/long forms", field=field.name)

    type = resolve_type(field.type, field=field.name)
    if type.kind is Kind.BOOL:
        raise UnsupportedFieldTypeError(f"positional field {field.name!r} cannot be boolean", field=field.name)

    return ArgumentSpec(head, type, Positional(quantity), field.help, coalesce(field.default))


def _decode_optional(field):
    marked = field.name.startswith("_")
    name, *overrides = (field.name[1:] if marked else field.name).split(SEPARATOR)

    if not re.fullmatch(r"[^\W\d_]\w*", name):
        raise MalformedFieldNameError(
            f"field {field.name!r} must start with a letter and contain only letters, digits and underscores",
            field=field.name,
        )
    if len(overrides) > 2:
        raise MalformedFieldNameError(f"too many {SEPARATOR!r} separators in field {field.name!r}", field=field.name)

    short = name[0] if marked else None
    long = name.replace("_", "-")

    if overrides:
        segment = overrides[0]
        if len(segment) != 1:
            raise MalformedFieldNameError(f"short form must be exactly one character in field {field.name!r}", field=field.name)
        if segment == PLACEHOLDER:
            short = None
        elif not segment.isalnum():
            raise MalformedFieldNameError(f"short form must be alphanumeric in field {field.name!r}", field=field.name)
        else:
            short = segment

    if len(overrides) > 1:
        segment = overrides[1]
        if not segment:
            raise MalformedFieldNameError(f"long form cannot be empty in field {field.name!r}", field=field.name)
        long = None if segment == PLACEHOLDER else segment

    # Structured overrides take the place of the name segments, never both.
    if field.short is not Unset:
        if overrides:
            raise MalformedFieldNameError(f"field {field.name!r} overrides its short form twice", field=field.name)
        if field.short is not None and not (isinstance(field.short, str) and len(field.short) == 1 and field.short.isalnum()):
            raise MalformedFieldNameError(f"short form must be one alphanumeric character in field {field.name!r}", field=field.name)
        short = field.short
    if field.long is not Unset:
        if len(overrides) > 1:
            raise MalformedFieldNameError(f"field {field.name!r} overrides its long form twice", field=field.name)
        if field.long is not None and not isinstance(field.long, str):
            raise MalformedFieldNameError(f"long form must be a string in field {field.name!r}", field=field.name)
        long = field.long

    if long is not None and not re.fullmatch(r"[^\s=-][^\s=]*", long):
        raise MalformedFieldNameError(f"long form {long!r} of field {field.name!r} is not a valid switch name", field=field.name)
    if short is None and long is None:
        raise MalformedFieldNameError(f"field {field.name!r} must keep at least one of its short/long forms", field=field.name)

    type = resolve_type(field.type, field=field.name)
    default = coalesce(field.default, False if type.kind is Kind.BOOL else None)

    return ArgumentSpec(name, type, OptionalArg(short, long), field.help, default)


def decode(field, /):
    """
    Decode one Field into an ArgumentSpec.

    Rules (in priority order)
    1. two leading underscores → metadata (program, version, usage, description).
    2. leading run of uppercase letters/underscores up to ':' → positional.
    3. anything else → optional (flag when boolean).

    Raises
    - SchemaError subclasses on any naming or typing violation.
    """
    if not isinstance(field, Field):
        raise TypeError("decode() argument must be a Field")
    if not isinstance(field.name, str) or not field.name:
        raise MalformedFieldNameError("field names must be non-empty strings", field=field.name)
    if not isinstance(field.help, str):
        raise TypeError(f"field {field.name!r} help must be a string")

    if field.name.startswith("__"):
        spec = _decode_meta(field)
    else:
        head, separator, tail = field.name.partition(SEPARATOR)
        if re.fullmatch(r"[A-Z_]+", head) and re.search(r"[A-Z]", head):
            spec = _decode_positional(field, head, tail if separator else None)
        else:
            spec = _decode_optional(field)

    logger.debug("decoded field %r into %r", field.name, spec)
    return spec


__all__ = (
    # Types
    "Kind",
    "Arity",
    "MetaKind",
    "ArgType",
    "Quantity",
    "OptionalArg",
    "Positional",
    "Meta",
    "ArgumentSpec",
    "Field",

    # Functions
    "resolve_type",
    "decode",
)
