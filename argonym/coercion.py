"""
Argonym value coercion: text tokens into typed values.

coerce(token, type) is a pure function over an ArgType:

- STR   → the token verbatim.
- INT   → base-10 literal; sized types (ctypes widths) are range-checked.
- UINT  → base-10 literal; negative or too-wide values overflow.
- FLOAT → base-10 floating literal (also inf/infinity/nan).
- ENUM  → the enum member whose name matches the token exactly; the first
          match in declaration order wins.
- BOOL  → never coerced (booleans are set by presence); asking for it is a
          programming error.

Faults raised here carry the token and the type; the parser adds the
position before surfacing them.
"""
import re

from .arguments import Kind
from .faults import InvalidNumericLiteralError, NumericOverflowError, UnknownEnumVariantError

_INTEGER = re.compile(r"[+-]?[0-9]+")
_FLOATING = re.compile(r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)", re.IGNORECASE)


def _integer(token, type):
    if not _INTEGER.fullmatch(token):
        raise InvalidNumericLiteralError(
            "invalid %s literal %r" % ("unsigned integer" if type.kind is Kind.UINT else "integer", token),
            token=token,
            hint="use a base-10 whole number such as 42",
        )
    value = int(token, 10)

    if type.kind is Kind.UINT and value < 0:
        raise NumericOverflowError(
            "value %r cannot be negative" % token,
            token=token,
            hint="use a number greater than or equal to 0",
        )
    if bounds := type.bounds:
        low, high = bounds
        if not low <= value <= high:
            raise NumericOverflowError(
                "value %r does not fit in %d bits" % (token, type.bits),
                token=token,
                hint="use a number between %d and %d" % (low, high),
            )
    return value


def _floating(token):
    if not _FLOATING.fullmatch(token):
        raise InvalidNumericLiteralError(
            "invalid floating-point literal %r" % token,
            token=token,
            hint="use a base-10 number such as 3.14 or 1e-3",
        )
    return float(token)


def _variant(token, type):
    for name in type.variants:
        if name == token:
            return type.source[name]
    raise UnknownEnumVariantError(
        "unknown choice %r" % token,
        token=token,
        choices=type.variants,
        hint="choose one of %s" % ", ".join(map(repr, type.variants)),
    )


def coerce(token, type, /):
    """
    Convert a raw token into a value of the given ArgType.

    Raises
    - InvalidNumericLiteralError: malformed INT/UINT/FLOAT text.
    - NumericOverflowError: value outside the declared width or sign.
    - UnknownEnumVariantError: no variant name matches exactly.
    - TypeError: for BOOL, which is never coerced from text.
    """
    if not isinstance(token, str):
        raise TypeError("coerce() first argument must be a string")

    match type.kind:
        case Kind.STR:
            return token
        case Kind.INT | Kind.UINT:
            return _integer(token, type)
        case Kind.FLOAT:
            return _floating(token)
        case Kind.ENUM:
            return _variant(token, type)
        case Kind.BOOL:
            raise TypeError("booleans are set by presence and never coerced from text")

    raise TypeError(f"unexpected argument type {type!r}")


__all__ = (
    "coerce",
)
