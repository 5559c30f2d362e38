"""
Argonym schema: the immutable, ordered collection of argument specs.

A Schema is built once from a table of Field declarations (or already
decoded ArgumentSpec objects) and then only read. Construction validates
the whole table:

- every field decodes (see argonym.arguments.decode);
- field names are unique;
- at most one positional field is declared;
- short and long forms are unique across optional fields;
- forms colliding with the built-in -h/--help and -V/--version switches
  are reported with a ShadowedSwitchWarning (the built-ins keep precedence).

Program metadata (program, version, usage, description) is pulled from the
metadata fields and defaults to the empty string.
"""
import logging
import warnings
from types import MappingProxyType

from .arguments import ArgumentSpec, Field, MetaKind, decode
from .faults import ConflictingFieldError, MultiplePositionalsError, ShadowedSwitchWarning

logger = logging.getLogger(__name__)

# Built-in switches, always available and matched before any declared form.
HELP = ("h", "help")
VERSION = ("V", "version")


class Schema:
    """
    Ordered, read-only collection of ArgumentSpec plus program metadata.

    Properties
    - specs: every spec, in declaration order (metadata included).
    - arguments: non-metadata specs, in declaration order.
    - positional: the positional spec, or None.
    - program / version / usage / description: metadata strings ("" when absent).

    Lookups
    - short(char) / long(name): the optional spec owning that form, or None.
    """
    __slots__ = ("_specs", "_metadata", "_shorts", "_longs", "_positional")

    def __init__(self, *entries):
        specs = []
        names = set()
        shorts = {}
        longs = {}
        positional = None
        metadata = dict.fromkeys(MetaKind, "")

        for entry in entries:
            if isinstance(entry, Field):
                spec = decode(entry)
            elif isinstance(entry, ArgumentSpec):
                spec = entry
            else:
                raise TypeError("Schema() arguments must be Field or ArgumentSpec instances")

            # metadata never becomes a result key, so it has its own namespace
            key = "__" + spec.name if spec.meta else spec.name
            if key in names:
                raise ConflictingFieldError(f"field name {key!r} is declared more than once", field=key)
            names.add(key)

            if spec.meta:
                metadata[spec.role.kind] = spec.role.text
            elif spec.positional:
                if positional is not None:
                    raise MultiplePositionalsError(
                        f"positional field {spec.name!r} conflicts with {positional.name!r}; "
                        "a schema accepts a single positional field",
                        field=spec.name,
                    )
                positional = spec
            else:
                self._register(shorts, spec.role.short, spec, "short", HELP[0], VERSION[0])
                self._register(longs, spec.role.long, spec, "long", HELP[1], VERSION[1])

            specs.append(spec)

        self._specs = tuple(specs)
        self._metadata = MappingProxyType(metadata)
        self._shorts = MappingProxyType(shorts)
        self._longs = MappingProxyType(longs)
        self._positional = positional

        logger.debug(
            "built schema with %d argument(s)%s",
            len(self.arguments),
            f" and positional {positional.name!r}" if positional else "",
        )

    @staticmethod
    def _register(registry, form, spec, kind, *reserved):
        if form is None:
            return
        if form in registry:
            raise ConflictingFieldError(
                f"{kind} form {form!r} of field {spec.name!r} is already used by {registry[form].name!r}",
                field=spec.name,
            )
        if form in reserved:
            warnings.warn(ShadowedSwitchWarning(
                f"{kind} form {form!r} of field {spec.name!r} is shadowed by the built-in switch",
                field=spec.name,
            ), stacklevel=4)
        registry[form] = spec

    @property
    def specs(self):
        return self._specs

    @property
    def arguments(self):
        return tuple(spec for spec in self._specs if not spec.meta)

    @property
    def positional(self):
        return self._positional

    @property
    def program(self):
        return self._metadata[MetaKind.PROGRAM]

    @property
    def version(self):
        return self._metadata[MetaKind.VERSION]

    @property
    def usage(self):
        return self._metadata[MetaKind.USAGE]

    @property
    def description(self):
        return self._metadata[MetaKind.DESCRIPTION]

    @property
    def longs(self):
        return tuple(self._longs)

    def short(self, char, /):
        return self._shorts.get(char)

    def long(self, name, /):
        return self._longs.get(name)

    def __iter__(self):
        return iter(self._specs)

    def __len__(self):
        return len(self._specs)

    def __repr__(self):
        return f"schema({', '.join(spec.name for spec in self._specs)})"


__all__ = (
    "Schema",
    "HELP",
    "VERSION",
)
