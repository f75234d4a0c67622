"""Type definitions for the layout_tables library."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from layout_tables.errors import UnresolvedTypeError

# Mapping from generic placeholder name (e.g. "T") to a concrete type name
TypeArgs = dict[str, str]

# Names of the intrinsic pointer types; their pointee is documented inline
POINTER_TYPE_NAMES = ("ptr32", "ptr64")

ENDIANNESS_BADGES = {"little": "LE", "big": "BE"}


@dataclass(frozen=True)
class TypeParams:
    """A request to use a type: its name plus optional generics, size and count."""

    type: str
    type_args: TypeArgs | None = None
    size: int | None = None
    count: int | None = None


@dataclass
class TypeDefinition:
    """Base class for all type definitions."""

    name: str
    comments: dict[str, str] = field(default_factory=dict)
    labels: list[str] = field(default_factory=list)

    @property
    def type_class(self) -> str | None:
        """Return the class tag of this definition, or None for primitives."""
        raise NotImplementedError

    @property
    def declared_size(self) -> int | None:
        """Return the size declared on the definition itself, if any."""
        return None

    @property
    def assert_size(self) -> int | None:
        return None

    @property
    def endianness(self) -> str | None:
        return None

    @property
    def is_table(self) -> bool:
        """Return whether this type is documented as its own table."""
        return self.type_class in ("struct", "bitfield", "enum")


@dataclass
class PrimitiveTypeDefinition(TypeDefinition):
    """A leaf type with a fixed size, or no size for variable-size data."""

    size: int | None = None
    args: list[str] = field(default_factory=list)
    byte_order: str | None = None

    @property
    def type_class(self) -> str | None:
        return None

    @property
    def declared_size(self) -> int | None:
        return self.size

    @property
    def endianness(self) -> str | None:
        return self.byte_order


@dataclass
class AliasTypeDefinition(TypeDefinition):
    """A transparent name for another type request, possibly generic."""

    target: TypeParams = field(default_factory=lambda: TypeParams(type=""))

    @property
    def type_class(self) -> str | None:
        return "alias"

    def expand(self, params: TypeParams) -> TypeParams:
        """Overlay the alias target on a request for the alias.

        Anything the alias declares wins; the request fills in the rest.
        """
        target = self.target
        return TypeParams(
            type=target.type,
            type_args=target.type_args if target.type_args is not None else params.type_args,
            size=target.size if target.size is not None else params.size,
            count=target.count if target.count is not None else params.count,
        )


@dataclass
class FieldDefinition:
    """Definition of a field within a struct type."""

    name: str
    type: str
    type_args: TypeArgs | None = None
    size: int | None = None
    count: int | None = None
    comments: dict[str, str] = field(default_factory=dict)
    labels: list[str] = field(default_factory=list)

    @property
    def params(self) -> TypeParams:
        return TypeParams(
            type=self.type, type_args=self.type_args, size=self.size, count=self.count
        )


@dataclass
class StructTypeDefinition(TypeDefinition):
    """Type definition for structs.

    Fields are laid out back to back in declaration order; there is no
    implicit alignment, so padding must be spelled out with `pad` fields.
    A struct may extend a parent, whose fields come first.
    """

    fields: list[FieldDefinition] = field(default_factory=list)
    extends: TypeParams | None = None
    size: int | None = None
    expected_size: int | None = None
    byte_order: str | None = None

    @property
    def type_class(self) -> str | None:
        return "struct"

    @property
    def declared_size(self) -> int | None:
        return self.size

    @property
    def assert_size(self) -> int | None:
        return self.expected_size

    @property
    def endianness(self) -> str | None:
        return self.byte_order

    def get_field(self, name: str) -> FieldDefinition | None:
        """Get a field by name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def merge_parent(self, parent: StructTypeDefinition) -> StructTypeDefinition:
        """Return this struct with the parent's fields placed before its own.

        Properties set on the child win over the parent's.
        """
        return StructTypeDefinition(
            name=self.name,
            comments=self.comments or parent.comments,
            labels=self.labels or parent.labels,
            fields=[*parent.fields, *self.fields],
            extends=None,
            size=self.size if self.size is not None else parent.size,
            expected_size=(
                self.expected_size if self.expected_size is not None else parent.expected_size
            ),
            byte_order=self.byte_order if self.byte_order is not None else parent.byte_order,
        )


@dataclass
class BitDefinition:
    """A single flag in a bitfield. Its bit index is its position."""

    name: str
    comments: dict[str, str] = field(default_factory=dict)
    labels: list[str] = field(default_factory=list)


@dataclass
class BitfieldTypeDefinition(TypeDefinition):
    """A fixed-size integer whose bits are named flags."""

    size: int | None = None
    bits: list[BitDefinition] = field(default_factory=list)
    byte_order: str | None = None

    @property
    def type_class(self) -> str | None:
        return "bitfield"

    @property
    def declared_size(self) -> int | None:
        return self.size

    @property
    def endianness(self) -> str | None:
        return self.byte_order

    def mask(self, index: int) -> int:
        return 1 << index


@dataclass
class OptionDefinition:
    """A single option in an enum. Without a value it takes its position."""

    name: str
    value: int | None = None
    comments: dict[str, str] = field(default_factory=dict)
    labels: list[str] = field(default_factory=list)


@dataclass
class EnumTypeDefinition(TypeDefinition):
    """A fixed-size integer whose values are named options."""

    size: int | None = None
    options: list[OptionDefinition] = field(default_factory=list)
    byte_order: str | None = None

    @property
    def type_class(self) -> str | None:
        return "enum"

    @property
    def declared_size(self) -> int | None:
        return self.size

    @property
    def endianness(self) -> str | None:
        return self.byte_order

    def option_value(self, index: int) -> int:
        option = self.options[index]
        return option.value if option.value is not None else index

    def get_option(self, name: str) -> OptionDefinition | None:
        for option in self.options:
            if option.name == name:
                return option
        return None


@dataclass(frozen=True)
class InstantiatedType:
    """A type request resolved to a concrete definition with computed sizes."""

    type_def: TypeDefinition
    type_name: str
    type_args: TypeArgs | None
    single_size: int
    total_size: int
    variable_size: int | None = None
    count: int | None = None

    @property
    def type_class(self) -> str | None:
        return self.type_def.type_class

    @property
    def is_pointer(self) -> bool:
        return self.type_name in POINTER_TYPE_NAMES

    @property
    def pointee(self) -> str | None:
        """Return the first type argument, which names a pointer's target."""
        if not self.type_args:
            return None
        return next(iter(self.type_args.values()))


def _intrinsic(name: str, size: int | None, args: list[str] | None = None) -> PrimitiveTypeDefinition:
    return PrimitiveTypeDefinition(name=name, size=size, args=list(args or []))


INTRINSIC_TYPES: dict[str, PrimitiveTypeDefinition] = {
    t.name: t
    for t in (
        # primitives
        _intrinsic("byte", 1),
        _intrinsic("bool", 1),
        _intrinsic("char", 1),
        _intrinsic("uint8", 1),
        _intrinsic("int8", 1),
        _intrinsic("uint16", 2),
        _intrinsic("int16", 2),
        _intrinsic("int32", 4),
        _intrinsic("uint32", 4),
        _intrinsic("int64", 8),
        _intrinsic("uint64", 8),
        _intrinsic("float", 4),
        _intrinsic("double", 8),
        # variable-size types
        _intrinsic("pad", None),
        _intrinsic("UTF-8", None),
        _intrinsic("UTF-16", None),
        # pointer types
        _intrinsic("ptr32", 4, ["T"]),
        _intrinsic("ptr64", 8, ["T"]),
    )
}


class TypeRegistry:
    """Registry of the types visible to one render pass.

    Intrinsics are always present; user definitions are overlaid on top
    and may shadow an intrinsic of the same name.
    """

    def __init__(self, definitions: Mapping[str, TypeDefinition] | None = None) -> None:
        self._types: dict[str, TypeDefinition] = dict(INTRINSIC_TYPES)
        if definitions:
            self._types.update(definitions)

    def get(self, name: str) -> TypeDefinition | None:
        """Get a type by name."""
        return self._types.get(name)

    def get_or_raise(self, name: str) -> TypeDefinition:
        """Get a type by name, raising if not found."""
        type_def = self._types.get(name)
        if type_def is None:
            raise UnresolvedTypeError(f"Failed to resolve type {name}", type_name=name)
        return type_def

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return list(self._types.keys())

    def user_types(self) -> list[str]:
        """List the names that are not untouched intrinsics."""
        return [
            name for name, td in self._types.items()
            if INTRINSIC_TYPES.get(name) is not td
        ]

    def __contains__(self, name: str) -> bool:
        return name in self._types

    def __len__(self) -> int:
        return len(self._types)
