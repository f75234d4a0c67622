"""Loading and validation of layout schemas."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

import yaml

from layout_tables.document import DocumentNode
from layout_tables.errors import SchemaFormatError, UnhandledTypeClassError
from layout_tables.instantiate import Instantiator
from layout_tables.localize import Localizer, LocalizeFn, ProseFn, plain_prose
from layout_tables.projector import DocumentProjector
from layout_tables.types import (
    AliasTypeDefinition,
    BitDefinition,
    BitfieldTypeDefinition,
    EnumTypeDefinition,
    FieldDefinition,
    InstantiatedType,
    OptionDefinition,
    PrimitiveTypeDefinition,
    StructTypeDefinition,
    TypeDefinition,
    TypeParams,
    TypeRegistry,
)
from layout_tables.xref import CrossReferenceTracker

logger = logging.getLogger(__name__)

TYPE_CLASSES = ("alias", "struct", "bitfield", "enum")


def _parse_int(value: Any, what: str, type_name: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise SchemaFormatError(f"Invalid {what} for type {type_name}: {value!r}", type_name=type_name)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError:
            pass
    raise SchemaFormatError(f"Invalid {what} for type {type_name}: {value!r}", type_name=type_name)


def _parse_mapping(value: Any, what: str, type_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise SchemaFormatError(f"Invalid {what} for type {type_name}: expected a mapping", type_name=type_name)
    return dict(value)


def _parse_labels(spec: Mapping[str, Any], type_name: str) -> list[str]:
    labels = spec.get("labels") or []
    if not isinstance(labels, list):
        raise SchemaFormatError(f"Invalid labels for type {type_name}: expected a list", type_name=type_name)
    return [str(label) for label in labels]


def _parse_comments(spec: Mapping[str, Any], type_name: str) -> dict[str, str]:
    comments = _parse_mapping(spec.get("comments"), "comments", type_name)
    return {str(lang): str(text) for lang, text in comments.items()}


def _parse_type_args(value: Any, type_name: str) -> dict[str, str] | None:
    if value is None:
        return None
    return {str(k): str(v) for k, v in _parse_mapping(value, "typeArgs", type_name).items()}


def parse_type_params(spec: Any, type_name: str) -> TypeParams:
    """Parse a `{type, typeArgs?, size?, count?}` request. A bare string names the type."""
    if isinstance(spec, str):
        return TypeParams(type=spec)
    if not isinstance(spec, Mapping) or "type" not in spec:
        raise SchemaFormatError(
            f"Invalid type reference in {type_name}: expected a mapping with 'type'",
            type_name=type_name,
        )
    return TypeParams(
        type=str(spec["type"]),
        type_args=_parse_type_args(spec.get("typeArgs"), type_name),
        size=_parse_int(spec.get("size"), "size", type_name),
        count=_parse_int(spec.get("count"), "count", type_name),
    )


def _parse_field(spec: Any, type_name: str) -> FieldDefinition:
    if not isinstance(spec, Mapping) or "name" not in spec or "type" not in spec:
        raise SchemaFormatError(
            f"Invalid field in struct {type_name}: expected a mapping with 'name' and 'type'",
            type_name=type_name,
        )
    params = parse_type_params(spec, type_name)
    return FieldDefinition(
        name=str(spec["name"]),
        type=params.type,
        type_args=params.type_args,
        size=params.size,
        count=params.count,
        comments=_parse_comments(spec, type_name),
        labels=_parse_labels(spec, type_name),
    )


def _parse_named_list(spec: Mapping[str, Any], key: str, type_name: str) -> list[Mapping[str, Any]]:
    items = spec.get(key) or []
    if not isinstance(items, list):
        raise SchemaFormatError(f"Invalid {key} for type {type_name}: expected a list", type_name=type_name)
    for item in items:
        if not isinstance(item, Mapping) or "name" not in item:
            raise SchemaFormatError(
                f"Invalid entry in {key} of {type_name}: expected a mapping with 'name'",
                type_name=type_name,
            )
    return items


def parse_type_definition(name: str, spec: Any) -> TypeDefinition:
    """Create a typed definition from one raw schema entry.

    Raises:
        UnhandledTypeClassError: The `class` tag is not a known kind.
        SchemaFormatError: The entry does not have the expected shape.
    """
    if not isinstance(spec, Mapping):
        raise SchemaFormatError(f"Invalid definition for type {name}: expected a mapping", type_name=name)

    type_class = spec.get("class")
    comments = _parse_comments(spec, name)
    labels = _parse_labels(spec, name)
    size = _parse_int(spec.get("size"), "size", name)
    # a declared but empty endianness means the format allows either byte order
    endianness = spec.get("endianness")
    if endianness is None and "endianness" in spec:
        endianness = "either"

    if type_class is None:
        return PrimitiveTypeDefinition(
            name=name,
            comments=comments,
            labels=labels,
            size=size,
            args=[str(arg) for arg in spec.get("args") or []],
            byte_order=endianness,
        )
    elif type_class == "alias":
        return AliasTypeDefinition(
            name=name, comments=comments, labels=labels, target=parse_type_params(spec, name)
        )
    elif type_class == "struct":
        extends = spec.get("extends")
        return StructTypeDefinition(
            name=name,
            comments=comments,
            labels=labels,
            fields=[_parse_field(f, name) for f in spec.get("fields") or []],
            extends=parse_type_params(extends, name) if extends is not None else None,
            size=size,
            expected_size=_parse_int(spec.get("assertSize"), "assertSize", name),
            byte_order=endianness,
        )
    elif type_class == "bitfield":
        return BitfieldTypeDefinition(
            name=name,
            comments=comments,
            labels=labels,
            size=size,
            bits=[
                BitDefinition(
                    name=str(b["name"]),
                    comments=_parse_comments(b, name),
                    labels=_parse_labels(b, name),
                )
                for b in _parse_named_list(spec, "bits", name)
            ],
            byte_order=endianness,
        )
    elif type_class == "enum":
        return EnumTypeDefinition(
            name=name,
            comments=comments,
            labels=labels,
            size=size,
            options=[
                OptionDefinition(
                    name=str(o["name"]),
                    value=_parse_int(o.get("value"), "option value", name),
                    comments=_parse_comments(o, name),
                    labels=_parse_labels(o, name),
                )
                for o in _parse_named_list(spec, "options", name)
            ],
            byte_order=endianness,
        )

    raise UnhandledTypeClassError(
        f"Unhandled type class: {type_class} (expected one of {', '.join(TYPE_CLASSES)})",
        type_name=name,
    )


def parse_type_definitions(data: Any) -> dict[str, TypeDefinition]:
    """Convert a raw `name -> definition` mapping into typed definitions."""
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise SchemaFormatError("Type definitions must be a mapping of name to definition")
    return {str(name): parse_type_definition(str(name), spec) for name, spec in data.items()}


def load_type_definitions(path: Path | str) -> dict[str, Any]:
    """Read a raw type definition file. `.json` files are JSON, anything else YAML."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Type definition file not found: {path}")

    logger.debug("Loading type definitions from %s", path)
    with open(path, encoding="utf-8") as f:
        if path.suffix == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SchemaFormatError(f"Type definition file {path} must contain a mapping")
    return data


class LayoutSchema:
    """A registry of layout types that can be instantiated and documented."""

    def __init__(self, registry: TypeRegistry) -> None:
        self.registry = registry

    @classmethod
    def from_mapping(cls, data: Any) -> LayoutSchema:
        """Build a schema from raw, already-parsed type definitions.

        Args:
            data: Mapping of type name to raw definition.

        Returns:
            A new LayoutSchema whose registry overlays the intrinsics.
        """
        return cls(TypeRegistry(parse_type_definitions(data)))

    @classmethod
    def load(cls, path: Path | str) -> LayoutSchema:
        """Build a schema from a YAML or JSON type definition file."""
        return cls.from_mapping(load_type_definitions(path))

    def get_type(self, name: str) -> TypeDefinition:
        """Get a type definition by name.

        Raises:
            UnresolvedTypeError: If the type is not found.
        """
        return self.registry.get_or_raise(name)

    def list_types(self) -> list[str]:
        return self.registry.list_types()

    def instantiate(
        self,
        type_name: str,
        type_args: dict[str, str] | None = None,
        size: int | None = None,
        count: int | None = None,
    ) -> InstantiatedType:
        """Resolve a type by name, with optional generics, size and count."""
        instantiator = Instantiator(self.registry, entry_type=type_name)
        return instantiator.instantiate(
            TypeParams(type=type_name, type_args=type_args, size=size, count=count)
        )

    def render(
        self,
        entry_type: str,
        show_offsets: bool = False,
        root_id: str | None = None,
        lang: str = "en",
        prose: ProseFn | None = None,
        localize: LocalizeFn | None = None,
    ) -> DocumentNode:
        """Document `entry_type` as a tree of tables.

        Every call uses a fresh cross-reference tracker, so repeated types
        are linked only within one document.

        Args:
            entry_type: Name of the type at the root.
            show_offsets: Whether struct tables include an offset column.
            root_id: Seed of every path id in the document.
            lang: Language code for labels and comments.
            prose: Renders comment text; defaults to plain text.
            localize: Looks up display strings; defaults to the built-in labels.
        """
        logger.info("Rendering layout of %s", entry_type)
        instantiator = Instantiator(self.registry, entry_type=entry_type)
        projector = DocumentProjector(
            instantiator,
            localize=localize if localize is not None else Localizer(),
            prose=prose if prose is not None else plain_prose,
            lang=lang,
            show_offsets=show_offsets,
            tracker=CrossReferenceTracker(),
        )
        root = instantiator.instantiate(TypeParams(type=entry_type))
        return projector.project(root, (root_id or "",))
