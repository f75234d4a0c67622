"""Top-level render call for one documentation entry."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from layout_tables.document import DocumentNode
from layout_tables.errors import SchemaFormatError
from layout_tables.localize import LocalizeFn, ProseFn
from layout_tables.schema import LayoutSchema, load_type_definitions


@dataclass
class RenderEntry:
    """What to document: the type definitions, the root type and display options.

    `type_defs` is either inline raw definitions or the path of a YAML/JSON
    file holding them, relative to the page being built.
    """

    type_defs: Mapping[str, Any] | str | None
    entry_type: str
    show_offsets: bool = False
    id: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RenderEntry:
        if not isinstance(data, Mapping):
            raise SchemaFormatError("Render entry must be a mapping")
        entry_type = data.get("entryType")
        if not entry_type:
            raise SchemaFormatError("Render entry is missing 'entryType'")
        type_defs = data.get("typeDefs")
        if type_defs is not None and not isinstance(type_defs, (Mapping, str)):
            raise SchemaFormatError("'typeDefs' must be a mapping or a file path", entry_type=entry_type)
        root_id = data.get("id")
        return cls(
            type_defs=type_defs,
            entry_type=str(entry_type),
            show_offsets=bool(data.get("showOffsets", False)),
            id=str(root_id) if root_id is not None else None,
        )


def parse_entry(text: str) -> RenderEntry:
    """Parse an entry block written in YAML."""
    return RenderEntry.from_mapping(yaml.safe_load(text))


def resolve_schema(entry: RenderEntry, base_dir: Path | str | None = None) -> LayoutSchema:
    """Build the schema for an entry, reading the definitions file if it names one."""
    type_defs = entry.type_defs
    if isinstance(type_defs, str):
        path = Path(type_defs)
        if base_dir is not None:
            path = Path(base_dir) / path
        type_defs = load_type_definitions(path)
    return LayoutSchema.from_mapping(type_defs)


def render(
    entry: RenderEntry | Mapping[str, Any] | str,
    base_dir: Path | str | None = None,
    lang: str = "en",
    prose: ProseFn | None = None,
    localize: LocalizeFn | None = None,
) -> DocumentNode:
    """Render one entry into a document tree.

    Args:
        entry: A RenderEntry, its raw mapping, or its YAML text.
        base_dir: Directory that file references in `typeDefs` are relative to.
        lang: Language code for labels and comments.
        prose: Renders comment text; defaults to plain text.
        localize: Looks up display strings; defaults to the built-in labels.

    Returns:
        The root table of the document.

    Raises:
        LayoutError: The schema is malformed; nothing is rendered.
    """
    if isinstance(entry, str):
        entry = parse_entry(entry)
    elif not isinstance(entry, RenderEntry):
        entry = RenderEntry.from_mapping(entry)

    schema = resolve_schema(entry, base_dir)
    return schema.render(
        entry.entry_type,
        show_offsets=entry.show_offsets,
        root_id=entry.id,
        lang=lang,
        prose=prose,
        localize=localize,
    )
