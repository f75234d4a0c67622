"""Documentation tree produced by the projector."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from layout_tables.xref import PathId


@dataclass
class RenderedComments:
    """Localized label badges followed by rendered prose."""

    labels: list[str] = field(default_factory=list)
    prose: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"labels": list(self.labels), "prose": self.prose}


@dataclass
class TypeDescriptor:
    """Rendered type cell of a struct field, e.g. `Flags: bitfield32[2]`."""

    text: str
    total_size: int
    endianness_badge: str | None = None

    def __str__(self) -> str:
        if self.endianness_badge is None:
            return self.text
        return f"{self.text} {self.endianness_badge}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "total_size": self.total_size,
            "endianness": self.endianness_badge,
        }


@dataclass
class DocumentRow:
    """One row of a struct, bitfield or enum table.

    `role` is "field", "bit" or "option". Fields carry `offset` and `type`,
    bits carry `mask` and options carry `value`. A field of an embedded
    type either carries the expanded sub-document in `embedded` or, if the
    same type was already expanded, the first path in `back_reference`.
    """

    role: str
    name: str
    path_id: PathId | None = None
    anchor: str | None = None
    tags: list[str] = field(default_factory=list)
    offset: int | None = None
    type: TypeDescriptor | None = None
    mask: int | None = None
    value: int | None = None
    comments: RenderedComments = field(default_factory=RenderedComments)
    embedded: DocumentNode | None = None
    back_reference: PathId | None = None
    back_reference_anchor: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "role": self.role,
            "name": self.name,
            "path_id": list(self.path_id) if self.path_id is not None else None,
            "anchor": self.anchor,
            "tags": list(self.tags),
            "comments": self.comments.to_dict(),
        }
        if self.role == "field":
            result["offset"] = self.offset
            result["type"] = self.type.to_dict() if self.type is not None else None
        elif self.role == "bit":
            result["mask"] = self.mask
        elif self.role == "option":
            result["value"] = self.value
        if self.embedded is not None:
            result["embedded"] = self.embedded.to_dict()
        if self.back_reference is not None:
            result["back_reference"] = list(self.back_reference)
            result["back_reference_anchor"] = self.back_reference_anchor
        return result


@dataclass
class DocumentNode:
    """A table documenting one struct, bitfield or enum."""

    type_class: str
    type_name: str
    headers: list[str]
    path_id: PathId | None = None
    show_offsets: bool = False
    comments: RenderedComments = field(default_factory=RenderedComments)
    rows: list[DocumentRow] = field(default_factory=list)

    @property
    def css_classes(self) -> list[str]:
        return ["type-def", self.type_class]

    def get_row(self, name: str) -> DocumentRow | None:
        """Get a row by name."""
        for row in self.rows:
            if row.name == name:
                return row
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "class": self.type_class,
            "type_name": self.type_name,
            "css_classes": self.css_classes,
            "path_id": list(self.path_id) if self.path_id is not None else None,
            "show_offsets": self.show_offsets,
            "headers": list(self.headers),
            "comments": self.comments.to_dict(),
            "rows": [row.to_dict() for row in self.rows],
        }
