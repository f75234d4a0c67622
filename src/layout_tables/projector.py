"""Projection of instantiated types into documentation tables."""

from __future__ import annotations

import logging
from typing import Any

from layout_tables.document import (
    DocumentNode,
    DocumentRow,
    RenderedComments,
    TypeDescriptor,
)
from layout_tables.errors import LayoutError, UnhandledTypeClassError
from layout_tables.generics import substitute
from layout_tables.instantiate import Instantiator
from layout_tables.localize import LocalizeFn, ProseFn
from layout_tables.types import (
    ENDIANNESS_BADGES,
    BitfieldTypeDefinition,
    EnumTypeDefinition,
    InstantiatedType,
    StructTypeDefinition,
    TypeParams,
)
from layout_tables.xref import (
    CrossReferenceTracker,
    PathId,
    join_path_id,
    path_anchor,
    type_signature,
)

logger = logging.getLogger(__name__)


def describe_type(instantiated: InstantiatedType) -> TypeDescriptor:
    """Build the type cell text, e.g. `Flags: bitfield32`, `ptr32<Header>`, `pad(4)`, `uint8[16]`."""
    type_def = instantiated.type_def
    text = instantiated.type_name
    if type_def.type_class in ("bitfield", "enum"):
        text += f": {type_def.type_class}{instantiated.single_size * 8}"
    if instantiated.type_args:
        text += f"<{', '.join(instantiated.type_args.values())}>"
    if instantiated.variable_size is not None:
        text += f"({instantiated.variable_size})"
    if instantiated.count is not None:
        text += f"[{instantiated.count}]"

    badge = None
    if type_def.endianness is not None:
        badge = ENDIANNESS_BADGES.get(type_def.endianness, "LE/BE")
    return TypeDescriptor(text=text, total_size=instantiated.total_size, endianness_badge=badge)


class DocumentProjector:
    """Turns instantiated types into nested documentation tables.

    Label and prose rendering are delegated to the injected `localize` and
    `prose` callables. Each embedded type is expanded once per render; later
    fields of the same type link back to the first expansion through the
    cross-reference tracker.
    """

    def __init__(
        self,
        instantiator: Instantiator,
        localize: LocalizeFn,
        prose: ProseFn,
        lang: str = "en",
        show_offsets: bool = False,
        tracker: CrossReferenceTracker | None = None,
    ) -> None:
        self.instantiator = instantiator
        self.localize = localize
        self.prose = prose
        self.lang = lang
        self.show_offsets = show_offsets
        self.tracker = tracker if tracker is not None else CrossReferenceTracker()

    def project(self, instantiated: InstantiatedType, path_id: PathId | None) -> DocumentNode:
        """Project one instantiated type into a table node.

        Raises:
            UnhandledTypeClassError: The type has no table form.
        """
        type_def = instantiated.type_def
        if isinstance(type_def, StructTypeDefinition):
            node = self._project_struct(instantiated, type_def, path_id)
        elif isinstance(type_def, BitfieldTypeDefinition):
            node = self._project_bitfield(instantiated, type_def, path_id)
        elif isinstance(type_def, EnumTypeDefinition):
            node = self._project_enum(instantiated, type_def, path_id)
        else:
            raise UnhandledTypeClassError(
                f"Unhandled type class: {type_def.type_class}",
                type_name=instantiated.type_name,
                entry_type=self.instantiator.entry_type,
                path=path_id,
            )
        node.comments = self.render_comments(type_def)
        return node

    def render_comments(self, part: Any) -> RenderedComments:
        """Render label badges and the comment text for the current language."""
        labels = [self.localize(self.lang, f"label_{label}") for label in part.labels]
        text = part.comments.get(self.lang) if part.comments else None
        return RenderedComments(
            labels=labels,
            prose=self.prose(self.lang, text) if text else None,
        )

    def _headers(self, *keys: str) -> list[str]:
        return [self.localize(self.lang, key) for key in keys]

    def _project_struct(
        self,
        instantiated: InstantiatedType,
        type_def: StructTypeDefinition,
        path_id: PathId | None,
    ) -> DocumentNode:
        if self.show_offsets:
            headers = self._headers("field", "offset", "type", "comments")
        else:
            headers = self._headers("field", "type", "comments")
        node = DocumentNode(
            type_class="struct",
            type_name=instantiated.type_name,
            headers=headers,
            path_id=path_id,
            show_offsets=self.show_offsets,
        )

        offset = 0
        for f in type_def.fields:
            field_path = join_path_id(path_id, f.name)
            try:
                field_type = self.instantiator.instantiate(
                    substitute(f.params, instantiated.type_args)
                )
                embedded = self._embedded_type(field_type)
            except LayoutError as e:
                if e.path is None and field_path is not None:
                    e.path = field_path
                raise

            row = DocumentRow(
                role="field",
                name=f.name,
                path_id=field_path,
                anchor=path_anchor(field_path),
                tags=self._field_tags(f.type, f.labels, field_type),
                offset=offset,
                type=describe_type(field_type),
                comments=self.render_comments(f),
            )
            offset += field_type.total_size

            if embedded is not None:
                xref = self.tracker.record_or_get(type_signature(field_type), field_path)
                if xref.already_seen:
                    row.back_reference = xref.first_path_id
                    row.back_reference_anchor = path_anchor(xref.first_path_id)
                else:
                    logger.debug("Expanding %s beneath %s", embedded.type_name, f.name)
                    row.embedded = self.project(embedded, field_path)

            node.rows.append(row)
        return node

    def _embedded_type(self, field_type: InstantiatedType) -> InstantiatedType | None:
        """Return the type documented beneath a field, if any.

        For pointers this is the pointee, instantiated without a size of
        its own; pointers to types without a table form embed nothing.
        """
        if field_type.type_def.is_table:
            return field_type
        if field_type.is_pointer and field_type.pointee is not None:
            pointee = self.instantiator.instantiate(TypeParams(type=field_type.pointee))
            if pointee.type_def.is_table:
                return pointee
            logger.debug(
                "Pointee %s of %s has no table form", field_type.pointee, field_type.type_name
            )
        return None

    def _field_tags(
        self, declared_type: str, labels: list[str], field_type: InstantiatedType
    ) -> list[str]:
        tags = ["struct-field", f"field-type-{declared_type}"]
        tags.extend(f"field-label-{label}" for label in labels)
        if field_type.type_def.is_table:
            tags.append(f"has-embedded-class-{field_type.type_class}")
        return tags

    def _project_bitfield(
        self,
        instantiated: InstantiatedType,
        type_def: BitfieldTypeDefinition,
        path_id: PathId | None,
    ) -> DocumentNode:
        node = DocumentNode(
            type_class="bitfield",
            type_name=instantiated.type_name,
            headers=self._headers("flag", "mask", "comments"),
            path_id=path_id,
        )
        for i, bit in enumerate(type_def.bits):
            bit_path = join_path_id(path_id, bit.name)
            node.rows.append(DocumentRow(
                role="bit",
                name=bit.name,
                path_id=bit_path,
                anchor=path_anchor(bit_path),
                mask=type_def.mask(i),
                comments=self.render_comments(bit),
            ))
        return node

    def _project_enum(
        self,
        instantiated: InstantiatedType,
        type_def: EnumTypeDefinition,
        path_id: PathId | None,
    ) -> DocumentNode:
        node = DocumentNode(
            type_class="enum",
            type_name=instantiated.type_name,
            headers=self._headers("option", "value", "comments"),
            path_id=path_id,
        )
        for i, option in enumerate(type_def.options):
            option_path = join_path_id(path_id, option.name)
            node.rows.append(DocumentRow(
                role="option",
                name=option.name,
                path_id=option_path,
                anchor=path_anchor(option_path),
                value=type_def.option_value(i),
                comments=self.render_comments(option),
            ))
        return node
