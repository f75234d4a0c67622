"""Tests for projecting instantiated types into documentation tables."""

import logging

import pytest

from layout_tables.errors import LayoutError, UnhandledTypeClassError, UnresolvedTypeError
from layout_tables.instantiate import Instantiator
from layout_tables.localize import Localizer, plain_prose
from layout_tables.projector import DocumentProjector, describe_type
from layout_tables.schema import LayoutSchema
from layout_tables.types import TypeParams

TYPE_DEFS = {
    "Header": {
        "class": "struct",
        "comments": {"en": "File header."},
        "fields": [
            {"name": "magic", "type": "uint32"},
            {"name": "flags", "type": "Flags"},
        ],
        "assertSize": 8,
    },
    "Flags": {
        "class": "bitfield",
        "size": 4,
        "bits": [{"name": "ready"}, {"name": "error"}],
    },
    "Kind": {
        "class": "enum",
        "size": 2,
        "options": [
            {"name": "none"},
            {"name": "text", "value": 0x10},
            {"name": "binary"},
        ],
    },
    "Packed": {
        "class": "struct",
        "fields": [
            {"name": "a", "type": "uint32"},
            {"name": "b", "type": "uint16"},
            {"name": "c", "type": "uint8"},
            {"name": "d", "type": "bool"},
        ],
    },
    "TwoFlags": {
        "class": "struct",
        "fields": [
            {"name": "first", "type": "Flags"},
            {"name": "second", "type": "Flags"},
        ],
    },
    "Pointers": {
        "class": "struct",
        "fields": [
            {"name": "header", "type": "ptr32", "typeArgs": {"T": "Header"}},
            {"name": "again", "type": "ptr32", "typeArgs": {"T": "Header"}},
            {"name": "inline", "type": "Header"},
            {"name": "bytes", "type": "ptr64", "typeArgs": {"T": "uint8"}},
            {"name": "opaque", "type": "ptr32"},
        ],
    },
    "le32": {"size": 4, "endianness": "little"},
    "be16": {"size": 2, "endianness": "big"},
    "any16": {"size": 2, "endianness": None},
}


@pytest.fixture
def schema():
    return LayoutSchema.from_mapping(TYPE_DEFS)


def _descriptor(schema, **params):
    instantiator = Instantiator(schema.registry)
    return describe_type(instantiator.instantiate(TypeParams(**params)))


class TestEndToEnd:
    """The header example: a struct with a primitive and a bitfield."""

    def test_root_rows(self, schema):
        doc = schema.render("Header", show_offsets=True)

        assert doc.type_class == "struct"
        assert doc.type_name == "Header"
        assert [row.name for row in doc.rows] == ["magic", "flags"]

        magic, flags = doc.rows
        assert magic.offset == 0
        assert magic.type.text == "uint32"
        assert magic.type.total_size == 4
        assert flags.offset == 4
        assert flags.type.text == "Flags: bitfield32"
        assert flags.type.total_size == 4

    def test_nested_bitfield(self, schema):
        doc = schema.render("Header", show_offsets=True)
        flags = doc.get_row("flags")

        assert flags.embedded is not None
        assert flags.embedded.type_class == "bitfield"
        assert [(row.name, row.mask) for row in flags.embedded.rows] == [
            ("ready", 0x1),
            ("error", 0x2),
        ]
        assert all(row.role == "bit" for row in flags.embedded.rows)

    def test_headers_with_offsets(self, schema):
        doc = schema.render("Header", show_offsets=True)
        assert doc.headers == ["Field", "Offset (relative)", "Type", "Comments"]
        assert doc.get_row("flags").embedded.headers == ["Flag", "Mask", "Comments"]

    def test_headers_without_offsets(self, schema):
        doc = schema.render("Header")
        assert doc.headers == ["Field", "Type", "Comments"]
        assert doc.show_offsets is False

    def test_type_comments(self, schema):
        """The table carries the type's own comments."""
        doc = schema.render("Header")
        assert doc.comments.prose == "File header."

    def test_paths_and_anchors(self, schema):
        doc = schema.render("Header", root_id="hdr")
        flags = doc.get_row("flags")

        assert doc.path_id == ("hdr",)
        assert flags.path_id == ("hdr", "flags")
        assert flags.anchor == "hdr-flags"
        assert flags.embedded.rows[0].path_id == ("hdr", "flags", "ready")

    def test_default_root_path(self, schema):
        doc = schema.render("Header")
        assert doc.get_row("magic").path_id == ("", "magic")
        assert doc.get_row("magic").anchor == "magic"


class TestStructRows:
    """Tests for struct field rows."""

    def test_offsets_accumulate(self, schema):
        doc = schema.render("Packed", show_offsets=True)
        assert [row.offset for row in doc.rows] == [0, 4, 6, 7]

    def test_field_tags(self, schema):
        doc = schema.render("Header")
        assert doc.get_row("magic").tags == ["struct-field", "field-type-uint32"]
        assert doc.get_row("flags").tags == [
            "struct-field",
            "field-type-Flags",
            "has-embedded-class-bitfield",
        ]

    def test_label_tags(self):
        schema = LayoutSchema.from_mapping({
            "S": {
                "class": "struct",
                "fields": [{"name": "x", "type": "uint8", "labels": ["mcc", "cache_only"]}],
            },
        })
        row = schema.render("S").get_row("x")
        assert row.tags == [
            "struct-field",
            "field-type-uint8",
            "field-label-mcc",
            "field-label-cache_only",
        ]
        assert row.comments.labels == ["MCC", "Cache only"]

    def test_declared_type_in_tag(self):
        """The tag names the type as written on the field, not the resolved one."""
        schema = LayoutSchema.from_mapping({
            "word": {"class": "alias", "type": "uint16"},
            "S": {"class": "struct", "fields": [{"name": "w", "type": "word"}]},
        })
        row = schema.render("S").get_row("w")
        assert "field-type-word" in row.tags
        assert row.type.text == "uint16"

    def test_generic_struct_fields(self):
        """Fields of a generic struct are resolved with its type arguments."""
        schema = LayoutSchema.from_mapping({
            "Pair": {
                "class": "struct",
                "fields": [{"name": "first", "type": "A"}, {"name": "second", "type": "A"}],
            },
            "Root": {
                "class": "struct",
                "fields": [{"name": "pair", "type": "Pair", "typeArgs": {"A": "uint16"}}],
            },
        })
        pair = schema.render("Root", show_offsets=True).get_row("pair")
        assert pair.type.text == "Pair<uint16>"
        assert [row.type.text for row in pair.embedded.rows] == ["uint16", "uint16"]
        assert [row.offset for row in pair.embedded.rows] == [0, 2]


class TestDeduplication:
    """Tests for back-references to already expanded types."""

    def test_second_field_links_to_first(self, schema):
        doc = schema.render("TwoFlags")
        first, second = doc.rows

        assert first.embedded is not None
        assert first.back_reference is None
        assert second.embedded is None
        assert second.back_reference == ("", "first")
        assert second.back_reference_anchor == "first"

    def test_back_reference_keeps_tags(self, schema):
        doc = schema.render("TwoFlags")
        assert "has-embedded-class-bitfield" in doc.get_row("second").tags

    def test_different_args_expand_separately(self):
        schema = LayoutSchema.from_mapping({
            "Pair": {
                "class": "struct",
                "fields": [{"name": "first", "type": "A"}],
            },
            "Root": {
                "class": "struct",
                "fields": [
                    {"name": "small", "type": "Pair", "typeArgs": {"A": "uint8"}},
                    {"name": "large", "type": "Pair", "typeArgs": {"A": "uint64"}},
                    {"name": "small_again", "type": "Pair", "typeArgs": {"A": "uint8"}},
                ],
            },
        })
        doc = schema.render("Root")
        assert doc.get_row("small").embedded is not None
        assert doc.get_row("large").embedded is not None
        assert doc.get_row("small_again").back_reference == ("", "small")

    def test_nested_repeat(self, schema):
        """A repeat deeper in the tree links to the first expansion anywhere."""
        extended = dict(TYPE_DEFS)
        extended["Outer"] = {
            "class": "struct",
            "fields": [
                {"name": "header", "type": "Header"},
                {"name": "more_flags", "type": "Flags"},
            ],
        }
        doc = LayoutSchema.from_mapping(extended).render("Outer")

        assert doc.get_row("header").embedded.get_row("flags").embedded is not None
        assert doc.get_row("more_flags").back_reference == ("", "header", "flags")

    def test_each_render_starts_fresh(self, schema):
        """Types expanded in one render are expanded again in the next."""
        schema.render("Header")
        doc = schema.render("Header")
        assert doc.get_row("flags").embedded is not None


class TestPointers:
    """Tests for pointer fields."""

    def test_pointer_row_and_embedded_pointee(self, schema):
        doc = schema.render("Pointers", show_offsets=True)
        header = doc.get_row("header")

        assert header.type.text == "ptr32<Header>"
        assert header.type.total_size == 4
        assert header.embedded is not None
        assert header.embedded.type_name == "Header"
        assert header.embedded.type_class == "struct"
        assert [row.name for row in header.embedded.rows] == ["magic", "flags"]

    def test_pointer_has_no_embedded_class_tag(self, schema):
        doc = schema.render("Pointers")
        assert doc.get_row("header").tags == ["struct-field", "field-type-ptr32"]

    def test_repeated_pointer_links_back(self, schema):
        doc = schema.render("Pointers")
        assert doc.get_row("again").back_reference == ("", "header")

    def test_inline_struct_expands_separately(self, schema):
        """A struct field and a pointer to the same struct are different signatures."""
        doc = schema.render("Pointers")
        assert doc.get_row("inline").embedded is not None

    def test_pointer_to_primitive(self, schema):
        doc = schema.render("Pointers")
        bytes_row = doc.get_row("bytes")
        assert bytes_row.type.text == "ptr64<uint8>"
        assert bytes_row.embedded is None
        assert bytes_row.back_reference is None

    def test_pointer_to_primitive_is_logged(self, schema, caplog):
        with caplog.at_level(logging.DEBUG, logger="layout_tables.projector"):
            schema.render("Pointers")
        assert "Pointee uint8 of ptr64 has no table form" in caplog.text

    def test_bare_pointer(self, schema):
        doc = schema.render("Pointers", show_offsets=True)
        opaque = doc.get_row("opaque")
        assert opaque.type.text == "ptr32"
        assert opaque.embedded is None
        assert opaque.offset == 4 + 4 + 8 + 8

    def test_self_referential_pointer_terminates(self):
        schema = LayoutSchema.from_mapping({
            "Node": {
                "class": "struct",
                "fields": [
                    {"name": "value", "type": "uint32"},
                    {"name": "next", "type": "ptr32", "typeArgs": {"T": "Node"}},
                ],
            },
        })
        doc = schema.render("Node")
        next_row = doc.get_row("next")
        assert next_row.embedded.type_name == "Node"
        assert next_row.embedded.get_row("next").back_reference == ("", "next")


class TestBitfieldsAndEnums:
    def test_enum_rows(self, schema):
        node = schema.render("Kind")
        assert node.type_class == "enum"
        assert node.headers == ["Option", "Value", "Comments"]
        assert [(row.name, row.value) for row in node.rows] == [
            ("none", 0),
            ("text", 0x10),
            ("binary", 2),
        ]
        assert all(row.role == "option" for row in node.rows)

    def test_bitfield_root(self, schema):
        node = schema.render("Flags")
        assert node.type_class == "bitfield"
        assert [row.anchor for row in node.rows] == ["ready", "error"]


class TestTypeDescriptor:
    """Tests for the type cell text."""

    def test_enum_bit_width(self, schema):
        assert _descriptor(schema, type="Kind").text == "Kind: enum16"

    def test_count(self, schema):
        assert _descriptor(schema, type="uint8", count=16).text == "uint8[16]"

    def test_variable_size(self, schema):
        descriptor = _descriptor(schema, type="pad", size=3)
        assert descriptor.text == "pad(3)"
        assert descriptor.total_size == 3

    def test_all_suffixes(self, schema):
        descriptor = _descriptor(schema, type="ptr32", type_args={"T": "Header"}, size=4, count=2)
        assert descriptor.text == "ptr32<Header>(4)[2]"
        assert descriptor.total_size == 8

    def test_endianness_badges(self, schema):
        assert _descriptor(schema, type="le32").endianness_badge == "LE"
        assert _descriptor(schema, type="be16").endianness_badge == "BE"
        assert _descriptor(schema, type="any16").endianness_badge == "LE/BE"
        assert _descriptor(schema, type="uint16").endianness_badge is None

    def test_str_includes_badge(self, schema):
        assert str(_descriptor(schema, type="le32", count=2)) == "le32[2] LE"


class TestComments:
    """Tests for label and prose rendering through injected collaborators."""

    @pytest.fixture
    def commented(self):
        return LayoutSchema.from_mapping({
            "S": {
                "class": "struct",
                "labels": ["mcc"],
                "fields": [
                    {
                        "name": "x",
                        "type": "uint8",
                        "labels": ["cache_only"],
                        "comments": {"en": "Hello", "es": "Hola"},
                    },
                    {"name": "y", "type": "uint8"},
                ],
            },
        })

    def test_prose_called_with_language(self, commented):
        calls = []

        def prose(lang, text):
            calls.append((lang, text))
            return f"<p>{text}</p>"

        doc = commented.render("S", lang="es", prose=prose)
        assert calls == [("es", "Hola")]
        assert doc.get_row("x").comments.prose == "<p>Hola</p>"
        assert doc.get_row("y").comments.prose is None

    def test_missing_language_has_no_prose(self, commented):
        doc = commented.render("S", lang="fr")
        assert doc.get_row("x").comments.prose is None

    def test_localize_injected(self, commented):
        def localize(lang, key):
            return f"{lang}:{key}"

        doc = commented.render("S", lang="de", localize=localize)
        assert doc.headers == ["de:field", "de:type", "de:comments"]
        assert doc.comments.labels == ["de:label_mcc"]
        assert doc.get_row("x").comments.labels == ["de:label_cache_only"]

    def test_spanish_headers(self, commented):
        doc = commented.render("S", lang="es", show_offsets=True)
        assert doc.headers == ["Campo", "Offset (relative)", "Tipo", "Comentarios"]


class TestProjectionErrors:
    def test_primitive_entry_has_no_table(self, schema):
        with pytest.raises(UnhandledTypeClassError, match="Unhandled type class"):
            schema.render("uint32")

    def test_error_reports_field_path(self):
        """Errors found while projecting a nested field name the field path."""
        schema = LayoutSchema.from_mapping({
            "Inner": {"class": "struct", "fields": [{"name": "x", "type": "Missing"}]},
            "Outer": {
                "class": "struct",
                "fields": [{"name": "inner", "type": "Inner", "size": 4}],
            },
        })
        with pytest.raises(UnresolvedTypeError) as exc_info:
            schema.render("Outer")

        error = exc_info.value
        assert error.path == ("", "inner", "x")
        assert error.entry_type == "Outer"
        assert "at /inner/x" in str(error)

    def test_missing_pointee_reports_field_path(self):
        """A pointer to an unknown type names the pointer field."""
        schema = LayoutSchema.from_mapping({
            "Outer": {
                "class": "struct",
                "fields": [{"name": "target", "type": "ptr32", "typeArgs": {"T": "Missing"}}],
            },
        })
        with pytest.raises(UnresolvedTypeError) as exc_info:
            schema.render("Outer")

        assert exc_info.value.type_name == "Missing"
        assert exc_info.value.path == ("", "target")
        assert "at /target" in str(exc_info.value)

    def test_errors_share_base_class(self, schema):
        with pytest.raises(LayoutError):
            schema.render("Nope")


class TestProjectorDirectly:
    def test_project_with_explicit_collaborators(self, schema):
        instantiator = Instantiator(schema.registry, entry_type="Packed")
        projector = DocumentProjector(
            instantiator,
            localize=Localizer({"field": {"en": "Name"}}),
            prose=plain_prose,
            show_offsets=True,
        )
        node = projector.project(instantiator.instantiate(TypeParams(type="Packed")), ("packed",))

        assert node.headers[0] == "Name"
        assert node.get_row("d").anchor == "packed-d"
        assert len(projector.tracker) == 0
