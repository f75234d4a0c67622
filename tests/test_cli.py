"""Tests for the layout-tables command and the text dump."""

import json

import pytest

from layout_tables.cli import main
from layout_tables.dump import format_comments, format_document, format_hex
from layout_tables.document import RenderedComments
from layout_tables.schema import LayoutSchema

TYPES_YAML = """\
Header:
  class: struct
  labels: [mcc]
  fields:
    - name: magic
      type: uint32
    - name: flags
      type: Flags
    - name: more
      type: Flags
Flags:
  class: bitfield
  size: 4
  bits:
    - name: ready
      comments:
        en: Set when   the device is ready.
    - name: error
Broken:
  class: struct
  assertSize: 3
  fields:
    - name: x
      type: uint32
"""


@pytest.fixture
def types_file(tmp_path):
    path = tmp_path / "types.yaml"
    path.write_text(TYPES_YAML)
    return path


class TestFormatting:
    def test_format_hex(self):
        assert format_hex(0) == "0x0"
        assert format_hex(255) == "0xFF"

    def test_format_comments(self):
        comments = RenderedComments(labels=["MCC"], prose="Line one\nline two")
        assert format_comments(comments) == "[MCC] Line one line two"
        assert format_comments(RenderedComments()) == ""

    def test_format_document(self, types_file):
        doc = LayoutSchema.load(types_file).render("Header", show_offsets=True)
        text = format_document(doc)
        lines = text.splitlines()

        assert lines[0] == "Header (struct)"
        assert lines[1] == "[MCC]"
        assert lines[2].split() == ["Field", "Offset", "(relative)", "Type", "Comments"]
        assert "Flags: bitfield32" in text
        assert "    Flags (bitfield)" in text
        assert "Set when the device is ready." in text
        assert "(see #flags)" in text
        assert text.count("Flags (bitfield)") == 1

    def test_embedded_rows_indented(self, types_file):
        doc = LayoutSchema.load(types_file).render("Header")
        ready = [line for line in format_document(doc).splitlines() if "ready" in line]
        assert ready and ready[0].startswith("    ready")
        assert "0x1" in ready[0]


class TestMain:
    def test_text_output(self, types_file, capsys):
        assert main([str(types_file), "Header", "--offsets"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("Header (struct)")
        assert "magic" in out
        assert "0x4" in out

    def test_json_output(self, types_file, capsys):
        assert main([str(types_file), "Header", "--json", "--id", "hdr"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["type_name"] == "Header"
        assert data["rows"][1]["path_id"] == ["hdr", "flags"]
        assert data["rows"][2]["back_reference"] == ["hdr", "flags"]

    def test_lang(self, types_file, capsys):
        assert main([str(types_file), "Flags", "--lang", "es"]) == 0
        assert "Bandera" in capsys.readouterr().out

    def test_list_types(self, types_file, capsys):
        assert main([str(types_file)]) == 0
        assert capsys.readouterr().out.split() == ["Header", "Flags", "Broken"]

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.yaml"), "Header"]) == 1
        assert "not found" in capsys.readouterr().err

    def test_unknown_type(self, types_file, capsys):
        assert main([str(types_file), "Nope"]) == 1
        assert "Failed to resolve type Nope" in capsys.readouterr().err

    def test_size_assertion(self, types_file, capsys):
        assert main([str(types_file), "Broken"]) == 1
        assert "4 != 3" in capsys.readouterr().err

    def test_malformed_definitions(self, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("Thing:\n  class: union\n")
        assert main([str(path), "Thing"]) == 1
        assert "Unhandled type class: union" in capsys.readouterr().err
