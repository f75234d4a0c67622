"""Plain-text rendering of document trees for the console."""

from __future__ import annotations

from layout_tables.document import DocumentNode, DocumentRow, RenderedComments

INDENT = "    "


def format_hex(value: int) -> str:
    return f"0x{value:X}"


def format_comments(comments: RenderedComments) -> str:
    """Join label badges and prose into one cell."""
    parts = [f"[{label}]" for label in comments.labels]
    if comments.prose is not None:
        parts.append(" ".join(str(comments.prose).split()))
    return " ".join(parts)


def _row_cells(node: DocumentNode, row: DocumentRow) -> list[str]:
    if row.role == "field":
        cells = [row.name]
        if node.show_offsets:
            cells.append(format_hex(row.offset or 0))
        type_cell = str(row.type) if row.type is not None else ""
        if row.back_reference_anchor is not None:
            type_cell += f" (see #{row.back_reference_anchor})"
        cells.append(type_cell)
    elif row.role == "bit":
        cells = [row.name, format_hex(row.mask or 0)]
    else:
        cells = [row.name, format_hex(row.value or 0)]
    cells.append(format_comments(row.comments))
    return cells


def _format_line(cells: list[str], widths: list[int], prefix: str) -> str:
    return (prefix + "  ".join(c.ljust(w) for c, w in zip(cells, widths))).rstrip()


def format_document(node: DocumentNode, depth: int = 0) -> str:
    """Format a document tree as indented text tables.

    Embedded sub-documents are printed beneath the row that opened them.
    """
    prefix = INDENT * depth
    lines = [f"{prefix}{node.type_name} ({node.type_class})"]
    comments = format_comments(node.comments)
    if comments:
        lines.append(f"{prefix}{comments}")

    all_cells = [_row_cells(node, row) for row in node.rows]
    widths = [len(h) for h in node.headers]
    for cells in all_cells:
        for i, cell in enumerate(cells):
            widths[i] = max(widths[i], len(cell))

    lines.append(_format_line(node.headers, widths, prefix))
    lines.append(_format_line(["-" * w for w in widths], widths, prefix))
    for row, cells in zip(node.rows, all_cells):
        lines.append(_format_line(cells, widths, prefix))
        if row.embedded is not None:
            lines.append(format_document(row.embedded, depth + 1))
    return "\n".join(lines)
