"""Example usage of the layout_tables library."""

from layout_tables import LayoutSchema
from layout_tables.dump import format_document

# Describe a small file format
types = {
    "FileHeader": {
        "class": "struct",
        "comments": {"en": "First 16 bytes of every archive."},
        "assertSize": 16,
        "fields": [
            {"name": "magic", "type": "char", "count": 4},
            {"name": "version", "type": "le16"},
            {"name": "flags", "type": "ArchiveFlags"},
            {"name": "compression", "type": "Compression"},
            {"name": "reserved", "type": "pad", "size": 3},
            {"name": "index", "type": "ptr32", "typeArgs": {"T": "IndexEntry"}},
        ],
    },
    "ArchiveFlags": {
        "class": "bitfield",
        "size": 1,
        "bits": [
            {"name": "encrypted"},
            {"name": "signed", "labels": ["mcc"]},
        ],
    },
    "Compression": {
        "class": "enum",
        "size": 2,
        "options": [
            {"name": "none"},
            {"name": "deflate"},
            {"name": "zstd", "value": 0x10},
        ],
    },
    "IndexEntry": {
        "class": "struct",
        "fields": [
            {"name": "name_offset", "type": "uint32"},
            {"name": "data", "type": "ptr32", "typeArgs": {"T": "uint8"}},
            {"name": "flags", "type": "ArchiveFlags"},
        ],
    },
    "le16": {"size": 2, "endianness": "little"},
}

schema = LayoutSchema.from_mapping(types)

header = schema.instantiate("FileHeader")
print(f"FileHeader is {header.total_size} bytes\n")

document = schema.render("FileHeader", show_offsets=True, root_id="archive")
print(format_document(document))
