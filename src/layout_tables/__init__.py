"""Layout Tables - documentation tables for binary data layouts."""

from layout_tables.document import (
    DocumentNode,
    DocumentRow,
    RenderedComments,
    TypeDescriptor,
)
from layout_tables.errors import (
    CyclicTypeError,
    LayoutError,
    SchemaFormatError,
    SizeAssertionError,
    UnhandledTypeClassError,
    UnresolvableSizeError,
    UnresolvedTypeError,
)
from layout_tables.generics import substitute
from layout_tables.instantiate import Instantiator
from layout_tables.localize import Localizer, plain_prose
from layout_tables.projector import DocumentProjector, describe_type
from layout_tables.render import RenderEntry, parse_entry, render
from layout_tables.schema import LayoutSchema, load_type_definitions
from layout_tables.types import (
    INTRINSIC_TYPES,
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

__all__ = [
    # Main API
    "LayoutSchema",
    "RenderEntry",
    "parse_entry",
    "render",
    "load_type_definitions",
    # Engine
    "Instantiator",
    "DocumentProjector",
    "CrossReferenceTracker",
    "describe_type",
    "substitute",
    "Localizer",
    "plain_prose",
    # Type definitions
    "INTRINSIC_TYPES",
    "TypeDefinition",
    "PrimitiveTypeDefinition",
    "AliasTypeDefinition",
    "StructTypeDefinition",
    "BitfieldTypeDefinition",
    "EnumTypeDefinition",
    "FieldDefinition",
    "BitDefinition",
    "OptionDefinition",
    "TypeParams",
    "InstantiatedType",
    "TypeRegistry",
    # Document tree
    "DocumentNode",
    "DocumentRow",
    "RenderedComments",
    "TypeDescriptor",
    # Errors
    "LayoutError",
    "UnresolvedTypeError",
    "UnresolvableSizeError",
    "SizeAssertionError",
    "UnhandledTypeClassError",
    "CyclicTypeError",
    "SchemaFormatError",
]

__version__ = "0.1.0"
