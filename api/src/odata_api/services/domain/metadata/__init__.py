"""
OData Metadata Domain

Turns $metadata (EDMX/CSDL) documents of any protocol version into a
version-agnostic SchemaModel:
- Element lookup tolerant of namespace/prefix variation
- Legacy Association backfill for OData 1.0-3.0 navigation properties
- Schema model building and version detection
"""

from .model import EntitySet, EntityType, NavigationProperty, Property, SchemaModel, reduce_type_name
from .parser import MetadataParser, StructuralError, detect_metadata_version, parse_metadata

__all__ = [
    # Model
    "EntitySet",
    "EntityType",
    "NavigationProperty",
    "Property",
    "SchemaModel",
    "reduce_type_name",
    # Parsing
    "MetadataParser",
    "StructuralError",
    "detect_metadata_version",
    "parse_metadata",
]
