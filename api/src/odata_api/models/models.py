#!/usr/bin/env python3

from typing import Any

from pydantic import BaseModel, model_validator

from ..services.domain.metadata import EntityType, SchemaModel
from ..services.domain.query import QuerySelection

# Pydantic Models


class PropertyInfo(BaseModel):
    name: str
    type: str
    nullable: bool = True
    is_key: bool = False


class NavigationPropertyInfo(BaseModel):
    name: str
    type: str  # 'NS.Type' or 'Collection(NS.Type)'
    target_type: str  # Unqualified target entity type
    is_collection: bool
    referential_constraint: dict[str, str] | None = None


class EntityTypeInfo(BaseModel):
    name: str
    namespace: str
    keys: list[str] = []
    properties: list[PropertyInfo] = []
    navigation_properties: list[NavigationPropertyInfo] = []

    @classmethod
    def from_entity_type(cls, entity_type: EntityType) -> "EntityTypeInfo":
        navigation = []
        for nav in entity_type.navigation_properties.values():
            constraint = None
            if nav.referential_constraint is not None:
                constraint = {
                    "property": nav.referential_constraint.property,
                    "referenced_property": nav.referential_constraint.referenced_property,
                }
            navigation.append(NavigationPropertyInfo(
                name=nav.name,
                type=nav.type,
                target_type=nav.target_type,
                is_collection=nav.is_collection,
                referential_constraint=constraint,
            ))

        return cls(
            name=entity_type.name,
            namespace=entity_type.namespace,
            keys=list(entity_type.keys),
            properties=[
                PropertyInfo(name=p.name, type=p.type, nullable=p.nullable, is_key=p.name in entity_type.keys)
                for p in entity_type.properties.values()
            ],
            navigation_properties=navigation,
        )


class EntitySetInfo(BaseModel):
    name: str
    entity_type: str  # As declared (possibly qualified)
    entity_type_name: str  # Unqualified, matches EntityTypeInfo.name


class SchemaResponse(BaseModel):
    namespace: str
    version: str  # Resolved protocol version ('2.0', '4.0', ...)
    edmx_version: str
    namespaces: list[str] = []
    entity_types: list[EntityTypeInfo] = []
    entity_sets: list[EntitySetInfo] = []
    metadata_url: str | None = None  # Set when the document was fetched
    service_root: str | None = None

    @classmethod
    def from_model(cls, model: SchemaModel, metadata_url: str | None = None,
                   service_root: str | None = None) -> "SchemaResponse":
        return cls(
            namespace=model.namespace,
            version=model.version,
            edmx_version=model.edmx_version,
            namespaces=list(model.namespaces),
            entity_types=[EntityTypeInfo.from_entity_type(t) for t in model.entity_types],
            entity_sets=[
                EntitySetInfo(name=s.name, entity_type=s.entity_type, entity_type_name=s.entity_type_name)
                for s in model.entity_sets
            ],
            metadata_url=metadata_url,
            service_root=service_root,
        )


class ParseMetadataRequest(BaseModel):
    """Either raw $metadata content or a service/metadata URL to fetch."""
    content: str | None = None
    url: str | None = None

    @model_validator(mode="after")
    def _require_source(self):
        if not self.content and not self.url:
            raise ValueError("Either 'content' or 'url' is required")
        return self


class DetectRequest(BaseModel):
    content: str


class DetectResponse(BaseModel):
    is_metadata: bool
    version: str | None = None


class MetadataUrlResponse(BaseModel):
    metadata_url: str
    service_root: str


class CompileRequest(BaseModel):
    metadata_url: str
    version: str
    selection: QuerySelection
    declared_properties: list[str] | None = None  # All properties of the set's entity type


class CompileResponse(BaseModel):
    url: str
    display_url: str


class ExecuteResponse(BaseModel):
    url: str
    display_url: str
    format: str  # 'json' or 'xml'
    used_fallback: bool = False  # True when the body was not in the requested format
    rows: Any = None
    total_count: int | None = None


class NormalizeRequest(BaseModel):
    payload: Any = None


class NormalizeResponse(BaseModel):
    rows: Any = None
    total_count: int | None = None


class ErrorDetail(BaseModel):
    error: str  # 'unreachable', 'not_metadata', 'invalid_payload', 'invalid_request' (malformed service URL)
    message: str
