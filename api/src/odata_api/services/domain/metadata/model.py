#!/usr/bin/env python3
"""Version-agnostic schema model built from an OData $metadata document.

Records reference each other by name only (entity sets name their entity type,
navigation properties name their target type), so the model has no object
cycles and can be built in a single pass and linked at the end.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

COLLECTION_PREFIX = "Collection("


def is_collection_type(type_name: str) -> bool:
    """True for 'Collection(NS.Type)' style type references."""
    return bool(type_name) and type_name.startswith(COLLECTION_PREFIX) and type_name.endswith(")")


def reduce_type_name(type_name: Optional[str]) -> str:
    """Reduce a type reference to its unqualified name.

    'Collection(NorthwindModel.Order)' -> 'Order', 'Self.Customer' -> 'Customer'.
    """
    if not type_name:
        return ""
    reduced = type_name.strip()
    if is_collection_type(reduced):
        reduced = reduced[len(COLLECTION_PREFIX):-1].strip()
    return reduced.rsplit(".", 1)[-1]


def _freeze(mapping) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class Property:
    name: str
    type: str
    nullable: bool = True


@dataclass(frozen=True)
class ReferentialConstraint:
    property: str
    referenced_property: str


@dataclass(frozen=True)
class NavigationProperty:
    name: str
    type: str                                          # 'NS.Type' or 'Collection(NS.Type)'
    referential_constraint: Optional[ReferentialConstraint] = None

    @property
    def target_type(self) -> str:
        return reduce_type_name(self.type)

    @property
    def is_collection(self) -> bool:
        return is_collection_type(self.type)


@dataclass(frozen=True)
class EntityType:
    """A named record shape.

    ``keys`` keeps declaration order for composite keys; every key is
    guaranteed to name an entry of ``properties``.
    """
    name: str
    keys: tuple[str, ...] = ()
    properties: Mapping[str, Property] = field(default_factory=dict)
    navigation_properties: Mapping[str, NavigationProperty] = field(default_factory=dict)
    namespace: str = ""

    def __post_init__(self):
        object.__setattr__(self, "keys", tuple(self.keys))
        object.__setattr__(self, "properties", _freeze(self.properties))
        object.__setattr__(self, "navigation_properties", _freeze(self.navigation_properties))

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name

    @property
    def property_names(self) -> list[str]:
        return list(self.properties)


@dataclass(frozen=True)
class EntitySet:
    name: str
    entity_type: str                                   # as declared, possibly qualified

    @property
    def entity_type_name(self) -> str:
        return reduce_type_name(self.entity_type)


@dataclass(frozen=True)
class SchemaModel:
    """The only artifact retained from a parse; never mutated afterwards."""
    entity_types: tuple[EntityType, ...]
    entity_sets: tuple[EntitySet, ...]
    namespace: str
    version: str
    edmx_version: str = ""
    namespaces: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "entity_types", tuple(self.entity_types))
        object.__setattr__(self, "entity_sets", tuple(self.entity_sets))
        object.__setattr__(self, "namespaces", tuple(self.namespaces))

    @property
    def is_modern(self) -> bool:
        return is_modern_version(self.version)

    def get_entity_type(self, name: str) -> Optional[EntityType]:
        """Look up an entity type by reduced or qualified name."""
        reduced = reduce_type_name(name)
        for entity_type in self.entity_types:
            if entity_type.name == reduced:
                return entity_type
        return None

    def get_entity_set(self, name: str) -> Optional[EntitySet]:
        for entity_set in self.entity_sets:
            if entity_set.name == name:
                return entity_set
        return None

    def entity_type_for_set(self, set_name: str) -> Optional[EntityType]:
        entity_set = self.get_entity_set(set_name)
        if entity_set is None:
            return None
        return self.get_entity_type(entity_set.entity_type)


def is_modern_version(version: Optional[str]) -> bool:
    """OData 4.x uses the modern dialect; everything else is legacy."""
    return bool(version) and version.strip().startswith("4")
