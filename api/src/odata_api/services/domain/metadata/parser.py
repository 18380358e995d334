#!/usr/bin/env python3
"""Schema model builder for OData $metadata (EDMX/CSDL) documents.

Handles all four protocol generations with one walk:
- OData 1.0-3.0: edmx Version="1.0", real protocol version on
  DataServices/@m:DataServiceVersion, navigation targets via Association
- OData 4.x: edmx Version="4.0"/"4.01", navigation targets inline

Anything below the document/schema level that cannot be read is omitted
from the model rather than failing the parse.
"""

import logging
from typing import Optional
from xml.etree.ElementTree import Element

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from .associations import AssociationResolver
from .locator import find_by_local_name, find_children, find_first, get_attribute_by_local_name, local_name
from .model import (
    EntitySet,
    EntityType,
    NavigationProperty,
    Property,
    ReferentialConstraint,
    SchemaModel,
    is_modern_version,
    reduce_type_name,
)

logger = logging.getLogger(__name__)

ROOT_ELEMENT = "Edmx"
UNKNOWN_VERSION = "Unknown"
RECOGNIZED_VERSIONS = {"1.0", "2.0", "3.0", "4.0", "4.01"}


class StructuralError(Exception):
    """Raised when a document has no Edmx root or no Schema blocks."""
    pass


def detect_metadata_version(content: Optional[str]) -> Optional[str]:
    """Return the edmx Version if ``content`` looks like a $metadata document.

    Advisory only: gates whether a parse is worth attempting. Never raises.
    """
    if not content or not content.strip():
        return None
    try:
        root = ET.fromstring(content)
    except Exception as e:
        logger.debug(f"Content is not parseable XML: {e}")
        return None

    if local_name(root.tag) != ROOT_ELEMENT:
        return None
    version = (root.get("Version") or "").strip()
    return version if version in RECOGNIZED_VERSIONS else None


def resolve_protocol_version(root: Element) -> tuple[str, str]:
    """Return (protocol version, raw edmx version).

    Legacy documents all declare edmx Version="1.0"; the protocol version
    they speak is on the DataServices element.
    """
    edmx_version = (root.get("Version") or "").strip() or UNKNOWN_VERSION
    if is_modern_version(edmx_version):
        return edmx_version, edmx_version

    data_services = find_first(root, "DataServices")
    data_service_version = get_attribute_by_local_name(data_services, "DataServiceVersion")
    if data_service_version and data_service_version.strip():
        return data_service_version.strip(), edmx_version
    return edmx_version, edmx_version


class MetadataParser:
    """Parse $metadata XML into a SchemaModel.

    A parser instance holds per-document state only while ``parse`` runs;
    create one per document or use ``parse_metadata``.
    """

    def __init__(self):
        self.resolver: Optional[AssociationResolver] = None
        self.dropped_navigation_count = 0

    def parse(self, xml_content: str) -> SchemaModel:
        """Parse ``xml_content`` and return the schema model.

        Raises:
            StructuralError: If the XML is malformed, has no Edmx root or
                contains no Schema block
        """
        root = self._parse_root(xml_content)

        schemas = find_by_local_name(root, "Schema")
        if not schemas:
            raise StructuralError("Invalid OData metadata: no <Schema> definition found")

        version, edmx_version = resolve_protocol_version(root)
        logger.info(f"Parsing OData metadata: version={version}, schemas={len(schemas)}")

        # Association tables must exist before any navigation is read
        self.resolver = None if is_modern_version(version) else AssociationResolver.from_schemas(schemas)
        self.dropped_navigation_count = 0

        namespaces = []
        declared_types: list[EntityType] = []
        declared_sets: list[EntitySet] = []
        types_per_namespace: dict[str, int] = {}

        for schema in schemas:
            namespace = schema.get("Namespace") or ""
            namespaces.append(namespace)

            entity_types = self._parse_entity_types(schema, namespace)
            declared_types.extend(entity_types)
            types_per_namespace[namespace] = types_per_namespace.get(namespace, 0) + len(entity_types)

            for container in find_by_local_name(schema, "EntityContainer"):
                declared_sets.extend(self._parse_entity_sets(container))

        entity_types = self._dedupe_entity_types(declared_types)
        entity_sets = self._link_entity_sets(declared_sets, entity_types)

        logger.info(
            f"Parsed {len(entity_types)} entity types, {len(entity_sets)} entity sets "
            f"({self.dropped_navigation_count} unresolved navigation properties dropped)"
        )

        return SchemaModel(
            entity_types=entity_types,
            entity_sets=entity_sets,
            namespace=self._dominant_namespace(namespaces, types_per_namespace),
            version=version,
            edmx_version=edmx_version,
            namespaces=namespaces,
        )

    def parse_file(self, file_path: str) -> SchemaModel:
        with open(file_path, "r", encoding="utf-8") as f:
            return self.parse(f.read())

    def _parse_root(self, xml_content: str) -> Element:
        if not xml_content or not xml_content.strip():
            raise StructuralError("Invalid OData metadata: document is empty")
        try:
            root = ET.fromstring(xml_content)
        except (ET.ParseError, DefusedXmlException) as e:
            raise StructuralError(f"Invalid XML: {str(e)}")

        if local_name(root.tag) == ROOT_ELEMENT:
            return root

        # Tolerate an envelope around the Edmx element
        edmx = find_first(root, ROOT_ELEMENT)
        if edmx is None:
            raise StructuralError(f"Invalid OData metadata: root element <edmx:Edmx> not found (got {root.tag})")
        return edmx

    def _parse_entity_types(self, schema: Element, namespace: str) -> list[EntityType]:
        entity_types = []

        for type_elem in find_by_local_name(schema, "EntityType"):
            name = type_elem.get("Name")
            if not name:
                logger.debug(f"Skipping unnamed EntityType in schema {namespace}")
                continue

            properties = self._parse_properties(type_elem)
            entity_types.append(EntityType(
                name=name,
                keys=self._parse_keys(type_elem, properties, name),
                properties=properties,
                navigation_properties=self._parse_navigation_properties(type_elem, name),
                namespace=namespace,
            ))

        return entity_types

    def _parse_keys(self, type_elem: Element, properties: dict[str, Property], type_name: str) -> list[str]:
        keys = []
        key_elem = find_first(type_elem, "Key")
        for ref in find_by_local_name(key_elem, "PropertyRef"):
            key_name = ref.get("Name")
            if key_name not in properties:
                logger.debug(f"Dropping key {key_name!r} of {type_name}: not a declared property")
            elif key_name not in keys:
                keys.append(key_name)
        return keys

    @staticmethod
    def _parse_properties(type_elem: Element) -> dict[str, Property]:
        properties = {}
        for prop in find_children(type_elem, "Property"):
            prop_name = prop.get("Name")
            if not prop_name or prop_name in properties:
                continue
            properties[prop_name] = Property(
                name=prop_name,
                type=prop.get("Type") or "",
                nullable=prop.get("Nullable") != "false",
            )
        return properties

    def _parse_navigation_properties(self, type_elem: Element, type_name: str) -> dict[str, NavigationProperty]:
        navigation = {}
        for nav in find_children(type_elem, "NavigationProperty"):
            nav_name = nav.get("Name")
            if not nav_name or nav_name in navigation:
                continue

            nav_type = (nav.get("Type") or "").strip()
            if not nav_type and self.resolver is not None:
                nav_type = self.resolver.resolve(nav.get("Relationship"), nav.get("ToRole")) or ""

            if not nav_type:
                self.dropped_navigation_count += 1
                logger.debug(f"Dropping navigation {type_name}.{nav_name}: target type unresolved")
                continue

            navigation[nav_name] = NavigationProperty(
                name=nav_name,
                type=nav_type,
                referential_constraint=self._parse_referential_constraint(nav),
            )
        return navigation

    @staticmethod
    def _parse_referential_constraint(nav: Element) -> Optional[ReferentialConstraint]:
        for constraint in find_children(nav, "ReferentialConstraint"):
            prop = constraint.get("Property")
            referenced = constraint.get("ReferencedProperty")
            if prop and referenced:
                return ReferentialConstraint(property=prop, referenced_property=referenced)
        return None

    @staticmethod
    def _parse_entity_sets(container: Element) -> list[EntitySet]:
        return [
            EntitySet(name=set_elem.get("Name") or "", entity_type=set_elem.get("EntityType") or "")
            for set_elem in find_children(container, "EntitySet")
        ]

    @staticmethod
    def _dedupe_entity_types(entity_types: list[EntityType]) -> list[EntityType]:
        seen = set()
        unique = []
        for entity_type in entity_types:
            if entity_type.name in seen:
                logger.debug(f"Ignoring duplicate entity type {entity_type.qualified_name}")
                continue
            seen.add(entity_type.name)
            unique.append(entity_type)
        return unique

    @staticmethod
    def _link_entity_sets(entity_sets: list[EntitySet], entity_types: list[EntityType]) -> list[EntitySet]:
        """Keep sets whose entity type exists in the finished model."""
        type_names = {entity_type.name for entity_type in entity_types}
        linked = []
        for entity_set in entity_sets:
            if not entity_set.name or entity_set.entity_type_name not in type_names:
                logger.debug(f"Dropping entity set {entity_set.name!r}: type {entity_set.entity_type!r} not found")
                continue
            linked.append(entity_set)
        return linked

    @staticmethod
    def _dominant_namespace(namespaces: list[str], types_per_namespace: dict[str, int]) -> str:
        """Namespace contributing the most entity types, earliest wins ties."""
        best, best_count = (namespaces[0] if namespaces else ""), 0
        for namespace in namespaces:
            count = types_per_namespace.get(namespace, 0)
            if count > best_count:
                best, best_count = namespace, count
        return best


def parse_metadata(xml_content: str) -> SchemaModel:
    """Parse a $metadata document into a SchemaModel.

    Raises:
        StructuralError: If the document is not a usable $metadata document
    """
    return MetadataParser().parse(xml_content)


__all__ = [
    "RECOGNIZED_VERSIONS",
    "MetadataParser",
    "StructuralError",
    "detect_metadata_version",
    "parse_metadata",
    "reduce_type_name",
    "resolve_protocol_version",
]
