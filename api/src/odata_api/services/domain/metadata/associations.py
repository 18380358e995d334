#!/usr/bin/env python3
"""Legacy Association backfill for OData 1.0-3.0 navigation properties.

Before OData 4.0 a NavigationProperty carries no type of its own. It points at
an out-of-line Association through ``Relationship`` (a qualified association
name) and ``ToRole`` (one of the association's two End roles), and the target
type and cardinality live on that End. This module builds the lookup tables
once per document so the model pass can resolve each navigation by name.
"""

import logging
from typing import Iterable, Optional
from xml.etree.ElementTree import Element

from .locator import find_by_local_name, find_children

logger = logging.getLogger(__name__)

MANY = "*"


def _end_target(end: Element) -> Optional[str]:
    end_type = (end.get("Type") or "").strip()
    if not end_type:
        return None
    if (end.get("Multiplicity") or "").strip() == MANY:
        return f"Collection({end_type})"
    return end_type


def _strip_namespace(relationship: str) -> str:
    return relationship.rsplit(".", 1)[-1]


class AssociationResolver:
    """Maps (relationship id, role) to a resolved navigation target.

    Two tables are kept: one keyed by fully qualified id (``Namespace.Name``
    and ``Alias.Name``) and one keyed by the bare association name, used as a
    fallback when producers qualify relationships inconsistently.
    """

    def __init__(self):
        self.qualified: dict[str, dict[str, str]] = {}
        self.bare: dict[str, dict[str, str]] = {}

    @classmethod
    def from_schemas(cls, schemas: Iterable[Element]) -> "AssociationResolver":
        resolver = cls()
        for schema in schemas:
            resolver.add_schema(schema)
        logger.debug(f"Indexed {len(resolver.qualified)} qualified association ids")
        return resolver

    def add_schema(self, schema: Element) -> None:
        qualifiers = [q for q in (schema.get("Namespace"), schema.get("Alias")) if q]

        for association in find_by_local_name(schema, "Association"):
            name = association.get("Name")
            if not name:
                continue

            roles = self._read_ends(association)
            if roles is None:
                logger.debug(f"Skipping association {name}: expected two typed ends")
                continue

            for qualifier in qualifiers:
                self.qualified.setdefault(f"{qualifier}.{name}", roles)
            self.bare.setdefault(name, roles)

    @staticmethod
    def _read_ends(association: Element) -> Optional[dict[str, str]]:
        ends = find_children(association, "End")
        if len(ends) != 2:
            return None

        roles = {}
        for end in ends:
            role = end.get("Role")
            target = _end_target(end)
            if not role or not target:
                return None
            roles[role] = target
        return roles

    def resolve(self, relationship: Optional[str], to_role: Optional[str]) -> Optional[str]:
        """Resolve a navigation's target type, or None when any step misses."""
        if not relationship or not to_role:
            return None

        roles = self.qualified.get(relationship)
        if roles is None:
            roles = self.bare.get(_strip_namespace(relationship))
        if roles is None:
            return None
        return roles.get(to_role)

    def __len__(self) -> int:
        return len(self.bare)
