#!/usr/bin/env python3
"""Namespace-agnostic element lookup for EDMX/CSDL documents.

Producers of $metadata documents disagree on namespaces: OData 1.0-3.0 use a
handful of Microsoft EDM namespaces that changed with every CSDL revision,
OData 4.0 moved everything under the OASIS namespaces, and some hand-written
documents use no namespace at all. The element vocabulary (Schema, EntityType,
Property, ...) is the same throughout, so lookups here compare local names and
only use the known namespaces as fast paths.
"""

from typing import Optional
from xml.etree.ElementTree import Element

# EDMX envelope namespaces (OData 1.0-3.0, OData 4.x)
EDMX_NAMESPACES = (
    "http://schemas.microsoft.com/ado/2007/06/edmx",
    "http://docs.oasis-open.org/odata/ns/edmx",
)

# CSDL namespaces, oldest first
EDM_NAMESPACES = (
    "http://schemas.microsoft.com/ado/2006/04/edm",
    "http://schemas.microsoft.com/ado/2007/05/edm",
    "http://schemas.microsoft.com/ado/2008/01/edm",
    "http://schemas.microsoft.com/ado/2008/09/edm",
    "http://schemas.microsoft.com/ado/2009/11/edm",
    "http://docs.oasis-open.org/odata/ns/edm",
)


def local_name(tag: str) -> str:
    """Strip a '{uri}' qualifier or a literal 'prefix:' from a tag or attribute name."""
    if not isinstance(tag, str):
        # Comments and processing instructions carry a factory as their tag
        return ""
    if "}" in tag:
        tag = tag.rsplit("}", 1)[1]
    if ":" in tag:
        tag = tag.rsplit(":", 1)[1]
    return tag


def _descendants(container: Element):
    iterator = container.iter()
    next(iterator, None)  # iter() yields the container itself first
    return iterator


def _match_tags(container: Element, tags: set[str]) -> list[Element]:
    return [elem for elem in _descendants(container) if elem.tag in tags]


def find_by_local_name(container: Optional[Element], name: str) -> list[Element]:
    """Find all descendants of ``container`` whose local tag name is ``name``.

    Lookup order, first non-empty result wins:
      1. exact unqualified tag
      2. tag in one of the EDMX namespaces
      3. tag in one of the EDM namespaces
      4. full scan comparing resolved local names

    Never raises; returns an empty list when nothing matches.
    """
    if container is None or not name:
        return []

    matches = _match_tags(container, {name})
    if matches:
        return matches

    for namespaces in (EDMX_NAMESPACES, EDM_NAMESPACES):
        matches = _match_tags(container, {f"{{{ns}}}{name}" for ns in namespaces})
        if matches:
            return matches

    return [elem for elem in _descendants(container) if local_name(elem.tag) == name]


def find_first(container: Optional[Element], name: str) -> Optional[Element]:
    """Return the first descendant named ``name`` or None."""
    matches = find_by_local_name(container, name)
    return matches[0] if matches else None


def find_children(container: Optional[Element], name: str) -> list[Element]:
    """Direct children of ``container`` whose local tag name is ``name``."""
    if container is None:
        return []
    return [child for child in container if local_name(child.tag) == name]


def get_attribute_by_local_name(element: Optional[Element], name: str) -> Optional[str]:
    """Attribute value looked up by local name, ignoring any namespace.

    Unqualified attributes win over qualified ones (e.g. ``m:DataServiceVersion``).
    """
    if element is None:
        return None
    value = element.get(name)
    if value is not None:
        return value
    for key, candidate in element.attrib.items():
        if local_name(key) == name:
            return candidate
    return None
