#!/usr/bin/env python3
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / 'api' / 'src'))

from odata_api.services.domain.metadata import MetadataParser

xml_path = Path(sys.argv[1] if len(sys.argv) > 1 else 'metadata.xml')

# Parse the $metadata document and dump what the explorer would show
model = MetadataParser().parse_file(xml_path)

print("=== SCHEMA MODEL ===")
print(f"Namespace: {model.namespace}")
print(f"Version: {model.version} (edmx {model.edmx_version or '-'})")
print(f"Schemas: {', '.join(model.namespaces)}")

print(f"\n=== ENTITY SETS ({len(model.entity_sets)}) ===")
for entity_set in model.entity_sets:
    print(f"  {entity_set.name} -> {entity_set.entity_type_name}")

print(f"\n=== ENTITY TYPES ({len(model.entity_types)}) ===")
for entity_type in model.entity_types:
    print(f"  {entity_type.qualified_name} key=({', '.join(entity_type.keys)})")
    for prop in entity_type.properties.values():
        marker = "" if prop.nullable else " NOT NULL"
        print(f"    {prop.name}: {prop.type}{marker}")
    for nav in entity_type.navigation_properties.values():
        many = "*" if nav.is_collection else "1"
        print(f"    -> {nav.name}: {nav.target_type} [{many}]")
