#!/usr/bin/env python3

import pytest

from odata_api.services.domain.metadata import (
    MetadataParser,
    StructuralError,
    detect_metadata_version,
    parse_metadata,
)
from tests.fixtures.metadata_fixtures import (
    NO_SCHEMA_METADATA,
    SERVICE_DOCUMENT,
    UNQUALIFIED_METADATA,
    V2_METADATA,
    V3_METADATA,
    V4_METADATA,
)


def _assert_keys_are_properties(model):
    for entity_type in model.entity_types:
        for key in entity_type.keys:
            assert key in entity_type.properties, f"{entity_type.name}.{key}"


class TestStructuralErrors:
    """Test suite for documents that cannot yield a model"""

    def test_missing_root(self):
        with pytest.raises(StructuralError, match="Edmx"):
            parse_metadata(SERVICE_DOCUMENT)

    def test_missing_schema_blocks(self):
        with pytest.raises(StructuralError, match="Schema"):
            parse_metadata(NO_SCHEMA_METADATA)

    def test_invalid_xml(self):
        with pytest.raises(StructuralError, match="Invalid XML"):
            parse_metadata("<edmx:Edmx Version='4.0'><unclosed>")

    def test_empty_document(self):
        with pytest.raises(StructuralError):
            parse_metadata("   ")

    def test_json_is_not_metadata(self):
        with pytest.raises(StructuralError):
            parse_metadata('{"value": []}')


class TestV4Metadata:
    """Test suite for OData 4.0 documents (inline navigation types)"""

    @pytest.fixture
    def model(self):
        return parse_metadata(V4_METADATA)

    def test_version(self, model):
        assert model.version == "4.0"
        assert model.edmx_version == "4.0"
        assert model.is_modern

    def test_namespaces(self, model):
        assert model.namespaces == ("ODataDemo", "ODataDemo.Container")
        assert model.namespace == "ODataDemo"

    def test_entity_types(self, model):
        assert [t.name for t in model.entity_types] == ["Product", "Category", "Supplier"]

    def test_properties_and_nullability(self, model):
        product = model.get_entity_type("Product")

        assert product.property_names == ["ID", "Name", "Price", "ReleaseDate", "CategoryID"]
        assert product.keys == ("ID",)
        assert product.properties["ID"].type == "Edm.Int32"
        assert product.properties["ID"].nullable is False
        assert product.properties["Name"].nullable is True
        assert product.properties["Price"].nullable is False
        assert product.properties["ReleaseDate"].nullable is True

    def test_inline_navigation(self, model):
        product = model.get_entity_type("Product")
        category = model.get_entity_type("Category")

        assert product.navigation_properties["Category"].type == "ODataDemo.Category"
        assert product.navigation_properties["Category"].is_collection is False
        assert category.navigation_properties["Products"].type == "Collection(ODataDemo.Product)"
        assert category.navigation_properties["Products"].target_type == "Product"
        assert category.navigation_properties["Products"].is_collection is True

    def test_referential_constraint(self, model):
        constraint = model.get_entity_type("Product").navigation_properties["Category"].referential_constraint
        assert constraint.property == "CategoryID"
        assert constraint.referenced_property == "ID"

    def test_untyped_navigation_dropped(self, model):
        """Modern documents have no Associations to fall back on"""
        assert "Untyped" not in model.get_entity_type("Product").navigation_properties

    def test_entity_sets_from_separate_schema(self, model):
        assert [(s.name, s.entity_type_name) for s in model.entity_sets] == [
            ("Products", "Product"),
            ("Categories", "Category"),
            ("Suppliers", "Supplier"),
        ]
        assert model.entity_type_for_set("Categories").name == "Category"

    def test_keys_exist_in_properties(self, model):
        _assert_keys_are_properties(model)


class TestV2Metadata:
    """Test suite for OData 2.0 documents (Association backfill)"""

    @pytest.fixture
    def model(self):
        return parse_metadata(V2_METADATA)

    def test_version_from_data_service_version(self, model):
        assert model.version == "2.0"
        assert model.edmx_version == "1.0"
        assert not model.is_modern

    def test_dominant_namespace(self, model):
        assert model.namespace == "NorthwindModel"
        assert model.namespaces == ("NorthwindModel", "ODataWeb.Northwind.Model")

    def test_navigation_resolved_from_association(self, model):
        customer = model.get_entity_type("Customer")
        order = model.get_entity_type("Order")

        assert customer.navigation_properties["Orders"].type == "Collection(NorthwindModel.Order)"
        assert order.navigation_properties["Customer"].type == "NorthwindModel.Customer"

    def test_unknown_relationship_dropped(self, model):
        assert "Ghost" not in model.get_entity_type("Customer").navigation_properties

    def test_missing_role_dropped(self, model):
        assert "Shipper" not in model.get_entity_type("Order").navigation_properties

    def test_associations_not_retained_as_types(self, model):
        assert [t.name for t in model.entity_types] == ["Customer", "Order"]

    def test_entity_sets(self, model):
        assert [s.name for s in model.entity_sets] == ["Customers", "Orders"]
        assert model.entity_type_for_set("Orders").name == "Order"

    def test_keys_exist_in_properties(self, model):
        _assert_keys_are_properties(model)


class TestV3Metadata:
    """Test suite for OData 3.0 documents with aliases and forward references"""

    @pytest.fixture
    def model(self):
        return parse_metadata(V3_METADATA)

    def test_version(self, model):
        assert model.version == "3.0"

    def test_composite_key_order_preserved(self, model):
        assert model.get_entity_type("Account").keys == ("Region", "Number")

    def test_undeclared_key_dropped(self, model):
        _assert_keys_are_properties(model)

    def test_nullable_requires_exact_false(self, model):
        assert model.get_entity_type("Account").properties["Owner"].nullable is True

    def test_alias_qualified_relationship(self, model):
        nav = model.get_entity_type("Account").navigation_properties["Invoices"]
        assert nav.type == "Collection(Sales.Model.Invoice)"

    def test_bare_relationship(self, model):
        nav = model.get_entity_type("Account").navigation_properties["Primary"]
        assert nav.type == "Collection(Sales.Model.Invoice)"

    def test_foreign_qualifier_falls_back_to_bare_id(self, model):
        nav = model.get_entity_type("Invoice").navigation_properties["Account"]
        assert nav.type == "Sales.Model.Account"

    def test_inline_type_unaffected_by_association(self, model):
        """The association would make this a collection; the inline type wins"""
        nav = model.get_entity_type("Account").navigation_properties["Pinned"]
        assert nav.type == "Sales.Model.Invoice"
        assert nav.is_collection is False

    def test_sets_declared_before_types(self, model):
        assert [(s.name, s.entity_type_name) for s in model.entity_sets] == [
            ("Accounts", "Account"),
            ("Invoices", "Invoice"),
            ("Archive", "Account"),
        ]

    def test_set_with_unknown_type_dropped(self, model):
        assert model.get_entity_set("Orphans") is None


class TestUnqualifiedMetadata:
    """Test suite for documents without any namespaces"""

    def test_parses_without_namespaces(self):
        model = parse_metadata(UNQUALIFIED_METADATA)

        assert model.version == "4.0"
        assert model.namespace == "Plain"
        assert model.get_entity_type("Item").keys == ("Code",)
        assert model.entity_type_for_set("Items").name == "Item"


class TestDegradation:
    """Test suite for omission instead of failure"""

    def test_unnamed_and_duplicate_types(self):
        xml = '''<Edmx Version="4.0"><DataServices>
          <Schema Namespace="A">
            <EntityType><Property Name="X" Type="Edm.String"/></EntityType>
            <EntityType Name="Thing"><Property Name="First" Type="Edm.String"/></EntityType>
          </Schema>
          <Schema Namespace="B">
            <EntityType Name="Thing"><Property Name="Second" Type="Edm.String"/></EntityType>
            <EntityType Name="Other"/>
            <EntityType Name="More"/>
          </Schema>
        </DataServices></Edmx>'''
        model = parse_metadata(xml)

        assert [t.name for t in model.entity_types] == ["Thing", "Other", "More"]
        assert model.get_entity_type("B.Thing").property_names == ["First"]
        assert model.namespace == "B"

    def test_schema_without_types_or_sets(self):
        model = parse_metadata('<Edmx Version="4.0"><DataServices><Schema Namespace="Empty"/></DataServices></Edmx>')

        assert model.entity_types == ()
        assert model.entity_sets == ()
        assert model.namespace == "Empty"

    def test_missing_version(self):
        model = parse_metadata('<Edmx><DataServices><Schema Namespace="N"/></DataServices></Edmx>')
        assert model.version == "Unknown"

    def test_parser_counts_dropped_navigation(self):
        parser = MetadataParser()
        parser.parse(V2_METADATA)
        assert parser.dropped_navigation_count == 2


class TestDetectMetadataVersion:
    """Test suite for advisory $metadata detection"""

    @pytest.mark.parametrize("content,expected", [
        (V4_METADATA, "4.0"),
        (V2_METADATA, "1.0"),
        (UNQUALIFIED_METADATA, "4.0"),
        (SERVICE_DOCUMENT, None),
        ('<edmx:Edmx xmlns:edmx="http://docs.oasis-open.org/odata/ns/edmx" Version="9.9"/>', None),
        ('{"d": {"results": []}}', None),
        ("", None),
        (None, None),
    ])
    def test_detect(self, content, expected):
        assert detect_metadata_version(content) == expected
