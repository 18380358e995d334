#!/usr/bin/env python3

import defusedxml.ElementTree as ET
import pytest

from odata_api.services.domain.metadata.associations import AssociationResolver
from odata_api.services.domain.metadata.locator import find_by_local_name


def _schemas(xml):
    return find_by_local_name(ET.fromstring(xml), "Schema")


class TestAssociationResolver:
    """Test suite for legacy Association lookup tables"""

    @pytest.fixture
    def resolver(self):
        xml = '''<edmx:Edmx xmlns:edmx="http://schemas.microsoft.com/ado/2007/06/edmx" Version="1.0">
          <edmx:DataServices>
            <Schema Namespace="Shop.Model" Alias="Self" xmlns="http://schemas.microsoft.com/ado/2008/09/edm">
              <Association Name="Order_Lines">
                <End Role="Order" Type="Shop.Model.Order" Multiplicity="1"/>
                <End Role="Lines" Type="Shop.Model.OrderLine" Multiplicity="*"/>
              </Association>
              <Association Name="Order_Invoice">
                <End Role="Order" Type="Shop.Model.Order" Multiplicity="1"/>
                <End Role="Invoice" Type="Shop.Model.Invoice" Multiplicity="0..1"/>
              </Association>
              <Association Name="OneEnded">
                <End Role="Only" Type="Shop.Model.Order" Multiplicity="1"/>
              </Association>
              <Association Name="Untyped">
                <End Role="A" Multiplicity="1"/>
                <End Role="B" Type="Shop.Model.Order" Multiplicity="*"/>
              </Association>
              <Association>
                <End Role="A" Type="Shop.Model.Order" Multiplicity="1"/>
                <End Role="B" Type="Shop.Model.Order" Multiplicity="1"/>
              </Association>
            </Schema>
          </edmx:DataServices>
        </edmx:Edmx>'''
        return AssociationResolver.from_schemas(_schemas(xml))

    def test_many_end_resolves_to_collection(self, resolver):
        assert resolver.resolve("Shop.Model.Order_Lines", "Lines") == "Collection(Shop.Model.OrderLine)"

    def test_single_end_resolves_to_bare_type(self, resolver):
        assert resolver.resolve("Shop.Model.Order_Lines", "Order") == "Shop.Model.Order"
        assert resolver.resolve("Shop.Model.Order_Invoice", "Invoice") == "Shop.Model.Invoice"

    def test_alias_qualified_id(self, resolver):
        assert resolver.resolve("Self.Order_Lines", "Lines") == "Collection(Shop.Model.OrderLine)"

    def test_bare_id_fallback(self, resolver):
        """Unknown qualifier falls back to the namespace-stripped name"""
        assert resolver.resolve("Legacy.Namespace.Order_Invoice", "Order") == "Shop.Model.Order"
        assert resolver.resolve("Order_Invoice", "Invoice") == "Shop.Model.Invoice"

    def test_unknown_relationship(self, resolver):
        assert resolver.resolve("Shop.Model.Nope", "Order") is None

    def test_unknown_role(self, resolver):
        assert resolver.resolve("Shop.Model.Order_Lines", "Customer") is None

    def test_missing_references(self, resolver):
        assert resolver.resolve(None, "Order") is None
        assert resolver.resolve("Shop.Model.Order_Lines", None) is None

    def test_malformed_associations_skipped(self, resolver):
        assert resolver.resolve("Shop.Model.OneEnded", "Only") is None
        assert resolver.resolve("Shop.Model.Untyped", "B") is None
        assert len(resolver) == 2

    def test_first_declaration_wins_across_schemas(self):
        xml = '''<Edmx Version="1.0"><DataServices>
          <Schema Namespace="First">
            <Association Name="Link">
              <End Role="From" Type="First.A" Multiplicity="1"/>
              <End Role="To" Type="First.B" Multiplicity="1"/>
            </Association>
          </Schema>
          <Schema Namespace="Second">
            <Association Name="Link">
              <End Role="From" Type="Second.A" Multiplicity="1"/>
              <End Role="To" Type="Second.B" Multiplicity="*"/>
            </Association>
          </Schema>
        </DataServices></Edmx>'''
        resolver = AssociationResolver.from_schemas(_schemas(xml))

        assert resolver.resolve("Second.Link", "To") == "Collection(Second.B)"
        assert resolver.resolve("First.Link", "To") == "First.B"
        assert resolver.resolve("Third.Link", "To") == "First.B"
