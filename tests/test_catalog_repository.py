"""Tests for the JSON catalog file store."""

import json
from decimal import Decimal

import pytest

from velvet_vogue.common.errors import PersistenceError, ValidationError
from velvet_vogue.services import CatalogRepository, next_product_id


class TestNextProductId:
    def test_empty_catalog(self):
        assert next_product_id([]) == "VV001"

    def test_one_past_highest(self):
        assert next_product_id(["VV001", "VV009", "VV003"]) == "VV010"

    def test_ignores_foreign_ids(self):
        assert next_product_id(["legacy-7", "", None, "VV002"]) == "VV003"

    def test_grows_past_three_digits(self):
        assert next_product_id(["VV999"]) == "VV1000"

    def test_respects_last_issued_sequence(self):
        assert next_product_id(["VV001", "VV002"], last_seq=9) == "VV010"
        assert next_product_id(["VV012"], last_seq=9) == "VV013"


class TestLoad:
    def test_seed_catalog(self, catalog_repo):
        products = catalog_repo.load_products()

        assert [p.id for p in products] == ["VV001", "VV002", "VV003", "VV004", "VV005", "VV006"]
        assert products[0].price == Decimal("89.99")
        assert "dresses" in products[0].category

    def test_categories(self, catalog_repo):
        ids = [c.id for c in catalog_repo.load_categories()]

        assert "women" in ids
        assert "accessories" in ids

    def test_missing_file_is_empty(self, tmp_path):
        repo = CatalogRepository(tmp_path / "nope.json")

        assert repo.load_products() == []
        assert repo.load_categories() == []

    def test_corrupt_file_raises(self, tmp_path):
        target = tmp_path / "products.json"
        target.write_text("{not json", encoding="utf-8")

        with pytest.raises(PersistenceError):
            CatalogRepository(target).load_products()

    def test_get_product(self, catalog_repo):
        assert catalog_repo.get_product("VV004").name == "Silk Scarf"
        assert catalog_repo.get_product("VV404") is None


class TestWrite:
    def test_add_product_assigns_next_id(self, catalog_repo):
        product = catalog_repo.add_product(
            {"name": "Linen Trousers", "price": "39.99", "category": ["men"], "stock": 5}
        )

        assert product.id == "VV007"
        assert product.created_at
        assert catalog_repo.get_product("VV007") == product

    def test_add_product_requires_name(self, catalog_repo):
        with pytest.raises(ValidationError):
            catalog_repo.add_product({"name": "  ", "price": "10"})

    def test_add_product_rejects_bad_price(self, catalog_repo):
        with pytest.raises(ValidationError):
            catalog_repo.add_product({"name": "Hat", "price": "cheap"})

        assert catalog_repo.get_product("VV007") is None

    def test_delete_product(self, catalog_repo):
        assert catalog_repo.delete_product("VV002") is True
        assert catalog_repo.get_product("VV002") is None
        assert catalog_repo.delete_product("VV002") is False

    def test_deleting_a_middle_product_keeps_sequence(self, catalog_repo):
        catalog_repo.delete_product("VV003")

        assert catalog_repo.add_product({"name": "Cap", "price": 12}).id == "VV007"

    def test_highest_id_is_not_reused_after_delete(self, catalog_repo):
        catalog_repo.delete_product("VV006")

        assert catalog_repo.add_product({"name": "Cap", "price": 12}).id == "VV007"

    def test_sequence_survives_deleting_new_product(self, catalog_repo, catalog_file):
        added = catalog_repo.add_product({"name": "Cap", "price": 12})
        catalog_repo.delete_product(added.id)

        assert json.loads(catalog_file.read_text(encoding="utf-8"))["lastProductSeq"] == 7
        assert CatalogRepository(catalog_file).add_product({"name": "Belt", "price": 19}).id == "VV008"

    def test_invalid_sequence_marker(self, catalog_file):
        document = json.loads(catalog_file.read_text(encoding="utf-8"))
        document["lastProductSeq"] = "seven"
        catalog_file.write_text(json.dumps(document), encoding="utf-8")

        with pytest.raises(PersistenceError):
            CatalogRepository(catalog_file).load_products()

    def test_write_keeps_categories_and_unknown_fields(self, catalog_file):
        document = json.loads(catalog_file.read_text(encoding="utf-8"))
        document["products"][0]["material"] = "velvet"
        catalog_file.write_text(json.dumps(document), encoding="utf-8")
        repo = CatalogRepository(catalog_file)

        repo.add_product({"name": "Belt", "price": "19.00"})

        written = json.loads(catalog_file.read_text(encoding="utf-8"))
        assert [c["id"] for c in written["categories"]] == [c["id"] for c in document["categories"]]
        assert written["products"][0]["material"] == "velvet"
        assert written["products"][-1]["price"] == "19.00"

    def test_write_leaves_no_temp_files(self, catalog_repo, catalog_file):
        catalog_repo.add_product({"name": "Belt", "price": "19.00"})

        leftovers = [p.name for p in catalog_file.parent.iterdir() if p.name.startswith(".catalog-")]
        assert leftovers == []
