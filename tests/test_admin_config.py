from datetime import datetime

import pytest

import catalog
from database import ADMIN_COLLECTION, DEFAULT_ADMIN_ID
from errors import ConfigNotFound
from schemas import AdminConfig, parse_price


def _store(admin_db, **fields):
    admin_db[ADMIN_COLLECTION].insert_one({"userId": DEFAULT_ADMIN_ID, **fields})


class TestParsePrice:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("5.5", 5.5),
            (12, 12.0),
            ("  7.25 USD", 7.25),
            (".5", 0.5),
            ("n/a", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parse_price(self, raw, expected):
        assert parse_price(raw) == expected


class TestDynamicProductFeed:
    def test_discount_price_card(self, admin_db):
        _store(admin_db, dynamicFields={"productCards": [{"productName": "X", "discountPrice": "5.5"}]})

        products = catalog.get_dynamic_product_feed(admin_db, DEFAULT_ADMIN_ID)

        assert len(products) == 1
        product = products[0]
        assert product["name"] == "X"
        assert product["price"] == 5.5
        assert product["category"] == "General"
        assert product["inStock"] is True

    def test_fallbacks_for_bare_cards(self, admin_db):
        _store(admin_db, dynamicFields={"productCards": [{}, {"name": "Plain", "price": "oops"}]})

        first, second = catalog.get_dynamic_product_feed(admin_db, DEFAULT_ADMIN_ID)

        assert first["id"] == "product_0"
        assert first["name"] == "Unknown Product"
        assert first["price"] == 0
        assert first["description"] == ""
        assert first["image"] == ""
        assert second["id"] == "product_1"
        assert second["name"] == "Plain"
        assert second["productName"] == "Plain"
        assert second["price"] == 0

    def test_price_wins_over_discount_price(self, admin_db):
        _store(admin_db, dynamicFields={"productCards": [{"id": "sku-1", "price": "20", "discountPrice": 15}]})

        (product,) = catalog.get_dynamic_product_feed(admin_db, DEFAULT_ADMIN_ID)

        assert product["id"] == "sku-1"
        assert product["price"] == 20.0
        assert product["discountPrice"] == 15.0

    def test_extra_fields_pass_through(self, admin_db):
        card = {"productName": "Y", "price": 3, "rating": 4.5, "badge": "new", "inStock": False}
        _store(admin_db, dynamicFields={"productCards": [card]})

        (product,) = catalog.get_dynamic_product_feed(admin_db, DEFAULT_ADMIN_ID)

        assert product["rating"] == 4.5
        assert product["badge"] == "new"
        assert product["inStock"] is True

    def test_zero_price_falls_back_to_discount_price(self, admin_db):
        _store(admin_db, dynamicFields={"productCards": [{"productName": "Z", "price": 0, "discountPrice": "5"}]})

        (product,) = catalog.get_dynamic_product_feed(admin_db, DEFAULT_ADMIN_ID)

        assert product["price"] == 5.0
        assert product["discountPrice"] == 5.0

    def test_non_object_cards_get_placeholders(self, admin_db):
        _store(admin_db, dynamicFields={"productCards": ["loose", {"name": "Real"}]})

        first, second = catalog.get_dynamic_product_feed(admin_db, DEFAULT_ADMIN_ID)

        assert first["id"] == "product_0"
        assert first["name"] == "Unknown Product"
        assert second["name"] == "Real"

    def test_no_cards(self, admin_db):
        _store(admin_db, shopName="Empty")

        assert catalog.get_dynamic_product_feed(admin_db, DEFAULT_ADMIN_ID) == []

    def test_missing_admin_document(self, admin_db):
        with pytest.raises(ConfigNotFound, match="Admin configuration not found"):
            catalog.get_dynamic_product_feed(admin_db, DEFAULT_ADMIN_ID)

    def test_other_admins_are_ignored(self, admin_db):
        admin_db[ADMIN_COLLECTION].insert_one({"userId": "someone-else", "dynamicFields": {"productCards": [{}]}})

        with pytest.raises(ConfigNotFound):
            catalog.get_dynamic_product_feed(admin_db, DEFAULT_ADMIN_ID)


class TestAppConfig:
    def test_defaults(self, admin_db):
        _store(admin_db)

        config = catalog.get_app_config(admin_db, DEFAULT_ADMIN_ID)

        assert config["adminId"] == DEFAULT_ADMIN_ID
        assert config["shopName"] == "Bunny Shop"
        assert config["appName"] == "Bunny Shop"
        assert config["theme"] == {
            "primaryColor": "#2196F3",
            "secondaryColor": "#FF9800",
            "backgroundColor": "#FFFFFF",
            "textColor": "#000000",
        }
        assert config["storeInfo"] == {}
        assert config["gstNumber"] == "18"
        assert isinstance(config["lastUpdated"], str)

    def test_features_are_always_enabled(self, admin_db):
        _store(admin_db, features={"wishlistEnabled": False})

        config = catalog.get_app_config(admin_db, DEFAULT_ADMIN_ID)

        assert config["features"] == {
            "searchEnabled": True,
            "cartEnabled": True,
            "userRegistrationEnabled": True,
            "orderTrackingEnabled": True,
            "wishlistEnabled": True,
        }

    def test_values_from_admin_document(self, admin_db):
        theme = {"primaryColor": "#000", "secondaryColor": "#111", "backgroundColor": "#222", "textColor": "#333"}
        _store(
            admin_db,
            shopName="Carrot Corner",
            appName="Carrots",
            updatedAt=datetime(2024, 5, 1, 12, 30),
            designSettings={"theme": theme},
            dynamicFields={"storeInfo": {"phone": "123"}, "gstNumber": "29ABCDE1234F1Z5"},
        )

        config = catalog.get_app_config(admin_db, DEFAULT_ADMIN_ID)

        assert config["shopName"] == "Carrot Corner"
        assert config["appName"] == "Carrots"
        assert config["lastUpdated"].startswith("2024-05-01T12:30:00")
        assert config["theme"] == theme
        assert config["storeInfo"] == {"phone": "123"}
        assert config["gstNumber"] == "29ABCDE1234F1Z5"

    def test_free_form_theme_and_store_info_are_passed_through(self, admin_db):
        _store(admin_db, designSettings={"theme": "dark"}, dynamicFields={"storeInfo": "Open 9-5"})

        config = catalog.get_app_config(admin_db, DEFAULT_ADMIN_ID)

        assert config["theme"] == "dark"
        assert config["storeInfo"] == "Open 9-5"

    def test_non_object_sections_use_defaults(self, admin_db):
        _store(admin_db, designSettings="classic", dynamicFields=["unexpected"])

        config = catalog.get_app_config(admin_db, DEFAULT_ADMIN_ID)

        assert config["theme"]["primaryColor"] == "#2196F3"
        assert config["storeInfo"] == {}
        assert config["gstNumber"] == "18"
        assert catalog.get_dynamic_product_feed(admin_db, DEFAULT_ADMIN_ID) == []

    def test_empty_values_fall_back_to_defaults(self):
        config = AdminConfig.model_validate({"shopName": "", "designSettings": {"theme": {}}, "dynamicFields": {"gstNumber": ""}})

        assert config.resolved_shop_name == "Bunny Shop"
        assert config.theme["primaryColor"] == "#2196F3"
        assert config.gst_number == "18"

    def test_missing_admin_document(self, admin_db):
        with pytest.raises(ConfigNotFound):
            catalog.get_app_config(admin_db, DEFAULT_ADMIN_ID)
