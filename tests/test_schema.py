"""
Tests for the owner "add product" form schemas.
"""

import re

import pytest

from storefront.catalogue.base import IPHONE_MODELS, SAMSUNG_S_MODELS
from storefront.catalogue.merge import family_of
from storefront.catalogue.schema import (
    CATEGORY_SCHEMAS,
    MAX_SPECS,
    Category,
    FieldKind,
    build_product,
    default_form,
    normalize_group_label,
    phone_models_for,
    schema_for,
    validate_form,
)

FIXED_NOW = 1_700_000_000.0


class TestSchemaTable:
    def test_every_category_has_a_schema(self):
        assert set(CATEGORY_SCHEMAS) == set(Category)

    @pytest.mark.parametrize("category", list(Category))
    def test_name_and_specs_derive_from_default_form(self, category):
        schema = CATEGORY_SCHEMAS[category]
        form = default_form(category)
        assert isinstance(schema.name(form), str)
        assert len(schema.specs(form)) <= MAX_SPECS

    def test_free_text_category(self):
        assert schema_for("Gadgets") is None
        assert default_form("Gadgets") == {}

    def test_default_form(self):
        assert default_form("Phone Cases") == {"models": [], "material": "", "color": [], "pattern": ""}
        assert default_form(Category.BACK_GLASS)["adhesive"] is False


class TestValidateForm:
    def test_price_must_be_positive(self):
        assert validate_form("Gadgets", {}, 0) == ["Price must be greater than 0"]
        assert validate_form("Gadgets", {}, "abc") == ["Price must be greater than 0"]
        assert validate_form("Gadgets", {}, "4.5") == []

    def test_models_required(self):
        errors = validate_form("Phone Cases", {"models": []}, 5)
        assert errors == ["Please select at least one model"]

    def test_model_text_required(self):
        assert validate_form("Mobile Phones", {"model": "  "}, 5) == ["Model is required"]
        assert validate_form("Mobile Phones", {"model": "iPhone 13"}, 5) == []


class TestPhoneModels:
    def test_restricted_brands(self):
        face_id = schema_for("Face ID").must[0]
        assert face_id.kind == FieldKind.PHONE_MODELS
        assert phone_models_for(face_id, "Samsung S") == list(IPHONE_MODELS)

    def test_chosen_brand(self):
        models = schema_for("Phone Cases").must[0]
        assert phone_models_for(models, "Samsung S") == list(SAMSUNG_S_MODELS)


class TestBuildProduct:
    def test_phone_case(self):
        form = {"models": ["iPhone 13", "iPhone 13", " iPhone 14 "], "material": "TPU", "color": ["Black"], "pattern": ""}
        product = build_product("Phone Cases", form, sku="CS-1", price=4, clock=lambda: FIXED_NOW)
        assert product.id == f"owner-{int(FIXED_NOW * 1000)}"
        assert product.name == "Case – iPhone 13 (TPU)"
        assert product.sku == "CS-1"
        assert product.variants == {"Model": ["iPhone 13", "iPhone 14"], "Material": ["TPU"], "Color": ["Black"]}
        assert product.specs == ["TPU", "Black"]
        assert family_of(product) == "iPhone"

    def test_checkbox_becomes_yes(self):
        form = {"models": ["iPhone 13"], "colors": ["Black"], "adhesive": True, "rings": False}
        product = build_product(Category.BACK_GLASS, form, price=6)
        assert product.variants["Adhesive pre-installed"] == ["Yes"]
        assert "With camera rings" not in product.variants
        assert product.category == "Back Glass"

    def test_brand_group(self):
        form = {"models": ["Galaxy S24"], "grade": "OEM", "modelsBrand": "Samsung S"}
        product = build_product("Batteries", form, price=9)
        assert product.variants["Phone"] == ["Samsung S"]

    def test_defaults(self):
        product = build_product("Gadgets", {}, price=3, images=["a.png", "a.png", ""])
        assert product.name == "Gadgets item"
        assert re.fullmatch(r"SKU-[0-9A-F]{6}", product.sku)
        assert product.images == ["a.png"]
        assert product.variants == {}

    def test_generated_skus_differ(self):
        skus = {build_product("Gadgets", {}, price=3).sku for _ in range(20)}
        assert len(skus) == 20

    def test_explicit_name_wins(self):
        product = build_product("Chargers", {"wattage": "20W"}, name=" Fast charger ", price=9)
        assert product.name == "Fast charger"


class TestGroupLabels:
    def test_normalize_group_label(self):
        assert normalize_group_label("Phone models", "models") == "Model"
        assert normalize_group_label("Colour", "colour") == "Color"
        assert normalize_group_label(" Colors / finish ", "colors") == "Colors / finish"
