"""
Catalogue configuration stored as a sentinel product record.

The owner layer carries one special row (id ``__catalog_config__``) whose
``variants["__config"]`` holds the category order, the family -> model
table and per-category grouping directives. It is data: a missing or
malformed config falls back to the defaults field by field and never
raises.
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from storefront.catalogue.base import ALL_CATEGORY, CATEGORIES, IPHONE_MODELS, SAMSUNG_A_MODELS, SAMSUNG_S_MODELS
from storefront.catalogue.models import Product
from storefront.utils.logger import get_logger

logger = get_logger("catalogue.settings")

CONFIG_PRODUCT_ID = "__catalog_config__"
CONFIG_VARIANT_LABEL = "__config"

ALL_FAMILIES = "All"
DEFAULT_FAMILY = "Accessories"


class FamilyConfig(BaseModel):
    id: str = ""
    name: str = ""
    models: List[str] = Field(default_factory=list)


class CatalogueConfig(BaseModel):
    """Versioned catalogue configuration (camelCase aliases match the stored JSON)."""
    model_config = ConfigDict(populate_by_name=True)

    version: int = 1
    categories: List[str] = Field(default_factory=list)
    families: List[FamilyConfig] = Field(default_factory=list)
    groups_by_category: Dict[str, Any] = Field(default_factory=dict, alias="groupsByCategory")
    group_overrides_by_category_family: Dict[str, Any] = Field(
        default_factory=dict, alias="groupOverridesByCategoryFamily"
    )
    group_hidden_by_category_family: Dict[str, Any] = Field(
        default_factory=dict, alias="groupHiddenByCategoryFamily"
    )

    @classmethod
    def from_raw(cls, raw: Any) -> "CatalogueConfig":
        """Merge a stored config against the defaults, one field at a time."""
        config = default_catalogue_config()
        if not isinstance(raw, Mapping):
            if raw is not None:
                logger.warning(f"Ignoring malformed catalogue config of type {type(raw).__name__}")
            return config

        version = raw.get("version")
        if isinstance(version, int) and not isinstance(version, bool):
            config.version = version

        categories = raw.get("categories")
        if isinstance(categories, list):
            config.categories = [str(c).strip() for c in categories if c and str(c).strip()]

        families = raw.get("families")
        if isinstance(families, list):
            parsed = []
            for entry in families:
                if not isinstance(entry, Mapping):
                    continue
                models = entry.get("models")
                parsed.append(FamilyConfig(
                    id=str(entry.get("id") or ""),
                    name=str(entry.get("name") or "").strip(),
                    models=[str(m).strip() for m in models if str(m).strip()] if isinstance(models, list) else [],
                ))
            config.families = parsed

        for field_name, alias in (
            ("groups_by_category", "groupsByCategory"),
            ("group_overrides_by_category_family", "groupOverridesByCategoryFamily"),
            ("group_hidden_by_category_family", "groupHiddenByCategoryFamily"),
        ):
            value = raw.get(alias, raw.get(field_name))
            setattr(config, field_name, dict(value) if isinstance(value, Mapping) else {})
        return config

    def to_raw(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    def category_order(self) -> List[str]:
        return list(self.categories) if self.categories else list(CATEGORIES)


def default_catalogue_config() -> CatalogueConfig:
    return CatalogueConfig(
        version=1,
        categories=list(CATEGORIES),
        families=[
            FamilyConfig(id="iphone", name="iPhone", models=list(IPHONE_MODELS)),
            FamilyConfig(id="samsung_s", name="Samsung S", models=list(SAMSUNG_S_MODELS)),
            FamilyConfig(id="samsung_a", name="Samsung A", models=list(SAMSUNG_A_MODELS)),
            FamilyConfig(id="accessories", name=DEFAULT_FAMILY, models=[]),
        ],
    )


def is_config_record(product: Any) -> bool:
    return getattr(product, "id", None) == CONFIG_PRODUCT_ID


def config_from_records(records: Iterable[Product]) -> CatalogueConfig:
    """Config carried by the sentinel record, or the defaults when there is none."""
    for record in records or []:
        if is_config_record(record):
            return CatalogueConfig.from_raw(record.meta_variants.get(CONFIG_VARIANT_LABEL))
    return default_catalogue_config()


def config_record(config: CatalogueConfig) -> Product:
    """Sentinel record that persists ``config`` alongside the owner products."""
    return Product(
        id=CONFIG_PRODUCT_ID,
        name="Catalogue configuration",
        category="__config",
        meta_variants={CONFIG_VARIANT_LABEL: config.to_raw()},
    )


def family_names(config: Optional[CatalogueConfig]) -> List[str]:
    """Family filter options: "All" then each configured family once."""
    names: List[str] = []
    for family in (config.families if config else []):
        name = family.name.strip()
        if name and name not in names:
            names.append(name)
    if not names:
        names = [family.name for family in default_catalogue_config().families]
    return [ALL_FAMILIES] + names


def family_models(config: Optional[CatalogueConfig], family: str) -> List[str]:
    """Models offered for a family: configured list first, built-in list by name otherwise."""
    name = str(family or "").strip()
    for entry in (config.families if config else []):
        if entry.name.strip() == name and entry.models:
            return list(entry.models)
    lower = name.lower()
    if "iphone" in lower:
        return list(IPHONE_MODELS)
    if "samsung s" in lower:
        return list(SAMSUNG_S_MODELS)
    if "samsung a" in lower:
        return list(SAMSUNG_A_MODELS)
    return list(IPHONE_MODELS) + list(SAMSUNG_S_MODELS) + list(SAMSUNG_A_MODELS)


def category_options(config: Optional[CatalogueConfig], current: str = "") -> List[str]:
    """Owner form category choices, keeping a free-text category that is not configured."""
    base = config.category_order() if config else list(CATEGORIES)
    options = [ALL_CATEGORY] + base
    current = str(current or "").strip()
    if current and current != ALL_CATEGORY and current not in base:
        options.append(current)
    return options
