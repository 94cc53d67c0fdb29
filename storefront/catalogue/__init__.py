"""
Catalogue: product model, base catalogue, owner layer and the merge
that turns them into the list customers browse.
"""
from storefront.catalogue.models import ChangeEvent, ChangeKind, Product
from storefront.catalogue.settings import CatalogueConfig, default_catalogue_config
from storefront.catalogue.merge import (
    CategoryIndex,
    MergeInvariantError,
    category_index,
    family_of,
    filter_products,
    merged_catalogue,
    product_lookup,
    visible_categories,
)
from storefront.catalogue.owner_records import apply_event
from storefront.catalogue.owner_service import OwnerCatalogue, SaveResult

__all__ = [
    "Product",
    "ChangeEvent",
    "ChangeKind",
    "CatalogueConfig",
    "default_catalogue_config",
    "CategoryIndex",
    "MergeInvariantError",
    "merged_catalogue",
    "family_of",
    "category_index",
    "visible_categories",
    "filter_products",
    "product_lookup",
    "apply_event",
    "OwnerCatalogue",
    "SaveResult",
]
