"""
Storefront - catalogue variant resolution and merge engine

Turns a product's option groups into purchasable combinations, resolves
per-combination price and stock, merges the base catalogue with the
owner's overrides, and keeps the cart ledger that orders are sent from.
"""

from storefront.core.config import StorefrontConfig, get_config, set_config
from storefront.variants import (
    BASE_KEY,
    clamp_request,
    combinations,
    price_range,
    remaining,
    stock_ceiling,
    unit_price,
    variant_key,
)
from storefront.variants.picker import VariantPicker
from storefront.catalogue import OwnerCatalogue, Product, merged_catalogue
from storefront.cart import CartLedger, CartLine, submit_order

__all__ = [
    'StorefrontConfig',
    'get_config',
    'set_config',
    'BASE_KEY',
    'variant_key',
    'combinations',
    'unit_price',
    'price_range',
    'stock_ceiling',
    'remaining',
    'clamp_request',
    'VariantPicker',
    'Product',
    'merged_catalogue',
    'OwnerCatalogue',
    'CartLine',
    'CartLedger',
    'submit_order',
]

__version__ = '0.1.0'
