"""
Variant resolution: combination identity, expansion, price and stock.
"""
from storefront.variants.keys import BASE_KEY, normalize_selection, parse_variant_key, variant_key
from storefront.variants.combinations import Combination, combinations, option_groups
from storefront.variants.pricing import UNLIMITED, PriceRange, price_range, stock_ceiling, unit_price
from storefront.variants.stock import ClampResult, clamp_request, committed_elsewhere, find_stock_violations, remaining

__all__ = [
    "BASE_KEY",
    "variant_key",
    "parse_variant_key",
    "normalize_selection",
    "Combination",
    "combinations",
    "option_groups",
    "UNLIMITED",
    "PriceRange",
    "unit_price",
    "price_range",
    "stock_ceiling",
    "ClampResult",
    "remaining",
    "clamp_request",
    "committed_elsewhere",
    "find_stock_violations",
]
