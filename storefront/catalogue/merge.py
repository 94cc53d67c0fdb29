"""
Merge the base catalogue with the owner layer and index the result.

Owner records come in three shapes:

* no ``source_id``: a brand-new product, listed ahead of the base catalogue
* ``source_id`` set, not hidden: an override that replaces the referenced
  product and is listed under its own id
* ``source_id`` set, hidden: a hide, which removes the referenced product
  and produces no row of its own

The merged list is recomputed from both inputs every time; nothing here
mutates either of them.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set

from storefront.catalogue.base import ALL_CATEGORY, CATEGORIES
from storefront.catalogue.models import Product
from storefront.catalogue.settings import ALL_FAMILIES, DEFAULT_FAMILY, CatalogueConfig, is_config_record
from storefront.core.config import get_config
from storefront.utils.logger import get_logger

logger = get_logger("catalogue.merge")


class MergeInvariantError(AssertionError):
    """The merged catalogue broke one of its structural guarantees."""


def _violation(message: str, strict: bool) -> None:
    if strict:
        raise MergeInvariantError(message)
    logger.error(f"Catalogue merge invariant violated: {message}")


def _newer(candidate: Product, current: Product) -> bool:
    if candidate.updated_at is None or current.updated_at is None:
        return False
    return candidate.updated_at > current.updated_at


def _dedupe(records: Iterable[Product]) -> List[Product]:
    """One record per id; a later duplicate only wins when it is strictly newer."""
    by_id: Dict[str, Product] = {}
    order: List[str] = []
    for record in records:
        if record is None or is_config_record(record):
            continue
        if record.id not in by_id:
            by_id[record.id] = record
            order.append(record.id)
        elif _newer(record, by_id[record.id]):
            by_id[record.id] = record
    return [by_id[record_id] for record_id in order]


def find_override_cycles(records: Sequence[Product]) -> Set[str]:
    """Ids of owner records whose ``source_id`` chain loops back on itself."""
    sources = {r.id: r.source_id for r in records if r.source_id and r.source_id != r.id}
    in_cycle: Set[str] = set()
    for start in sources:
        seen = []
        current: Optional[str] = start
        while current in sources and current not in seen:
            seen.append(current)
            current = sources[current]
        if current in seen:
            in_cycle.update(seen[seen.index(current):])
    return in_cycle


def merged_catalogue(
    base: Sequence[Product],
    owner_records: Iterable[Product],
    strict: Optional[bool] = None,
) -> List[Product]:
    """
    The effective product list: new owner products first, then the base
    products that survived, then overrides.

    Args:
        base: the immutable base catalogue, in display order
        owner_records: the owner layer (the config sentinel is ignored)
        strict: raise ``MergeInvariantError`` on violations instead of
            logging them; defaults to the ``strict_invariants`` setting

    Returns:
        A new list; every id appears exactly once.
    """
    if strict is None:
        strict = get_config().strict_invariants

    records = _dedupe(owner_records)
    cycles = find_override_cycles(records)
    if cycles:
        _violation(f"cyclic override reference between {sorted(cycles)}", strict)

    working: Dict[str, Product] = {}
    for product in base:
        if product.id in working:
            _violation(f"duplicate base id {product.id!r}", strict)
            continue
        working[product.id] = product

    new_products: List[Product] = []
    overrides: List[Product] = []
    claimed: Dict[str, str] = {}
    for record in records:
        if not record.source_id:
            new_products.append(record)
            continue
        if record.source_id in claimed:
            # Two overrides for one product: the first (newest-first order) stays.
            _violation(
                f"{record.id!r} and {claimed[record.source_id]!r} both override {record.source_id!r}",
                strict,
            )
            continue
        claimed[record.source_id] = record.id
        working.pop(record.source_id, None)
        if not record.hidden:
            overrides.append(record)

    # Overrides chained onto owner records supersede them too (cycles excepted).
    superseded = {
        r.source_id for r in records
        if r.source_id and r.source_id != r.id and r.id not in cycles and r.source_id not in working
    }
    owner_rows = [
        r for r in new_products + overrides
        if r.id not in superseded or r.id in cycles
    ]

    for row in owner_rows:
        if row.id in working:
            _violation(f"owner record {row.id!r} shares an id with a base product", strict)
            working.pop(row.id)

    new_rows = [r for r in owner_rows if not r.source_id]
    override_rows = [r for r in owner_rows if r.source_id]
    merged = new_rows + list(working.values()) + override_rows
    logger.debug(
        f"Merged catalogue: {len(new_rows)} new, {len(working)} base, {len(override_rows)} overrides"
    )
    return merged


def infer_family(product: Product) -> str:
    """Family from the Model option values; Accessories when nothing matches."""
    models = [str(m or "").lower() for m in product.variants.get("Model", [])]
    if any(m.startswith("iphone") for m in models):
        return "iPhone"
    if any(m.startswith("galaxy a") for m in models):
        return "Samsung A"
    if any(m.startswith("galaxy s") for m in models):
        return "Samsung S"
    return DEFAULT_FAMILY


def family_of(product: Product) -> str:
    return product.family or infer_family(product)


@dataclass
class CategoryIndex:
    """Categories present per family, plus across all families."""
    by_family: Dict[str, Set[str]] = field(default_factory=dict)
    all: Set[str] = field(default_factory=set)

    def categories_for(self, family: str) -> Set[str]:
        if not family or family == ALL_FAMILIES:
            return set(self.all)
        return set(self.by_family.get(family, set()))


def category_index(products: Iterable[Product]) -> CategoryIndex:
    index = CategoryIndex()
    for product in products:
        if product is None or is_config_record(product):
            continue
        category = (product.category or "").strip()
        if not category or category == ALL_CATEGORY:
            continue
        index.by_family.setdefault(family_of(product), set()).add(category)
        index.all.add(category)
    return index


def visible_categories(
    index: CategoryIndex,
    config: Optional[CatalogueConfig] = None,
    family: str = ALL_FAMILIES,
) -> List[str]:
    """
    Category chips for the active family: "All", then configured categories
    that have products, then any other present categories alphabetically.
    """
    order = config.category_order() if config else list(CATEGORIES)
    present = index.categories_for(family)
    ordered = [category for category in order if category in present]
    extras = sorted((c for c in present if c not in order), key=str.casefold)
    return [ALL_CATEGORY] + ordered + extras


def filter_products(
    products: Iterable[Product],
    family: str = ALL_FAMILIES,
    category: str = ALL_CATEGORY,
    search: str = "",
) -> List[Product]:
    needle = (search or "").strip().lower()
    result = []
    for product in products:
        if family and family != ALL_FAMILIES and family_of(product) != family:
            continue
        if category and category != ALL_CATEGORY and product.category != category:
            continue
        if needle and not any(
            needle in (text or "").lower()
            for text in (product.name, product.sku, product.description)
        ):
            continue
        result.append(product)
    return result


def product_lookup(products: Iterable[Product]) -> Dict[str, Product]:
    return {product.id: product for product in products if product is not None and product.id}
