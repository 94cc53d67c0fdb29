"""
Catalogue entities: Product and the change events the remote store pushes.

Persistence rows carry two pieces of metadata inside generic fields: the
family tag as a ``__family:<name>`` spec string and price overrides under
the reserved ``__prices`` variant label. Products expose both as typed
fields (``family``, ``price_overrides``); ``Product.from_row`` and
``Product.to_row`` translate between the two shapes.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from storefront.utils.logger import get_logger
from storefront.variants.combinations import RESERVED_PREFIX, option_groups
from storefront.variants.pricing import canonicalize_keys, coerce_price, normalize_inventory, normalize_price_overrides

logger = get_logger("catalogue.models")

META_FAMILY_PREFIX = "__family:"
PRICE_OVERRIDES_LABEL = "__prices"

_TEXT_FIELDS = ("id", "name", "sku", "category", "description")


def _to_list(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None and str(item) != ""]
    if isinstance(value, str) and value.strip():
        return [value]
    return []


def _epoch_to_datetime(value: Any) -> Any:
    if value in (None, ""):
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Millisecond epochs are what browsers write.
        seconds = value / 1000 if value > 1e11 else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    return value


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _split_specs(specs: List[str]) -> Tuple[List[str], List[str], Optional[str]]:
    """Separate display specs from metadata specs and pull out the family tag."""
    plain, meta = [], []
    family = None
    for spec in specs:
        if spec.startswith(META_FAMILY_PREFIX):
            if family is None:
                family = spec[len(META_FAMILY_PREFIX):].strip() or None
        elif spec.startswith(RESERVED_PREFIX):
            meta.append(spec)
        else:
            plain.append(spec)
    return plain, meta, family


class Product(BaseModel):
    """
    One catalogue entry: a base product, an owner-added product, or an
    owner override/hide of a base product (``source_id`` set).
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    sku: str = ""
    category: str = ""
    price: float = 0.0
    description: str = ""
    images: List[str] = Field(default_factory=list)
    specs: List[str] = Field(default_factory=list)
    variants: Dict[str, List[str]] = Field(default_factory=dict)
    inventory: Dict[str, int] = Field(default_factory=dict)
    price_overrides: Dict[str, float] = Field(default_factory=dict)
    family: Optional[str] = None
    source_id: Optional[str] = None
    hidden: bool = False
    meta_specs: List[str] = Field(default_factory=list)
    meta_variants: Dict[str, Any] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        data = dict(data)

        for name in _TEXT_FIELDS:
            if data.get(name) is not None and not isinstance(data[name], str):
                data[name] = str(data[name])
            elif name != "id" and data.get(name) is None:
                data.pop(name, None)

        data["price"] = coerce_price(data.get("price"))
        data["images"] = _to_list(data.get("images"))

        specs, meta_specs, family = _split_specs(_to_list(data.get("specs")))
        data["specs"] = specs
        data["meta_specs"] = _to_list(data.get("meta_specs")) + meta_specs
        if not data.get("family") and family:
            data["family"] = family

        overrides = dict(normalize_price_overrides(data.get("price_overrides")))
        meta_variants = dict(data.get("meta_variants") or {})
        raw_variants = data.get("variants")
        variants: Dict[str, List[str]] = {}
        if isinstance(raw_variants, Mapping):
            for label, values in raw_variants.items():
                label = str(label)
                if label == PRICE_OVERRIDES_LABEL:
                    overrides.update(normalize_price_overrides(values))
                elif label.startswith(RESERVED_PREFIX):
                    meta_variants[label] = values
            variants = option_groups(raw_variants)
        data["variants"] = variants
        data["price_overrides"] = canonicalize_keys(overrides, variants)
        data["meta_variants"] = meta_variants

        data["inventory"] = canonicalize_keys(normalize_inventory(data.get("inventory")), variants)
        data["hidden"] = bool(data.get("hidden"))
        source = data.get("source_id")
        data["source_id"] = str(source).strip() if source not in (None, "") else None
        family_value = data.get("family")
        data["family"] = str(family_value).strip() if family_value not in (None, "") else None
        return data

    @field_validator("updated_at", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Any:
        return _epoch_to_datetime(value)

    @field_validator("updated_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    @model_validator(mode="after")
    def _hidden_requires_source(self) -> "Product":
        if self.hidden and not self.source_id:
            logger.warning(f"Ignoring hidden flag on {self.id}: no source product")
            self.hidden = False
        return self

    @property
    def is_override(self) -> bool:
        return self.source_id is not None

    @property
    def image(self) -> Optional[str]:
        return self.images[0] if self.images else None

    @classmethod
    def from_row(cls, row: Any) -> Optional["Product"]:
        """
        Build a Product from a persistence row.

        Returns None for rows without an id; every other malformed field is
        coerced to a safe default.
        """
        if not isinstance(row, Mapping):
            return None
        data = dict(row)
        source = data.pop("sourceId", None)
        if source is None:
            source = data.pop("sourceid", None)
        if source is None:
            source = data.get("source_id")
        data["source_id"] = source

        image = data.pop("image", None)
        if not _to_list(data.get("images")) and isinstance(image, str) and image.strip():
            data["images"] = [image]

        if data.get("id") in (None, ""):
            logger.warning("Skipping product row without id")
            return None
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Skipping malformed product row {data.get('id')!r}: {e}")
            return None

    def to_row(self) -> Dict[str, Any]:
        """
        Persistence row for an upsert.

        Collection fields are always written so an edit can clear them.
        """
        specs = list(self.specs) + list(self.meta_specs)
        if self.family:
            specs.append(f"{META_FAMILY_PREFIX}{self.family}")
        variants: Dict[str, Any] = {label: list(values) for label, values in self.variants.items()}
        variants.update(self.meta_variants)
        if self.price_overrides:
            variants[PRICE_OVERRIDES_LABEL] = dict(self.price_overrides)

        row: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "category": self.category,
            "price": self.price,
            "description": self.description,
            "images": list(self.images),
            "specs": specs,
            "variants": variants,
            "inventory": dict(self.inventory),
        }
        if self.source_id:
            row["sourceid"] = self.source_id
        if self.hidden:
            row["hidden"] = True
        return row

    def option_values(self) -> set:
        """Every option value, lower-cased, across all groups."""
        return {
            value.strip().lower()
            for values in self.variants.values()
            for value in values
            if value.strip()
        }


def display_specs(product: Product) -> List[str]:
    """Specs to show a customer: no metadata, nothing that repeats an option value."""
    options = product.option_values()
    return [
        spec for spec in product.specs
        if spec.strip() and not spec.startswith(RESERVED_PREFIX) and spec.strip().lower() not in options
    ]


def split_labeled_spec(spec: Any) -> Optional[Tuple[str, str]]:
    """``"Capacity: 10000mAh"`` -> ``("Capacity", "10000mAh")``; None for untagged specs."""
    value = str(spec or "").strip()
    index = value.find(":")
    if index <= 0:
        return None
    label = value[:index].strip()
    detail = value[index + 1:].strip()
    if not label or not detail or len(label) > 40 or len(detail) > 120:
        return None
    return label, detail


class ChangeKind(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    DELETED = "deleted"


class ChangeEvent(BaseModel):
    """A single change pushed by the product store."""
    kind: ChangeKind
    record: Optional[Product] = None
    record_id: Optional[str] = None
    # When the delete happened; feeds that do not report it leave it unset.
    occurred_at: Optional[datetime] = None

    @field_validator("occurred_at", mode="before")
    @classmethod
    def _parse_occurred_at(cls, value: Any) -> Any:
        return _epoch_to_datetime(value)

    @field_validator("occurred_at")
    @classmethod
    def _occurred_at_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    @model_validator(mode="after")
    def _require_target(self) -> "ChangeEvent":
        if self.record is None and not self.record_id:
            raise ValueError("change event needs a record or a record_id")
        if self.kind != ChangeKind.DELETED and self.record is None:
            raise ValueError(f"{self.kind.value} event needs a record")
        if self.record_id is None and self.record is not None:
            self.record_id = self.record.id
        return self

    @property
    def id(self) -> str:
        return self.record_id or self.record.id

    @classmethod
    def inserted(cls, record: Product) -> "ChangeEvent":
        return cls(kind=ChangeKind.INSERTED, record=record)

    @classmethod
    def updated(cls, record: Product) -> "ChangeEvent":
        return cls(kind=ChangeKind.UPDATED, record=record)

    @classmethod
    def deleted(cls, record_id: str, occurred_at: Optional[datetime] = None) -> "ChangeEvent":
        return cls(kind=ChangeKind.DELETED, record_id=record_id, occurred_at=occurred_at)
