"""
Owner "add product" form: one field table per category.

Each category has required (``must``), recommended (``also``) and
``optional`` fields, plus two pure functions deriving a default product
name and the short spec list from the filled-in form. ``CATEGORY_SCHEMAS``
is keyed by ``Category`` and must cover every member.
"""
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from storefront.catalogue import base
from storefront.catalogue.models import Product

Form = Mapping[str, Any]

MAX_SPECS = 6


class Category(str, Enum):
    PHONE_SCREENS = "Phone Screens"
    BACK_GLASS = "Back Glass"
    POWER_BANKS = "Power Banks"
    SCREEN_PROTECTORS = "Screen Protectors"
    BATTERIES = "Batteries"
    MOBILE_PHONES = "Mobile Phones"
    TABLETS = "Tablets"
    PHONE_CASES = "Phone Cases"
    CABLES = "Cables"
    CHARGERS = "Chargers"
    EARPHONES = "Earphones"
    CHARGING_PORTS = "Charging Ports"
    FACE_ID = "Face ID"


class FieldKind(str, Enum):
    SELECT = "select"
    MULTISELECT = "multiselect"
    TEXT = "text"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    PHONE_MODELS = "phone_models"


@dataclass(frozen=True)
class FormField:
    key: str
    label: str
    kind: FieldKind
    options: Tuple[str, ...] = ()
    placeholder: str = ""
    allowed_brands: Tuple[str, ...] = ()

    def default(self) -> Any:
        if self.kind == FieldKind.CHECKBOX:
            return False
        if self.kind in (FieldKind.MULTISELECT, FieldKind.PHONE_MODELS):
            return []
        return ""


@dataclass(frozen=True)
class CategorySchema:
    must: Tuple[FormField, ...]
    also: Tuple[FormField, ...] = ()
    optional: Tuple[FormField, ...] = ()
    name: Callable[[Form], str] = field(default=lambda form: "")
    specs: Callable[[Form], List[str]] = field(default=lambda form: [])

    @property
    def fields(self) -> Tuple[FormField, ...]:
        return self.must + self.also + self.optional


def _first(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return str(value[0]) if value else ""
    return "" if value is None else str(value)


def _present(values: Iterable[Any]) -> List[str]:
    return [str(v) for v in values if v]


def _models(allowed_brands: Tuple[str, ...] = ()) -> FormField:
    return FormField("models", "Phone models", FieldKind.PHONE_MODELS, allowed_brands=allowed_brands)


def _select(key: str, label: str, options: Iterable[str]) -> FormField:
    return FormField(key, label, FieldKind.SELECT, tuple(options))


def _multi(key: str, label: str, options: Iterable[str]) -> FormField:
    return FormField(key, label, FieldKind.MULTISELECT, tuple(options))


def _text(key: str, label: str, placeholder: str = "") -> FormField:
    return FormField(key, label, FieldKind.TEXT, placeholder=placeholder)


def _check(key: str, label: str) -> FormField:
    return FormField(key, label, FieldKind.CHECKBOX)


def _number(key: str, label: str) -> FormField:
    return FormField(key, label, FieldKind.NUMBER)


def _screen_name(form: Form) -> str:
    display = str(form.get("display") or "").split(" ")[0]
    return f"Screen – {_first(form.get('models'))} {display}".strip()


def _labelled(prefix: str, form: Form, key: str) -> str:
    value = form.get(key)
    return f"{prefix} – {_first(form.get('models'))} {f'({value})' if value else ''}".strip()


CATEGORY_SCHEMAS: Dict[Category, CategorySchema] = {
    Category.PHONE_SCREENS: CategorySchema(
        must=(
            _models(),
            _select("display", "Display type/quality", ("OLED – OEM", "OLED – AAA", "LCD – OEM", "LCD – AAA")),
            _select("frame", "Frame", ("With frame", "Without frame")),
        ),
        also=(
            _select("frontColor", "Front color", ("Black", "White")),
            _check("retention", "True Tone/Face ID retention"),
        ),
        optional=(_check("adhesive", "Pre-installed adhesive / waterproof gasket"),),
        name=_screen_name,
        specs=lambda f: _present([f.get("display"), f.get("frame"), f.get("frontColor")]),
    ),
    Category.BACK_GLASS: CategorySchema(
        must=(_models(), _multi("colors", "Colors / finish", base.CASE_COLORS)),
        also=(_check("adhesive", "Adhesive pre-installed"), _check("rings", "With camera rings")),
        optional=(_select("grade", "Quality grade", base.QUALITY_GRADE),),
        name=lambda f: f"Back Glass – {_first(f.get('models'))}".strip(),
        specs=lambda f: _present([
            _first(f.get("colors")),
            f.get("grade"),
            "Adhesive" if f.get("adhesive") else None,
            "Camera rings" if f.get("rings") else None,
        ]),
    ),
    Category.POWER_BANKS: CategorySchema(
        must=(
            _select("capacity", "Capacity", base.POWER_CAPACITY),
            _select("ports", "Output ports", base.CHARGER_PORTS),
        ),
        also=(_select("standard", "Standard", base.STANDARDS),),
        optional=(_select("colour", "Colour", base.CASE_COLORS),),
        name=lambda f: f"Power bank – {f.get('capacity') or ''}".strip(),
        specs=lambda f: _present([f.get("capacity"), f.get("ports"), f.get("standard")]),
    ),
    Category.SCREEN_PROTECTORS: CategorySchema(
        must=(
            _models(),
            _select("material", "Material", base.PROTECTOR_MATERIALS),
            _select("pack", "Pack", base.PROTECTOR_PACKS),
        ),
        also=(
            _select("finish", "Finish", base.PROTECTOR_FINISH),
            _select("coverage", "Coverage", base.COVERAGE),
        ),
        name=lambda f: _labelled("Protector", f, "material"),
        specs=lambda f: _present([f.get("material"), f.get("finish"), f.get("coverage")]),
    ),
    Category.BATTERIES: CategorySchema(
        must=(_models(), _select("grade", "Grade", base.QUALITY_GRADE)),
        optional=(_text("capacity", "Capacity (mAh)", "e.g. 3000"),),
        name=lambda f: f"Battery – {_first(f.get('models'))}".strip(),
        specs=lambda f: _present([f.get("grade"), f.get("capacity")]),
    ),
    Category.MOBILE_PHONES: CategorySchema(
        must=(
            _text("model", "Model", "e.g., iPhone 13"),
            _select("cond", "Condition/grade", base.PHONE_GRADE),
            _select("sim", "SIM", base.SIM_OPTIONS),
        ),
        also=(_select("connect", "Connectivity", base.CONN_MOBILE), _number("warranty", "Warranty (months)")),
        optional=(
            _multi("storage", "Storage", base.STORAGE_OPTIONS),
            _multi("ram", "RAM", base.RAM_OPTIONS),
            _text("color", "Color"),
            _text("inbox", "Accessories in box", "Cable, charger"),
        ),
        name=lambda f: f"{f.get('model') or ''} {f.get('cond') or ''}".strip(),
        specs=lambda f: _present([
            _first(f.get("storage")), _first(f.get("ram")), f.get("cond"), f.get("sim"), f.get("connect"),
        ]),
    ),
    Category.TABLETS: CategorySchema(
        must=(
            _text("model", "Model", "iPad 10th Gen"),
            _select("conn", "Connectivity", base.CONNECTIVITY_TABLET),
        ),
        also=(_text("screen", "Screen size", '10.9"'), _number("warranty", "Warranty (months)")),
        optional=(
            _multi("storage", "Storage", base.STORAGE_OPTIONS),
            _multi("ram", "RAM", base.RAM_OPTIONS),
            _select("cond", "Condition/grade", base.PHONE_GRADE),
            _text("color", "Color"),
            _text("compat", "Pencil/keyboard compatibility"),
        ),
        name=lambda f: f"{f.get('model') or ''} {f.get('conn') or ''}".strip(),
        specs=lambda f: _present([
            _first(f.get("storage")), _first(f.get("ram")), f.get("conn"), f.get("screen"), f.get("cond"),
        ]),
    ),
    Category.PHONE_CASES: CategorySchema(
        must=(_models(), _select("material", "Material", base.CASE_MATERIALS)),
        also=(_multi("color", "Color", base.CASE_COLORS),),
        optional=(_text("pattern", "Pattern / style"),),
        name=lambda f: _labelled("Case", f, "material"),
        specs=lambda f: _present([f.get("material"), _first(f.get("color"))]),
    ),
    Category.CABLES: CategorySchema(
        must=(
            _select("connector", "Connector", base.CONNECTORS),
            _select("length", "Length", base.LENGTHS),
        ),
        also=(
            _select("rating", "Power rating", base.POWER_RATINGS),
            _select("durability", "Durability", base.DURABILITY),
        ),
        optional=(_select("cert", "Certs", base.CERTS),),
        name=lambda f: (
            f"Cable – {f.get('connector') or ''} {'(' + f['length'] + ')' if f.get('length') else ''}".strip()
        ),
        specs=lambda f: _present([f.get("connector"), f.get("length"), f.get("rating")]),
    ),
    Category.CHARGERS: CategorySchema(
        must=(
            _select("wattage", "Wattage", base.CHARGER_WATTAGE),
            _select("ports", "Ports", base.CHARGER_PORTS),
        ),
        also=(
            _select("standard", "Standard", base.STANDARDS),
            _select("plug", "Plug type", base.PLUG_TYPES),
        ),
        name=lambda f: f"Charger – {f.get('wattage') or ''}".strip(),
        specs=lambda f: _present([f.get("wattage"), f.get("ports")]),
    ),
    Category.EARPHONES: CategorySchema(
        must=(_select("type", "Type", ("Wired", "TWS")),),
        also=(_select("connector", "Connector / Standard", base.CONNECTORS + base.STANDARDS),),
        optional=(_select("color", "Color", base.CASE_COLORS),),
        name=lambda f: f"Earphones – {f.get('type') or ''}".strip(),
        specs=lambda f: _present([f.get("type"), f.get("connector")]),
    ),
    Category.CHARGING_PORTS: CategorySchema(
        must=(_models(), _select("type", "Port type", ("USB-C", "Lightning", "Micro-USB"))),
        optional=(_check("solderRequired", "Solder required"),),
        name=lambda f: f"Charging port – {_first(f.get('models'))}".strip(),
        specs=lambda f: _present([f.get("type"), "Solder" if f.get("solderRequired") else None]),
    ),
    Category.FACE_ID: CategorySchema(
        must=(_models(allowed_brands=("iPhone",)), _select("service", "Service", ("Repair", "Replace", "Calibration"))),
        name=lambda f: f"Face ID – {_first(f.get('models'))}".strip(),
        specs=lambda f: _present([f.get("service")]),
    ),
}


def schema_for(category: Any) -> Optional[CategorySchema]:
    """Schema for a category name or member; None for free-text categories."""
    try:
        return CATEGORY_SCHEMAS[Category(category)]
    except ValueError:
        return None


def default_form(category: Any) -> Dict[str, Any]:
    """Empty form for a category: blank selects and text, unchecked boxes, empty lists."""
    schema = schema_for(category)
    if schema is None:
        return {}
    return {f.key: f.default() for f in schema.fields}


def phone_models_for(form_field: FormField, brand: Optional[str] = None) -> List[str]:
    """Models a phone-model picker offers for the chosen (or default) brand."""
    brands = form_field.allowed_brands or base.PHONE_BRANDS
    chosen = brand if brand in brands else brands[0]
    return list(base.BRAND_MODELS.get(chosen, ()))


def validate_form(category: Any, form: Form, price: Any) -> List[str]:
    """Error messages for the form; an empty list means it can be submitted."""
    errors = []
    try:
        price_number = float(price)
    except (TypeError, ValueError):
        price_number = float("nan")
    if not price_number > 0 or price_number == float("inf"):
        errors.append("Price must be greater than 0")

    schema = schema_for(category)
    if schema is None:
        return errors
    for form_field in schema.must:
        if form_field.kind == FieldKind.PHONE_MODELS:
            models = form.get(form_field.key)
            if not isinstance(models, (list, tuple)) or not models:
                errors.append("Please select at least one model")
            break
    for form_field in schema.must:
        if form_field.key == "model" and not str(form.get("model") or "").strip():
            errors.append("Model is required")
            break
    return errors


def normalize_group_label(label: str, key: str) -> str:
    """Option-group label for a form field: models -> Model, colour spellings -> Color."""
    if key == "models":
        return "Model"
    lower = str(label).strip().lower()
    if lower in ("color", "colors", "colour"):
        return "Color"
    return str(label).strip()


def _variants_from_form(schema: Optional[CategorySchema], form: Form) -> Dict[str, List[str]]:
    variants: Dict[str, List[str]] = {}

    def push(label: str, key: str, value: Any) -> None:
        if value is None or value == "" or (isinstance(value, (list, tuple)) and not value):
            return
        values = value if isinstance(value, (list, tuple)) else [value]
        cleaned: List[str] = []
        for item in values:
            text = str(item).strip()
            if text and text not in cleaned:
                cleaned.append(text)
        if cleaned:
            variants[normalize_group_label(label, key)] = cleaned

    for form_field in (schema.fields if schema else ()):
        value = form.get(form_field.key)
        if form_field.kind == FieldKind.CHECKBOX:
            if value:
                push(form_field.label, form_field.key, "Yes")
        else:
            push(form_field.label, form_field.key, value)
    if form.get("modelsBrand"):
        push("Phone", "modelsBrand", form.get("modelsBrand"))
    return variants


def _random_sku() -> str:
    return f"SKU-{uuid.uuid4().hex[:6].upper()}"


def build_product(
    category: Any,
    form: Form,
    name: str = "",
    sku: str = "",
    price: Any = 0,
    description: str = "",
    images: Iterable[str] = (),
    clock: Callable[[], float] = time.time,
) -> Product:
    """
    Turn a submitted form into a new owner product.

    The name falls back to the category's derived name, the SKU to a
    random ``SKU-...`` code. Specs come from the category's derivation and
    are capped at six.
    """
    category_name = category.value if isinstance(category, Category) else str(category)
    schema = schema_for(category_name)
    auto_name = (schema.name(form) if schema else "") or f"{category_name} item"
    specs = (schema.specs(form) if schema else [])[:MAX_SPECS]
    unique_images: List[str] = []
    for image in images or ():
        if image and image not in unique_images:
            unique_images.append(image)
    return Product(
        id=f"owner-{int(clock() * 1000)}",
        name=(name or "").strip() or auto_name,
        sku=(sku or "").strip() or _random_sku(),
        category=category_name,
        price=price,
        description=(description or "").strip(),
        images=unique_images,
        specs=specs,
        variants=_variants_from_form(schema, form),
    )
