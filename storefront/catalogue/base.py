"""
Compiled-in base catalogue and the shared option lists.

The base list is reference data: nothing mutates it. Owner edits live in a
separate layer (see ``catalogue.merge``) that overrides or hides entries
by id.
"""
from typing import Any, Dict, List, Tuple

from storefront.catalogue.models import Product

# ─── Model lists ──────────────────────────────────────────────────────────────
IPHONE_MODELS: Tuple[str, ...] = (
    "iPhone 11", "iPhone 12", "iPhone 12 Pro", "iPhone 13", "iPhone 13 Pro", "iPhone 14", "iPhone 14 Pro",
    "iPhone 15", "iPhone 15 Plus", "iPhone 15 Pro", "iPhone 15 Pro Max", "iPhone 16", "iPhone 16 Pro", "iPhone 16 Pro Max",
)
SAMSUNG_S_MODELS: Tuple[str, ...] = ("Galaxy S20", "Galaxy S21", "Galaxy S22", "Galaxy S23", "Galaxy S24", "Galaxy S25")
SAMSUNG_A_MODELS: Tuple[str, ...] = ("Galaxy A14", "Galaxy A24", "Galaxy A34", "Galaxy A54", "Galaxy A55", "Galaxy A15")

BRAND_MODELS: Dict[str, Tuple[str, ...]] = {
    "iPhone": IPHONE_MODELS,
    "Samsung S": SAMSUNG_S_MODELS,
    "Samsung A": SAMSUNG_A_MODELS,
}
PHONE_BRANDS: Tuple[str, ...] = tuple(BRAND_MODELS)

ALL_CATEGORY = "All"
CATEGORIES: Tuple[str, ...] = (
    "Phone Screens",
    "Back Glass",
    "Power Banks",
    "Screen Protectors",
    "Batteries",
    "Mobile Phones",
    "Tablets",
    "Phone Cases",
    "Cables",
    "Chargers",
    "Earphones",
    "Charging Ports",
    "Face ID",
)

# ─── Shared option lists (owner form choices) ─────────────────────────────────
QUALITY_GRADE = ("Original", "OEM", "AAA", "Aftermarket", "Refurb")
CASE_MATERIALS = ("TPU", "Silicone", "PC", "Leather")
CASE_COLORS = ("Black", "White", "Navy", "Clear", "Red", "Lavender", "Stone", "Midnight", "Starlight", "Blue", "Green", "Gold")
PROTECTOR_MATERIALS = ("Tempered", "Hydrogel")
PROTECTOR_FINISH = ("Clear", "Matte", "Privacy")
PROTECTOR_PACKS = ("1-Pack", "2-Pack")
COVERAGE = ("Edge-to-edge", "Full glue")
CONNECTORS = ("USB-C ↔ USB-C", "USB-C ↔ Lightning", "USB-A ↔ Micro-USB")
LENGTHS = ("0.5m", "1m", "2m")
POWER_RATINGS = ("27W", "60W", "100W")
CERTS = ("MFi", "USB-IF")
DURABILITY = ("Standard", "Braided", ">10k bends")
CHARGER_WATTAGE = ("20W", "30W", "45W", "65W")
CHARGER_PORTS = ("1×USB-C", "1×USB-A", "1×USB-C + 1×USB-A", "2×USB-C")
STANDARDS = ("PD 3.0", "PPS", "QC 3.0", "QC 4+")
SAFETY = ("CE", "UKCA")
PLUG_TYPES = ("UK 3-pin", "EU", "US")
PHONE_GRADE = ("New", "Refurb", "Used A", "Used B")
SIM_OPTIONS = ("Unlocked", "Locked", "Dual-SIM Yes", "Dual-SIM No")
CONN_MOBILE = ("5G", "4G")
CONNECTIVITY_TABLET = ("Wi-Fi", "Wi-Fi + Cellular")
STORAGE_OPTIONS = ("32GB", "64GB", "128GB", "256GB", "512GB", "1TB")
RAM_OPTIONS = ("3GB", "4GB", "6GB", "8GB", "12GB", "16GB")
POWER_CAPACITY = ("10,000 mAh", "20,000 mAh")

# ─── Base products ────────────────────────────────────────────────────────────
_CATALOG: Tuple[Dict[str, Any], ...] = (
    {
        "id": "sp-iph-13-tmp-2pk",
        "name": "Tempered Glass – iPhone 13 (2-Pack)",
        "sku": "SP-IP13-TG2",
        "category": "Screen Protectors",
        "price": 3.2,
        "specs": ["2-Pack", "Tempered", "9H", "Oleophobic"],
        "description": "Clear tempered glass for iPhone 13.",
        "images": ["img/sp-iph-13-tmp-2pk.jpg"],
        "variants": {"Model": ["iPhone 13"], "Material": ["Tempered"], "Pack": ["2-Pack"]},
    },
    {
        "id": "sp-iph-14-hg-1pk",
        "name": "Hydrogel Protector – iPhone 14",
        "sku": "SP-IP14-HG1",
        "category": "Screen Protectors",
        "price": 2.6,
        "specs": ["Hydrogel", "Self-healing", "Case-friendly"],
        "description": "Flexible hydrogel film.",
        "images": ["img/sp-iph-14-hg-1pk.jpg"],
        "variants": {"Model": ["iPhone 14"], "Material": ["Hydrogel"], "Pack": ["1-Pack", "2-Pack"]},
    },
    {
        "id": "case-slim-tpu-iph-11-16",
        "name": "Slim TPU Case – iPhone Series",
        "sku": "CA-IP-TPU",
        "category": "Phone Cases",
        "price": 3.9,
        "specs": ["TPU", "Slim", "Matte"],
        "description": "Slim matte TPU case.",
        "images": ["img/case-slim-tpu-iph-11-16.jpg"],
        "variants": {"Color": ["Black", "Navy", "Clear", "Red"], "Material": ["TPU"], "Model": list(IPHONE_MODELS)},
    },
    {
        "id": "case-silicone-sg-s20-s25",
        "name": "Soft Silicone Case – Galaxy Series",
        "sku": "CA-SG-SIL",
        "category": "Phone Cases",
        "price": 4.1,
        "specs": ["Silicone", "Microfiber"],
        "description": "Soft-touch silicone for Galaxy.",
        "images": ["img/case-silicone-sg-s20-s25.jpg"],
        "variants": {"Color": ["Midnight", "Stone", "Lavender"], "Material": ["Silicone"], "Model": list(SAMSUNG_S_MODELS)},
    },
    {
        "id": "chg-65w-gan-dual",
        "name": "65W GaN Charger – Dual Port",
        "sku": "CH-65W-GAN",
        "category": "Chargers",
        "price": 12.5,
        "specs": ["65W", "USB-C + USB-A", "PD/QC"],
        "description": "Compact GaN charger.",
        "images": ["img/chg-65w-gan-dual.jpg"],
        "variants": {"Wattage": ["65W"], "Ports": ["USB-C + USB-A"], "Standard": list(STANDARDS)},
    },
    {
        "id": "chg-20w-usbc",
        "name": "20W USB-C Wall Charger",
        "sku": "CH-20W-USBC",
        "category": "Chargers",
        "price": 6.0,
        "specs": ["20W", "USB-C", "PD"],
        "description": "USB-C PD charger.",
        "images": ["img/chg-20w-usbc.jpg"],
        "variants": {"Wattage": ["20W"], "Ports": ["USB-C"], "Standard": ["PD 3.0"]},
    },
    {
        "id": "cbl-usbc-60w-1m-2m",
        "name": "USB-C Cable 60W",
        "sku": "CB-UC-60",
        "category": "Cables",
        "price": 2.2,
        "specs": ["USB-C", "60W", "Nylon"],
        "description": "Braided 60W cable.",
        "images": ["img/cbl-usbc-60w-1m-2m.jpg"],
        "variants": {"Connector": ["USB-C ↔ USB-C"], "Length": list(LENGTHS), "Rating": ["60W"]},
    },
    {
        "id": "cbl-lightning-mfi",
        "name": "Lightning Cable (MFi)",
        "sku": "CB-LT-MFI",
        "category": "Cables",
        "price": 3.5,
        "specs": ["Lightning", "MFi", "1m"],
        "description": "MFi Lightning cable.",
        "images": ["img/cbl-lightning-mfi.jpg"],
        "variants": {"Connector": ["USB-C ↔ Lightning"], "Length": ["1m"], "Rating": ["27W"]},
    },
    {
        "id": "ear-wired-classic",
        "name": "Wired Earphones – Classic",
        "sku": "EA-WI-CLS",
        "category": "Earphones",
        "price": 4.2,
        "specs": ["3.5mm", "In-line mic"],
        "description": "Wired earphones.",
        "images": ["img/ear-wired-classic.jpg"],
        "variants": {"Connector": ["3.5mm"], "Color": ["Black", "White"]},
    },
    {
        "id": "ear-tws-basic",
        "name": "TWS Earbuds – Basic",
        "sku": "EA-TWS-BSC",
        "category": "Earphones",
        "price": 12.9,
        "specs": ["BT 5.3", "20h"],
        "description": "TWS earbuds.",
        "images": ["img/ear-tws-basic.jpg"],
        "variants": {"Color": ["White", "Black"], "Standard": ["BT 5.3"]},
    },
    {
        "id": "pb-10000-compact",
        "name": "Power Bank 10,000 mAh",
        "sku": "PB-10K-CMP",
        "category": "Power Banks",
        "price": 11.0,
        "specs": ["10,000 mAh", "USB-C", "PD"],
        "description": "Slim 10k power bank.",
        "images": ["img/pb-10000-compact.jpg"],
        "variants": {"Capacity": ["10,000 mAh"], "Ports": ["USB-C", "USB-A"], "Standard": list(STANDARDS)},
    },
    {
        "id": "pb-20000-dual",
        "name": "Power Bank 20,000 mAh – Dual",
        "sku": "PB-20K-DUAL",
        "category": "Power Banks",
        "price": 16.5,
        "specs": ["20,000 mAh", "Dual", "PD/QC"],
        "description": "20k dual output.",
        "images": ["img/pb-20000-dual.jpg"],
        "variants": {"Capacity": ["20,000 mAh"], "Ports": ["USB-C + USB-A"], "Standard": list(STANDARDS)},
    },
    {
        "id": "bg-assorted",
        "name": "Back Glass – Assorted",
        "sku": "BG-ASRT",
        "category": "Back Glass",
        "price": 5.5,
        "specs": ["Glass"],
        "description": "Replacement back glass.",
        "images": ["img/bg-assorted.jpg"],
    },
    {
        "id": "bat-oem",
        "name": "Replacement Battery – OEM",
        "sku": "BT-OEM",
        "category": "Batteries",
        "price": 8.0,
        "specs": ["OEM"],
        "description": "OEM replacement battery.",
        "images": ["img/bat-oem.jpg"],
    },
)

BASE_PRODUCTS: Tuple[Product, ...] = tuple(Product.model_validate(row) for row in _CATALOG)


def base_catalogue() -> List[Product]:
    """Fresh copies of the base products, in catalogue order."""
    return [product.model_copy(deep=True) for product in BASE_PRODUCTS]


def base_ids() -> frozenset:
    return frozenset(product.id for product in BASE_PRODUCTS)
