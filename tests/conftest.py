"""Shared fixtures for the storefront test suite."""

import pytest

from storefront.catalogue.models import Product
from storefront.core.config import StorefrontConfig, set_config
from storefront.data.repository import InMemoryProductRepository
from storefront.utils.logger import set_propagation

FIXED_NOW = 1_700_000_000.0


# ---------------------------------------------------------------------------
# Config isolation. The global config would otherwise be read from
# config/default.yaml plus the environment; pin it so retries never sleep
# and invariant handling is predictable.
# ---------------------------------------------------------------------------

@pytest.fixture(scope="function", autouse=True)
def _isolate_config():
    set_config(StorefrontConfig(retry_backoff_min=0.0, retry_backoff_max=0.0))
    yield
    set_config(None)


@pytest.fixture(scope="function", autouse=True)
def _propagate_logs():
    """Route package records to the root logger so caplog can assert on them."""
    set_propagation(True)
    yield
    set_propagation(False)


@pytest.fixture
def strict_config():
    config = StorefrontConfig(strict_invariants=True, retry_backoff_min=0.0, retry_backoff_max=0.0)
    set_config(config)
    return config


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def case_product():
    """Two colours; Blue is dearer and has a single unit left."""
    return Product(
        id="case",
        name="Case",
        sku="C1",
        category="Phone Cases",
        price=10,
        variants={"Color": ["Red", "Blue"]},
        price_overrides={"Color:Blue": 12},
        inventory={"Color:Blue": 1},
    )


@pytest.fixture
def base_products():
    return [
        Product(id="P", name="Slim case", sku="SC-1", category="Phone Cases", price=5,
                variants={"Model": ["iPhone 13", "iPhone 14"]}),
        Product(id="Q", name="USB-C cable", sku="CB-1", category="Cables", price=3),
    ]


@pytest.fixture
def repository():
    return InMemoryProductRepository()
