"""
Configuration management for the storefront engine.

Loads settings from YAML config file and provides typed access.
Supabase credentials and the strict-invariant switch can be overridden
from the environment.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import yaml

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()


def _project_root() -> Path:
    """Return project root (parent of storefront package)."""
    return Path(__file__).resolve().parent.parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class StorefrontConfig:
    """Configuration for the storefront engine."""

    # Shop identity
    brand_name: str = "Odil Accessories"
    currency: str = "GBP"
    currency_symbol: str = "£"
    whatsapp_number: str = "992935563306"

    # Merge behaviour: raise on invariant violations instead of logging
    strict_invariants: bool = False

    # Remote store
    supabase_url: str = ""
    supabase_key: str = ""
    products_table: str = "products"
    http_timeout: float = 30.0

    # Persistence retry (bounded attempts, exponential backoff in seconds)
    retry_attempts: int = 3
    retry_backoff_min: float = 1.0
    retry_backoff_max: float = 8.0

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "StorefrontConfig":
        """Load configuration from YAML file, then apply environment overrides."""
        path = config_path or DEFAULT_CONFIG_PATH
        data = {}
        if path.exists():
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}

        shop = data.get('storefront', {}) or {}
        supabase = data.get('supabase', {}) or {}
        sync = data.get('sync', {}) or {}

        config = cls(
            brand_name=shop.get('brand_name', "Odil Accessories"),
            currency=shop.get('currency', "GBP"),
            currency_symbol=shop.get('currency_symbol', "£"),
            whatsapp_number=str(shop.get('whatsapp_number', "992935563306")),
            strict_invariants=bool(shop.get('strict_invariants', False)),
            supabase_url=supabase.get('url', "") or "",
            supabase_key=supabase.get('key', "") or "",
            products_table=supabase.get('products_table', "products"),
            http_timeout=float(supabase.get('timeout', 30.0)),
            retry_attempts=int(sync.get('retry_attempts', 3)),
            retry_backoff_min=float(sync.get('retry_backoff_min', 1.0)),
            retry_backoff_max=float(sync.get('retry_backoff_max', 8.0)),
        )
        config.apply_env()
        return config

    def apply_env(self) -> None:
        """Override credentials and flags from the environment when set."""
        self.supabase_url = os.environ.get("SUPABASE_URL", self.supabase_url)
        self.supabase_key = os.environ.get("SUPABASE_KEY", self.supabase_key)
        strict = os.environ.get("STOREFRONT_STRICT")
        if strict is not None:
            self.strict_invariants = strict.strip().lower() in _TRUTHY


# Global config instance
_config: Optional[StorefrontConfig] = None


def get_config() -> StorefrontConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = StorefrontConfig.from_yaml()
    return _config


def set_config(config: Optional[StorefrontConfig]) -> None:
    """Set the global configuration instance (None reloads on next access)."""
    global _config
    _config = config
