"""
Persistence collaborators for the owner layer.
"""
from storefront.data.repository import (
    InMemoryProductRepository,
    ProductRepository,
    RepositoryError,
    Subscription,
)
from storefront.data.supabase_repository import SupabaseProductRepository

__all__ = [
    "ProductRepository",
    "InMemoryProductRepository",
    "SupabaseProductRepository",
    "RepositoryError",
    "Subscription",
]
