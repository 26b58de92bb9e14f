"""
Token Catalog Service

Turns the raw price feed into the canonical, sorted token catalog that the
swap form selects from.
"""

from .models import (
    CatalogStatus,
    IconKind,
    IconView,
    Token,
    TokenCatalog,
)
from .builder import TokenCatalogBuilder, build_catalog, has_valid_price
from .icons import IconResolver

__all__ = [
    "CatalogStatus",
    "IconKind",
    "IconView",
    "Token",
    "TokenCatalog",
    "TokenCatalogBuilder",
    "build_catalog",
    "has_valid_price",
    "IconResolver",
]
