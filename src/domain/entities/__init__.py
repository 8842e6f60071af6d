# Domain entities - dataclasses for business objects
from .product import Product, SearchResult, SortMode, ResultWindow

__all__ = [
    "Product",
    "SearchResult",
    "SortMode",
    "ResultWindow",
]
