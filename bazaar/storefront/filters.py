"""Listing filter state and client-side ordering."""
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence

ALL_CATEGORIES = "All"
DEFAULT_SORT = "newest"

SORT_OPTIONS = (
    ("newest", "Newest"),
    ("price-asc", "Price: Low to High"),
    ("price-desc", "Price: High to Low"),
    ("rating", "Highest Rated"),
    ("popular", "Most Popular"),
)


@dataclass(frozen=True)
class ProductFilters:
    search: str = ""
    category: str = ALL_CATEGORIES
    min_price: float = 0
    max_price: float = 0
    sort_by: str = DEFAULT_SORT
    featured: bool = False

    def to_variables(self) -> Dict[str, Any]:
        """GraphQL variables; defaults are left out."""
        variables: Dict[str, Any] = {}
        if self.search:
            variables["search"] = self.search
        if self.category != ALL_CATEGORIES:
            variables["category"] = self.category
        if self.min_price > 0:
            variables["minPrice"] = self.min_price
        if self.max_price > self.min_price:
            variables["maxPrice"] = self.max_price
        if self.sort_by and self.sort_by != DEFAULT_SORT:
            variables["sortBy"] = self.sort_by
        if self.featured:
            variables["featured"] = True
        return variables

    def update(self, **changes: Any) -> "ProductFilters":
        return replace(self, **changes)


def sort_products(items: Sequence[Dict[str, Any]], sort: str) -> List[Dict[str, Any]]:
    """Reorder a page of products for display. ``newest`` keeps server order."""
    if sort == "price-asc":
        return sorted(items, key=lambda p: p.get("price") or 0)
    if sort == "price-desc":
        return sorted(items, key=lambda p: p.get("price") or 0, reverse=True)
    if sort == "rating":
        return sorted(items, key=lambda p: p.get("rating") or 0, reverse=True)
    if sort == "popular":
        return sorted(items, key=lambda p: p.get("reviewCount") or 0, reverse=True)
    return list(items)


def merge_products_page(
    existing: Optional[Dict[str, Any]],
    incoming: Dict[str, Any],
    page: Optional[int],
) -> Dict[str, Any]:
    """
    Merge a fetched products connection into what is already held.

    Page 1 (or no page) replaces; later pages append to ``products``.
    """
    if not page or page == 1:
        return incoming
    return {
        **incoming,
        "products": list((existing or {}).get("products") or []) + list(incoming.get("products") or []),
    }
