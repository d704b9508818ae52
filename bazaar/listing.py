"""
Product listing query composition.

Turns raw listing parameters (as received on ``GET /api/products``) into a
normalized `ProductQuery`, decides whether the result may be cached, and
applies the filters to a PostgREST query builder.
"""
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from bazaar.config import Pagination

# API sort field -> column
SORT_COLUMNS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "price": "price",
    "name": "name",
    "rating": "rating",
    "reviewCount": "review_count",
    "stock": "stock",
}

ALL_CATEGORIES = "All"
SEARCH_COLUMNS = ("name", "description")


def _parse_int(value: Any, default: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed


def _parse_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).lower() == "true"


def clean_search(value: Optional[str]) -> Optional[str]:
    """Trimmed search text, or None when blank."""
    if not value:
        return None
    return value.strip() or None


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the text matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def quote_filter_value(value: str) -> str:
    """
    Double-quote a value for a PostgREST logic filter (``or=(...)``).

    Inside quotes, commas and parentheses are literal; ``"`` and ``\\`` are
    backslash-escaped.
    """
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def ilike_any(columns: Sequence[str], term: str) -> str:
    """``or_()`` filter matching ``term`` as a substring of any column."""
    pattern = quote_filter_value(f"%{escape_like(term)}%")
    return ",".join(f"{column}.ilike.{pattern}" for column in columns)


def array_contains(column: str, element: str) -> str:
    """``or_()`` filter for an array column containing ``element``."""
    escaped = element.replace("\\", "\\\\").replace('"', '\\"')
    literal = '{"' + escaped + '"}'
    return column + ".cs." + quote_filter_value(literal)


@dataclass(frozen=True)
class ProductQuery:
    """Normalized listing request."""

    page: int = Pagination.DEFAULT_PAGE
    limit: int = Pagination.DEFAULT_PAGE_SIZE
    search: Optional[str] = None
    category: Optional[str] = None
    seller_id: Optional[str] = None
    featured: bool = False
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    sort_by: str = Pagination.DEFAULT_SORT_BY
    sort_desc: bool = True
    custom_sort: bool = False
    include_inactive: bool = False

    @classmethod
    def from_params(
        cls,
        page: Any = None,
        limit: Any = None,
        search: Optional[str] = None,
        category: Optional[str] = None,
        seller_id: Optional[str] = None,
        featured: Any = None,
        min_price: Any = None,
        max_price: Any = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        include_inactive: Any = None,
    ) -> "ProductQuery":
        """
        Build a query from loosely-typed parameters.

        Unparseable or non-positive page/limit fall back to defaults and limit
        is clamped to MAX_PAGE_SIZE. ``featured`` overrides any requested sort
        with review count, highest first.
        """
        page_num = _parse_int(page, Pagination.DEFAULT_PAGE)
        if page_num < 1:
            page_num = Pagination.DEFAULT_PAGE

        page_size = _parse_int(limit, Pagination.DEFAULT_PAGE_SIZE)
        if page_size < Pagination.MIN_PAGE_SIZE:
            page_size = Pagination.DEFAULT_PAGE_SIZE
        page_size = min(page_size, Pagination.MAX_PAGE_SIZE)

        is_featured = _parse_bool(featured) if featured is not None else False
        custom_sort = bool(sort_by or sort_order)

        sort_field = sort_by if sort_by in SORT_COLUMNS else Pagination.DEFAULT_SORT_BY
        sort_desc = sort_order != "asc"
        if is_featured:
            sort_field = "reviewCount"
            sort_desc = True

        category_name = (category or "").strip() or None
        if category_name == ALL_CATEGORIES:
            category_name = None

        return cls(
            page=page_num,
            limit=page_size,
            search=clean_search(search),
            category=category_name,
            seller_id=seller_id or None,
            featured=is_featured,
            min_price=_parse_float(min_price),
            max_price=_parse_float(max_price),
            sort_by=sort_field,
            sort_desc=sort_desc,
            custom_sort=custom_sort,
            include_inactive=_parse_bool(include_inactive) if include_inactive is not None else False,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def sort_column(self) -> str:
        return SORT_COLUMNS[self.sort_by]

    @property
    def has_price_filter(self) -> bool:
        return self.min_price is not None or self.max_price is not None

    @property
    def is_plain(self) -> bool:
        """True for the unfiltered default listing, the only one that is cached."""
        return not (
            self.search
            or self.category
            or self.has_price_filter
            or self.custom_sort
            or self.seller_id
            or self.featured
            or self.include_inactive
        )

    def apply(self, builder: Any) -> Any:
        """Apply filters, ordering and the page window to a PostgREST builder."""
        if not self.include_inactive:
            builder = builder.eq("is_active", True)

        if self.search:
            builder = builder.or_(
                ilike_any(SEARCH_COLUMNS, self.search) + "," + array_contains("tags", self.search)
            )

        if self.category:
            # ilike without wildcards = case-insensitive equality
            builder = builder.ilike("category", escape_like(self.category))

        if self.seller_id:
            builder = builder.eq("seller_id", self.seller_id)

        if self.min_price is not None:
            builder = builder.gte("price", self.min_price)
        if self.max_price is not None:
            builder = builder.lte("price", self.max_price)

        builder = builder.order(self.sort_column, desc=self.sort_desc)
        return builder.range(self.offset, self.offset + self.limit - 1)
