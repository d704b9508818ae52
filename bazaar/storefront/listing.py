"""
Infinite-scroll product listing.

`ProductListing` holds the accumulated pages; `ProductBrowser` wires filter
changes, debounced inputs and paging to a `GatewayClient`.
"""
from typing import Any, Dict, List, Optional

import httpx

from bazaar.logging import get_logger, sanitize_string_for_logging

from .client import GatewayClient, GatewayQueryError
from .debounce import DEFAULT_DELAY, Debouncer
from .filters import ProductFilters, sort_products

logger = get_logger(__name__)

STOREFRONT_PAGE_SIZE = 12


class ProductListing:
    """Accumulated products across pages for one filter set."""

    def __init__(self) -> None:
        self.items: List[Dict[str, Any]] = []
        self.page = 1
        self.pages = 0
        self.total = 0
        self.has_more = True

    def apply_page(self, connection: Dict[str, Any], page: int) -> None:
        """Page 1 replaces the items; later pages append unseen ids."""
        products = connection.get("products") or []
        if page == 1:
            self.items = list(products)
        else:
            seen = {p.get("id") for p in self.items}
            self.items.extend(p for p in products if p.get("id") not in seen)

        pagination = connection.get("pagination") or {}
        self.pages = pagination.get("pages") or connection.get("totalPages") or 1
        self.total = pagination.get("total", connection.get("total", len(self.items)))
        self.page = page
        self.has_more = page < self.pages

    def reset(self) -> None:
        """Back to page 1; current items stay until the next page 1 arrives."""
        self.page = 1
        self.has_more = True


class ProductBrowser:
    """
    Storefront product browsing state.

    Search text and price range are debounced; category, sort and the
    featured toggle apply immediately. Any effective filter change resets
    paging and refetches page 1.
    """

    def __init__(
        self,
        client: GatewayClient,
        page_size: int = STOREFRONT_PAGE_SIZE,
        delay: float = DEFAULT_DELAY,
    ):
        self.client = client
        self.page_size = page_size
        self.filters = ProductFilters()
        self.listing = ProductListing()
        self.loading = False
        self.error: Optional[Exception] = None
        self._search = Debouncer(self._commit_search, delay)
        self._price = Debouncer(self._commit_price, delay)

    @property
    def products(self) -> List[Dict[str, Any]]:
        return sort_products(self.listing.items, self.filters.sort_by)

    @property
    def has_more(self) -> bool:
        return self.listing.has_more

    def set_search(self, text: str) -> None:
        self._search.push(text.strip())

    def set_price_range(self, min_price: float, max_price: float) -> None:
        self._price.push((min_price, max_price))

    async def set_category(self, category: str) -> None:
        await self._apply(category=category)

    async def set_sort(self, sort_by: str) -> None:
        await self._apply(sort_by=sort_by)

    async def set_featured(self, featured: bool) -> None:
        await self._apply(featured=featured)

    async def flush(self) -> None:
        """Commit pending debounced input now."""
        await self._search.flush()
        await self._price.flush()

    async def load(self) -> None:
        """Fetch the first page for the current filters."""
        self.listing.reset()
        await self._fetch(1)

    async def load_more(self) -> None:
        if self.loading or not self.listing.has_more:
            return
        await self._fetch(self.listing.page + 1)

    async def reset(self) -> None:
        """Drop pending input and restore default filters."""
        self._search.cancel()
        self._price.cancel()
        defaults = ProductFilters()
        if self.filters == defaults:
            return
        self.filters = defaults
        await self.load()

    async def _commit_search(self, text: str) -> None:
        await self._apply(search=text)

    async def _commit_price(self, price_range) -> None:
        min_price, max_price = price_range
        await self._apply(min_price=min_price, max_price=max_price)

    async def _apply(self, **changes: Any) -> None:
        updated = self.filters.update(**changes)
        if updated == self.filters:
            return
        self.filters = updated
        await self.load()

    async def _fetch(self, page: int) -> None:
        filters = self.filters
        self.loading = True
        self.error = None
        try:
            connection = await self.client.fetch_products(page, self.page_size, filters.to_variables())
        except (GatewayQueryError, httpx.HTTPError) as e:
            logger.warning(f"Product fetch failed: {sanitize_string_for_logging(str(e))}")
            self.error = e
            return
        finally:
            self.loading = False

        # A newer filter set superseded this request
        if filters != self.filters:
            return
        self.listing.apply_page(connection, page)
