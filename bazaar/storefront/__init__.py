"""Client-side storefront state: gateway client, filters, listing, cart."""
from bazaar.checkout import CheckoutSummary, checkout_summary

from .cart import CartItem, CartState, CartStore, SavedProduct
from .client import GatewayClient, GatewayQueryError
from .debounce import Debouncer
from .filters import ALL_CATEGORIES, SORT_OPTIONS, ProductFilters, merge_products_page, sort_products
from .listing import ProductBrowser, ProductListing

__all__ = [
    "ALL_CATEGORIES",
    "SORT_OPTIONS",
    "CartItem",
    "CartState",
    "CartStore",
    "CheckoutSummary",
    "Debouncer",
    "GatewayClient",
    "GatewayQueryError",
    "ProductBrowser",
    "ProductFilters",
    "ProductListing",
    "SavedProduct",
    "checkout_summary",
    "merge_products_page",
    "sort_products",
]
