"""
Bazaar - multi-service commerce backend.

Packages:
- bazaar.services: REST microservices (products, categories, coupons, tickets)
- bazaar.gateway: GraphQL gateway aggregating the services
- bazaar.storefront: client-side listing, filter and cart state
"""

__version__ = "1.0.1"
