"""Product service."""
from .service import ProductService, get_product_service
from .router import router

__all__ = ["ProductService", "get_product_service", "router"]
