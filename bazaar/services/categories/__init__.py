"""Category service."""
from .service import CategoryService, get_category_service
from .router import router

__all__ = ["CategoryService", "get_category_service", "router"]
