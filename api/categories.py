"""
Category service entrypoint.

    uvicorn api.categories:app --port 3012
"""
from bazaar.services.categories import router
from bazaar.services.app import create_service_app

app = create_service_app("Category service", [router])
