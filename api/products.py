"""
Product service entrypoint.

    uvicorn api.products:app --port 3014
"""
from bazaar.services.products import router
from bazaar.services.app import create_service_app

app = create_service_app("Product service", [router])
