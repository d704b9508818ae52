"""
Order service entrypoint.

    uvicorn api.orders:app --port 3015
"""
from bazaar.services.orders import router
from bazaar.services.app import create_service_app

app = create_service_app("Order service", [router])
