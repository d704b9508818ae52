"""
Ticket service entrypoint.

    uvicorn api.tickets:app --port 3016
"""
from bazaar.services.tickets import router
from bazaar.services.app import create_service_app

app = create_service_app("Ticket service", [router])
