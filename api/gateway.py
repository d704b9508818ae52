"""
GraphQL gateway entrypoint.

    uvicorn api.gateway:app --port 4000
"""
from bazaar.gateway import create_gateway_app

app = create_gateway_app()
