"""
Coupon service entrypoint.

    uvicorn api.coupons:app --port 3013
"""
from bazaar.services.coupons import router
from bazaar.services.app import create_service_app

app = create_service_app("Coupon service", [router])
