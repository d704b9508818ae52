"""REST microservices (product, category, coupon, ticket)."""
