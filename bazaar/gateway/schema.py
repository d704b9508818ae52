"""Root GraphQL schema: per-service query/mutation roots merged together."""
import strawberry
from strawberry.tools import merge_types

from .resolvers.categories import CategoryMutation, CategoryQuery
from .resolvers.coupons import CouponMutation, CouponQuery
from .resolvers.dashboard import DashboardQuery
from .resolvers.orders import OrderMutation, OrderQuery
from .resolvers.products import ProductMutation, ProductQuery
from .resolvers.tickets import TicketMutation, TicketQuery

Query = merge_types(
    "Query",
    (
        ProductQuery,
        CategoryQuery,
        CouponQuery,
        TicketQuery,
        OrderQuery,
        DashboardQuery,
    ),
)

Mutation = merge_types(
    "Mutation",
    (
        ProductMutation,
        CategoryMutation,
        CouponMutation,
        TicketMutation,
        OrderMutation,
    ),
)

schema = strawberry.Schema(query=Query, mutation=Mutation)
