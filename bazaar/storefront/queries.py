"""GraphQL documents used by storefront apps."""

PRODUCT_FIELDS = """
    id
    name
    description
    price
    category
    sellerId
    stock
    imageUrl
    images
    tags
    rating
    reviewCount
    featured
"""

GET_PRODUCTS_QUERY = """
query GetProducts(
  $page: Int
  $limit: Int
  $search: String
  $category: String
  $minPrice: Float
  $maxPrice: Float
  $sortBy: String
  $sortOrder: String
  $featured: Boolean
) {
  products(
    page: $page
    limit: $limit
    search: $search
    category: $category
    minPrice: $minPrice
    maxPrice: $maxPrice
    sortBy: $sortBy
    sortOrder: $sortOrder
    featured: $featured
  ) {
    products {%s}
    pagination { page limit total pages }
    total
    page
    totalPages
  }
}
""" % PRODUCT_FIELDS

GET_PRODUCT_QUERY = """
query GetProduct($id: ID!) {
  product(id: $id) {%s}
}
""" % PRODUCT_FIELDS

GET_CATEGORIES_QUERY = """
query GetCategories {
  categories {
    id
    name
    slug
    description
    productCount
  }
}
"""

VALIDATE_COUPON_QUERY = """
query ValidateCoupon($code: String!, $orderTotal: Float!) {
  validateCoupon(code: $code, orderTotal: $orderTotal) {
    valid
    code
    discount
    finalTotal
    discountType
    message
  }
}
"""

ORDER_FIELDS = """
    id
    orderNumber
    sellerId
    items { productId name price quantity subtotal sellerId imageUrl }
    subtotal
    discount
    tax
    shipping
    total
    couponCode
    orderStatus
    paymentStatus
    paymentMethod
    shippingMethod
    createdAt
"""

GET_ORDERS_QUERY = """
query GetOrders($page: Int, $limit: Int) {
  orders(page: $page, limit: $limit) {
    orders {%s}
    pagination { page limit total pages }
  }
}
""" % ORDER_FIELDS

GET_ORDER_QUERY = """
query GetOrder($id: ID!) {
  order(id: $id) {%s
    shippingAddress { name street city state zip country phone }
    notes
  }
}
""" % ORDER_FIELDS

CREATE_ORDER_MUTATION = """
mutation CreateOrder($input: CreateOrderInput!) {
  createOrder(input: $input) {
    orderCount
    orders {%s}
  }
}
""" % ORDER_FIELDS

CANCEL_ORDER_MUTATION = """
mutation CancelOrder($id: ID!) {
  cancelOrder(id: $id) {
    id
    orderNumber
    orderStatus
  }
}
"""
