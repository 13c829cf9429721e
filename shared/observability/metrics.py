from prometheus_client import Counter, Histogram

# Business Metrics
ecomm_checkout_total = Counter(
    "ecomm_checkout_total",
    "Total checkouts processed",
    ["status"] # Labels: 'success', 'failed'
)

ecomm_checkout_duration_seconds = Histogram(
    "ecomm_checkout_duration_seconds",
    "Checkout duration in seconds"
)

ecomm_cart_operations_total = Counter(
    "ecomm_cart_operations_total",
    "Cart mutations performed",
    ["operation"] # Labels: 'add', 'update', 'remove', 'clear'
)

ecomm_stock_rejections_total = Counter(
    "ecomm_stock_rejections_total",
    "Requests refused because stock did not cover the quantity",
    ["stage"] # Labels: 'cart', 'checkout'
)

ecomm_favorite_toggles_total = Counter(
    "ecomm_favorite_toggles_total",
    "Favorite toggles",
    ["action"] # Labels: 'added', 'removed'
)
