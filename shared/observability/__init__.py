from .setup import REQUEST_ID_HEADER, setup_observability
from .metrics import (
    ecomm_cart_operations_total,
    ecomm_checkout_duration_seconds,
    ecomm_checkout_total,
    ecomm_favorite_toggles_total,
    ecomm_stock_rejections_total,
)
