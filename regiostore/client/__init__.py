from regiostore.client.orders_client import (
    BuyerOrdersClient,
    CachedItem,
    OrderItemCache,
    OrdersApiError,
    SellerOrdersClient,
)

__all__ = [
    "BuyerOrdersClient",
    "CachedItem",
    "OrderItemCache",
    "OrdersApiError",
    "SellerOrdersClient",
]
