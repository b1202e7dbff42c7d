from regiostore.models.buyer import Buyer
from regiostore.models.seller import Seller
from regiostore.models.product import Product, ProductVariety, ProductOption
from regiostore.models.order import Order, OrderItem
from regiostore.models.order_item_transition import OrderItemTransition
from regiostore.models.idempotency_key import IdempotencyKey

__all__ = [
    "Buyer",
    "Seller",
    "Product",
    "ProductVariety",
    "ProductOption",
    "Order",
    "OrderItem",
    "OrderItemTransition",
    "IdempotencyKey",
]
