"""
Storefront Backend — ORM Models
=================================

Importing this package registers every table on `Base.metadata`
(used by `Database.create_all` and Alembic autogenerate).

Tables:
    users, categories, products, addresses, contact_messages, orders, order_items
"""

from storefront.models.user import User
from storefront.models.catalog import Category, Product
from storefront.models.address import Address
from storefront.models.contact import ContactMessage
from storefront.models.order import Order, OrderItem, OrderStatus

__all__ = [
    "User",
    "Category",
    "Product",
    "Address",
    "ContactMessage",
    "Order",
    "OrderItem",
    "OrderStatus",
]
