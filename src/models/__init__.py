"""Database model type definitions."""

from src.models.contact import ContactMessage, ContactMessageCreate
from src.models.order import Order, OrderCreate, OrderLineItem, OrderUpsert
from src.models.product import CatalogItem, Product, ProductCreate, ProductUpdate
from src.models.user import User, UserCreate

__all__ = [
    "CatalogItem",
    "ContactMessage",
    "ContactMessageCreate",
    "Order",
    "OrderCreate",
    "OrderLineItem",
    "OrderUpsert",
    "Product",
    "ProductCreate",
    "ProductUpdate",
    "User",
    "UserCreate",
]
