# Overview: Stock ledger for products; adjusts on-hand counts for tracked products.

"""
Stock ledger.

Products with track_inventory=False are never touched. Stock has no floor:
a sale may take current_stock below zero, which the low-stock report then
surfaces. Callers hold the product row (lock_for_update) inside their own
transaction; nothing here commits.
"""

from __future__ import annotations

from ..errors import ValidationError
from ..models import Product


def reduce_stock(product: Product, quantity: int) -> None:
    if quantity <= 0:
        raise ValidationError("quantity must be > 0")
    if product.track_inventory:
        product.current_stock = (product.current_stock or 0) - quantity


def restore_stock(product: Product, quantity: int) -> None:
    if quantity <= 0:
        raise ValidationError("quantity must be > 0")
    if product.track_inventory:
        product.current_stock = (product.current_stock or 0) + quantity


def set_stock(product: Product, quantity: int) -> None:
    """Manual stock correction; sets the absolute on-hand count."""
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity must be an integer")
    product.current_stock = quantity
