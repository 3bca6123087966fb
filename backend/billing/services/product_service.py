# backend/billing/services/product_service.py
"""
Product service with shop scoping.

MULTI-TENANT: every lookup filters on shop_id, and a product id from another
shop is reported exactly like a missing one. Deletes are soft so invoice
lines keep pointing at their product.
"""
from __future__ import annotations

from flask import current_app

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Product
from ..validation import ModelValidationPolicy, enforce_rules_product, validate_payload
from .category_service import find_category
from .concurrency import lock_for_update, run_with_retry
from .pagination import page_envelope
from .shop_service import get_shop_for_owner
from .stock_service import set_stock

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "category_id",
        "name",
        "description",
        "selling_price",
        "cost_price",
        "sku",
        "barcode",
        "unit",
        "image_url",
        "track_inventory",
        "current_stock",
        "low_stock_alert",
    },
    required_on_create={"name", "selling_price"},
)


def find_product(product_id: int, shop_id: int, *, for_update: bool = False) -> Product:
    """Active product of the shop, or NotFoundError."""
    query = db.session.query(Product).filter(
        Product.id == product_id,
        Product.shop_id == shop_id,
        Product.is_active.is_(True),
    )
    if for_update:
        query = lock_for_update(query)
    product = query.first()
    if not product:
        raise NotFoundError("Product", product_id)
    return product


def _check_category(patch: dict, shop_id: int) -> None:
    category_id = patch.get("category_id")
    if category_id is not None:
        find_category(category_id, shop_id)


def create_product(user_id: int, payload: dict) -> dict:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    shop = get_shop_for_owner(user_id)
    _check_category(patch, shop.id)

    def _op():
        product = Product(shop_id=shop.id, **patch)
        db.session.add(product)
        db.session.commit()
        return product

    product = run_with_retry(_op)
    current_app.logger.info("Product %s created in shop %s", product.id, shop.id)
    return product.to_dict()


def list_products(
    user_id: int,
    page: int = 0,
    size: int = 20,
    search: str | None = None,
    category_id: int | None = None,
) -> dict:
    shop = get_shop_for_owner(user_id)
    query = db.session.query(Product).filter(
        Product.shop_id == shop.id,
        Product.is_active.is_(True),
    )
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if search and search.strip():
        term = f"%{search.strip().lower()}%"
        query = query.filter(
            db.or_(
                db.func.lower(Product.name).like(term),
                db.func.lower(Product.sku).like(term),
                db.func.lower(Product.barcode).like(term),
            )
        )
    query = query.order_by(Product.name.asc(), Product.id.asc())
    return page_envelope(query, page, size, lambda p: p.to_dict())


def list_all_products(user_id: int) -> list[dict]:
    shop = get_shop_for_owner(user_id)
    products = (
        db.session.query(Product)
        .filter(Product.shop_id == shop.id, Product.is_active.is_(True))
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )
    return [p.to_dict() for p in products]


def list_low_stock(user_id: int) -> list[dict]:
    shop = get_shop_for_owner(user_id)
    products = (
        db.session.query(Product)
        .filter(
            Product.shop_id == shop.id,
            Product.is_active.is_(True),
            Product.track_inventory.is_(True),
            Product.current_stock <= Product.low_stock_alert,
        )
        .order_by(Product.current_stock.asc(), Product.name.asc())
        .all()
    )
    return [p.to_dict() for p in products]


def get_product(user_id: int, product_id: int) -> dict:
    shop = get_shop_for_owner(user_id)
    return find_product(product_id, shop.id).to_dict()


def update_product(user_id: int, product_id: int, payload: dict) -> dict:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)
    shop = get_shop_for_owner(user_id)
    _check_category(patch, shop.id)

    def _op():
        product = find_product(product_id, shop.id, for_update=True)
        for key, value in patch.items():
            setattr(product, key, value)
        db.session.commit()
        return product

    return run_with_retry(_op).to_dict()


def update_stock(user_id: int, product_id: int, quantity) -> dict:
    """Manual stock correction to an absolute count."""
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity must be an integer")
    shop = get_shop_for_owner(user_id)

    def _op():
        product = find_product(product_id, shop.id, for_update=True)
        set_stock(product, quantity)
        db.session.commit()
        return product

    product = run_with_retry(_op)
    current_app.logger.info("Stock for product %s set to %s", product.id, quantity)
    return product.to_dict()


def delete_product(user_id: int, product_id: int) -> None:
    shop = get_shop_for_owner(user_id)

    def _op():
        product = find_product(product_id, shop.id, for_update=True)
        product.is_active = False
        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info("Product %s deactivated in shop %s", product_id, shop.id)
