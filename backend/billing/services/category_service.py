# Overview: Shop-scoped product categories with per-shop unique names.

from __future__ import annotations

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Category, Product
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import run_with_retry
from .shop_service import get_shop_for_owner

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "color_code"},
    required_on_create={"name"},
)


def find_category(category_id: int, shop_id: int) -> Category:
    category = (
        db.session.query(Category)
        .filter(
            Category.id == category_id,
            Category.shop_id == shop_id,
            Category.is_active.is_(True),
        )
        .first()
    )
    if not category:
        raise NotFoundError("Category", category_id)
    return category


def _ensure_unique_name(shop_id: int, name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Category.id).filter(
        Category.shop_id == shop_id,
        Category.is_active.is_(True),
        db.func.lower(Category.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first():
        raise ConflictError(f"Category '{name}' already exists")


def _product_count(category_id: int) -> int:
    return (
        db.session.query(db.func.count(Product.id))
        .filter(Product.category_id == category_id, Product.is_active.is_(True))
        .scalar()
    ) or 0


def create_category(user_id: int, payload: dict) -> dict:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    shop = get_shop_for_owner(user_id)

    def _op():
        _ensure_unique_name(shop.id, patch["name"])
        category = Category(shop_id=shop.id, **patch)
        db.session.add(category)
        db.session.commit()
        return category

    return run_with_retry(_op).to_dict(product_count=0)


def list_categories(user_id: int) -> list[dict]:
    shop = get_shop_for_owner(user_id)
    counts = dict(
        db.session.query(Product.category_id, db.func.count(Product.id))
        .filter(Product.shop_id == shop.id, Product.is_active.is_(True), Product.category_id.isnot(None))
        .group_by(Product.category_id)
        .all()
    )
    categories = (
        db.session.query(Category)
        .filter(Category.shop_id == shop.id, Category.is_active.is_(True))
        .order_by(Category.name.asc())
        .all()
    )
    return [c.to_dict(product_count=counts.get(c.id, 0)) for c in categories]


def get_category(user_id: int, category_id: int) -> dict:
    shop = get_shop_for_owner(user_id)
    category = find_category(category_id, shop.id)
    return category.to_dict(product_count=_product_count(category.id))


def update_category(user_id: int, category_id: int, payload: dict) -> dict:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
    shop = get_shop_for_owner(user_id)

    def _op():
        category = find_category(category_id, shop.id)
        if "name" in patch:
            _ensure_unique_name(shop.id, patch["name"], exclude_id=category.id)
        for key, value in patch.items():
            setattr(category, key, value)
        db.session.commit()
        return category

    category = run_with_retry(_op)
    return category.to_dict(product_count=_product_count(category.id))


def delete_category(user_id: int, category_id: int) -> None:
    """Soft delete; products keep their category_id but it is no longer listed."""
    shop = get_shop_for_owner(user_id)

    def _op():
        category = find_category(category_id, shop.id)
        category.is_active = False
        db.session.commit()

    run_with_retry(_op)
