# Overview: Shop-scoped customer lookup and CRUD with soft delete.

from __future__ import annotations

from flask import current_app

from ..errors import NotFoundError
from ..extensions import db
from ..models import Customer
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import run_with_retry
from .pagination import page_envelope
from .shop_service import get_shop_for_owner

# Aggregates are maintained by the invoice engine, never by clients
CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone_number", "email", "address", "gst_number", "notes"},
    required_on_create={"name"},
)


def find_customer(customer_id: int, shop_id: int) -> Customer:
    """Active customer of the shop, or NotFoundError (also for other shops' ids)."""
    customer = (
        db.session.query(Customer)
        .filter(
            Customer.id == customer_id,
            Customer.shop_id == shop_id,
            Customer.is_active.is_(True),
        )
        .first()
    )
    if not customer:
        raise NotFoundError("Customer", customer_id)
    return customer


def create_customer(user_id: int, payload: dict) -> dict:
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
    shop = get_shop_for_owner(user_id)

    def _op():
        customer = Customer(shop_id=shop.id, **patch)
        db.session.add(customer)
        db.session.commit()
        return customer

    customer = run_with_retry(_op)
    current_app.logger.info("Customer %s created in shop %s", customer.id, shop.id)
    return customer.to_dict()


def list_customers(user_id: int, page: int = 0, size: int = 20, search: str | None = None) -> dict:
    shop = get_shop_for_owner(user_id)
    query = db.session.query(Customer).filter(
        Customer.shop_id == shop.id,
        Customer.is_active.is_(True),
    )
    if search and search.strip():
        term = f"%{search.strip().lower()}%"
        query = query.filter(
            db.or_(
                db.func.lower(Customer.name).like(term),
                db.func.lower(Customer.phone_number).like(term),
                db.func.lower(Customer.email).like(term),
            )
        )
    query = query.order_by(Customer.name.asc(), Customer.id.asc())
    return page_envelope(query, page, size, lambda c: c.to_dict())


def list_all_customers(user_id: int) -> list[dict]:
    """Every active customer of the shop by name, unpaginated (invoice form pickers)."""
    shop = get_shop_for_owner(user_id)
    customers = (
        db.session.query(Customer)
        .filter(Customer.shop_id == shop.id, Customer.is_active.is_(True))
        .order_by(Customer.name.asc(), Customer.id.asc())
        .all()
    )
    return [c.to_dict() for c in customers]


def get_customer(user_id: int, customer_id: int) -> dict:
    shop = get_shop_for_owner(user_id)
    return find_customer(customer_id, shop.id).to_dict()


def update_customer(user_id: int, customer_id: int, payload: dict) -> dict:
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
    shop = get_shop_for_owner(user_id)

    def _op():
        customer = find_customer(customer_id, shop.id)
        for key, value in patch.items():
            setattr(customer, key, value)
        db.session.commit()
        return customer

    return run_with_retry(_op).to_dict()


def delete_customer(user_id: int, customer_id: int) -> None:
    """Soft delete; existing invoices keep their customer link."""
    shop = get_shop_for_owner(user_id)

    def _op():
        customer = find_customer(customer_id, shop.id)
        customer.is_active = False
        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info("Customer %s deactivated in shop %s", customer_id, shop.id)
