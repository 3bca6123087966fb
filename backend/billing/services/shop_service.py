# Overview: Shop lookup and shop profile/settings management for the owning user.

"""
Shop service.

MULTI-TENANT: A user owns at most one shop and every other service resolves
its tenant through get_shop_for_owner(). next_invoice_number is never
client-writable; only numbering_service advances it.
"""

from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Shop
from ..validation import ModelValidationPolicy, enforce_rules_shop, validate_payload
from .concurrency import run_with_retry

SHOP_POLICY = ModelValidationPolicy(
    writable_fields={
        "shop_name",
        "shop_type",
        "tagline",
        "address",
        "phone_number",
        "email",
        "website",
        "gst_number",
        "logo_url",
        "currency",
        "tax_rate",
        "invoice_prefix",
        "include_tax_in_price",
        "terms_and_conditions",
        "footer_note",
    },
    required_on_create={"shop_name"},
    rate_fields={"tax_rate"},
)


def get_shop_for_owner(user_id: int) -> Shop:
    shop = (
        db.session.query(Shop)
        .filter(Shop.owner_user_id == user_id, Shop.is_active.is_(True))
        .first()
    )
    if not shop:
        raise NotFoundError("Shop")
    return shop


def setup_shop(user_id: int, payload: dict) -> dict:
    """Create the caller's shop. A second shop for the same user is a conflict."""
    patch = validate_payload(model=Shop, payload=payload, policy=SHOP_POLICY, partial=False)
    enforce_rules_shop(patch)

    def _op():
        existing = db.session.query(Shop.id).filter(Shop.owner_user_id == user_id).first()
        if existing:
            raise ConflictError("Shop already exists for this user")
        shop = Shop(owner_user_id=user_id, **patch)
        db.session.add(shop)
        db.session.commit()
        return shop

    shop = run_with_retry(_op)
    current_app.logger.info("Shop %s created for user %s", shop.id, user_id)
    return shop.to_dict()


def get_shop(user_id: int) -> dict:
    return get_shop_for_owner(user_id).to_dict()


def update_shop(user_id: int, payload: dict) -> dict:
    patch = validate_payload(model=Shop, payload=payload, policy=SHOP_POLICY, partial=True)
    enforce_rules_shop(patch)

    def _op():
        shop = get_shop_for_owner(user_id)
        for key, value in patch.items():
            setattr(shop, key, value)
        db.session.commit()
        return shop

    shop = run_with_retry(_op)
    current_app.logger.info("Shop %s updated", shop.id)
    return shop.to_dict()
