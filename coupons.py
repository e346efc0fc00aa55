"""
Project: SharePlate Canteen Backend
Description:
Coupon lookup and validation. A coupon is usable only while it is active and
its expiry date lies strictly in the future. Unknown, inactive and expired
codes all come back as "not found".
"""

import logging

from billing import project_discount
from models import Coupon

log = logging.getLogger(__name__)


def canonical_code(code):
    return str(code or "").strip().upper()


class CouponStore:
    """Read-only coupon lookup bound to a database session."""

    def __init__(self, session):
        self.session = session

    def find(self, code, active_only=True, not_expired_at=None):
        query = self.session.query(Coupon).filter(Coupon.code == code)
        if active_only:
            query = query.filter(Coupon.is_active.is_(True))
        if not_expired_at is not None:
            query = query.filter(Coupon.expiry_date > not_expired_at)
        return query.first()


def resolve_coupon(code, at, store):
    canonical = canonical_code(code)
    if not canonical:
        return None
    coupon = store.find(canonical, active_only=True, not_expired_at=at)
    if coupon is None:
        log.info("coupon %s not usable at %s", canonical, at.isoformat())
    return coupon


def validate_coupon(code, total_amount, at, store):
    coupon = resolve_coupon(code, at, store)
    if coupon is None:
        return None
    return project_discount(coupon.rule, total_amount)
