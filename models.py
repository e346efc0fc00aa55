"""
Project: SharePlate Canteen Backend
Description:
SQLAlchemy models for accounts, canteen menu items, coupons and orders.
"""

from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import validates

from auth import Role
from billing import DiscountRule, DiscountType

db = SQLAlchemy()

MENU_CATEGORIES = ("Breakfast", "Lunch", "Snacks", "Beverages")
ORDER_STATUSES = ("Pending", "Cooking", "Ready", "Delivered", "Cancelled")


def utcnow():
    # naive UTC, which is what SQLite DateTime columns round-trip
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    phone = db.Column(db.String(20), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), default=Role.USER.value, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    @validates("email")
    def _lower_email(self, key, value):
        return (value or "").strip().lower()

    @validates("role")
    def _known_role(self, key, value):
        return Role(value).value

    def to_dict(self):
        return {"id": self.id, "name": self.name, "email": self.email, "role": self.role}


class MenuItem(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    price = db.Column(db.Float, nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(20), nullable=False)
    is_veg = db.Column(db.Boolean, default=True)
    ingredients = db.Column(db.JSON, default=list)
    image = db.Column(db.String(500))
    is_available = db.Column(db.Boolean, default=True)
    rating = db.Column(db.Float, default=0)
    canteen_id = db.Column(db.String(64), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "description": self.description,
            "category": self.category,
            "isVeg": self.is_veg,
            "ingredients": self.ingredients or [],
            "image": self.image,
            "isAvailable": self.is_available,
            "rating": self.rating,
            "canteenId": self.canteen_id,
        }


class Coupon(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(40), unique=True, nullable=False)
    description = db.Column(db.String(255))
    discount_type = db.Column(db.String(20), default=DiscountType.PERCENTAGE.value, nullable=False)
    discount_value = db.Column(db.Float, nullable=False)
    max_discount = db.Column(db.Float, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    expiry_date = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    @validates("code")
    def _upper_code(self, key, value):
        return (value or "").strip().upper()

    @validates("discount_type")
    def _known_type(self, key, value):
        return DiscountType.parse(value).value

    @property
    def rule(self):
        return DiscountRule(
            type=DiscountType(self.discount_type),
            value=self.discount_value,
            max_discount=self.max_discount,
        )

    def to_dict(self):
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "discountType": self.discount_type,
            "discountValue": self.discount_value,
            "maxDiscount": self.max_discount,
            "isActive": self.is_active,
            "expiryDate": self.expiry_date.isoformat(),
        }


class Order(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    canteen_id = db.Column(db.String(64), nullable=False, index=True)
    token_number = db.Column(db.String(20), unique=True, nullable=False)
    status = db.Column(db.String(20), default="Pending")
    payment_status = db.Column(db.String(20), default="Paid")
    coupon_code = db.Column(db.String(40))
    notes = db.Column(db.Text)
    subtotal = db.Column(db.Float, nullable=False)
    service_charge = db.Column(db.Float, nullable=False)
    gst = db.Column(db.Float, nullable=False)
    discount = db.Column(db.Float, default=0)
    total_amount = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    items = db.relationship("OrderItem", backref="order", cascade="all, delete-orphan", lazy=True)
    user = db.relationship("User", lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "canteenId": self.canteen_id,
            "tokenNumber": self.token_number,
            "status": self.status,
            "paymentStatus": self.payment_status,
            "couponCode": self.coupon_code,
            "notes": self.notes,
            "items": [i.to_dict() for i in self.items],
            "subtotal": self.subtotal,
            "serviceCharge": self.service_charge,
            "gst": self.gst,
            "discount": self.discount,
            "totalAmount": self.total_amount,
            "createdAt": self.created_at.isoformat(),
        }


class OrderItem(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("order.id"), nullable=False)
    menu_item_id = db.Column(db.Integer, db.ForeignKey("menu_item.id"), nullable=True)
    name = db.Column(db.String(120), nullable=False)
    price = db.Column(db.Float, nullable=False)
    quantity = db.Column(db.Integer, default=1)

    def line(self):
        return {"price": self.price, "qty": self.quantity}

    def to_dict(self):
        return {"itemId": self.menu_item_id, "name": self.name, "price": self.price, "quantity": self.quantity}
