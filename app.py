"""
Project: SharePlate Canteen Backend
Description:
Main application entry point. Builds the Flask app, database and Socket.IO
handle, and registers the auth, menu, billing, coupon, order and report
routes.
"""

import logging
import math
import re
import secrets
import time

from flask import Flask, current_app, g, jsonify, request
from flask_socketio import SocketIO
from werkzeug.exceptions import HTTPException
from werkzeug.security import check_password_hash, generate_password_hash

from auth import Denial, Role, authorize_menu_write, bearer_token, issue_token, verify_token
from billing import compute_bill
from config import Config
from coupons import CouponStore, resolve_coupon, validate_coupon
from models import MENU_CATEGORIES, ORDER_STATUSES, MenuItem, Order, OrderItem, User, db, utcnow
import reports

log = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_RE = re.compile(r"^[0-9]{10}$")

MENU_FIELDS = {
    "name": "name",
    "price": "price",
    "description": "description",
    "category": "category",
    "isVeg": "is_veg",
    "ingredients": "ingredients",
    "image": "image",
    "isAvailable": "is_available",
    "canteenId": "canteen_id",
}

# per order line
MAX_QUANTITY = 1000


def _error(message, status):
    return jsonify({"error": message}), status


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _missing(data, fields):
    return [f for f in fields if data.get(f) in (None, "")]


def _price(value):
    """Parse a menu price; None when it is not a non-negative number."""
    if isinstance(value, bool):
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price) or price < 0:
        return None
    return price


def _menu_changes(data):
    """Check the menu fields present in ``data``.

    Returns ``(attrs, None)`` with model attribute values, or ``(None, message)``
    for the first field that cannot be stored.
    """
    changes = {}
    for key in ("name", "canteenId"):
        if key in data:
            value = data[key]
            if value is None or isinstance(value, (bool, dict, list)) or not str(value).strip():
                return None, f"{key} must not be empty"
            changes[MENU_FIELDS[key]] = str(value).strip()
    if "price" in data:
        price = _price(data["price"])
        if price is None:
            return None, "Price must be a non-negative number"
        changes["price"] = price
    if "category" in data:
        if data["category"] not in MENU_CATEGORIES:
            return None, f"Category must be one of {', '.join(MENU_CATEGORIES)}"
        changes["category"] = data["category"]
    for key in ("isVeg", "isAvailable"):
        if key in data:
            if not isinstance(data[key], bool):
                return None, f"{key} must be true or false"
            changes[MENU_FIELDS[key]] = data[key]
    if "ingredients" in data:
        ingredients = data["ingredients"] or []
        if not isinstance(ingredients, list) or not all(isinstance(i, str) for i in ingredients):
            return None, "ingredients must be a list of strings"
        changes["ingredients"] = ingredients
    for key in ("description", "image"):
        if key in data:
            if data[key] is not None and not isinstance(data[key], str):
                return None, f"{key} must be text"
            changes[key] = data[key]
    return changes, None


def generate_token_number():
    stamp = str(int(time.time() * 1000))[-3:]
    return f"TN{stamp}{secrets.randbelow(900) + 100}"


def create_app(testing: bool = False):
    app = Flask(__name__)
    app.config.from_object(Config)

    if testing:
        app.config["TESTING"] = True
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
        app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
        app.config["SOCKETIO_ASYNC_MODE"] = "threading"

    db.init_app(app)
    socketio = SocketIO(
        app,
        cors_allowed_origins=app.config["CORS_ALLOWED_ORIGINS"],
        async_mode=app.config["SOCKETIO_ASYNC_MODE"],
    )

    with app.app_context():
        db.create_all()

    def broadcast(payload):
        socketio.emit("event", payload)

    # --------- helpers ---------
    def current_claim():
        token = bearer_token(request.headers.get("Authorization"))
        return verify_token(token, app.config["SECRET_KEY"], app.config["TOKEN_MAX_AGE"])

    def require_login():
        g.claim = current_claim()
        if g.claim is None:
            return _error("Unauthorized", 401)

    def require_admin():
        g.claim = current_claim()
        decision = authorize_menu_write(g.claim)
        if decision.allowed:
            return None
        if decision.reason is Denial.UNAUTHENTICATED:
            return _error("Unauthorized", 401)
        return _error("Forbidden", 403)

    def coupon_store():
        return CouponStore(db.session)

    # --------- errors ---------
    @app.errorhandler(HTTPException)
    def http_error(exc):
        return _error(exc.description, exc.code)

    @app.errorhandler(Exception)
    def internal_error(exc):
        db.session.rollback()
        current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return _error("Internal server error", 500)

    # ---------- AUTH ----------
    @app.post("/api/auth/signup")
    def signup():
        data = _json_body()
        missing = _missing(data, ["name", "email", "phone", "password"])
        if missing:
            return _error(f"Missing required fields: {', '.join(missing)}", 400)
        name = str(data["name"]).strip()
        email = str(data["email"]).strip().lower()
        phone = str(data["phone"]).strip()
        password = str(data["password"])
        if len(name) < 2:
            return _error("Name must be at least 2 characters", 400)
        if not EMAIL_RE.match(email):
            return _error("Invalid email address", 400)
        if not PHONE_RE.match(phone):
            return _error("Phone must be 10 digits", 400)
        if len(password) < 6:
            return _error("Password must be at least 6 characters", 400)
        if User.query.filter_by(email=email).first():
            return _error("Email already exists", 400)

        user = User(
            name=name,
            email=email,
            phone=phone,
            password_hash=generate_password_hash(password),
            role=Role.USER.value,
        )
        db.session.add(user)
        db.session.commit()
        log.info("account created for %s", user.email)
        token = issue_token(user, app.config["SECRET_KEY"])
        return jsonify({"message": "Signup successful", "user": user.to_dict(), "token": token}), 201

    @app.post("/api/auth/login")
    def login():
        data = _json_body()
        email = str(data.get("email") or "").strip().lower()
        password = str(data.get("password") or "")
        user = User.query.filter_by(email=email).first()
        if not user or not check_password_hash(user.password_hash, password):
            return _error("Invalid email or password", 401)
        token = issue_token(user, app.config["SECRET_KEY"])
        return jsonify({"message": "Login successful", "user": user.to_dict(), "token": token})

    # ---------- MENU ----------
    @app.get("/api/menu")
    def list_menu():
        query = MenuItem.query.filter_by(is_available=True)
        category = request.args.get("category")
        canteen_id = request.args.get("canteenId")
        if category:
            query = query.filter_by(category=category)
        if canteen_id:
            query = query.filter_by(canteen_id=canteen_id)
        items = query.order_by(MenuItem.id.desc()).all()
        return jsonify({"items": [m.to_dict() for m in items]})

    @app.post("/api/menu/add")
    def create_menu():
        resp = require_admin()
        if resp:
            return resp
        data = _json_body()
        if _missing(data, ["name", "price", "category", "canteenId"]):
            return _error("Missing required fields", 400)
        changes, problem = _menu_changes(data)
        if problem:
            return _error(problem, 400)

        m = MenuItem(**changes)
        db.session.add(m)
        db.session.commit()
        broadcast({"type": "menu.created", "item": m.to_dict()})
        return jsonify({"message": "Menu item added successfully", "item": m.to_dict()}), 201

    @app.put("/api/menu/<int:item_id>")
    def update_menu(item_id):
        resp = require_admin()
        if resp:
            return resp
        m = db.get_or_404(MenuItem, item_id, description="Menu item not found")
        changes, problem = _menu_changes(_json_body())
        if problem:
            return _error(problem, 400)
        for attr, value in changes.items():
            setattr(m, attr, value)
        db.session.commit()
        broadcast({"type": "menu.updated", "item": m.to_dict()})
        return jsonify({"message": "Menu item updated successfully", "item": m.to_dict()})

    @app.delete("/api/menu/<int:item_id>")
    def delete_menu(item_id):
        resp = require_admin()
        if resp:
            return resp
        m = db.get_or_404(MenuItem, item_id, description="Menu item not found")
        db.session.delete(m)
        db.session.commit()
        broadcast({"type": "menu.deleted", "id": item_id})
        return jsonify({"message": "Menu item deleted successfully"})

    # ---------- BILLING & COUPONS ----------
    @app.post("/api/bill")
    def bill():
        data = _json_body()
        rule = None
        code = data.get("couponCode")
        if code:
            coupon = resolve_coupon(code, utcnow(), coupon_store())
            if coupon is None:
                return _error("Invalid or expired coupon", 404)
            rule = coupon.rule
        return jsonify(compute_bill(data.get("items"), rule).to_dict())

    @app.post("/api/coupons/validate")
    def check_coupon():
        data = _json_body()
        if _missing(data, ["code", "totalAmount"]):
            return _error("Code and total amount are required", 400)
        total_amount = _price(data["totalAmount"])
        if total_amount is None:
            return _error("Total amount must be a non-negative number", 400)
        resolved = validate_coupon(str(data["code"]), total_amount, utcnow(), coupon_store())
        if resolved is None:
            return _error("Invalid or expired coupon", 404)
        return jsonify(resolved.to_dict())

    # ---------- ORDERS ----------
    @app.post("/api/orders")
    def create_order():
        resp = require_login()
        if resp:
            return resp
        data = _json_body()
        items = data.get("items")
        if not items or not isinstance(items, list) or _missing(data, ["canteenId"]):
            return _error("Missing required fields", 400)

        lines = []
        for it in items:
            if not isinstance(it, dict):
                return _error("Invalid order item", 400)
            item_id = it.get("itemId")
            try:
                mi = db.session.get(MenuItem, int(item_id))
            except (TypeError, ValueError):
                mi = None
            if not mi or not mi.is_available:
                return _error(f"Menu item {item_id} unavailable", 400)
            try:
                quantity = int(it.get("quantity", 1))
            except (TypeError, ValueError, OverflowError):
                quantity = 0
            if not 1 <= quantity <= MAX_QUANTITY:
                return _error(f"Invalid quantity for menu item {item_id}", 400)
            lines.append(OrderItem(menu_item_id=mi.id, name=mi.name, price=mi.price, quantity=quantity))

        rule = None
        code = data.get("couponCode")
        if code:
            coupon = resolve_coupon(code, utcnow(), coupon_store())
            if coupon is None:
                return _error("Invalid or expired coupon", 404)
            rule = coupon.rule
            code = coupon.code

        result = compute_bill([oi.line() for oi in lines], rule)
        token_number = generate_token_number()
        while Order.query.filter_by(token_number=token_number).first():
            token_number = generate_token_number()

        o = Order(
            user_id=g.claim.user_id,
            canteen_id=str(data["canteenId"]),
            token_number=token_number,
            coupon_code=code or None,
            notes=data.get("notes"),
            subtotal=result.subtotal,
            service_charge=result.service_charge,
            gst=result.gst,
            discount=result.discount,
            total_amount=result.total,
            items=lines,
        )
        db.session.add(o)
        db.session.commit()
        log.info("order %s placed, total %.2f", o.token_number, o.total_amount)
        broadcast({"type": "order.created", "order": o.to_dict()})
        summary = {"id": o.id, "tokenNumber": o.token_number, "status": o.status, "totalAmount": o.total_amount}
        return jsonify({"message": "Order created successfully", "order": summary}), 201

    @app.get("/api/orders")
    def list_orders():
        resp = require_login()
        if resp:
            return resp
        query = Order.query
        canteen_id = request.args.get("canteenId")
        if g.claim.role is Role.USER:
            query = query.filter_by(user_id=g.claim.user_id)
        elif canteen_id:
            query = query.filter_by(canteen_id=canteen_id)
        orders = query.order_by(Order.created_at.desc(), Order.id.desc()).all()
        return jsonify({"orders": [o.to_dict() for o in orders]})

    @app.get("/api/orders/<int:order_id>")
    def get_order(order_id):
        o = db.get_or_404(Order, order_id, description="Order not found")
        return jsonify({"order": o.to_dict()})

    @app.put("/api/orders/<int:order_id>")
    def update_order(order_id):
        resp = require_admin()
        if resp:
            return resp
        data = _json_body()
        status = data.get("status")
        if status not in ORDER_STATUSES:
            return _error("Invalid status", 400)
        o = db.get_or_404(Order, order_id, description="Order not found")
        o.status = status
        db.session.commit()
        broadcast({"type": "order.updated", "order": o.to_dict()})
        return jsonify({"message": "Order status updated successfully", "order": o.to_dict()})

    # ---------- REPORTS ----------
    @app.get("/api/reports/daily")
    def report_daily():
        resp = require_admin()
        if resp:
            return resp
        try:
            day = reports.parse_day(request.args.get("date"))
        except ValueError:
            return _error("date must be YYYY-MM-DD", 400)
        return jsonify(reports.daily_report(day, request.args.get("canteenId")))

    @app.get("/api/reports/monthly")
    def report_monthly():
        resp = require_admin()
        if resp:
            return resp
        try:
            month, year = reports.parse_month(request.args.get("month"), request.args.get("year"))
        except ValueError:
            return _error("month must be 1-12 and year a valid year", 400)
        return jsonify(reports.monthly_report(month, year, request.args.get("canteenId")))

    # ---------- HEALTH ----------
    @app.get("/api/health")
    def health():
        return jsonify({"ok": True})

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app = create_app()
    app.extensions["socketio"].run(app, host="0.0.0.0", port=5013, debug=True)
