"""
Project: SharePlate Canteen Backend
Description:
Seeds demo accounts, menu items and coupons into the configured database.
"""

from datetime import timedelta

from werkzeug.security import generate_password_hash

from app import create_app
from auth import Role
from models import Coupon, MenuItem, User, db, utcnow

app = create_app()
with app.app_context():
    accounts = [
        ("Super Admin", "superadmin@shareplate.local", Role.SUPER_ADMIN),
        ("Canteen Admin", "admin@shareplate.local", Role.ADMIN),
        ("Demo Student", "student@shareplate.local", Role.USER),
    ]
    for name, email, role in accounts:
        if not User.query.filter_by(email=email).first():
            db.session.add(User(
                name=name,
                email=email,
                phone="9999999999",
                password_hash=generate_password_hash("password"),
                role=role.value,
            ))

    if MenuItem.query.count() == 0:
        db.session.add_all([
            MenuItem(name="Masala Dosa", price=60, category="Breakfast", canteen_id="main"),
            MenuItem(name="Veg Thali", price=100, category="Lunch", canteen_id="main"),
            MenuItem(name="Samosa", price=20, category="Snacks", canteen_id="main"),
            MenuItem(name="Filter Coffee", price=25, category="Beverages", canteen_id="main"),
        ])

    if Coupon.query.count() == 0:
        expiry = utcnow() + timedelta(days=90)
        db.session.add_all([
            Coupon(code="SAVE10", description="10% off, up to 20", discount_type="percentage",
                   discount_value=10, max_discount=20, expiry_date=expiry),
            Coupon(code="FLAT50", description="50 off any order", discount_type="fixed",
                   discount_value=50, expiry_date=expiry),
        ])

    db.session.commit()
    print("Seeded. Admin login: admin@shareplate.local / password")
