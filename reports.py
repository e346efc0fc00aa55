"""
Project: SharePlate Canteen Backend
Description:
Sales reports over paid orders: a single day, or a calendar month with a
per-day revenue breakdown.
"""

from datetime import datetime, timedelta

from models import ORDER_STATUSES, Order, utcnow


def parse_day(raw, today=None):
    """Return the date named by ``raw`` (YYYY-MM-DD), today when blank."""
    if not raw:
        return today or utcnow().date()
    day = datetime.strptime(raw, "%Y-%m-%d").date()
    if day.year > 9998:
        raise ValueError("date out of range")
    return day


def parse_month(raw_month, raw_year, today=None):
    today = today or utcnow().date()
    month = int(raw_month) if raw_month else today.month
    year = int(raw_year) if raw_year else today.year
    if not 1 <= month <= 12 or not 1 <= year <= 9998:
        raise ValueError("month or year out of range")
    return month, year


def day_bounds(day):
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1)


def month_bounds(month, year):
    start = datetime(year, month, 1)
    if month == 12:
        return start, datetime(year + 1, 1, 1)
    return start, datetime(year, month + 1, 1)


def paid_orders(start, end, canteen_id=None):
    query = Order.query.filter(
        Order.payment_status == "Paid",
        Order.created_at >= start,
        Order.created_at < end,
    )
    if canteen_id:
        query = query.filter(Order.canteen_id == canteen_id)
    return query.order_by(Order.created_at).all()


def summarize(orders):
    return {
        "totalRevenue": sum(o.total_amount for o in orders),
        "totalOrders": len(orders),
        "totalItems": sum(i.quantity for o in orders for i in o.items),
    }


def status_counts(orders):
    counts = {status.lower(): 0 for status in ORDER_STATUSES}
    for o in orders:
        key = (o.status or "").lower()
        if key in counts:
            counts[key] += 1
    return counts


def daily_breakdown(orders):
    by_day = {}
    for o in orders:
        day = o.created_at.date().isoformat()
        by_day[day] = by_day.get(day, 0.0) + o.total_amount
    return by_day


def daily_report(day, canteen_id=None):
    orders = paid_orders(*day_bounds(day), canteen_id=canteen_id)
    report = {"date": day.isoformat(), **summarize(orders)}
    report["statusCounts"] = status_counts(orders)
    report["orders"] = [o.to_dict() for o in orders]
    return report


def monthly_report(month, year, canteen_id=None):
    orders = paid_orders(*month_bounds(month, year), canteen_id=canteen_id)
    report = {"month": month, "year": year, **summarize(orders)}
    report["dailyBreakdown"] = daily_breakdown(orders)
    return report
