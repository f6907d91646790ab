"""
Sales reports over the order collection.

All reports are full scans grouped in Python; empty collections resolve to 0
or an empty list.
"""
import logging
from collections import OrderedDict
from typing import Dict, List, Tuple

from bson import ObjectId

logger = logging.getLogger(__name__)

MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sept", "Oct", "Nov", "Dec"]


def _amount(value) -> float:
    return float(value or 0)


def total_sales(orders) -> float:
    return sum(_amount(o.get("total_price")) for o in orders.find({}, {"total_price": 1}))


def total_orders(orders) -> int:
    return orders.count_documents({})


def orders_total_amount(order_docs) -> float:
    return sum(_amount(o.get("total_price")) for o in order_docs)


def product_sales(orders) -> dict:
    """Revenue per product name and its share of the grand total.

    The grand total is the sum of every order's `items_price`; a product's
    revenue is the sum of `price * quantity` over its line items.
    """
    grand_total = 0.0
    revenue: Dict[str, float] = OrderedDict()
    for order in orders.find({}, {"items_price": 1, "order_items": 1}):
        grand_total += _amount(order.get("items_price"))
        for item in order.get("order_items") or []:
            name = item.get("name")
            revenue[name] = revenue.get(name, 0.0) + _amount(item.get("price")) * int(item.get("quantity") or 0)

    if not revenue:
        return {"per_product": [], "grand_total": grand_total}

    rows = []
    for name, amount in revenue.items():
        percent = round(amount / grand_total * 100, 2) if grand_total else 0.0
        rows.append({"name": name, "revenue": amount, "percent": percent})
    rows.sort(key=lambda r: (-r["revenue"], str(r["name"])))
    return {"per_product": rows, "grand_total": grand_total}


def customer_sales(orders, users) -> List[dict]:
    """Total spent per customer, largest first.

    Orders whose user no longer exists are left out. Equal totals are ordered
    by customer name, then id.
    """
    totals: Dict[str, float] = {}
    for order in orders.find({}, {"user_id": 1, "total_price": 1}):
        user_id = order.get("user_id")
        if user_id is None:
            continue
        key = str(user_id)
        totals[key] = totals.get(key, 0.0) + _amount(order.get("total_price"))

    ids = [ObjectId(k) for k in totals if ObjectId.is_valid(k)]
    names = {str(u["_id"]): u.get("name") for u in users.find({"_id": {"$in": ids}}, {"name": 1})}

    rows = [
        {"customer_id": key, "customer_name": names[key], "total": total}
        for key, total in totals.items()
        if key in names
    ]
    rows.sort(key=lambda r: (-r["total"], str(r["customer_name"]), r["customer_id"]))
    return rows


def sales_per_month(orders, chronological: bool = False) -> List[dict]:
    """Order totals grouped by the (year, month) of `paid_at`.

    Rows are sorted by month number alone, so the same month of different
    years sits together regardless of year. Pass chronological=True to sort
    by (year, month) instead.
    """
    buckets: Dict[Tuple[int, int], float] = {}
    for order in orders.find({}, {"paid_at": 1, "total_price": 1}):
        paid_at = order.get("paid_at")
        if paid_at is None:
            continue
        key = (paid_at.year, paid_at.month)
        buckets[key] = buckets.get(key, 0.0) + _amount(order.get("total_price"))

    keys = sorted(buckets)
    if not chronological:
        keys.sort(key=lambda k: k[1])
    return [{"year": year, "month": MONTH_LABELS[month - 1], "total": buckets[(year, month)]} for year, month in keys]
