"""
Order status changes and the stock movements they trigger.

The first time an order leaves "Processing" the stock of every line item is
decremented. Each decrement is recorded as it is applied; if a later one fails
(missing product, short stock, store error) or the order itself cannot be
saved, the recorded decrements are reversed before the error propagates.

The order is claimed (`stock_applied` set against the status that was read)
before any stock moves, and the status write is guarded the same way, so two
updates racing on one order cannot both take stock; the loser gets a 409.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from bson import ObjectId

from database import to_object_id
from errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PROCESSING = "Processing"
SHIPPED = "Shipped"
DELIVERED = "Delivered"
ORDER_STATUSES = (PROCESSING, SHIPPED, DELIVERED)


class StockLedger:
    """Stock decrements applied so far, for undoing a partial update."""

    def __init__(self, products):
        self.products = products
        self.applied: List[Tuple[ObjectId, int]] = []

    def decrement(self, item: dict):
        product_id = to_object_id(item.get("product"))
        quantity = int(item.get("quantity") or 0)
        result = self.products.update_one(
            {"_id": product_id, "stock": {"$gte": quantity}},
            {"$inc": {"stock": -quantity}},
        )
        if result.matched_count == 0:
            if self.products.count_documents({"_id": product_id}) == 0:
                raise NotFoundError(f"Product not found: {item.get('name') or product_id}")
            raise ValidationError(f"Insufficient stock for {item.get('name') or product_id}")
        self.applied.append((product_id, quantity))

    def rollback(self):
        for product_id, quantity in reversed(self.applied):
            try:
                self.products.update_one({"_id": product_id}, {"$inc": {"stock": quantity}})
            except Exception:
                logger.exception("Could not restore %s units of product %s", quantity, product_id)
        self.applied = []


def _claim_stock(orders, order: dict):
    """Mark the order's stock as taken, unless another update got there first."""
    result = orders.update_one(
        {"_id": order["_id"], "stock_applied": {"$ne": True}, "order_status": order.get("order_status")},
        {"$set": {"stock_applied": True}},
    )
    if result.matched_count == 0:
        raise ConflictError("Order was changed by another request, reload and retry")


def _release_stock_claim(orders, order_id):
    try:
        orders.update_one({"_id": order_id}, {"$unset": {"stock_applied": ""}})
    except Exception:
        logger.exception("Could not clear the stock claim on order %s", order_id)


def update_order_status(orders, products, order_id, status: str, now: Optional[datetime] = None) -> dict:
    if status not in ORDER_STATUSES:
        raise ValidationError(f"Invalid order status: {status}")
    order = orders.find_one({"_id": to_object_id(order_id)})
    if not order:
        raise NotFoundError("No order found with this id")
    if order.get("order_status") == DELIVERED:
        raise ValidationError("You have already delivered this order")

    now = now or datetime.now(timezone.utc)
    update = {"order_status": status, "updated_at": now}
    if status == DELIVERED:
        update["delivered_at"] = now

    claimed = False
    ledger = StockLedger(products)
    try:
        if status != PROCESSING and not order.get("stock_applied"):
            _claim_stock(orders, order)
            claimed = True
            for item in order.get("order_items") or []:
                ledger.decrement(item)
        result = orders.update_one(
            {"_id": order["_id"], "order_status": order.get("order_status")},
            {"$set": update},
        )
        if result.matched_count == 0:
            raise ConflictError("Order was changed by another request, reload and retry")
    except Exception:
        ledger.rollback()
        if claimed:
            _release_stock_claim(orders, order["_id"])
        raise

    logger.info("Order %s status %s -> %s", order["_id"], order.get("order_status"), status)
    return orders.find_one({"_id": order["_id"]})


def log_notifier(order: dict):
    logger.info("Order %s is now %s", order.get("_id"), order.get("order_status"))


def notify_status_change(order: dict, notifier: Optional[Callable[[dict], None]] = None) -> bool:
    """Send the status-change notification (receipt email etc.).

    Failures are logged and reported as False; the status change stands.
    """
    try:
        (notifier or log_notifier)(order)
        return True
    except Exception:
        logger.exception("Notification for order %s failed", order.get("_id"))
        return False
