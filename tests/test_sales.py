from datetime import datetime

import pytest

import sales


def test_product_sales_without_orders(mongo):
    report = sales.product_sales(mongo["order"])
    assert report == {"per_product": [], "grand_total": 0}


def test_product_sales_revenue_and_percent(mongo, make_order, line_item, new_id):
    boot, sock = new_id(), new_id()
    make_order(items=[line_item(boot, "Boot", 100.0, 2), line_item(sock, "Sock", 5.0, 4)])
    make_order(items=[line_item(boot, "Boot", 100.0, 1)])

    report = sales.product_sales(mongo["order"])

    assert report["grand_total"] == 320.0
    assert report["per_product"] == [
        {"name": "Boot", "revenue": 300.0, "percent": 93.75},
        {"name": "Sock", "revenue": 20.0, "percent": 6.25},
    ]


def test_product_sales_percent_is_rounded_to_two_places(mongo, make_order, line_item, new_id):
    make_order(items=[line_item(new_id(), "A", 1.0, 1), line_item(new_id(), "B", 2.0, 1)])
    rows = {r["name"]: r["percent"] for r in sales.product_sales(mongo["order"])["per_product"]}
    assert rows == {"A": 33.33, "B": 66.67}


def test_product_sales_zero_grand_total(mongo, make_order, line_item, new_id):
    make_order(items=[line_item(new_id(), "Freebie", 0.0, 3)], items_price=0)
    report = sales.product_sales(mongo["order"])
    assert report["per_product"] == [{"name": "Freebie", "revenue": 0.0, "percent": 0.0}]


def test_customer_sales_sorted_descending(mongo, make_user, make_order):
    ann = make_user("Ann Lee")
    bob = make_user("Bob Ray")
    cid = make_user("Cid Moe")
    make_order(user_id=ann.id, total_price=30.0, items_price=30.0)
    make_order(user_id=bob.id, total_price=80.0, items_price=80.0)
    make_order(user_id=ann.id, total_price=60.0, items_price=60.0)
    make_order(user_id=cid.id, total_price=10.0, items_price=10.0)

    rows = sales.customer_sales(mongo["order"], mongo["user"])

    assert [(r["customer_name"], r["total"]) for r in rows] == [("Ann Lee", 90.0), ("Bob Ray", 80.0), ("Cid Moe", 10.0)]
    totals = [r["total"] for r in rows]
    assert all(a > b for a, b in zip(totals, totals[1:]))


def test_customer_sales_ties_break_on_name(mongo, make_user, make_order):
    zed = make_user("Zed Fox")
    amy = make_user("Amy Fox")
    make_order(user_id=zed.id, total_price=50.0)
    make_order(user_id=amy.id, total_price=50.0)
    rows = sales.customer_sales(mongo["order"], mongo["user"])
    assert [r["customer_name"] for r in rows] == ["Amy Fox", "Zed Fox"]


def test_customer_sales_skips_deleted_users(mongo, make_user, make_order, new_id):
    ann = make_user("Ann Lee")
    make_order(user_id=ann.id, total_price=20.0)
    make_order(user_id=new_id(), total_price=99.0)
    rows = sales.customer_sales(mongo["order"], mongo["user"])
    assert [r["customer_name"] for r in rows] == ["Ann Lee"]


def test_customer_sales_empty(mongo):
    assert sales.customer_sales(mongo["order"], mongo["user"]) == []


def test_sales_per_month_sorts_by_month_number_only(mongo, make_order):
    make_order(total_price=10.0, paid_at=datetime(2024, 3, 2))
    make_order(total_price=5.0, paid_at=datetime(2023, 3, 20))
    make_order(total_price=7.0, paid_at=datetime(2023, 9, 1))
    make_order(total_price=1.0, paid_at=datetime(2024, 1, 9))
    make_order(total_price=2.0, paid_at=datetime(2024, 3, 30))

    rows = sales.sales_per_month(mongo["order"])

    assert rows == [
        {"year": 2024, "month": "Jan", "total": 1.0},
        {"year": 2023, "month": "Mar", "total": 5.0},
        {"year": 2024, "month": "Mar", "total": 12.0},
        {"year": 2023, "month": "Sept", "total": 7.0},
    ]


def test_sales_per_month_chronological(mongo, make_order):
    make_order(total_price=10.0, paid_at=datetime(2024, 3, 2))
    make_order(total_price=7.0, paid_at=datetime(2023, 9, 1))
    make_order(total_price=1.0, paid_at=datetime(2024, 1, 9))

    rows = sales.sales_per_month(mongo["order"], chronological=True)

    assert [(r["year"], r["month"]) for r in rows] == [(2023, "Sept"), (2024, "Jan"), (2024, "Mar")]


def test_sales_per_month_skips_unpaid_orders(mongo, make_order):
    order_id = make_order(total_price=10.0)
    mongo["order"].update_one({"_id": order_id}, {"$unset": {"paid_at": ""}})
    assert sales.sales_per_month(mongo["order"]) == []


def test_totals(mongo, make_order):
    make_order(total_price=12.5, items_price=10.0)
    make_order(total_price=7.5, items_price=5.0)
    assert sales.total_sales(mongo["order"]) == pytest.approx(20.0)
    assert sales.total_orders(mongo["order"]) == 2
    assert sales.orders_total_amount(mongo["order"].find({})) == pytest.approx(20.0)


def test_totals_empty(mongo):
    assert sales.total_sales(mongo["order"]) == 0
    assert sales.total_orders(mongo["order"]) == 0
