from datetime import datetime, timedelta
from types import SimpleNamespace

from conftest import login_admin, place_order, signup
from cafechain.services import analytics


def _line(menu_id, name, price, qty):
    return SimpleNamespace(menu_item_id=menu_id, dish_name=name, unit_price=price, quantity=qty)


def _order(user_id, created_at, items, restaurant_id=1, total=None):
    return SimpleNamespace(
        user_id=user_id,
        restaurant_id=restaurant_id,
        created_at=created_at,
        items=items,
        total_price=total if total is not None else sum(i.unit_price * i.quantity for i in items),
    )


WINDOW_START = datetime(2024, 5, 1)


# =============================================================================
# PURE REDUCTIONS
# =============================================================================

def test_growth_rate():
    assert analytics.growth_rate(150, 100) == 50
    assert analytics.growth_rate(100, 300) == -66.67
    assert analytics.growth_rate(500, 0) == 0


def test_restaurant_report():
    orders = [
        _order(1, datetime(2024, 5, 2, 9), [_line(10, "Dosa", 100, 2), _line(11, "Coffee", 40, 1)]),
        _order(2, datetime(2024, 5, 2, 13), [_line(11, "Coffee", 40, 3)]),
        _order(1, datetime(2024, 5, 3, 8), [_line(10, "Dosa", 100, 1)]),
    ]
    previous = [_order(3, datetime(2024, 4, 28), [_line(10, "Dosa", 100, 2)])]
    first_order_at = {1: datetime(2024, 4, 1), 2: datetime(2024, 5, 2, 13)}

    report = analytics.restaurant_report(orders, previous, first_order_at, WINDOW_START)

    assert report["overview"] == {
        "totalRevenue": 460,
        "totalOrders": 3,
        "totalCustomers": 2,
        "averageOrderValue": 460 / 3,
        "growthRate": 130.0,
    }
    assert report["dailySales"] == [
        {"date": "2024-05-02", "revenue": 360, "orders": 2, "customers": 2},
        {"date": "2024-05-03", "revenue": 100, "orders": 1, "customers": 1},
    ]
    assert report["topSellingItems"] == [
        {"id": 11, "name": "Coffee", "quantity": 4, "revenue": 160},
        {"id": 10, "name": "Dosa", "quantity": 3, "revenue": 300},
    ]
    assert report["customerMetrics"] == {"newCustomers": 1, "returningCustomers": 1}


def test_restaurant_report_empty_window():
    report = analytics.restaurant_report([], [], {}, WINDOW_START)

    assert report["overview"]["totalRevenue"] == 0
    assert report["overview"]["averageOrderValue"] == 0
    assert report["overview"]["growthRate"] == 0
    assert report["dailySales"] == []
    assert report["topSellingItems"] == []


def test_top_selling_items_keeps_five_and_groups_deleted_items_by_name():
    orders = [
        _order(1, WINDOW_START, [_line(i, f"Dish {i}", 10, i) for i in range(1, 8)]),
        _order(1, WINDOW_START, [_line(None, "Old Special", 10, 20), _line(None, "Old Special", 10, 5)]),
    ]

    top = analytics.top_selling_items(orders)

    assert len(top) == 5
    assert top[0] == {"id": None, "name": "Old Special", "quantity": 25, "revenue": 250}
    assert [t["id"] for t in top[1:]] == [7, 6, 5, 4]


def test_admin_report():
    orders = [
        _order(1, datetime(2024, 5, 30), [], restaurant_id=1, total=300),
        _order(2, datetime(2024, 6, 1), [], restaurant_id=2, total=500),
        _order(3, datetime(2024, 6, 1), [], restaurant_id=1, total=100),
    ]

    report = analytics.admin_report(orders, {1: "Joe's", 2: "Ann's"})

    assert report["totalRevenue"] == 900
    assert report["totalOrders"] == 3
    assert report["averageOrderValue"] == 300
    assert report["topRestaurants"] == [
        {"id": 2, "name": "Ann's", "revenue": 500, "orders": 1},
        {"id": 1, "name": "Joe's", "revenue": 400, "orders": 2},
    ]
    assert report["dailyRevenue"] == [
        {"date": "2024-05-30", "revenue": 300, "orders": 1},
        {"date": "2024-06-01", "revenue": 600, "orders": 2},
    ]
    assert report["monthlyRevenue"] == [
        {"month": "May", "revenue": 300, "orders": 1},
        {"month": "Jun", "revenue": 600, "orders": 2},
    ]


def test_monthly_revenue_is_chronological_across_years():
    start = datetime(2023, 9, 15)
    orders = [_order(1, start + timedelta(days=30 * i), [], total=10) for i in range(8)]

    months = analytics.monthly_revenue(orders)

    assert len(months) == 6
    assert [m["month"] for m in months] == ["Nov", "Dec", "Jan", "Feb", "Mar", "Apr"]


def test_month_bounds():
    assert analytics.month_bounds(datetime(2024, 12, 31).date()) == (datetime(2024, 12, 1), datetime(2025, 1, 1))
    assert analytics.month_bounds(datetime(2024, 2, 10).date()) == (datetime(2024, 2, 1), datetime(2024, 3, 1))


# =============================================================================
# ENDPOINTS
# =============================================================================

def test_analytics_endpoints(client, restaurant):
    rid = restaurant["resto"]["id"]
    signup(client)
    place_order(client, rid, [{"menuId": restaurant["dosa"]["id"], "quantity": 2}], 240)
    place_order(client, rid, [{"menuId": restaurant["coffee"]["id"], "quantity": 1}], 40)

    login_admin(client)

    resto_report = client.get(f"/admin/resto/{rid}/analytics", params={"days": 7}).json()["data"]
    assert resto_report["overview"]["totalRevenue"] == 280
    assert resto_report["overview"]["totalOrders"] == 2
    assert resto_report["overview"]["totalCustomers"] == 1
    assert resto_report["customerMetrics"] == {"newCustomers": 1, "returningCustomers": 0}
    assert resto_report["topSellingItems"][0]["name"] == "Masala Dosa"

    chain = client.get("/admin/analytics").json()["data"]
    assert chain["totalRevenue"] == 280
    assert chain["topRestaurants"][0]["name"] == "Joe's"

    stats = client.get("/admin/dashboard/stats").json()["data"]
    assert stats["today"] == {"totalOrders": 2, "totalRevenue": 280}
    assert stats["monthly"] == {"totalOrders": 2, "totalRevenue": 280}
    assert stats["restaurants"][0]["totalOrders"] == 2
    assert stats["restaurants"][0]["number"] == "1234567890"


def test_restaurant_analytics_unknown_restaurant(client):
    login_admin(client)

    response = client.get("/admin/resto/55/analytics")

    assert response.status_code == 404


def test_analytics_rejects_bad_window(client):
    login_admin(client)

    response = client.get("/admin/analytics", params={"days": 0})

    assert response.status_code == 400
