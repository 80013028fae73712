from conftest import add_menu_item, create_restaurant, login_admin, place_order, signup


def _today(client, rid) -> str:
    return client.get(f"/admin/resto/{rid}/dailyRevenue").json()["date"]


def test_place_order_by_menu_id_and_dish_name(client, restaurant):
    rid = restaurant["resto"]["id"]
    signup(client)

    order = place_order(
        client,
        rid,
        [
            {"menuId": restaurant["dosa"]["id"], "quantity": 2},
            {"dishName": "Filter Coffee", "quantity": 1},
        ],
        280,
        deliveryType="pickup",
    )

    assert order["status"] == "pending"
    assert order["restoId"] == rid
    assert order["totalPrice"] == 280
    assert order["paymentMethod"] == "cash"
    assert order["deliveryType"] == "pickup"
    assert [(i["dishName"], i["unitPrice"], i["quantity"]) for i in order["orderItems"]] == [
        ("Masala Dosa", 120, 2),
        ("Filter Coffee", 40, 1),
    ]

    history = client.get("/user/orderHistory").json()["orders"]
    assert [o["id"] for o in history] == [order["id"]]


def test_unknown_item_is_404(client, restaurant):
    signup(client)

    response = client.post(
        f"/user/resto/{restaurant['resto']['id']}/order",
        json={"totalPrice": 100, "orderItems": [{"dishName": "Pizza", "quantity": 1}]},
    )

    assert response.status_code == 404
    assert client.get("/user/orderHistory").json()["orders"] == []


def test_item_from_another_restaurant_is_404(client, restaurant):
    other = create_restaurant(client, name="Other", number="5550000000")
    signup(client)

    response = client.post(
        f"/user/resto/{other['id']}/order",
        json={"totalPrice": 120, "orderItems": [{"menuId": restaurant["dosa"]["id"], "quantity": 1}]},
    )

    assert response.status_code == 404


def test_unavailable_item_is_rejected(client, restaurant):
    rid = restaurant["resto"]["id"]
    client.post("/admin/changestatus", json={"restoId": rid, "menuId": restaurant["dosa"]["id"], "status": False})
    signup(client)

    response = client.post(
        f"/user/resto/{rid}/order",
        json={"totalPrice": 120, "orderItems": [{"menuId": restaurant["dosa"]["id"], "quantity": 1}]},
    )

    assert response.status_code == 400


def test_closed_restaurant_rejects_orders(client, restaurant):
    rid = restaurant["resto"]["id"]
    client.post(f"/admin/resto/{rid}/changeStatus", json={"status": False})
    signup(client)

    response = client.post(
        f"/user/resto/{rid}/order",
        json={"totalPrice": 120, "orderItems": [{"menuId": restaurant["dosa"]["id"], "quantity": 1}]},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Resto is closed"


def test_unknown_restaurant_is_404(client):
    signup(client)

    response = client.post(
        "/user/resto/42/order",
        json={"totalPrice": 120, "orderItems": [{"menuId": 1, "quantity": 1}]},
    )

    assert response.status_code == 404


def test_order_validation(client, restaurant):
    rid = restaurant["resto"]["id"]
    signup(client)

    empty = client.post(f"/user/resto/{rid}/order", json={"totalPrice": 120, "orderItems": []})
    assert empty.status_code == 400

    no_ref = client.post(f"/user/resto/{rid}/order", json={"totalPrice": 120, "orderItems": [{"quantity": 1}]})
    assert no_ref.status_code == 400
    assert no_ref.json()["message"] == "Each order item needs a menuId or dishName"


def test_history_survives_menu_delete(client, restaurant):
    rid = restaurant["resto"]["id"]
    dosa_id = restaurant["dosa"]["id"]
    signup(client)
    place_order(client, rid, [{"menuId": dosa_id, "quantity": 1}], 120)

    login_admin(client)
    client.post(f"/admin/resto/{rid}/runAds", json={"menuName": "Masala Dosa", "discount": 10})
    assert client.delete(f"/admin/resto/{rid}/menu/{dosa_id}").status_code == 200
    assert client.get(f"/admin/resto/{rid}/getAds").json()["ads"] == []

    orders = client.post(f"/admin/resto/{rid}/orderHistory", json={"date": _today(client, rid)}).json()["orders"]
    line = orders[0]["orderItems"][0]
    assert line["menuId"] is None
    assert line["dishName"] == "Masala Dosa"
    assert line["unitPrice"] == 120


def test_edit_does_not_rewrite_past_orders(client, restaurant):
    rid = restaurant["resto"]["id"]
    dosa_id = restaurant["dosa"]["id"]
    signup(client)
    place_order(client, rid, [{"menuId": dosa_id, "quantity": 1}], 120)

    login_admin(client)
    client.post(f"/admin/resto/{rid}/editMenu", json={"menuId": dosa_id, "price": 200, "name": "Ghee Dosa"})

    orders = client.post(f"/admin/resto/{rid}/orderHistory", json={"date": _today(client, rid)}).json()["orders"]
    assert orders[0]["orderItems"][0]["unitPrice"] == 120
    assert orders[0]["orderItems"][0]["dishName"] == "Masala Dosa"


def test_admin_day_reports(client, restaurant):
    rid = restaurant["resto"]["id"]
    dosa_id = restaurant["dosa"]["id"]
    signup(client)
    first = place_order(client, rid, [{"menuId": dosa_id, "quantity": 1}], 120)
    place_order(client, rid, [{"menuId": dosa_id, "quantity": 2}], 240)

    login_admin(client)
    client.post("/admin/order/changestatus", json={"orderId": first["id"], "status": "delivered"})

    revenue = client.get(f"/admin/resto/{rid}/dailyRevenue").json()
    assert revenue["totalRevenue"] == 360
    assert revenue["orderCount"] == 2
    assert revenue["orders"][0]["user"]["email"] == "a@b.com"

    day = revenue["date"]
    history = client.post(f"/admin/resto/{rid}/orderHistory", json={"date": day}).json()["orders"]
    assert len(history) == 2
    assert history[0]["user"]["number"] == "9876543210"

    delivered = client.post(f"/admin/resto/{rid}/deliveredOrders", json={"date": day}).json()["orders"]
    assert [o["id"] for o in delivered] == [first["id"]]

    other_day = client.post(f"/admin/resto/{rid}/orderHistory", json={"date": "2001-01-01"}).json()["orders"]
    assert other_day == []

    resto = client.get("/admin/allResto").json()["resto"][0]
    assert resto["dailyStats"] == {"orderCount": 1, "totalRevenue": 120, "date": day}


def test_order_history_requires_date(client, restaurant):
    response = client.post(f"/admin/resto/{restaurant['resto']['id']}/orderHistory", json={})

    assert response.status_code == 400


def test_change_status_checks_restaurant(client, restaurant):
    rid = restaurant["resto"]["id"]
    other = create_restaurant(client, name="Other", number="5550000000")
    signup(client)
    order = place_order(client, rid, [{"menuId": restaurant["dosa"]["id"], "quantity": 1}], 120)

    login_admin(client)
    response = client.post(
        "/admin/changestatus",
        json={"restoId": other["id"], "orderId": order["id"], "status": "ready"},
    )

    assert response.status_code == 400


def test_change_status_unknown_order(client):
    login_admin(client)

    response = client.post("/admin/order/changestatus", json={"orderId": 404, "status": "ready"})

    assert response.status_code == 404


# =============================================================================
# ADS
# =============================================================================

def test_ads_lifecycle(client, restaurant):
    rid = restaurant["resto"]["id"]

    created = client.post(f"/admin/resto/{rid}/runAds", json={"menuName": "Filter Coffee", "discount": 15})
    assert created.status_code == 200
    ad = created.json()["ads"]
    assert ad["menuId"] == restaurant["coffee"]["id"]
    assert ad["discount"] == 15

    listed = client.get(f"/admin/resto/{rid}/getAds").json()["ads"]
    assert [a["id"] for a in listed] == [ad["id"]]

    deleted = client.request("DELETE", f"/admin/resto/{rid}/deleteAds", json={"adsId": ad["id"]})
    assert deleted.status_code == 200
    assert client.get(f"/admin/resto/{rid}/getAds").json()["ads"] == []

    again = client.request("DELETE", f"/admin/resto/{rid}/deleteAds", json={"adsId": ad["id"]})
    assert again.status_code == 404


def test_ad_for_unknown_dish(client, restaurant):
    response = client.post(
        f"/admin/resto/{restaurant['resto']['id']}/runAds",
        json={"menuName": "Pizza", "discount": 15},
    )

    assert response.status_code == 404


def test_ad_discount_range(client, restaurant):
    response = client.post(
        f"/admin/resto/{restaurant['resto']['id']}/runAds",
        json={"menuName": "Filter Coffee", "discount": 150},
    )

    assert response.status_code == 400


def test_public_restaurant_list(client, restaurant):
    add_menu_item(client, restaurant["resto"]["id"], "Vada")
    client.cookies.clear()

    response = client.get("/user/restaurants")

    assert response.status_code == 200
    assert response.json()["restaurants"] == [
        {"id": restaurant["resto"]["id"], "name": "Joe's", "location": "Main St", "open": True}
    ]
