import asyncio

from sqlalchemy import func, select

from conftest import add_menu_item, create_restaurant, login_admin, signup
from cafechain.database import async_session_maker
from cafechain.models import User, WalletTransaction


def _ledger(email: str) -> tuple[int, int, int]:
    """(balance, ledger row count, ledger sum) straight from the database."""
    async def load():
        async with async_session_maker() as db:
            user = (await db.execute(select(User).where(User.email == email))).scalar_one()
            count, total = (
                await db.execute(
                    select(func.count(WalletTransaction.id), func.coalesce(func.sum(WalletTransaction.amount), 0))
                    .where(WalletTransaction.user_id == user.id)
                )
            ).one()
            return user.balance, count, total
    return asyncio.run(load())


def _top_up(client, amount, mode="upi"):
    return client.post("/user/addWalletBalance", json={"amount": amount, "modeOfPayment": mode})


def test_top_ups_accumulate_in_ledger(client):
    signup(client)
    assert client.get("/user/getWalletBalance").json()["balance"] == 0

    first = _top_up(client, 500)
    assert first.status_code == 200
    assert first.json()["balance"] == 500
    assert first.json()["userWallet"]["amount"] == 500
    assert first.json()["userWallet"]["modeOfPayment"] == "upi"
    assert _ledger("a@b.com") == (500, 1, 500)

    second = _top_up(client, 200, mode="card")
    assert second.json()["balance"] == 700
    assert _ledger("a@b.com") == (700, 2, 700)

    assert client.get("/user/getWalletBalance").json()["balance"] == 700


def test_top_up_must_be_positive(client):
    signup(client)

    assert _top_up(client, 0).status_code == 400
    assert _top_up(client, -50).status_code == 400
    assert _ledger("a@b.com") == (0, 0, 0)


def test_wallet_history_is_newest_first_and_capped(client):
    signup(client)
    for amount in range(1, 13):
        _top_up(client, amount)

    history = client.get("/user/walletHistory").json()["history"]

    assert len(history) == 10
    assert [h["amount"] for h in history] == list(range(12, 2, -1))


def test_admin_credits_customer_wallet(client):
    signup(client)
    user_id = client.get("/user/userInfo").json()["user"]["id"]

    login_admin(client)
    response = client.post(f"/admin/users/{user_id}/addWalletBalance", json={"amount": 300, "modeOfPayment": "cash"})
    assert response.status_code == 200
    assert response.json()["balance"] == 300

    history = client.get(f"/admin/users/{user_id}/walletHistory").json()
    assert history["user"]["balance"] == 300
    assert [h["amount"] for h in history["history"]] == [300]

    users = client.get("/admin/users").json()["users"]
    assert [u["email"] for u in users] == ["a@b.com"]


def test_admin_credit_unknown_user(client):
    login_admin(client)

    response = client.post("/admin/users/99/addWalletBalance", json={"amount": 300})

    assert response.status_code == 404


def test_wallet_payment_debits_balance(client):
    login_admin(client)
    resto = create_restaurant(client)
    dosa = add_menu_item(client, resto["id"], price=120)

    signup(client)
    _top_up(client, 500)

    response = client.post(
        f"/user/resto/{resto['id']}/order",
        json={
            "totalPrice": 240,
            "orderItems": [{"menuId": dosa["id"], "quantity": 2}],
            "paymentMethod": "wallet",
        },
    )

    assert response.status_code == 200
    assert _ledger("a@b.com") == (260, 2, 260)
    history = client.get("/user/walletHistory").json()["history"]
    assert history[0]["amount"] == -240
    assert history[0]["modeOfPayment"] == "wallet"


def test_insufficient_balance_rejects_order(client):
    login_admin(client)
    resto = create_restaurant(client)
    dosa = add_menu_item(client, resto["id"], price=120)

    signup(client)
    _top_up(client, 100)

    response = client.post(
        f"/user/resto/{resto['id']}/order",
        json={
            "totalPrice": 120,
            "orderItems": [{"menuId": dosa["id"], "quantity": 1}],
            "paymentMethod": "wallet",
        },
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Insufficient wallet balance"
    assert _ledger("a@b.com") == (100, 1, 100)
    assert client.get("/user/orderHistory").json()["orders"] == []


def test_order_total_must_match_items(client):
    login_admin(client)
    resto = create_restaurant(client)
    dosa = add_menu_item(client, resto["id"], price=120)

    signup(client)
    _top_up(client, 500)

    response = client.post(
        f"/user/resto/{resto['id']}/order",
        json={
            "totalPrice": 1,
            "orderItems": [{"menuId": dosa["id"], "quantity": 3}],
            "paymentMethod": "wallet",
        },
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Total price 1 does not match items total 360"
    assert _ledger("a@b.com") == (500, 1, 500)
    assert client.get("/user/orderHistory").json()["orders"] == []
