"""
Concurrency Simulation Script

Drives a running cafechain server with concurrent requests and checks that
the menu version counter and the wallet ledger stay consistent.
Run from project root: python scripts/simulate.py --admin-email ... --admin-password ...

Author: Sojo's Cafe Engineering
Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:3000"
TOTAL_CUSTOMERS = 20
TOP_UPS_PER_CUSTOMER = 3
TOGGLES = 30

FIRST_NAMES = ["Asha", "Ravi", "Meera", "Arjun", "Divya", "Kiran", "Neha", "Vikram", "Priya", "Rahul"]
DISHES = [
    {"name": "Masala Dosa", "price": 120, "type": "Veg", "category": "South Indian"},
    {"name": "Idli Sambar", "price": 80, "type": "Veg", "category": "South Indian"},
    {"name": "Chicken Biryani", "price": 260, "type": "Non-Veg", "category": "Rice"},
    {"name": "Filter Coffee", "price": 40, "type": "Veg", "category": "Drinks"},
]
PAYMENT_MODES = ["upi", "card", "cash"]

# 1x1 transparent PNG
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082"
)


def generate_random_customer(index: int) -> dict[str, str]:
    """Generate a customer with a unique email and phone number."""
    stamp = int(time.time())
    return {
        "name": f"{random.choice(FIRST_NAMES)} {index}",
        "email": f"sim{stamp}.{index}@cafechain.dev",
        "password": "simulate123",
        "number": f"9{random.randint(100000000, 999999999)}",
    }


def _result(kind: str, num: int, success: bool, start: float, **extra: Any) -> dict[str, Any]:
    return {"kind": kind, "num": num, "success": success, "time": round(time.time() - start, 3), **extra}


# =============================================================================
# SETUP
# =============================================================================

async def admin_client(email: str, password: str) -> httpx.AsyncClient:
    client = httpx.AsyncClient(base_url=API_BASE_URL, timeout=30.0)
    response = await client.post("/auth/login", json={"email": email, "password": password})
    response.raise_for_status()
    return client


async def create_restaurant(admin: httpx.AsyncClient) -> dict:
    response = await admin.post(
        "/admin/createResto",
        json={
            "name": f"Simulation Cafe {datetime.now().strftime('%H%M%S')}",
            "location": "MG Road",
            "number": f"8{random.randint(100000000, 999999999)}",
        },
    )
    response.raise_for_status()
    return response.json()["resto"]


async def add_dish(admin: httpx.AsyncClient, resto_id: int, dish: dict) -> dict:
    response = await admin.post(
        f"/admin/resto/{resto_id}/addMenu",
        data={
            "name": dish["name"],
            "price": str(dish["price"]),
            "description": f"{dish['name']} made fresh",
            "type": dish["type"],
            "category": dish["category"],
        },
        files={"image": ("dish.png", PNG_BYTES, "image/png")},
    )
    response.raise_for_status()
    return response.json()["menu"]


async def menu_version(client: httpx.AsyncClient, resto_id: int) -> int:
    response = await client.get(f"/admin/resto/{resto_id}/getMenuVersion")
    response.raise_for_status()
    return response.json()["menuVersion"]


# =============================================================================
# CONCURRENT SENDERS
# =============================================================================

async def run_customer(num: int, resto_id: int, dishes: list[dict]) -> dict[str, Any]:
    """Sign up, top up the wallet a few times and pay for one order from it."""
    start = time.time()
    customer = generate_random_customer(num)
    top_ups = [random.randint(50, 500) for _ in range(TOP_UPS_PER_CUSTOMER)]

    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=30.0) as client:
        try:
            response = await client.post("/auth/signup", json=customer)
            if response.status_code != 200:
                return _result("customer", num, False, start, error=response.text[:100])

            for amount in top_ups:
                await client.post(
                    "/user/addWalletBalance",
                    json={"amount": amount, "modeOfPayment": random.choice(PAYMENT_MODES)},
                )

            dish = random.choice(dishes)
            order = await client.post(
                f"/user/resto/{resto_id}/order",
                json={
                    "totalPrice": dish["price"],
                    "orderItems": [{"menuId": dish["id"], "quantity": 1}],
                    "paymentMethod": "wallet",
                },
            )
            balance = (await client.get("/user/getWalletBalance")).json()["balance"]
            history = (await client.get("/user/walletHistory")).json()["history"]
        except httpx.HTTPError as e:
            return _result("customer", num, False, start, error=str(e)[:100])

    ledger_sum = sum(h["amount"] for h in history)
    order_id = order.json()["order"]["id"] if order.status_code == 200 else None
    return _result(
        "customer",
        num,
        balance == ledger_sum,
        start,
        email=customer["email"],
        order_id=order_id,
        balance=balance,
        ledger_sum=ledger_sum,
        error=None if balance == ledger_sum else f"balance {balance} != ledger {ledger_sum}",
    )


async def toggle_availability(admin: httpx.AsyncClient, num: int, resto_id: int, dish: dict) -> dict[str, Any]:
    start = time.time()
    try:
        response = await admin.post(
            "/admin/changestatus",
            json={"restoId": resto_id, "menuId": dish["id"], "status": bool(num % 2)},
        )
    except httpx.HTTPError as e:
        return _result("toggle", num, False, start, error=str(e)[:100])
    return _result("toggle", num, response.status_code == 200, start, error=response.text[:100])


async def advance_order(admin: httpx.AsyncClient, num: int, order_id: int) -> dict[str, Any]:
    start = time.time()
    try:
        response = await admin.post(
            "/admin/order/changestatus",
            json={"orderId": order_id, "status": random.choice(["preparing", "ready", "delivered"])},
        )
    except httpx.HTTPError as e:
        return _result("status", num, False, start, error=str(e)[:100])
    return _result("status", num, response.status_code == 200, start, error=response.text[:100])


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(
    admin_email: str,
    admin_password: str,
    num_customers: int = TOTAL_CUSTOMERS,
    num_toggles: int = TOGGLES,
) -> bool:
    """
    Run the concurrency simulation.

    Args:
        admin_email: Admin login
        admin_password: Admin password
        num_customers: Customers signing up and ordering in parallel
        num_toggles: Parallel availability toggles on the menu
    """
    print("=" * 70)
    print("🔥 CAFECHAIN SIMULATION - HIGH CONCURRENCY TEST")
    print("=" * 70)
    print(f"👥 Customers: {num_customers}")
    print(f"🔁 Toggles: {num_toggles}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    admin = await admin_client(admin_email, admin_password)
    try:
        resto = await create_restaurant(admin)
        dishes = [await add_dish(admin, resto["id"], d) for d in DISHES]
        print(f"\n🏪 Restaurant #{resto['id']} with {len(dishes)} dishes")

        # Phase 1: customers
        start_time = time.time()
        customers = await asyncio.gather(
            *[run_customer(i + 1, resto["id"], dishes) for i in range(num_customers)]
        )
        customer_time = round(time.time() - start_time, 2)

        # Phase 2: menu and order mutations racing each other
        version_before = await menu_version(admin, resto["id"])
        order_ids = [c["order_id"] for c in customers if c.get("order_id")]
        start_time = time.time()
        mutations = await asyncio.gather(
            *[toggle_availability(admin, i, resto["id"], random.choice(dishes)) for i in range(num_toggles)],
            *[advance_order(admin, i, oid) for i, oid in enumerate(order_ids)],
        )
        mutation_time = round(time.time() - start_time, 2)
        version_after = await menu_version(admin, resto["id"])
    finally:
        await admin.aclose()

    # =========================================================================
    # RESULTS
    # =========================================================================
    ledger_ok = [c for c in customers if c["success"]]
    ledger_bad = [c for c in customers if not c["success"]]
    applied = sum(1 for m in mutations if m["success"])
    version_ok = version_after - version_before == applied

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n👥 Customers: {len(ledger_ok)}/{num_customers} consistent ({customer_time}s)")
    print(f"   Orders paid from wallet: {len(order_ids)}")
    for c in ledger_bad[:5]:
        print(f"   ❌ Customer #{c['num']}: {c['error']}")

    print(f"\n🔁 Mutations: {applied}/{len(mutations)} applied ({mutation_time}s)")
    print(f"   Menu version: {version_before} → {version_after}")
    if version_ok:
        print(f"   ✅ Counter rose by exactly {applied}")
    else:
        print(f"   ❌ Counter rose by {version_after - version_before}, expected {applied}")

    times = [r["time"] for r in [*customers, *mutations]]
    if times:
        print("\n⚡ Performance Metrics:")
        print(f"   Avg Response: {sum(times) / len(times):.3f}s")
        print(f"   Min Response: {min(times):.3f}s")
        print(f"   Max Response: {max(times):.3f}s")

    passed = version_ok and not ledger_bad
    print("\n" + "=" * 70)
    print("🎉 ALL INVARIANTS HELD" if passed else "💥 INVARIANT VIOLATIONS DETECTED")
    print("=" * 70)
    return passed


async def check_health() -> bool:
    """Pre-flight: make sure the server is up before flooding it."""
    print("🏥 Health Check...")
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(f"{API_BASE_URL}/health")
    except httpx.HTTPError as e:
        print(f"   ❌ Server unreachable: {e}")
        return False
    if response.status_code != 200:
        print(f"   ❌ Failed: {response.text}")
        return False
    print(f"   ✅ {response.json().get('status')}")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Cafechain Concurrency Simulation")
    parser.add_argument("--url", default=API_BASE_URL, help="Server base URL")
    parser.add_argument("--admin-email", required=True, help="Admin login email")
    parser.add_argument("--admin-password", required=True, help="Admin password")
    parser.add_argument("--customers", type=int, default=TOTAL_CUSTOMERS, help="Number of customers")
    parser.add_argument("--toggles", type=int, default=TOGGLES, help="Number of availability toggles")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")

    if not asyncio.run(check_health()):
        print("\n❌ Pre-flight check failed. Start the server first.")
        sys.exit(1)

    ok = asyncio.run(
        run_simulation(args.admin_email, args.admin_password, args.customers, args.toggles)
    )
    sys.exit(0 if ok else 1)
