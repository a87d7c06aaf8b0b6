"""
Chaos Simulation Script

Floods a running server with orders, then races several completers
against every order. Each order must be completed exactly once and end
up in history; every other completer must get a 404.

Run from project root: python scripts/simulate.py

Author: Khalil_Bannouri
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

# Configuration
API_BASE_URL = "http://localhost:3001"
TOTAL_ORDERS = 50
COMPLETERS_PER_ORDER = 3

# Sample data for random orders
FIRST_NAMES = ["Asha", "Ravi", "Meera", "Arjun", "Kavya", "Rohan", "Priya", "Vikram", "Neha", "Sahil"]
MENU_ITEMS = [
    {"name": "Masala Dosa", "price": 120},
    {"name": "Idli Sambar", "price": 80},
    {"name": "Filter Coffee", "price": 40},
    {"name": "Tea", "price": 20},
    {"name": "Vada Pav", "price": 35},
    {"name": "Paneer Roll", "price": 110},
    {"name": "Lassi", "price": 60},
]


def generate_order_payload() -> dict[str, Any]:
    """Generate a random table order with a matching total."""
    items = []
    for menu_item in random.sample(MENU_ITEMS, random.randint(1, 3)):
        items.append({**menu_item, "quantity": random.randint(1, 3)})

    return {
        "name": random.choice(FIRST_NAMES),
        "phone": f"9{random.randint(100000000, 999999999)}",
        "tableNo": str(random.randint(1, 20)),
        "items": items,
        "total": sum(i["price"] * i["quantity"] for i in items),
    }


async def place_order(client: httpx.AsyncClient, order_num: int) -> dict[str, Any]:
    """Place one order."""
    start_time = time.time()
    try:
        response = await client.post(
            f"{API_BASE_URL}/api/orders",
            json=generate_order_payload(),
            timeout=30.0
        )
        elapsed = round(time.time() - start_time, 3)
        if response.status_code == 201:
            data = response.json()
            return {"order_num": order_num, "success": True, "order_id": data["id"],
                    "total": data["total"], "time": elapsed}
        return {"order_num": order_num, "success": False, "error": response.text[:100], "time": elapsed}
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {"order_num": order_num, "success": False, "error": str(e)[:100], "time": elapsed}


async def complete_order(client: httpx.AsyncClient, order_id: str) -> int:
    """Try to complete an order; returns the HTTP status (0 on transport error)."""
    try:
        response = await client.patch(
            f"{API_BASE_URL}/api/orders/{order_id}/complete",
            timeout=30.0
        )
        return response.status_code
    except httpx.HTTPError:
        return 0


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(
    num_orders: int = TOTAL_ORDERS,
    completers: int = COMPLETERS_PER_ORDER,
) -> bool:
    """
    Run the chaos simulation.

    Args:
        num_orders: Number of orders to place
        completers: Concurrent complete calls fired at each order

    Returns:
        bool: True if every order was completed exactly once
    """
    print("=" * 70)
    print("🔥 CHAOS SIMULATION - COMPETING COMPLETIONS")
    print("=" * 70)
    print(f"📋 Orders: {num_orders}  |  Completers per order: {completers}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        placed = await asyncio.gather(*[place_order(client, i + 1) for i in range(num_orders)])
        created = [r for r in placed if r["success"]]
        failed = [r for r in placed if not r["success"]]

        print(f"\n✅ Placed: {len(created)}/{num_orders}")
        for f in failed[:5]:
            print(f"   ❌ Order #{f['order_num']}: {f['error']}")

        races = [
            asyncio.gather(*[complete_order(client, r["order_id"]) for _ in range(completers)])
            for r in created
        ]
        outcomes = await asyncio.gather(*races)

        pending = (await client.get(f"{API_BASE_URL}/api/orders")).json()
        history = (await client.get(f"{API_BASE_URL}/api/orders/history")).json()

    total_time = round(time.time() - start_time, 2)

    pending_ids = {o["id"] for o in pending}
    history_ids = [o["id"] for o in history]

    problems = []
    for record, statuses in zip(created, outcomes):
        order_id = record["order_id"]
        wins = statuses.count(200)
        if wins != 1:
            problems.append(f"Order {order_id}: {wins} successful completions {statuses}")
        if order_id in pending_ids:
            problems.append(f"Order {order_id}: still pending")
        if history_ids.count(order_id) != 1:
            problems.append(f"Order {order_id}: appears {history_ids.count(order_id)} times in history")

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"⏱️  Total Time: {total_time}s")
    print(f"💰 Revenue placed: {sum(r['total'] for r in created):.2f}")

    if problems:
        print(f"\n⚠️  {len(problems)} problems (showing first 10):")
        for p in problems[:10]:
            print(f"   {p}")
    else:
        print("\n✅ Every order completed exactly once and is in history")

    print("=" * 70)
    return not problems


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Chaos Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--completers", type=int, default=COMPLETERS_PER_ORDER,
                        help="Concurrent complete calls per order")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")
    ok = asyncio.run(run_simulation(args.orders, args.completers))
    sys.exit(0 if ok else 1)
