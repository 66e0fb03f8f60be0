"""
Order Flow Simulation Script

Fires concurrent orders at a running service, then races status updates
on the same orders to exercise the compare-and-swap status write.
Run from project root: python scripts/simulate.py --restaurant <id> --customer <id>

Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:3000"
TOTAL_ORDERS = 50

NOTES = [None, "Less spicy", "Extra napkins", "Ring doorbell", "Leave at door"]
# both terminal from pending, so exactly one may win
RACING_STATUSES = ["cancelled", "rejected", "cancelled"]


def generate_order_payload(
    restaurant_id: str,
    customer_id: str,
    menu: list[dict[str, Any]],
) -> dict[str, Any]:
    """Random cart drawn from the restaurant's menu."""
    picks = random.sample(menu, k=min(len(menu), random.randint(1, 4)))
    return {
        "restaurant_id": restaurant_id,
        "customer_id": customer_id,
        "items": [
            {"menu_item_id": item["id"], "quantity": random.randint(1, 3)}
            for item in picks
        ],
        "payment_type": random.choice(["COD", "ONLINE"]),
        "customer_notes": random.choice(NOTES),
        "distance": str(round(random.uniform(0.5, 12.0), 2)),
        "address": f"{random.randint(1, 999)} MG Road",
    }


# =============================================================================
# ORDER PLACEMENT
# =============================================================================

async def place_order(
    client: httpx.AsyncClient,
    order_num: int,
    payload: dict[str, Any],
) -> dict[str, Any]:
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/api/orders", json=payload, timeout=30.0)
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 201:
            data = response.json()
            return {
                "order_num": order_num,
                "success": True,
                "order_id": data["id"],
                "total": Decimal(data["total_amount"]),
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


# =============================================================================
# STATUS RACES
# =============================================================================

async def race_status(client: httpx.AsyncClient, order_id: str) -> dict[str, int]:
    """
    Send conflicting transitions for one pending order at the same time.

    At most one may win; the rest must come back 400 or 409.
    """
    responses = await asyncio.gather(
        *[
            client.patch(
                f"{API_BASE_URL}/api/orders/{order_id}/status",
                json={"status": status},
                timeout=30.0,
            )
            for status in RACING_STATUSES
        ],
        return_exceptions=True,
    )

    outcome = {"won": 0, "conflict": 0, "rejected": 0, "error": 0}
    for response in responses:
        if isinstance(response, Exception):
            outcome["error"] += 1
        elif response.status_code == 200:
            outcome["won"] += 1
        elif response.status_code == 409:
            outcome["conflict"] += 1
        elif response.status_code == 400:
            outcome["rejected"] += 1
        else:
            outcome["error"] += 1
    return outcome


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def fetch_menu(client: httpx.AsyncClient, restaurant_id: str) -> Optional[list[dict]]:
    response = await client.get(f"{API_BASE_URL}/api/restaurants/{restaurant_id}/menu")
    if response.status_code != 200 or not response.json():
        return None
    return response.json()


async def run_simulation(
    restaurant_id: str,
    customer_id: str,
    num_orders: int = TOTAL_ORDERS,
    race: bool = True,
) -> dict[str, Any]:
    print("=" * 70)
    print("ORDER FLOW SIMULATION")
    print("=" * 70)
    print(f"Total Orders: {num_orders}")
    print(f"Target: {API_BASE_URL}")
    print(f"Restaurant: {restaurant_id}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        menu = await fetch_menu(client, restaurant_id)
        if menu is None:
            print(f"\nRestaurant {restaurant_id} has no menu. Add menu items first.")
            return {"total": num_orders, "successful": 0, "failed": num_orders}

        start_time = time.time()
        tasks = [
            place_order(client, i + 1, generate_order_payload(restaurant_id, customer_id, menu))
            for i in range(num_orders)
        ]
        results = await asyncio.gather(*tasks)
        total_time = round(time.time() - start_time, 2)

        successful = [r for r in results if r["success"]]
        failed = [r for r in results if not r["success"]]

        race_totals = {"won": 0, "conflict": 0, "rejected": 0, "error": 0}
        if race and successful:
            outcomes = await asyncio.gather(
                *[race_status(client, r["order_id"]) for r in successful]
            )
            for outcome in outcomes:
                for key, count in outcome.items():
                    race_totals[key] += count

    print("\n" + "=" * 70)
    print("SIMULATION RESULTS")
    print("=" * 70)
    print(f"\nSuccessful Orders: {len(successful)}/{num_orders}")
    print(f"Failed Orders: {len(failed)}/{num_orders}")
    print(f"Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        revenue = sum((r["total"] for r in successful), Decimal("0"))
        print("\nPerformance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   Total Order Value: {revenue}")

    if race and successful:
        print("\nStatus Races:")
        print(f"   Won: {race_totals['won']} (expected {len(successful)})")
        print(f"   Lost to a concurrent write (409): {race_totals['conflict']}")
        print(f"   Illegal after the winner (400): {race_totals['rejected']}")
        print(f"   Errors: {race_totals['error']}")
        if race_totals["won"] != len(successful):
            print("   !! some order did not end with exactly one winning transition")

    if failed:
        print("\nFailed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "races": race_totals,
    }


async def preflight_checks() -> bool:
    """Health check before the simulation."""
    async with httpx.AsyncClient() as client:
        try:
            response = await client.get(f"{API_BASE_URL}/health")
        except httpx.HTTPError as e:
            print(f"Health check failed: {e}")
            return False

    if response.status_code != 200:
        print(f"Health check failed: {response.text}")
        return False

    data = response.json()
    print(f"Status: {data.get('status')}")
    print(f"   Database: {data.get('database')}")
    print(f"   Event Sink: {data.get('event_sink')}")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Order Flow Simulation Script")
    parser.add_argument("--restaurant", required=True, help="Restaurant id to order from")
    parser.add_argument("--customer", required=True, help="Customer id placing the orders")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--no-race", action="store_true", help="Skip concurrent status updates")
    parser.add_argument("--base-url", default=API_BASE_URL, help="Service base URL")
    args = parser.parse_args()

    API_BASE_URL = args.base_url.rstrip("/")

    if not asyncio.run(preflight_checks()):
        sys.exit(1)

    asyncio.run(run_simulation(
        restaurant_id=args.restaurant,
        customer_id=args.customer,
        num_orders=args.orders,
        race=not args.no_race,
    ))
