"""
Store Verification Script

Checks the JSON stores for the order invariant (every order lives in
exactly one of orders.json / orderhistory.json) and summarizes the
Excel ledger of completed orders.

Run from project root: python scripts/verify.py [--data-dir data]

Author: Khalil_Bannouri
Version: 1.0.0
"""

import argparse
import json
import os
import sys
from datetime import datetime

import pandas as pd

DATA_DIR = "data"


def load_store(data_dir: str, name: str) -> list[dict]:
    path = os.path.join(data_dir, name)
    if not os.path.exists(path):
        print(f"   ⚠️ {name} not found")
        return []
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def verify_stores(data_dir: str) -> bool:
    """Verify the pending and history stores never share an order."""
    print(f"\n📂 STORES ({data_dir}):")

    orders = load_store(data_dir, "orders.json")
    history = load_store(data_dir, "orderhistory.json")
    menu = load_store(data_dir, "menu.json")

    print(f"   Menu items: {len(menu)}")
    print(f"   Pending orders: {len(orders)}")
    print(f"   Completed orders: {len(history)}")

    ok = True
    pending_ids = {o["id"] for o in orders}
    history_ids = [o["id"] for o in history]

    both = pending_ids.intersection(history_ids)
    if both:
        print(f"\n❌ {len(both)} orders are both pending and completed: {sorted(both)[:5]}")
        ok = False
    else:
        print("✅ No order is both pending and completed")

    duplicates = len(history_ids) - len(set(history_ids))
    if duplicates:
        print(f"❌ {duplicates} duplicate ids in history")
        ok = False
    else:
        print("✅ No duplicate history ids")

    not_completed = [o["id"] for o in history if o.get("status") != "completed" or not o.get("completedAt")]
    if not_completed:
        print(f"❌ {len(not_completed)} history records lack completed status/completedAt")
        ok = False

    return ok


def verify_ledger(data_dir: str, filename: str = "orderhistory.xlsx") -> bool:
    """Summarize the Excel ledger."""
    ledger = os.path.join(data_dir, filename)
    print(f"\n📄 LEDGER ({ledger}):")

    if not os.path.exists(ledger):
        print("   ⚠️ Ledger not found (export disabled or no completed orders yet)")
        return True

    try:
        df = pd.read_excel(ledger, engine="openpyxl", dtype={"order_id": str})
    except Exception as e:
        print(f"   ❌ Could not read ledger: {e}")
        return False

    print(f"   Rows: {len(df)}")

    ok = True
    if "order_id" in df.columns:
        duplicates = df["order_id"].duplicated().sum()
        if duplicates > 0:
            print(f"   ⚠️ {duplicates} duplicate order IDs found!")
            ok = False
        else:
            print("   ✅ No duplicate order IDs")

    if "total" in df.columns and len(df) > 0:
        print(f"   💰 Total: {df['total'].sum():.2f}  |  Average: {df['total'].mean():.2f}")

    if len(df) > 0:
        cols = [c for c in ["order_id", "customer_name", "table_no", "total", "completed_at"] if c in df.columns]
        print("-" * 60)
        print(df[cols].tail(5).to_string(index=False))

    return ok


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Verify JSON stores and the Excel ledger")
    parser.add_argument("--data-dir", default=DATA_DIR)
    args = parser.parse_args()

    print("=" * 60)
    print("🔍 STORE VERIFICATION REPORT")
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 60)

    stores_ok = verify_stores(args.data_dir)
    ledger_ok = verify_ledger(args.data_dir)
    ok = stores_ok and ledger_ok

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE" if ok else "❌ VERIFICATION FOUND PROBLEMS")
    print("=" * 60)
    sys.exit(0 if ok else 1)
