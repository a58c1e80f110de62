#!/usr/bin/env python3
"""
Script to load products, customers and usual orders into the database.

Usage:
    python scripts/seed_catalog.py path/to/catalog.json

File format:
    {
      "products": [{"sku": "PEN-BLU", "name": "Blue Pen", "stock": 500, "price": 10}],
      "customers": [{"telegram_id": 123, "name": "Acme Ltd",
                     "default_shipping_address": "12 Park Street, Pune",
                     "default_po_number": "PO-1001",
                     "usual_items": [{"sku": "PEN-BLU", "quantity": 20}]}]
    }

Existing rows (matched by sku / telegram_id) are updated in place.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import delete, select

from orderdesk.db.database import db
from orderdesk.db.models import Customer, Product, UsualOrderItem


async def seed(data: dict) -> dict:
    """Upsert catalog data. Returns counts of written rows."""
    stats = {"products": 0, "customers": 0, "usual_items": 0}

    async with db.session() as session:
        products_by_sku = {}
        for entry in data.get("products", []):
            product = (
                await session.execute(select(Product).where(Product.sku == entry["sku"]))
            ).scalar_one_or_none()
            if product is None:
                product = Product(sku=entry["sku"])
                session.add(product)
            product.name = entry["name"]
            product.stock = int(entry.get("stock", 0))
            product.price = float(entry["price"])
            products_by_sku[product.sku] = product
            stats["products"] += 1

        await session.flush()

        for entry in data.get("customers", []):
            customer = (
                await session.execute(
                    select(Customer).where(Customer.telegram_id == entry["telegram_id"])
                )
            ).scalar_one_or_none()
            if customer is None:
                customer = Customer(telegram_id=entry["telegram_id"])
                session.add(customer)
            customer.name = entry.get("name")
            customer.company_name = entry.get("company_name")
            customer.default_shipping_address = entry.get("default_shipping_address")
            customer.default_po_number = entry.get("default_po_number")
            await session.flush()
            stats["customers"] += 1

            if "usual_items" not in entry:
                continue

            await session.execute(
                delete(UsualOrderItem).where(UsualOrderItem.customer_id == customer.id)
            )
            for usual in entry["usual_items"]:
                product = products_by_sku.get(usual["sku"]) or (
                    await session.execute(select(Product).where(Product.sku == usual["sku"]))
                ).scalar_one_or_none()
                if product is None:
                    raise ValueError(f"Usual item refers to unknown sku {usual['sku']!r}")
                session.add(UsualOrderItem(
                    customer_id=customer.id,
                    product_id=product.id,
                    quantity=int(usual["quantity"]),
                ))
                stats["usual_items"] += 1

    return stats


async def main(file_path: str) -> None:
    """Load catalog from file."""
    path = Path(file_path)

    if not path.exists():
        print(f"Error: File not found: {path}")
        sys.exit(1)

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    await db.init()

    print(f"Loading catalog from: {path}")
    print("-" * 50)

    try:
        stats = await seed(data)

        print("✅ Successfully loaded catalog!")
        print(f"   Products: {stats['products']}")
        print(f"   Customers: {stats['customers']}")
        print(f"   Usual order lines: {stats['usual_items']}")

    except Exception as e:
        print(f"❌ Error loading catalog: {e}")
        raise
    finally:
        await db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Load products and customers into database")
    parser.add_argument("file", help="Path to catalog JSON file")

    args = parser.parse_args()
    asyncio.run(main(args.file))
