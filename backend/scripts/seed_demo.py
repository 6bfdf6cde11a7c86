#!/usr/bin/env python3
"""
Seed a development database with products and orders ready for export.

Creates a handful of products (one without a SKU, one bundle) and a few
orders in the ready status, flagged as pending export, with placement
times spread across the week so the different delivery windows show up.

Usage:
    python scripts/seed_demo.py --orders 12
"""
import argparse
import os
import random
import sys
from datetime import datetime, timedelta, timezone

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.config import settings
from app.db import SessionLocal, init_db
from app.models.order import ExportStatus, Order, OrderLine
from app.models.product import BundleComponent, Product

PRODUCTS = [
    {"sku": "CHK-BRST-1KG", "name": "Chicken Breast 1kg"},
    {"sku": "DUCK-WHL", "name": "Whole Duck"},
    {"sku": "PRWN-500", "name": "King Prawns 500g"},
    {"sku": "SAUCE-CHLI", "name": "Chilli Sauce 250ml"},
    {"sku": None, "name": "Dumplings (no SKU configured)"},
]

CUSTOMERS = [
    ("Ada", "Lovelace", "12 Analytical Row", "London", "Greater London", "N1 9GU"),
    ("Alan", "Turing", "2 Bletchley Lane", "Milton Keynes", "Buckinghamshire", "MK3 6EB"),
    ("Grace", "Hopper", "7 Compiler Court", "Leeds", "West Yorkshire", "LS1 4AP"),
]


def seed(order_count: int) -> None:
    db = SessionLocal()
    try:
        products = []
        for p in PRODUCTS:
            existing = db.query(Product).filter(Product.name == p["name"]).first()
            if not existing:
                existing = Product(sku=p["sku"], name=p["name"])
                db.add(existing)
            products.append(existing)
        db.flush()

        bundle = db.query(Product).filter(Product.sku == "BUNDLE-FEAST").first()
        if not bundle:
            bundle = Product(sku="BUNDLE-FEAST", name="Family Feast Bundle")
            bundle.components = [
                BundleComponent(component=products[0], quantity=2),
                BundleComponent(component=products[3], quantity=1),
            ]
            db.add(bundle)
            db.flush()
        products.append(bundle)

        now = datetime.now(timezone.utc)
        for i in range(order_count):
            first, last, addr, city, county, postcode = random.choice(CUSTOMERS)
            order = Order(
                status=settings.READY_ORDER_STATUS,
                placed_at=now - timedelta(hours=random.randint(1, 24 * 6)),
                customer_id=random.choice([0, 100 + i]),
                shipping_first_name=first,
                shipping_last_name=last,
                shipping_address_1=addr,
                shipping_city=city,
                shipping_county=county,
                shipping_postcode=postcode,
                billing_phone="07700 900%03d" % i,
                billing_email=f"{first.lower()}.{last.lower()}@example.com",
                export_status=ExportStatus.PENDING,
            )
            for product in random.sample(products, k=random.randint(1, 3)):
                order.lines.append(OrderLine(product=product, name=product.name, qty=random.randint(1, 12)))
            db.add(order)

        db.commit()
        print(f"Seeded {order_count} pending orders across {len(products)} products")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--orders", "-n", type=int, default=10, help="number of orders to create")
    args = parser.parse_args()
    init_db(reset=False)
    seed(args.orders)
