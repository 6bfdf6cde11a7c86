from datetime import datetime, timezone

from app.config import ExportConfig
from app.models.order import Order, OrderLine
from app.models.product import BundleComponent, Product
from app.services.delivery_dates import DateWindowCalculator
from app.services.line_items import export_lines, total_pieces
from app.services.order_file import (
    COL_DESCRIPTION,
    COL_PRODUCT_CODE,
    COL_QUANTITY,
    ORDER_FILE_COLUMNS,
    OrderLineRenderer,
)
from app.services.packaging import PackagingAllocator
from app.services.packing_file import PACKING_FILE_COLUMNS, BatchAggregator

config = ExportConfig()
dates = DateWindowCalculator.from_config(config)
allocator = PackagingAllocator()

CHICKEN = Product(id=1, sku="CHK-1", name="Chicken Breast")
DUCK = Product(id=2, sku="DUCK-1", name="Whole Duck")
NOSKU = Product(id=3, sku=None, name="Dumplings")
SAUCE = Product(id=4, sku="SAUCE-1", name="Chilli Sauce")
BUNDLE = Product(id=5, sku="BUNDLE-1", name="Feast Bundle")
BUNDLE.components = [
    BundleComponent(component=CHICKEN, quantity=2),
    BundleComponent(component=SAUCE, quantity=1),
]

# Monday 10:00 UTC -> despatch Tue 02/01, delivery Wed 03/01
PLACED = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


def make_order(order_id, items, **fields):
    defaults = dict(
        id=order_id,
        status="processing",
        placed_at=PLACED,
        customer_id=42,
        shipping_first_name="Ada",
        shipping_last_name="Lovelace",
        shipping_address_1="12 Analytical Row",
        shipping_city="London",
        shipping_postcode="N1 9GU",
        billing_county="Greater London",
        billing_phone="07700 900123",
        billing_email="ada@example.com",
    )
    defaults.update(fields)
    order = Order(**defaults)
    for product, qty in items:
        order.lines.append(OrderLine(product=product, product_id=product.id, name=product.name, qty=qty))
    return order


def prepare(orders):
    windows = {o.id: dates.compute(o.placed_at) for o in orders}
    plans = {o.id: allocator.allocate(total_pieces(o)) for o in orders}
    return windows, plans


def test_order_file_rows_and_columns():
    order = make_order(1, [(CHICKEN, 3), (DUCK, 2)])
    windows, plans = prepare([order])
    rows = OrderLineRenderer(config).render([order], windows, plans)

    assert len(rows) == 2
    assert all(len(r) == ORDER_FILE_COLUMNS for r in rows)
    first = rows[0]
    assert first[:12] == [
        "KING01",
        "DPD",
        1,
        42,
        "",
        "Ada Lovelace",
        "12 Analytical Row",
        "",
        "London",
        "Greater London",
        "N1 9GU",
        "03/01/2024",
    ]
    assert first[15:] == ["07700 900123", "ada@example.com", 1, "1^12"]
    assert [(r[COL_PRODUCT_CODE], r[COL_DESCRIPTION], r[COL_QUANTITY]) for r in rows] == [
        ("CHK-1", "Chicken Breast", 3),
        ("DUCK-1", "Whole Duck", 2),
    ]
    # rows of one order differ only in code, description and quantity
    strip = lambda r: r[:COL_PRODUCT_CODE] + r[COL_QUANTITY + 1:]
    assert strip(rows[0]) == strip(rows[1])


def test_guest_customer_and_billing_fallback():
    order = make_order(2, [(DUCK, 1)], customer_id=None, shipping_first_name=None, billing_first_name="Grace")
    windows, plans = prepare([order])
    row = OrderLineRenderer(config).render([order], windows, plans)[0]
    assert row[3] == 0
    assert row[5] == "Grace Lovelace"


def test_missing_sku_gets_placeholder_and_warning():
    order = make_order(3, [(NOSKU, 1)])
    windows, plans = prepare([order])
    renderer = OrderLineRenderer(config)
    rows = renderer.render([order], windows, plans)
    assert rows[0][COL_PRODUCT_CODE] == "MISSING_SKU_3"
    assert len(renderer.warnings) == 1
    assert "Order #3" in renderer.warnings[0]


def test_formula_like_customer_fields_neutralized():
    order = make_order(4, [(DUCK, 1)], shipping_address_1="=cmd|' /C calc'!A0")
    windows, plans = prepare([order])
    row = OrderLineRenderer(config).render([order], windows, plans)[0]
    assert row[6].startswith("\t=")


def test_zero_quantity_lines_skipped():
    order = make_order(5, [(CHICKEN, 0), (DUCK, 2)])
    assert [l.code for l in export_lines(order)] == ["DUCK-1"]
    assert total_pieces(order) == 2


def test_bundle_expands_into_components():
    order = make_order(6, [(BUNDLE, 2)])
    lines = export_lines(order)
    assert [(l.code, l.qty) for l in lines] == [("CHK-1", 4), ("SAUCE-1", 2)]
    assert total_pieces(order) == 6


def test_labels_follow_box_count():
    order = make_order(7, [(CHICKEN, 40)])
    windows, plans = prepare([order])
    row = OrderLineRenderer(config).render([order], windows, plans)[0]
    assert row[17] == 2


def test_packing_file_totals_match_order_file():
    a = make_order(10, [(CHICKEN, 3), (DUCK, 1)])
    b = make_order(11, [(CHICKEN, 2), (NOSKU, 4)])
    c = make_order(12, [(BUNDLE, 1)])
    orders = [a, b, c]
    windows, plans = prepare(orders)

    order_rows = OrderLineRenderer(config).render(orders, windows, plans)
    packing_rows = BatchAggregator(config).aggregate(orders, windows, plans)
    assert all(len(r) == PACKING_FILE_COLUMNS for r in packing_rows)

    order_qty = {}
    for r in order_rows:
        order_qty[r[COL_PRODUCT_CODE]] = order_qty.get(r[COL_PRODUCT_CODE], 0) + r[COL_QUANTITY]
    product_rows = [r for r in packing_rows if r[12] in order_qty]
    assert {r[12]: r[14] for r in product_rows} == order_qty
    assert order_qty["CHK-1"] == 7

    packaging = {r[12]: r[14] for r in packing_rows if r[12] not in order_qty}
    assert packaging["5OSS"] == sum(p.small_boxes for p in plans.values())
    assert packaging.get("5OSL", 0) == sum(p.large_boxes for p in plans.values())
    assert packaging["DRYICE1KG"] == sum(p.dry_ice for p in plans.values())
    assert packaging["ICEPACK"] == sum(p.regular_ice for p in plans.values())

    # products first, then packaging, in first-seen order
    codes = [r[12] for r in packing_rows]
    assert codes[:4] == ["CHK-1", "DUCK-1", "MISSING_SKU_3", "SAUCE-1"]


def test_packing_file_shared_columns():
    order = make_order(20, [(DUCK, 1)])
    windows, plans = prepare([order])
    row = BatchAggregator(config).aggregate([order], windows, plans)[0]
    assert row[:12] == [
        "KING01",
        "DPD",
        "Packing 02.01.24",
        "Packing 02.01.24",
        "",
        "Packing",
        "",
        "",
        "",
        "",
        "",
        "03/01/2024",
    ]


def test_packing_file_empty_batch():
    assert BatchAggregator(config).aggregate([], {}, {}) == []
