"""
Order file: one row per product line per order, 19 columns, no header.

    A account ref      F customer name    K postcode        P telephone
    B courier          G address line 1   L delivery date   Q email
    C order ref        H address line 2   M product code    R labels required
    D customer id      I town/city        N description     S service code
    E blank            J county           O quantity

Rows of the same order differ only in columns M, N and O.
"""
from typing import Dict, List, Sequence

from app.config import ExportConfig
from app.services.csv_serializer import neutralize
from app.services.delivery_dates import DeliveryWindow
from app.services.line_items import export_lines
from app.services.packaging import PackagingPlan
from app.utils.log import get_logger

log = get_logger("app.services.order_file", "ORDER-FILE")

ORDER_FILE_COLUMNS = 19
COL_PRODUCT_CODE = 12
COL_DESCRIPTION = 13
COL_QUANTITY = 14


def _pick(order, field: str) -> str:
    """Shipping value, falling back to the billing value when empty."""
    return getattr(order, f"shipping_{field}", None) or getattr(order, f"billing_{field}", None) or ""


def customer_name(order) -> str:
    return f"{_pick(order, 'first_name')} {_pick(order, 'last_name')}".strip()


class OrderLineRenderer:
    def __init__(self, config: ExportConfig):
        self.config = config
        self.warnings: List[str] = []

    def shared_columns(self, order, window: DeliveryWindow, plan: PackagingPlan) -> list:
        return [
            self.config.account_ref,
            self.config.courier,
            order.id,
            order.customer_id or 0,
            "",
            neutralize(customer_name(order)),
            neutralize(_pick(order, "address_1")),
            neutralize(_pick(order, "address_2")),
            neutralize(_pick(order, "city")),
            neutralize(_pick(order, "county")),
            neutralize(_pick(order, "postcode")),
            window.delivery_display,
            "",
            "",
            "",
            neutralize(order.billing_phone or ""),
            neutralize(order.billing_email or ""),
            plan.total_labels,
            self.config.service_code,
        ]

    def render(
        self,
        orders: Sequence,
        windows: Dict[int, DeliveryWindow],
        plans: Dict[int, PackagingPlan],
    ) -> List[list]:
        rows = []
        for order in orders:
            shared = self.shared_columns(order, windows[order.id], plans[order.id])
            for line in export_lines(order):
                if not line.has_code:
                    msg = (
                        f"Order #{order.id} has product with no SKU "
                        f"(product ID: {line.product_id}); exported as {line.code}"
                    )
                    log.warning(msg)
                    self.warnings.append(msg)
                row = list(shared)
                row[COL_PRODUCT_CODE] = neutralize(line.code)
                row[COL_DESCRIPTION] = neutralize(line.name)
                row[COL_QUANTITY] = line.qty
                rows.append(row)
        return rows
