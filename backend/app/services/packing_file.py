"""
Packing file: batch totals per product code, then per packaging material,
15 columns, no header.

    A account ref   C/D packing date ("Packing DD.MM.YY")   F "Packing"
    B courier       E, G-K blank    L delivery date    M code   N desc   O qty
"""
from collections import OrderedDict
from typing import Dict, List, Sequence

from app.config import ExportConfig
from app.services.csv_serializer import neutralize
from app.services.delivery_dates import DeliveryWindow
from app.services.line_items import export_lines
from app.services.packaging import PackagingPlan

PACKING_FILE_COLUMNS = 15


class BatchAggregator:
    def __init__(self, config: ExportConfig):
        self.config = config

    def product_totals(self, orders: Sequence) -> "OrderedDict[str, list]":
        totals: "OrderedDict[str, list]" = OrderedDict()
        for order in orders:
            for line in export_lines(order):
                if line.code in totals:
                    totals[line.code][1] += line.qty
                else:
                    totals[line.code] = [line.name, line.qty]
        return totals

    def packaging_totals(self, orders: Sequence, plans: Dict[int, PackagingPlan]) -> "OrderedDict[str, list]":
        totals: "OrderedDict[str, list]" = OrderedDict()
        for order in orders:
            for item in plans[order.id].materials:
                if item.code in totals:
                    totals[item.code][1] += item.quantity
                else:
                    totals[item.code] = [item.description, item.quantity]
        return totals

    def aggregate(
        self,
        orders: Sequence,
        windows: Dict[int, DeliveryWindow],
        plans: Dict[int, PackagingPlan],
    ) -> List[list]:
        if not orders:
            return []
        # all orders in a batch share the first order's dates
        first = windows[orders[0].id]
        shared = [
            self.config.account_ref,
            self.config.courier,
            first.packing_label,
            first.packing_label,
            "",
            "Packing",
            "",
            "",
            "",
            "",
            "",
            first.delivery_display,
        ]
        rows = []
        for totals in (self.product_totals(orders), self.packaging_totals(orders, plans)):
            for code, (desc, qty) in totals.items():
                rows.append(shared + [neutralize(code), neutralize(desc), qty])
        return rows
