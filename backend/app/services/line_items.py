from dataclasses import dataclass
from typing import List, Optional

MISSING_SKU_PREFIX = "MISSING_SKU_"


@dataclass(frozen=True)
class ExportLine:
    """A single product quantity as it will appear in the export files."""

    product_id: Optional[int]
    sku: Optional[str]
    name: str
    qty: int

    @property
    def has_code(self) -> bool:
        return bool(self.sku and self.sku.strip())

    @property
    def code(self) -> str:
        if self.has_code:
            return self.sku.strip()
        return f"{MISSING_SKU_PREFIX}{self.product_id or 0}"


def export_lines(order) -> List[ExportLine]:
    """
    Flatten an order's lines into exportable product quantities.

    Lines with a non-positive quantity are dropped. Bundle products are
    replaced by their components, each multiplied by the bundle quantity;
    components without a product or with a non-positive quantity are
    skipped.
    """
    out = []
    for line in order.lines:
        qty = int(line.qty or 0)
        if qty <= 0:
            continue
        product = line.product
        if product is not None and product.components:
            for comp in product.components:
                child = comp.component
                per_bundle = int(comp.quantity or 0)
                if child is None or per_bundle <= 0:
                    continue
                out.append(ExportLine(child.id, child.sku, child.name, per_bundle * qty))
            continue
        out.append(
            ExportLine(
                product_id=line.product_id if product is None else product.id,
                sku=product.sku if product is not None else None,
                name=line.name or (product.name if product is not None else ""),
                qty=qty,
            )
        )
    return out


def total_pieces(order) -> int:
    return sum(l.qty for l in export_lines(order))
