from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class ExportLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    export_date: datetime
    status: str
    message: Optional[str] = None
    order_count: int
    order_ids: Optional[List[int]] = None
    order_file: str = ""
    packing_file: str = ""
    meta: Optional[Dict[str, Any]] = None


class ExportLogPage(BaseModel):
    items: List[ExportLogOut]
    total: int
    pages: int
    page: int


class DeliveryWindowOut(BaseModel):
    despatch_date: str
    delivery_date: str
    packing_date: str


class OrderStatusIn(BaseModel):
    status: str
