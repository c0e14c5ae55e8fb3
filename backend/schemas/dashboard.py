from datetime import date, datetime
from typing import List, Optional

from schemas.uploads import CamelModel, Money
from utils.status import DeliveryStatus


class PoSummary(CamelModel):
    po_number: str
    po_date: Optional[date] = None
    supplier: Optional[str] = None
    item_count: int
    status: DeliveryStatus


class PoLineItem(CamelModel):
    item_no: int
    generic_name: Optional[str] = None
    brand_name: Optional[str] = None
    manufacturer: Optional[str] = None
    acquisition_cost: Optional[Money] = None
    quantity: Optional[int] = None
    total_cost: Optional[Money] = None
    inspected_quantity: int
    inspection_status: DeliveryStatus


class PoDetails(CamelModel):
    po_number: str
    po_date: Optional[date] = None
    supplier: Optional[str] = None
    mode_of_procurement: Optional[str] = None
    item_count: int
    status: DeliveryStatus
    items: List[PoLineItem]


class PoIarSummary(CamelModel):
    iar_number: str
    date_of_inspection: Optional[date] = None
    items_count: int
    created_at: Optional[datetime] = None


class RecentIar(CamelModel):
    iar_number: str
    date_of_inspection: Optional[date] = None
    po_number: str


class IarItem(CamelModel):
    item_number: int
    inspected_quantity: int
    brand: Optional[str] = None
    manufacturer: Optional[str] = None
    batch_lot_number: Optional[str] = None
    expiration_date: Optional[date] = None
    requisitioning_office: Optional[str] = None
    created_at: Optional[datetime] = None


class IarItems(CamelModel):
    po_number: str
    iar_number: str
    date_of_inspection: Optional[date] = None
    total_inspected_quantity: int
    items: List[IarItem]


class DpriBRow(CamelModel):
    po_number: str
    item_no: int
    po_date: Optional[date] = None
    supplier: Optional[str] = None
    mode_of_procurement: Optional[str] = None
    generic_name: Optional[str] = None
    acquisition_cost: Optional[Money] = None
    quantity: Optional[int] = None
    total_cost: Optional[Money] = None
    brand_name: Optional[str] = None
    manufacturer: Optional[str] = None
    delivery_status: DeliveryStatus
    bid_attempt: Optional[int] = None
