from sqlalchemy import Column, Integer, String, Numeric, Date, UniqueConstraint
from database import Base
from models.audit_mixin import TimestampMixin


class ProcuredMed(Base, TimestampMixin):
    """One purchase-order line item."""
    __tablename__ = "procured_meds"
    __table_args__ = (UniqueConstraint('po_number', 'item_no', name='_po_number_item_no_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    po_number = Column(String(100), nullable=False, index=True)
    item_no = Column(Integer, nullable=False)
    po_date = Column(Date, nullable=True)
    supplier = Column(String(255), nullable=True)
    mode_of_procurement = Column(String(255), nullable=True)
    generic_name = Column(String(1000), nullable=True)
    brand_name = Column(String(255), nullable=True)
    manufacturer = Column(String(255), nullable=True)
    acquisition_cost = Column(Numeric(14, 2), nullable=True)
    quantity = Column(Integer, nullable=True)  # required quantity
    total_cost = Column(Numeric(14, 2), nullable=True)
    delivery_status = Column(String(100), nullable=True)  # legacy manual field, not derived
    bid_attempt = Column(Integer, nullable=True)
