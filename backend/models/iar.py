from sqlalchemy import Column, Integer, String, Date, UniqueConstraint
from database import Base
from models.audit_mixin import TimestampMixin


class Iar(Base, TimestampMixin):
    """One inspected line of an Inspection and Acceptance Report.

    A PO item can be covered by several IARs (partial deliveries) and one IAR
    can cover several items of the same PO.
    """
    __tablename__ = "iar"
    __table_args__ = (
        UniqueConstraint('iar_number', 'po_number', 'item_number', name='_iar_po_item_uc'),
    )

    id = Column(Integer, primary_key=True, index=True)
    iar_number = Column(String(100), nullable=False, index=True)
    date_of_inspection = Column(Date, nullable=False)
    po_number = Column(String(100), nullable=False, index=True)
    item_number = Column(Integer, nullable=False)
    inspected_quantity = Column(Integer, nullable=False, default=0)
    requisitioning_office = Column(String(255), nullable=True)
    brand = Column(String(255), nullable=True)
    # Copied from procured_meds at insert time, never taken from the upload
    manufacturer = Column(String(255), nullable=True)
    batch_lot_number = Column(String(255), nullable=True)
    expiration_date = Column(Date, nullable=True)
