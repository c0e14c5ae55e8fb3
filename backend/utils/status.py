import enum
from typing import Iterable, Optional


class DeliveryStatus(str, enum.Enum):
    COMPLETE = "Complete"
    PARTIAL = "Partial"
    NOT_DELIVERED = "Not Delivered"


def derive_status(required_qty: Optional[int], inspected_qty: Optional[int]) -> DeliveryStatus:
    """
    Delivery status of one PO line from required vs. inspected-so-far quantity.

    A line with no required quantity can never be Complete; any inspection
    against it counts as Partial.
    """
    required = required_qty or 0
    inspected = inspected_qty or 0
    if inspected <= 0:
        return DeliveryStatus.NOT_DELIVERED
    if required > 0 and inspected >= required:
        return DeliveryStatus.COMPLETE
    return DeliveryStatus.PARTIAL


def derive_parent_status(item_statuses: Iterable[DeliveryStatus]) -> DeliveryStatus:
    """Roll line statuses up to the purchase order: Complete only if every line is."""
    statuses = list(item_statuses)
    if statuses and all(s == DeliveryStatus.COMPLETE for s in statuses):
        return DeliveryStatus.COMPLETE
    if any(s != DeliveryStatus.NOT_DELIVERED for s in statuses):
        return DeliveryStatus.PARTIAL
    return DeliveryStatus.NOT_DELIVERED
