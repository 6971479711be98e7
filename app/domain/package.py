"""
Package status model and pricing rules
"""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

STATUS_WAITING_ARRIVAL = "waiting_arrival"
STATUS_IN_TRANSIT = "in_transit"
STATUS_ARRIVED = "arrived"
STATUS_DELIVERED = "delivered"

# Forward order of the lifecycle. Transitions are not enforced:
# an operator may set any status at any time.
PACKAGE_STATUSES = (
    STATUS_WAITING_ARRIVAL,
    STATUS_IN_TRANSIT,
    STATUS_ARRIVED,
    STATUS_DELIVERED,
)

STATUS_LABELS = {
    STATUS_WAITING_ARRIVAL: "Ожидает поступления",
    STATUS_IN_TRANSIT: "В пути",
    STATUS_ARRIVED: "Прибыл",
    STATUS_DELIVERED: "Выдан",
}

_CENTS = Decimal("0.01")


def is_valid_status(status: str) -> bool:
    return status in PACKAGE_STATUSES


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


def compute_total_price(weight: Decimal | None, price_per_kg: Decimal | None) -> Decimal | None:
    """
    weight × price_per_kg, rounded to cents.

    None when the weight is unknown (0 or absent) or there is no price:
    an unweighed package has no price yet, not a zero price.
    """
    if weight is None or weight <= 0 or price_per_kg is None:
        return None
    return (weight * price_per_kg).quantize(_CENTS, rounding=ROUND_HALF_UP)


def apply_status(package, new_status: str, now: datetime) -> None:
    """
    Set status on a Package row and stamp the matching timestamps.

    arrived_at is only set if still empty; delivered_at is set on every
    entry into "delivered".
    """
    package.status = new_status
    package.updated_at = now
    if new_status == STATUS_ARRIVED and package.arrived_at is None:
        package.arrived_at = now
    if new_status == STATUS_DELIVERED:
        package.delivered_at = now
