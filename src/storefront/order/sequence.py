"""Order number sequence.

Order numbers look like ``MES-2510-00042``: prefix, two-digit year and
month of placement, then a five-digit running number. The running number
comes from a per-prefix counter aggregate that is incremented inside the
unit of work that stores the order, so concurrent checkouts never read the
same value and an aborted checkout does not burn a number.
"""

import re
from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order
from storefront.shared.pagination import iter_query

ORDER_NUMBER_PATTERN = re.compile(r"^[A-Z]+-\d{4}-\d{5}$")


@storefront.aggregate
class OrderSequence:
    prefix = String(identifier=True, max_length=10)
    last_value = Integer(default=0, min_value=0)

    def next_value(self) -> int:
        self.last_value = self.last_value + 1
        return self.last_value


def format_order_number(prefix: str, value: int, placed_at: datetime | None = None) -> str:
    placed_at = placed_at or datetime.now(UTC)
    return f"{prefix}-{placed_at:%y%m}-{value:05d}"


def highest_order_value(prefix: str) -> int:
    """Largest running number already used by stored orders with ``prefix``."""
    pattern = re.compile(rf"^{re.escape(prefix)}-\d{{4}}-(\d{{5}})$")
    highest = 0
    for order in iter_query(current_domain.repository_for(Order)._dao.query):
        match = pattern.match(order.order_number or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


def next_order_number(prefix: str, placed_at: datetime | None = None) -> str:
    """Claim the next order number for ``prefix``.

    The counter starts after the highest number already stored so numbers
    keep counting up from data that predates the sequence, even when older
    orders were deleted.
    """
    repo = current_domain.repository_for(OrderSequence)
    try:
        sequence = repo.get(prefix)
    except ObjectNotFoundError:
        sequence = OrderSequence(prefix=prefix, last_value=highest_order_value(prefix))

    value = sequence.next_value()
    repo.add(sequence)
    return format_order_number(prefix, value, placed_at)
