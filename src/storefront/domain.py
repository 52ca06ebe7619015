"""Storefront domain: catalogue stock, orders, checkout and payment webhooks.

A single domain holds every aggregate the checkout flow touches so that
placing an order, confirming payment and decrementing stock can run inside
one unit of work.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
