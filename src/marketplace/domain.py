"""Marketplace bounded context: phone listings, carts, orders, reviews and wishlists.

Users, Phones, Carts and Orders are stored as independent CQRS aggregates.
Checkout and the deletion cascades are the only operations that touch more
than one of them, and they live in `order.checkout` and `cascade.deletion`.
"""

from protean.domain import Domain

from marketplace.utils.logging import configure_logging

configure_logging()

# Domain Composition Root
marketplace = Domain(name="marketplace")
