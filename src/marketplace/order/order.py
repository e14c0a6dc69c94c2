"""Order aggregate (CQRS): an immutable record of a completed checkout.

Orders are created only by checkout and are append-only: the line items are
a snapshot of the cart at purchase time (title and price included), so later
edits to a listing never change what a buyer paid. The aggregate exposes no
mutators.
"""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from marketplace.domain import marketplace
from marketplace.order.events import OrderPlaced


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Order")
class ShippingAddress:
    """The delivery address captured at checkout."""

    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    zip = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderItem:
    phone_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    user_id = Identifier(required=True)
    items = HasMany(OrderItem)
    total_amount = Float(required=True, min_value=0.0)
    address = ValueObject(ShippingAddress, required=True)
    created_at = DateTime()

    @classmethod
    def place(cls, user_id, lines, address):
        """Build an order from cart lines.

        `lines` are objects with phone_id, title, quantity and price (cart
        items); `address` is a ShippingAddress or a dict of its fields.
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})

        if isinstance(address, dict):
            address = ShippingAddress(**address)

        now = datetime.now(UTC)
        total = sum(line.quantity * line.price for line in lines)

        order = cls(
            user_id=user_id,
            items=[
                OrderItem(
                    phone_id=str(line.phone_id),
                    title=line.title,
                    quantity=line.quantity,
                    price=line.price,
                )
                for line in lines
            ],
            total_amount=total,
            address=address,
            created_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id),
                items=json.dumps(
                    [
                        {"phone_id": str(i.phone_id), "quantity": i.quantity, "price": i.price}
                        for i in order.items
                    ]
                ),
                item_count=len(order.items),
                total_amount=total,
                placed_at=now,
            )
        )
        return order
