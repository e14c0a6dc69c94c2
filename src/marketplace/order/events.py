"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON: [{phone_id, quantity, price}]
    item_count = Integer(required=True)
    total_amount = Float(required=True)
    placed_at = DateTime(required=True)
