"""Cart aggregate (CQRS): one per user, created lazily on first access.

Each line snapshots the phone's title and price at the time it was added;
checkout totals are computed from that snapshot, not from the live listing.
A cart is never deleted except together with its user; checkout only clears
its lines.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from marketplace.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated
from marketplace.domain import marketplace


@marketplace.entity(part_of="Cart")
class CartItem:
    phone_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)
    added_at = DateTime()


@marketplace.aggregate
class Cart:
    user_id = Identifier(required=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def one_line_per_phone(self):
        phone_ids = [str(i.phone_id) for i in self.items]
        if len(phone_ids) != len(set(phone_ids)):
            raise ValidationError({"items": ["A phone can appear only once in a cart"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id):
        now = datetime.now(UTC)
        return cls(user_id=user_id, created_at=now, updated_at=now)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def line_for(self, phone_id):
        return next((i for i in self.items if str(i.phone_id) == str(phone_id)), None)

    @property
    def total(self):
        return sum(item.quantity * item.price for item in self.items)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, phone_id, title, quantity, price):
        """Put a phone in the cart, or replace the quantity and price of its existing line."""
        existing = self.line_for(phone_id)
        now = datetime.now(UTC)

        if existing:
            existing.quantity = quantity
            existing.price = price
        else:
            self.add_items(
                CartItem(
                    phone_id=phone_id,
                    title=title,
                    quantity=quantity,
                    price=price,
                    added_at=now,
                )
            )

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                phone_id=str(phone_id),
                quantity=quantity,
                price=price,
            )
        )

    def update_item_quantity(self, phone_id, new_quantity):
        item = self.line_for(phone_id)
        if item is None:
            raise ValidationError({"phone_id": ["Item not found in cart"]})

        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                phone_id=str(phone_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, phone_id, reason=None):
        item = self.line_for(phone_id)
        if item is None:
            raise ValidationError({"phone_id": ["Item not found in cart"]})

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                phone_id=str(phone_id),
                reason=reason,
            )
        )

    def strip_phone(self, phone_id):
        """Drop every line referencing `phone_id`; returns True when something was removed."""
        lines = [i for i in self.items if str(i.phone_id) == str(phone_id)]
        for line in lines:
            self.remove_item(line.phone_id, reason="Phone deleted")
        return bool(lines)

    def clear(self):
        lines = list(self.items)
        for line in lines:
            self.remove_items(line)

        self.updated_at = datetime.now(UTC)
        self.raise_(CartCleared(cart_id=str(self.id), items_removed=len(lines)))
