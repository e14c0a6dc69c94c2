"""Domain events for the Cart aggregate."""

from protean.fields import Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Cart")
class CartItemAdded:
    """A phone was put into the cart, or an existing line was re-priced and re-sized."""

    __version__ = 1

    cart_id = Identifier(required=True)
    phone_id = Identifier(required=True)
    quantity = Integer(required=True)
    price = Float(required=True)


@marketplace.event(part_of="Cart")
class CartQuantityUpdated:
    __version__ = 1

    cart_id = Identifier(required=True)
    phone_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@marketplace.event(part_of="Cart")
class CartItemRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    phone_id = Identifier(required=True)
    reason = String()


@marketplace.event(part_of="Cart")
class CartCleared:
    __version__ = 1

    cart_id = Identifier(required=True)
    items_removed = Integer(required=True)
