"""Checkout: turns a user's cart into an Order.

Every precondition is checked before anything is written:

1. a complete shipping address,
2. the user has a cart,
3. the cart has lines,
4. each line's phone exists, is enabled and has enough stock.

Writes are then registered in a fixed order (the order, each phone's stock
and sales counters, the emptied cart) and committed together by the unit of
work wrapping the handler. `checkout()` holds the inventory lock around the
whole command so two buyers cannot both pass the stock check for the last
unit.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Dict, Identifier
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.cart.items import find_cart
from marketplace.domain import marketplace
from marketplace.inventory.ledger import inventory_ledger
from marketplace.order.order import Order
from marketplace.phone.phone import Phone

logger = structlog.get_logger(__name__)

ADDRESS_FIELDS = ("street", "city", "state", "zip", "country")


@marketplace.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    address = Dict()


def _validated_address(address):
    if not address or any(not str(address.get(f) or "").strip() for f in ADDRESS_FIELDS):
        raise ValidationError({"address": ["Address is required"]})
    return {f: str(address[f]).strip() for f in ADDRESS_FIELDS}


@marketplace.command_handler(part_of=Order)
class CheckoutHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        address = _validated_address(command.address)

        cart = find_cart(command.user_id)
        if cart is None:
            raise ObjectNotFoundError({"cart": ["Cart not found"]})
        if not cart.items:
            raise ValidationError({"cart": ["Cart is empty"]})

        phone_repo = current_domain.repository_for(Phone)
        phones = {}
        for line in cart.items:
            phone = phone_repo.get(line.phone_id)
            if phone.is_disabled:
                raise ValidationError({"phone": [f"Phone {phone.title} is not available"]})
            inventory_ledger.ensure_available(phone, line.quantity)
            phones[str(line.phone_id)] = phone

        order = Order.place(user_id=command.user_id, lines=list(cart.items), address=address)
        current_domain.repository_for(Order).add(order)

        for line in cart.items:
            phone = phones[str(line.phone_id)]
            phone.record_sale(line.quantity)
            phone_repo.add(phone)

        cart.clear()
        current_domain.repository_for(Cart).add(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            user_id=str(command.user_id),
            item_count=len(order.items),
            total_amount=order.total_amount,
        )
        return order


def checkout(user_id, address):
    """Place an order for everything in the user's cart and return it."""
    with inventory_ledger.exclusive():
        return current_domain.process(
            PlaceOrder(user_id=user_id, address=address or {}),
            asynchronous=False,
        )
