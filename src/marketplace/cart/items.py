"""Cart item management: commands, handler and the lazy cart lookup."""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.domain import marketplace
from marketplace.inventory.ledger import inventory_ledger
from marketplace.phone.phone import Phone
from marketplace.utils.queries import find_one


@marketplace.command(part_of="Cart")
class AddToCart:
    user_id = Identifier(required=True)
    phone_id = Identifier(required=True)
    quantity = Integer(required=True)


@marketplace.command(part_of="Cart")
class UpdateCartItem:
    user_id = Identifier(required=True)
    phone_id = Identifier(required=True)
    quantity = Integer(required=True)


@marketplace.command(part_of="Cart")
class RemoveFromCart:
    user_id = Identifier(required=True)
    phone_id = Identifier(required=True)


def find_cart(user_id):
    return find_one(Cart, user_id=str(user_id))


def get_cart(user_id):
    """Return the user's cart, creating and storing an empty one on first access."""
    cart = find_cart(user_id)
    if cart is None:
        cart = Cart.create(user_id=user_id)
        current_domain.repository_for(Cart).add(cart)
    return cart


def _purchasable_phone(phone_id, quantity):
    if quantity is None or quantity < 1:
        raise ValidationError({"quantity": ["Quantity must be at least 1"]})

    phone = current_domain.repository_for(Phone).get(phone_id)
    if phone.is_disabled:
        raise ValidationError({"phone": [f"Phone {phone.title} is not available"]})
    if quantity > phone.stock:
        raise ValidationError({"quantity": [f"Insufficient stock. Available: {phone.stock}"]})
    return phone


def _existing_cart(user_id, phone_id):
    cart = find_cart(user_id)
    if cart is None:
        raise ObjectNotFoundError({"cart": ["Cart not found"]})
    if cart.line_for(phone_id) is None:
        raise ObjectNotFoundError({"phone_id": ["Item not found in cart"]})
    return cart


@marketplace.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        phone = _purchasable_phone(command.phone_id, command.quantity)

        cart = get_cart(command.user_id)
        cart.add_item(
            phone_id=str(phone.id),
            title=phone.title,
            quantity=command.quantity,
            price=phone.price,
        )
        current_domain.repository_for(Cart).add(cart)
        return cart

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        phone = _purchasable_phone(command.phone_id, command.quantity)

        cart = _existing_cart(command.user_id, phone.id)
        cart.update_item_quantity(phone_id=str(phone.id), new_quantity=command.quantity)
        current_domain.repository_for(Cart).add(cart)
        return cart

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        cart = _existing_cart(command.user_id, command.phone_id)
        cart.remove_item(phone_id=command.phone_id)
        current_domain.repository_for(Cart).add(cart)
        return cart


def add_to_cart(user_id, phone_id, quantity):
    with inventory_ledger.exclusive():
        return current_domain.process(
            AddToCart(user_id=user_id, phone_id=phone_id, quantity=quantity),
            asynchronous=False,
        )


def update_cart_item(user_id, phone_id, quantity):
    with inventory_ledger.exclusive():
        return current_domain.process(
            UpdateCartItem(user_id=user_id, phone_id=phone_id, quantity=quantity),
            asynchronous=False,
        )


def remove_from_cart(user_id, phone_id):
    return current_domain.process(
        RemoveFromCart(user_id=user_id, phone_id=phone_id),
        asynchronous=False,
    )
