"""Shared BDD fixtures and step definitions for the Marketplace domain."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

from marketplace.cart.items import find_cart


@pytest.fixture()
def error():
    """Container for captured errors."""
    return {"exc": None}


@pytest.fixture()
def stranger_id(make_user):
    return make_user(first_name="Stan", last_name="Stranger")


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a seller with a phone for sale", target_fixture="phone_id")
def seller_with_phone(seller_id, make_phone):
    return make_phone(seller_id, title="iPhone XR 64GB", brand="Apple", price=320.0, stock=3)


@given(
    parsers.cfparse("a phone priced at {price:d} with {stock:d} in stock"),
    target_fixture="phone_id",
)
def phone_with_stock(seller_id, make_phone, price, stock):
    return make_phone(seller_id, price=float(price), stock=stock)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the request is rejected with "{message}"'))
def rejected_with(error, message):
    assert isinstance(error["exc"], ValidationError)
    assert message in str(error["exc"])


@then("the buyer's cart is empty")
def cart_is_empty(buyer_id):
    cart = find_cart(buyer_id)
    assert cart is not None
    assert len(cart.items) == 0
