"""Application tests for listing management, registration and admin account actions."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from marketplace.audit.admin_log import AdminAction, AdminLog, admin_logs, record_admin_action
from marketplace.cart.items import add_to_cart
from marketplace.order.checkout import checkout
from marketplace.order.history import order_for_user, orders_for_user
from marketplace.phone.listing import SetPhoneDisabled, admin_update_phone, available_phones, phones_by_seller
from marketplace.phone.phone import Phone
from marketplace.shared.errors import UnauthorizedError
from marketplace.user.account import AdminSetUserStatus
from marketplace.user.registration import RegisterUser
from marketplace.user.user import User


def _phone(phone_id):
    return current_domain.repository_for(Phone).get(phone_id)


class TestRegistration:
    def test_register_returns_id(self, make_user):
        user_id = make_user(email="New.User@Example.com")
        assert current_domain.repository_for(User).get(user_id).email == "new.user@example.com"

    def test_duplicate_email_rejected(self, make_user):
        make_user(email="dup@example.com")
        with pytest.raises(ValidationError) as exc:
            current_domain.process(
                RegisterUser(first_name="Dup", last_name="Licate", email="DUP@example.com"),
                asynchronous=False,
            )
        assert "Email already in use" in str(exc.value)


class TestCreatePhone:
    def test_listed_phone_is_persisted(self, seller_id, make_phone):
        phone_id = make_phone(seller_id, title="Huawei P20", brand="Huawei", price=180.0, stock=3)
        phone = _phone(phone_id)
        assert phone.title == "Huawei P20"
        assert str(phone.seller_id) == seller_id

    def test_unknown_seller(self, make_phone):
        with pytest.raises(ObjectNotFoundError):
            make_phone("missing-seller")

    def test_invalid_brand(self, seller_id, make_phone):
        with pytest.raises(ValidationError):
            make_phone(seller_id, brand="Pear")

    def test_listing_queries(self, seller_id, make_user, make_phone):
        other = make_user(first_name="Otto")
        enabled = make_phone(seller_id, title="Enabled", brand="Apple")
        disabled = make_phone(seller_id, title="Disabled", brand="Apple")
        make_phone(other, title="Other", brand="Sony")
        current_domain.process(
            SetPhoneDisabled(phone_id=disabled, is_disabled=True, actor_id=seller_id),
            asynchronous=False,
        )

        assert {str(p.id) for p in available_phones(brand="Apple")} == {enabled}
        assert len(available_phones()) == 2
        assert {str(p.id) for p in phones_by_seller(seller_id)} == {enabled, disabled}


class TestSellerDisable:
    def test_only_seller_can_disable(self, seller_id, buyer_id, make_phone):
        phone_id = make_phone(seller_id)
        with pytest.raises(UnauthorizedError):
            current_domain.process(
                SetPhoneDisabled(phone_id=phone_id, is_disabled=True, actor_id=buyer_id),
                asynchronous=False,
            )
        assert _phone(phone_id).is_disabled is False


class TestAdminUpdatePhone:
    def test_detail_change_audited_as_update(self, seller_id, admin_id, make_phone):
        phone_id = make_phone(seller_id, price=100.0, stock=2)
        admin_update_phone(phone_id, admin_id, price=90.0, stock=4)

        phone = _phone(phone_id)
        assert phone.price == 90.0
        assert phone.stock == 4
        entries = admin_logs()
        assert [e.action for e in entries] == [AdminAction.UPDATE_PHONE.value]
        assert sorted(json.loads(entries[0].details)["fields_updated"]) == ["price", "stock"]

    def test_only_disabled_flag_audited_as_disable(self, seller_id, admin_id, make_phone):
        phone_id = make_phone(seller_id)
        admin_update_phone(phone_id, admin_id, is_disabled=True)
        assert _phone(phone_id).is_disabled is True
        assert [e.action for e in admin_logs()] == [AdminAction.DISABLE_PHONE.value]

    def test_enable_audited(self, seller_id, admin_id, make_phone):
        phone_id = make_phone(seller_id)
        admin_update_phone(phone_id, admin_id, is_disabled=True)
        admin_update_phone(phone_id, admin_id, is_disabled=False)
        assert sorted(e.action for e in admin_logs()) == [
            AdminAction.DISABLE_PHONE.value,
            AdminAction.ENABLE_PHONE.value,
        ]

    def test_no_change_not_audited(self, seller_id, admin_id, make_phone):
        phone_id = make_phone(seller_id, price=100.0)
        admin_update_phone(phone_id, admin_id, price=100.0)
        assert admin_logs() == []

    def test_negative_stock_rejected(self, seller_id, admin_id, make_phone):
        phone_id = make_phone(seller_id, stock=2)
        with pytest.raises(ValidationError):
            admin_update_phone(phone_id, admin_id, stock=-1)
        assert _phone(phone_id).stock == 2


class TestAdminUserStatus:
    def test_disable_user_audited(self, buyer_id, admin_id):
        current_domain.process(
            AdminSetUserStatus(user_id=buyer_id, is_disabled=True, admin_id=admin_id),
            asynchronous=False,
        )
        assert current_domain.repository_for(User).get(buyer_id).is_disabled is True
        assert [e.action for e in admin_logs()] == [AdminAction.DISABLE_USER.value]

    def test_admin_status_cannot_change(self, make_user, admin_id):
        other_admin = make_user(first_name="Root", role="Admin")
        with pytest.raises(ValidationError):
            current_domain.process(
                AdminSetUserStatus(user_id=other_admin, is_disabled=True, admin_id=admin_id),
                asynchronous=False,
            )
        assert admin_logs() == []


class TestAuditLog:
    def test_record_returns_entry(self, admin_id):
        entry = record_admin_action(admin_id, AdminAction.EXPORT_ORDERS, "Order", "order-1", {"format": "csv"})
        assert isinstance(entry, AdminLog)
        assert json.loads(entry.details) == {"format": "csv"}

    def test_failure_is_swallowed(self, admin_id):
        assert record_admin_action(admin_id, "NOT_AN_ACTION", "User", "user-1") is None
        assert admin_logs() == []


class TestOrderHistory:
    def test_orders_newest_first(self, seller_id, buyer_id, make_phone, address):
        phone_id = make_phone(seller_id, stock=5)
        add_to_cart(buyer_id, phone_id, 1)
        first = checkout(buyer_id, address)
        add_to_cart(buyer_id, phone_id, 1)
        second = checkout(buyer_id, address)

        assert [str(o.id) for o in orders_for_user(buyer_id)] == [str(second.id), str(first.id)]

    def test_other_users_order_is_unauthorized(self, seller_id, buyer_id, make_phone, address):
        phone_id = make_phone(seller_id, stock=5)
        add_to_cart(buyer_id, phone_id, 1)
        order = checkout(buyer_id, address)

        assert order_for_user(order.id, buyer_id).id == order.id
        with pytest.raises(UnauthorizedError):
            order_for_user(order.id, seller_id)

    def test_missing_order(self, buyer_id):
        with pytest.raises(ObjectNotFoundError):
            order_for_user("missing-order", buyer_id)
