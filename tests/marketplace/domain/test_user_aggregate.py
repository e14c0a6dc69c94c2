"""Tests for the User aggregate and its wishlist."""

import json

import pytest
from protean.exceptions import ValidationError

from marketplace.user.events import UserProfileUpdated, UserRegistered, WishlistItemRemoved
from marketplace.user.user import User, UserRole


def _make_user(**overrides):
    defaults = {"first_name": "Jane", "last_name": "Doe", "email": "Jane@Example.com"}
    defaults.update(overrides)
    return User.register(**defaults)


class TestRegistration:
    def test_email_is_lowercased(self):
        assert _make_user().email == "jane@example.com"

    def test_defaults(self):
        user = _make_user()
        assert user.role == UserRole.USER.value
        assert user.is_disabled is False
        assert user.wishlist == []
        assert isinstance(user._events[-1], UserRegistered)

    def test_full_name(self):
        assert _make_user().full_name == "Jane Doe"

    def test_admin_role(self):
        assert _make_user(role=UserRole.ADMIN.value).is_admin


class TestStatus:
    def test_disable_user(self):
        user = _make_user()
        user.set_disabled(True)
        assert user.is_disabled is True

    def test_admin_status_cannot_change(self):
        admin = _make_user(role=UserRole.ADMIN.value)
        with pytest.raises(ValidationError) as exc:
            admin.set_disabled(True)
        assert "Cannot change status of admin user" in str(exc.value)


class TestProfileUpdate:
    def test_returns_changed_fields(self):
        user = _make_user()
        updated = user.update_profile(first_name="Janet", last_name="Doe", email="JANET@example.com")
        assert updated == ["first_name", "email"]
        assert user.first_name == "Janet"
        assert user.email == "janet@example.com"

    def test_raises_event_with_field_names(self):
        user = _make_user()
        user.update_profile(is_disabled=True)
        event = user._events[-1]
        assert isinstance(event, UserProfileUpdated)
        assert json.loads(event.fields_updated) == ["is_disabled"]
        assert user.is_disabled is True

    def test_blank_values_leave_fields_alone(self):
        user = _make_user()
        assert user.update_profile(first_name="", email=None) == []
        assert user.first_name == "Jane"

    def test_admin_cannot_be_edited(self):
        admin = _make_user(role=UserRole.ADMIN.value)
        with pytest.raises(ValidationError) as exc:
            admin.update_profile(first_name="Mallory")
        assert "Cannot edit admin user" in str(exc.value)
        assert admin.first_name == "Jane"


class TestWishlist:
    def test_add_to_wishlist(self):
        user = _make_user()
        user.add_to_wishlist("phone-1")
        assert user.has_in_wishlist("phone-1")

    def test_duplicate_rejected(self):
        user = _make_user()
        user.add_to_wishlist("phone-1")
        with pytest.raises(ValidationError) as exc:
            user.add_to_wishlist("phone-1")
        assert "Item already in wishlist" in str(exc.value)
        assert user.wishlist == ["phone-1"]

    def test_remove_returns_removed_ids(self):
        user = _make_user()
        user.add_to_wishlist("phone-1")
        user.add_to_wishlist("phone-2")
        assert user.remove_from_wishlist(["phone-1", "phone-9"]) == ["phone-1"]
        assert user.wishlist == ["phone-2"]
        assert isinstance(user._events[-1], WishlistItemRemoved)

    def test_remove_absent_is_noop(self):
        user = _make_user()
        assert user.remove_from_wishlist(["phone-1"]) == []
