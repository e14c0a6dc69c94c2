"""Domain events for the User aggregate."""

from protean.fields import Boolean, DateTime, Identifier, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="User")
class UserRegistered:
    __version__ = 1

    user_id = Identifier(required=True)
    email = String(required=True)
    role = String(required=True)
    registered_at = DateTime(required=True)


@marketplace.event(part_of="User")
class UserStatusChanged:
    """An administrator disabled or re-enabled the account."""

    __version__ = 1

    user_id = Identifier(required=True)
    is_disabled = Boolean(required=True)


@marketplace.event(part_of="User")
class WishlistItemAdded:
    __version__ = 1

    user_id = Identifier(required=True)
    phone_id = Identifier(required=True)


@marketplace.event(part_of="User")
class WishlistItemRemoved:
    __version__ = 1

    user_id = Identifier(required=True)
    phone_id = Identifier(required=True)


@marketplace.event(part_of="User")
class UserDeleted:
    __version__ = 1

    user_id = Identifier(required=True)
    deleted_at = DateTime(required=True)


@marketplace.event(part_of="User")
class UserProfileUpdated:
    __version__ = 1

    user_id = Identifier(required=True)
    fields_updated = Text(required=True)  # JSON list of field names
