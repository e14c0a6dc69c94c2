"""User aggregate (CQRS): a marketplace account and its wishlist.

Passwords, email verification and tokens belong to the authentication
service in front of this domain; the aggregate only carries what the
consistency rules need.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, List, String

from marketplace.domain import marketplace
from marketplace.user.events import (
    UserDeleted,
    UserProfileUpdated,
    UserRegistered,
    UserStatusChanged,
    WishlistItemAdded,
    WishlistItemRemoved,
)


class UserRole(Enum):
    USER = "User"
    ADMIN = "Admin"


@marketplace.aggregate
class User:
    first_name = String(required=True, max_length=100)
    last_name = String(required=True, max_length=100)
    email = String(required=True, max_length=254)
    wishlist = List(content_type=String, default=list)
    role = String(choices=UserRole, default=UserRole.USER.value)
    is_disabled = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(cls, first_name, last_name, email, role=UserRole.USER.value):
        now = datetime.now(UTC)
        user = cls(
            first_name=first_name,
            last_name=last_name,
            email=email.lower(),
            role=role,
            wishlist=[],
            is_disabled=False,
            created_at=now,
            updated_at=now,
        )
        user.raise_(
            UserRegistered(
                user_id=str(user.id),
                email=user.email,
                role=role,
                registered_at=now,
            )
        )
        return user

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN.value

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def set_disabled(self, is_disabled):
        if self.is_admin:
            raise ValidationError({"user": ["Cannot change status of admin user"]})

        self.is_disabled = bool(is_disabled)
        self.updated_at = datetime.now(UTC)
        self.raise_(UserStatusChanged(user_id=str(self.id), is_disabled=self.is_disabled))

    def update_profile(self, first_name=None, last_name=None, email=None, is_disabled=None):
        """Apply admin edits to the account and return the names of fields that changed.

        None leaves a field as it is. Email uniqueness is checked by the caller,
        which can see other accounts.
        """
        if self.is_admin:
            raise ValidationError({"user": ["Cannot edit admin user"]})

        changes = {
            "first_name": first_name or None,
            "last_name": last_name or None,
            "email": email.lower() if email else None,
            "is_disabled": is_disabled,
        }
        updated = []
        for field_name, value in changes.items():
            if value is None or value == getattr(self, field_name):
                continue
            setattr(self, field_name, value)
            updated.append(field_name)

        if updated:
            self.updated_at = datetime.now(UTC)
            self.raise_(UserProfileUpdated(user_id=str(self.id), fields_updated=json.dumps(updated)))

        return updated

    # -------------------------------------------------------------------
    # Wishlist
    # -------------------------------------------------------------------
    def has_in_wishlist(self, phone_id):
        return str(phone_id) in (self.wishlist or [])

    def add_to_wishlist(self, phone_id):
        if self.has_in_wishlist(phone_id):
            raise ValidationError({"wishlist": ["Item already in wishlist"]})

        # Reassign rather than append so the change is tracked
        self.wishlist = [*(self.wishlist or []), str(phone_id)]
        self.updated_at = datetime.now(UTC)
        self.raise_(WishlistItemAdded(user_id=str(self.id), phone_id=str(phone_id)))

    def remove_from_wishlist(self, phone_ids):
        """Drop the given phone ids from the wishlist; returns the ids actually removed."""
        targets = {str(phone_id) for phone_id in phone_ids}
        current = self.wishlist or []
        removed = [phone_id for phone_id in current if phone_id in targets]
        if not removed:
            return []

        self.wishlist = [phone_id for phone_id in current if phone_id not in targets]
        self.updated_at = datetime.now(UTC)
        for phone_id in removed:
            self.raise_(WishlistItemRemoved(user_id=str(self.id), phone_id=phone_id))
        return removed

    def mark_deleted(self):
        self.updated_at = datetime.now(UTC)
        self.raise_(UserDeleted(user_id=str(self.id), deleted_at=self.updated_at))
