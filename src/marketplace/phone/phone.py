"""Phone aggregate (CQRS): a second-hand phone listing and its embedded reviews.

Reviews are entities owned by the Phone: they are loaded, saved and deleted
together with it, and there is no top-level review collection.

The stock and sales counters are also kept here. `record_sale` is the only
place stock goes down; it refuses to go below zero, but it is a plain
read-modify-write on the loaded aggregate. Callers that need exclusion across
concurrent requests hold `InventoryLedger.exclusive()` around the whole unit
of work.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text

from marketplace.domain import marketplace
from marketplace.phone.events import (
    PhoneAvailabilityChanged,
    PhoneDeleted,
    PhoneDetailsUpdated,
    PhoneListed,
    PhoneSold,
    ReviewAdded,
    ReviewRemoved,
    ReviewVisibilityChanged,
)


class Brand(Enum):
    SAMSUNG = "Samsung"
    APPLE = "Apple"
    HTC = "HTC"
    HUAWEI = "Huawei"
    NOKIA = "Nokia"
    LG = "LG"
    MOTOROLA = "Motorola"
    SONY = "Sony"
    BLACKBERRY = "BlackBerry"


# Listing fields an administrator may edit in place
EDITABLE_FIELDS = ("title", "brand", "image", "stock", "price")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Phone")
class Review:
    """A buyer's rating and comment on a listing."""

    reviewer_id = Identifier(required=True)
    rating = Integer(required=True, min_value=1, max_value=5)
    comment = Text(required=True)
    is_hidden = Boolean(default=False)
    created_at = DateTime()


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Phone:
    title = String(required=True, max_length=255)
    brand = String(required=True, choices=Brand)
    image = String(max_length=500)
    price = Float(required=True, min_value=0.0)
    stock = Integer(required=True, min_value=0)
    sales_count = Integer(default=0, min_value=0)
    is_disabled = Boolean(default=False)
    seller_id = Identifier(required=True)
    reviews = HasMany(Review)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def stock_cannot_be_negative(self):
        if self.stock is not None and self.stock < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})

    @invariant.post
    def one_review_per_reviewer(self):
        reviewer_ids = [str(r.reviewer_id) for r in self.reviews]
        if len(reviewer_ids) != len(set(reviewer_ids)):
            raise ValidationError({"reviews": ["A reviewer can review a phone only once"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def list_for_sale(cls, seller_id, title, brand, price, stock, image=None):
        now = datetime.now(UTC)
        phone = cls(
            seller_id=seller_id,
            title=title,
            brand=brand,
            price=price,
            stock=stock,
            image=image,
            sales_count=0,
            is_disabled=False,
            created_at=now,
            updated_at=now,
        )
        phone.raise_(
            PhoneListed(
                phone_id=str(phone.id),
                seller_id=str(seller_id),
                title=title,
                brand=brand,
                price=price,
                stock=stock,
                listed_at=now,
            )
        )
        return phone

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def average_rating(self):
        if not self.reviews:
            return 0
        return sum(r.rating for r in self.reviews) / len(self.reviews)

    def find_review(self, review_id):
        return next((r for r in self.reviews if str(r.id) == str(review_id)), None)

    def review_by(self, reviewer_id):
        return next((r for r in self.reviews if str(r.reviewer_id) == str(reviewer_id)), None)

    def is_sold_by(self, user_id):
        return user_id is not None and str(self.seller_id) == str(user_id)

    # -------------------------------------------------------------------
    # Inventory
    # -------------------------------------------------------------------
    def record_sale(self, quantity):
        """Take `quantity` units out of stock and count them as sold."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if quantity > self.stock:
            raise ValidationError(
                {"stock": [f"Insufficient stock for phone {self.title}. Available: {self.stock}, Requested: {quantity}"]}
            )

        self.stock = self.stock - quantity
        self.sales_count = (self.sales_count or 0) + quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PhoneSold(
                phone_id=str(self.id),
                quantity=quantity,
                remaining_stock=self.stock,
                sales_count=self.sales_count,
            )
        )

    # -------------------------------------------------------------------
    # Listing management
    # -------------------------------------------------------------------
    def set_disabled(self, is_disabled):
        if bool(self.is_disabled) == bool(is_disabled):
            return False

        self.is_disabled = bool(is_disabled)
        self.updated_at = datetime.now(UTC)
        self.raise_(PhoneAvailabilityChanged(phone_id=str(self.id), is_disabled=self.is_disabled))
        return True

    def update_details(self, **changes):
        """Apply the given listing changes and return the names of fields that actually changed."""
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError({"fields": [f"Cannot update {', '.join(sorted(unknown))}"]})

        updated = []
        for field_name in EDITABLE_FIELDS:
            if field_name not in changes or changes[field_name] is None:
                continue
            if changes[field_name] != getattr(self, field_name):
                setattr(self, field_name, changes[field_name])
                updated.append(field_name)

        if updated:
            self.updated_at = datetime.now(UTC)
            self.raise_(PhoneDetailsUpdated(phone_id=str(self.id), fields_updated=json.dumps(updated)))

        return updated

    # -------------------------------------------------------------------
    # Reviews
    # -------------------------------------------------------------------
    def add_review(self, reviewer_id, rating, comment):
        if self.is_disabled:
            raise ValidationError({"phone": [f"Phone {self.id} is disabled and cannot be reviewed"]})
        if self.is_sold_by(reviewer_id):
            raise ValidationError({"review": ["You cannot review your own phone"]})
        if self.review_by(reviewer_id) is not None:
            raise ValidationError({"review": ["You have already reviewed this phone"]})

        review = Review(
            reviewer_id=reviewer_id,
            rating=rating,
            comment=comment,
            is_hidden=False,
            created_at=datetime.now(UTC),
        )
        self.add_reviews(review)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ReviewAdded(
                phone_id=str(self.id),
                review_id=str(review.id),
                reviewer_id=str(reviewer_id),
                rating=rating,
            )
        )
        return review

    def set_review_visibility(self, review_id, is_hidden, changed_by=None):
        review = self.find_review(review_id)
        if review is None:
            raise ValidationError({"review_id": ["Review not found on this phone"]})

        review.is_hidden = bool(is_hidden)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ReviewVisibilityChanged(
                phone_id=str(self.id),
                review_id=str(review.id),
                is_hidden=review.is_hidden,
                changed_by=str(changed_by) if changed_by else None,
            )
        )
        return review

    def remove_review(self, review_id, removed_by=None):
        review = self.find_review(review_id)
        if review is None:
            raise ValidationError({"review_id": ["Review not found on this phone"]})

        self.remove_reviews(review)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ReviewRemoved(
                phone_id=str(self.id),
                review_id=str(review.id),
                reviewer_id=str(review.reviewer_id),
                removed_by=str(removed_by) if removed_by else None,
            )
        )
        return review

    def remove_reviews_by(self, reviewer_id):
        """Drop every review written by `reviewer_id`; returns how many were removed."""
        authored = [r for r in self.reviews if str(r.reviewer_id) == str(reviewer_id)]
        for review in authored:
            self.remove_review(review.id)
        return len(authored)

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def discard(self):
        """Strip the embedded reviews ahead of deleting the listing."""
        reviews = list(self.reviews)
        for review in reviews:
            self.remove_reviews(review)

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            PhoneDeleted(
                phone_id=str(self.id),
                seller_id=str(self.seller_id),
                reviews_removed=len(reviews),
                deleted_at=now,
            )
        )
