"""Domain events for the Phone aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Phone")
class PhoneListed:
    """A seller put a new phone up for sale."""

    __version__ = 1

    phone_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    title = String(required=True)
    brand = String(required=True)
    price = Float(required=True)
    stock = Integer(required=True)
    listed_at = DateTime(required=True)


@marketplace.event(part_of="Phone")
class PhoneDetailsUpdated:
    """Listing details were changed."""

    __version__ = 1

    phone_id = Identifier(required=True)
    fields_updated = Text(required=True)  # JSON list of field names


@marketplace.event(part_of="Phone")
class PhoneAvailabilityChanged:
    """The listing was disabled or re-enabled."""

    __version__ = 1

    phone_id = Identifier(required=True)
    is_disabled = Boolean(required=True)


@marketplace.event(part_of="Phone")
class PhoneSold:
    """Units of the phone were sold through checkout."""

    __version__ = 1

    phone_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining_stock = Integer(required=True)
    sales_count = Integer(required=True)


@marketplace.event(part_of="Phone")
class PhoneDeleted:
    """The listing and its reviews were removed."""

    __version__ = 1

    phone_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    reviews_removed = Integer(required=True)
    deleted_at = DateTime(required=True)


@marketplace.event(part_of="Phone")
class ReviewAdded:
    __version__ = 1

    phone_id = Identifier(required=True)
    review_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    rating = Integer(required=True)


@marketplace.event(part_of="Phone")
class ReviewVisibilityChanged:
    __version__ = 1

    phone_id = Identifier(required=True)
    review_id = Identifier(required=True)
    is_hidden = Boolean(required=True)
    changed_by = Identifier()


@marketplace.event(part_of="Phone")
class ReviewRemoved:
    __version__ = 1

    phone_id = Identifier(required=True)
    review_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    removed_by = Identifier()
