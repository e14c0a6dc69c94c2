"""Tests for reviews embedded in the Phone aggregate."""

import pytest
from protean.exceptions import ValidationError

from marketplace.phone.events import PhoneDeleted, ReviewAdded, ReviewRemoved, ReviewVisibilityChanged
from marketplace.phone.phone import Phone


def _make_phone(**overrides):
    defaults = {
        "seller_id": "seller-001",
        "title": "iPhone X 256GB",
        "brand": "Apple",
        "price": 420.0,
        "stock": 2,
    }
    defaults.update(overrides)
    return Phone.list_for_sale(**defaults)


class TestAddReview:
    def test_review_starts_visible(self):
        phone = _make_phone()
        review = phone.add_review(reviewer_id="buyer-001", rating=4, comment="Works well")
        assert review.is_hidden is False
        assert len(phone.reviews) == 1

    def test_raises_review_added_event(self):
        phone = _make_phone()
        review = phone.add_review(reviewer_id="buyer-001", rating=5, comment="Great")
        event = phone._events[-1]
        assert isinstance(event, ReviewAdded)
        assert event.review_id == str(review.id)

    def test_self_review_rejected(self):
        phone = _make_phone()
        with pytest.raises(ValidationError) as exc:
            phone.add_review(reviewer_id="seller-001", rating=5, comment="Best phone")
        assert "cannot review your own phone" in str(exc.value)

    def test_duplicate_review_rejected(self):
        phone = _make_phone()
        phone.add_review(reviewer_id="buyer-001", rating=4, comment="Good")
        with pytest.raises(ValidationError) as exc:
            phone.add_review(reviewer_id="buyer-001", rating=1, comment="Changed my mind")
        assert "already reviewed" in str(exc.value)
        assert len(phone.reviews) == 1

    def test_review_on_disabled_phone_rejected(self):
        phone = _make_phone()
        phone.set_disabled(True)
        with pytest.raises(ValidationError):
            phone.add_review(reviewer_id="buyer-001", rating=3, comment="Okay")

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_out_of_range_rejected(self, rating):
        phone = _make_phone()
        with pytest.raises(ValidationError):
            phone.add_review(reviewer_id="buyer-001", rating=rating, comment="Hmm")

    def test_average_rating(self):
        phone = _make_phone()
        phone.add_review(reviewer_id="buyer-001", rating=5, comment="Great")
        phone.add_review(reviewer_id="buyer-002", rating=2, comment="Meh")
        assert phone.average_rating == 3.5


class TestReviewVisibilityAndRemoval:
    def test_hide_review(self):
        phone = _make_phone()
        review = phone.add_review(reviewer_id="buyer-001", rating=4, comment="Good")
        phone.set_review_visibility(review.id, True, changed_by="seller-001")
        assert phone.find_review(review.id).is_hidden is True
        assert isinstance(phone._events[-1], ReviewVisibilityChanged)

    def test_visibility_of_missing_review_rejected(self):
        with pytest.raises(ValidationError):
            _make_phone().set_review_visibility("missing", True)

    def test_remove_review(self):
        phone = _make_phone()
        review = phone.add_review(reviewer_id="buyer-001", rating=4, comment="Good")
        phone.remove_review(review.id, removed_by="buyer-001")
        assert len(phone.reviews) == 0
        assert isinstance(phone._events[-1], ReviewRemoved)

    def test_remove_reviews_by_reviewer(self):
        phone = _make_phone()
        phone.add_review(reviewer_id="buyer-001", rating=4, comment="Good")
        phone.add_review(reviewer_id="buyer-002", rating=3, comment="Fine")
        assert phone.remove_reviews_by("buyer-001") == 1
        assert [str(r.reviewer_id) for r in phone.reviews] == ["buyer-002"]

    def test_remove_reviews_by_absent_reviewer(self):
        assert _make_phone().remove_reviews_by("nobody") == 0

    def test_discard_strips_reviews(self):
        phone = _make_phone()
        phone.add_review(reviewer_id="buyer-001", rating=4, comment="Good")
        phone.discard()
        assert len(phone.reviews) == 0
        assert isinstance(phone._events[-1], PhoneDeleted)
        assert phone._events[-1].reviews_removed == 1
