"""Tests for the review visibility rules."""

from types import SimpleNamespace

import pytest

from marketplace.phone.visibility import filter_visible_reviews, is_visible, visible_reviews_for


def _review(reviewer_id, is_hidden=False):
    return SimpleNamespace(reviewer_id=reviewer_id, is_hidden=is_hidden)


SELLER = "seller-001"
REVIEWER = "reviewer-001"


class TestIsVisible:
    def test_visible_review_seen_by_anonymous(self):
        assert is_visible(_review(REVIEWER), viewer_id=None, seller_id=SELLER)

    def test_hidden_review_hidden_from_anonymous(self):
        assert not is_visible(_review(REVIEWER, is_hidden=True), viewer_id=None, seller_id=SELLER)

    @pytest.mark.parametrize("viewer", [SELLER, REVIEWER])
    def test_hidden_review_seen_by_stakeholders(self, viewer):
        assert is_visible(_review(REVIEWER, is_hidden=True), viewer_id=viewer, seller_id=SELLER)

    def test_hidden_review_hidden_from_other_users(self):
        assert not is_visible(_review(REVIEWER, is_hidden=True), viewer_id="stranger", seller_id=SELLER)

    def test_missing_seller_does_not_match_anonymous(self):
        assert not is_visible(_review(REVIEWER, is_hidden=True), viewer_id=None, seller_id=None)


class TestFilterVisibleReviews:
    def test_preserves_order(self):
        reviews = [_review("r1"), _review("r2", is_hidden=True), _review("r3")]
        visible = filter_visible_reviews(reviews, viewer_id="stranger", seller_id=SELLER)
        assert [r.reviewer_id for r in visible] == ["r1", "r3"]

    def test_reviewer_sees_only_own_hidden_review(self):
        reviews = [_review("r1", is_hidden=True), _review("r2", is_hidden=True)]
        visible = filter_visible_reviews(reviews, viewer_id="r2", seller_id=SELLER)
        assert [r.reviewer_id for r in visible] == ["r2"]

    def test_seller_sees_everything(self):
        reviews = [_review("r1", is_hidden=True), _review("r2")]
        assert len(filter_visible_reviews(reviews, viewer_id=SELLER, seller_id=SELLER)) == 2

    def test_empty_input(self):
        assert filter_visible_reviews([], viewer_id=None, seller_id=SELLER) == []

    def test_visible_reviews_for_uses_phone_seller(self):
        phone = SimpleNamespace(seller_id=SELLER, reviews=[_review("r1", is_hidden=True)])
        assert visible_reviews_for(phone, viewer_id=SELLER) == phone.reviews
        assert visible_reviews_for(phone) == []
