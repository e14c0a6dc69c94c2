"""Tests for the Phone aggregate: listing, inventory counters and listing management."""

import pytest
from protean.exceptions import ValidationError

from marketplace.phone.events import PhoneDetailsUpdated, PhoneListed, PhoneSold
from marketplace.phone.phone import Phone


def _make_phone(**overrides):
    defaults = {
        "seller_id": "seller-001",
        "title": "Galaxy S9 64GB",
        "brand": "Samsung",
        "price": 199.0,
        "stock": 4,
        "image": "/images/galaxy-s9.jpg",
    }
    defaults.update(overrides)
    return Phone.list_for_sale(**defaults)


class TestPhoneListing:
    def test_list_for_sale_sets_defaults(self):
        phone = _make_phone()
        assert phone.sales_count == 0
        assert phone.is_disabled is False
        assert len(phone.reviews) == 0
        assert phone.created_at is not None

    def test_list_for_sale_raises_listed_event(self):
        phone = _make_phone()
        assert isinstance(phone._events[-1], PhoneListed)
        assert phone._events[-1].phone_id == str(phone.id)

    def test_unknown_brand_rejected(self):
        with pytest.raises(ValidationError):
            _make_phone(brand="Nokiaa")

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            _make_phone(price=-1.0)

    def test_negative_stock_rejected(self):
        with pytest.raises(ValidationError):
            _make_phone(stock=-1)

    def test_average_rating_without_reviews_is_zero(self):
        assert _make_phone().average_rating == 0

    def test_is_sold_by(self):
        phone = _make_phone()
        assert phone.is_sold_by("seller-001")
        assert not phone.is_sold_by("someone-else")
        assert not phone.is_sold_by(None)


class TestRecordSale:
    def test_decrements_stock_and_counts_sales(self):
        phone = _make_phone(stock=4)
        phone.record_sale(3)
        assert phone.stock == 1
        assert phone.sales_count == 3

    def test_unset_sales_count_counts_as_zero(self):
        phone = _make_phone()
        phone.sales_count = None
        phone.record_sale(2)
        assert phone.sales_count == 2

    def test_selling_exact_stock_leaves_zero(self):
        phone = _make_phone(stock=2)
        phone.record_sale(2)
        assert phone.stock == 0

    def test_overselling_rejected_with_quantities(self):
        phone = _make_phone(stock=1)
        with pytest.raises(ValidationError) as exc:
            phone.record_sale(2)
        assert "Insufficient stock for phone Galaxy S9 64GB. Available: 1, Requested: 2" in str(exc.value)
        assert phone.stock == 1
        assert phone.sales_count == 0

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            _make_phone().record_sale(0)

    def test_raises_sold_event(self):
        phone = _make_phone(stock=4)
        phone.record_sale(1)
        event = phone._events[-1]
        assert isinstance(event, PhoneSold)
        assert event.remaining_stock == 3
        assert event.sales_count == 1


class TestListingManagement:
    def test_set_disabled_reports_change(self):
        phone = _make_phone()
        assert phone.set_disabled(True) is True
        assert phone.is_disabled is True

    def test_set_disabled_without_change_is_noop(self):
        phone = _make_phone()
        assert phone.set_disabled(False) is False

    def test_update_details_returns_changed_fields(self):
        phone = _make_phone(price=199.0, stock=4)
        updated = phone.update_details(price=149.0, stock=4, title=None)
        assert updated == ["price"]
        assert phone.price == 149.0

    def test_update_details_raises_event(self):
        phone = _make_phone()
        phone.update_details(title="Galaxy S9 128GB")
        assert isinstance(phone._events[-1], PhoneDetailsUpdated)
        assert "title" in phone._events[-1].fields_updated

    def test_update_details_nothing_changed(self):
        phone = _make_phone()
        assert phone.update_details(title="Galaxy S9 64GB") == []

    def test_update_details_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            _make_phone().update_details(seller_id="someone")

    def test_update_details_rejects_negative_stock(self):
        with pytest.raises(ValidationError):
            _make_phone().update_details(stock=-3)
