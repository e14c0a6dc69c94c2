"""Pydantic request/response schemas for the Marketplace API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

# --- Users ---


class RegisterUserRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "first_name": "Ada",
                    "last_name": "Lovelace",
                    "email": "ada@example.com",
                }
            ]
        }
    }

    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    email: str = Field(..., max_length=254)
    role: str | None = None


class UserIdResponse(BaseModel):
    user_id: str


class UserResponse(BaseModel):
    user_id: str
    first_name: str
    last_name: str
    email: str
    role: str
    is_disabled: bool


class SetStatusRequest(BaseModel):
    is_disabled: bool


class AdminUpdateUserRequest(BaseModel):
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    email: str | None = Field(None, max_length=254)
    is_disabled: bool | None = None


class UserPageResponse(BaseModel):
    total: int
    page: int
    limit: int
    users: list[UserResponse]


# --- Phones ---


class CreatePhoneRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "title": "Galaxy S10 128GB",
                    "brand": "Samsung",
                    "image": "/images/galaxy-s10.jpg",
                    "price": 249.0,
                    "stock": 3,
                }
            ]
        }
    }

    title: str = Field(..., max_length=255)
    brand: str
    image: str | None = Field(None, max_length=500)
    price: float
    stock: int


class AdminUpdatePhoneRequest(BaseModel):
    title: str | None = Field(None, max_length=255)
    brand: str | None = None
    image: str | None = Field(None, max_length=500)
    price: float | None = None
    stock: int | None = None
    is_disabled: bool | None = None


class PhoneIdResponse(BaseModel):
    phone_id: str


class ReviewResponse(BaseModel):
    review_id: str
    reviewer_id: str
    rating: int
    comment: str
    is_hidden: bool
    created_at: datetime | None = None


class PhoneResponse(BaseModel):
    phone_id: str
    title: str
    brand: str
    image: str | None = None
    price: float
    stock: int
    sales_count: int
    is_disabled: bool
    seller_id: str
    average_rating: float


class PhoneDetailResponse(PhoneResponse):
    reviews: list[ReviewResponse] = []


class SellerReviewResponse(ReviewResponse):
    phone_id: str
    phone_title: str


# --- Reviews ---


class AddReviewRequest(BaseModel):
    rating: int
    comment: str


class ReviewVisibilityRequest(BaseModel):
    is_hidden: bool


class ReviewIdResponse(BaseModel):
    review_id: str


# --- Cart ---


class CartItemRequest(BaseModel):
    phone_id: str
    quantity: int


class CartQuantityRequest(BaseModel):
    quantity: int


class CartLineResponse(BaseModel):
    phone_id: str
    title: str
    quantity: int
    price: float


class CartResponse(BaseModel):
    cart_id: str
    user_id: str
    items: list[CartLineResponse] = []
    total: float


# --- Orders ---


class AddressSchema(BaseModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    country: str | None = None


class CheckoutRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "address": {
                        "street": "1 George St",
                        "city": "Sydney",
                        "state": "NSW",
                        "zip": "2000",
                        "country": "Australia",
                    }
                }
            ]
        }
    }

    address: AddressSchema | None = None


class OrderLineResponse(BaseModel):
    phone_id: str
    title: str
    quantity: int
    price: float


class OrderResponse(BaseModel):
    order_id: str
    user_id: str
    items: list[OrderLineResponse]
    total_amount: float
    address: AddressSchema
    created_at: datetime | None = None


# --- Wishlist ---


class WishlistRequest(BaseModel):
    phone_id: str


class WishlistResponse(BaseModel):
    phone_ids: list[str]


# --- Admin ---


class AdminLogResponse(BaseModel):
    log_id: str
    admin_user_id: str
    action: str
    target_type: str
    target_id: str
    details: str | None = None
    created_at: datetime | None = None


class StatusResponse(BaseModel):
    status: str = "ok"


class BuyerSchema(BaseModel):
    user_id: str
    first_name: str
    last_name: str
    email: str


class AdminOrderResponse(OrderResponse):
    buyer: BuyerSchema | None = None


class OrderPageResponse(BaseModel):
    total: int
    page: int
    limit: int
    orders: list[AdminOrderResponse]


class SalesStatsResponse(BaseModel):
    total_sales: float
    total_transactions: int


class DashboardStatsResponse(BaseModel):
    total_users: int
    total_listings: int
    total_reviews: int
    total_sales: int
