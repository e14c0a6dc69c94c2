"""FastAPI endpoints for the Marketplace domain.

Authentication happens in front of this service; the authenticated user's id
arrives in the `X-User-Id` header. Admin endpoints additionally require that
user to hold the Admin role.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Header, Query, Response
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.api.schemas import (
    AddReviewRequest,
    AdminLogResponse,
    AdminOrderResponse,
    AdminUpdatePhoneRequest,
    AdminUpdateUserRequest,
    BuyerSchema,
    CartItemRequest,
    CartLineResponse,
    CartQuantityRequest,
    CartResponse,
    CheckoutRequest,
    CreatePhoneRequest,
    DashboardStatsResponse,
    OrderLineResponse,
    OrderPageResponse,
    OrderResponse,
    PhoneDetailResponse,
    PhoneIdResponse,
    PhoneResponse,
    RegisterUserRequest,
    ReviewIdResponse,
    ReviewResponse,
    ReviewVisibilityRequest,
    SalesStatsResponse,
    SellerReviewResponse,
    SetStatusRequest,
    StatusResponse,
    UserIdResponse,
    UserPageResponse,
    UserResponse,
    WishlistRequest,
    WishlistResponse,
)
from marketplace.audit.admin_log import admin_logs
from marketplace.audit.dashboard import dashboard_stats
from marketplace.cart.items import add_to_cart, get_cart, remove_from_cart, update_cart_item
from marketplace.cascade.deletion import delete_phone, delete_user
from marketplace.order.checkout import checkout
from marketplace.order.history import (
    admin_order,
    admin_orders,
    export_orders,
    order_for_user,
    orders_for_user,
    sales_stats,
)
from marketplace.phone.listing import (
    CreatePhone,
    SetPhoneDisabled,
    admin_update_phone,
    available_phones,
    phones_by_seller,
)
from marketplace.phone.phone import Phone
from marketplace.phone.reviews import (
    AdminDeleteReview,
    AdminSetReviewVisibility,
    add_review,
    admin_reviews_for_phone,
    all_reviews,
    delete_review,
    public_reviews,
    reviews_by_seller,
    reviews_written_by,
    toggle_review_visibility,
)
from marketplace.shared.errors import UnauthorizedError
from marketplace.user.account import AdminSetUserStatus, admin_update_user, admin_users
from marketplace.user.registration import RegisterUser
from marketplace.user.user import User
from marketplace.user.wishlist import AddToWishlist, RemoveFromWishlist
from marketplace.utils.queries import paginate

user_router = APIRouter(prefix="/users", tags=["users"])
phone_router = APIRouter(prefix="/phones", tags=["phones"])
cart_router = APIRouter(prefix="/cart", tags=["cart"])
order_router = APIRouter(prefix="/orders", tags=["orders"])
wishlist_router = APIRouter(prefix="/wishlist", tags=["wishlist"])
admin_router = APIRouter(prefix="/admin", tags=["admin"])


# --- Actors ---


async def current_user_id(x_user_id: str = Header(...)) -> str:
    return x_user_id


async def optional_user_id(x_user_id: str | None = Header(None)) -> str | None:
    return x_user_id


async def admin_user_id(x_user_id: str = Header(...)) -> str:
    try:
        user = current_domain.repository_for(User).get(x_user_id)
    except ObjectNotFoundError:
        raise UnauthorizedError({"user": ["Unknown user"]}) from None
    if not user.is_admin:
        raise UnauthorizedError({"user": ["Admin access required"]})
    return str(user.id)


# --- Serialization ---


def _review(review) -> ReviewResponse:
    return ReviewResponse(
        review_id=str(review.id),
        reviewer_id=str(review.reviewer_id),
        rating=review.rating,
        comment=review.comment,
        is_hidden=bool(review.is_hidden),
        created_at=review.created_at,
    )


def _phone_fields(phone) -> dict:
    return {
        "phone_id": str(phone.id),
        "title": phone.title,
        "brand": phone.brand,
        "image": phone.image,
        "price": phone.price,
        "stock": phone.stock,
        "sales_count": phone.sales_count or 0,
        "is_disabled": bool(phone.is_disabled),
        "seller_id": str(phone.seller_id),
        "average_rating": phone.average_rating,
    }


def _seller_review(phone, review) -> SellerReviewResponse:
    return SellerReviewResponse(
        **_review(review).model_dump(),
        phone_id=str(phone.id),
        phone_title=phone.title,
    )


def _user(user) -> UserResponse:
    return UserResponse(
        user_id=str(user.id),
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        role=user.role,
        is_disabled=bool(user.is_disabled),
    )


def _cart(cart) -> CartResponse:
    return CartResponse(
        cart_id=str(cart.id),
        user_id=str(cart.user_id),
        items=[
            CartLineResponse(phone_id=str(i.phone_id), title=i.title, quantity=i.quantity, price=i.price)
            for i in cart.items
        ],
        total=cart.total,
    )


def _order(order) -> OrderResponse:
    address = order.address
    return OrderResponse(
        order_id=str(order.id),
        user_id=str(order.user_id),
        items=[
            OrderLineResponse(phone_id=str(i.phone_id), title=i.title, quantity=i.quantity, price=i.price)
            for i in order.items
        ],
        total_amount=order.total_amount,
        address={
            "street": address.street,
            "city": address.city,
            "state": address.state,
            "zip": address.zip,
            "country": address.country,
        },
        created_at=order.created_at,
    )


# --- User endpoints ---


@user_router.post("", status_code=201, response_model=UserIdResponse)
async def register_user(body: RegisterUserRequest) -> UserIdResponse:
    command = RegisterUser(
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        role=body.role,
    )
    result = current_domain.process(command, asynchronous=False)
    return UserIdResponse(user_id=result)


@user_router.get("/{seller_id}/reviews", response_model=list[SellerReviewResponse])
async def seller_reviews(seller_id: str, user_id: str = Depends(current_user_id)) -> list[SellerReviewResponse]:
    if seller_id != user_id:
        raise UnauthorizedError({"seller": ["Sellers can only list reviews on their own phones"]})
    return [_seller_review(phone, review) for phone, review in reviews_by_seller(seller_id)]


# --- Phone endpoints ---


@phone_router.get("", response_model=list[PhoneResponse])
async def list_phones(brand: str | None = None, seller_id: str | None = None) -> list[PhoneResponse]:
    phones = phones_by_seller(seller_id) if seller_id else available_phones(brand=brand)
    return [PhoneResponse(**_phone_fields(phone)) for phone in phones]


@phone_router.post("", status_code=201, response_model=PhoneIdResponse)
async def create_phone(body: CreatePhoneRequest, user_id: str = Depends(current_user_id)) -> PhoneIdResponse:
    command = CreatePhone(
        seller_id=user_id,
        title=body.title,
        brand=body.brand,
        image=body.image,
        price=body.price,
        stock=body.stock,
    )
    result = current_domain.process(command, asynchronous=False)
    return PhoneIdResponse(phone_id=result)


@phone_router.get("/{phone_id}", response_model=PhoneDetailResponse)
async def get_phone(phone_id: str, viewer_id: str | None = Depends(optional_user_id)) -> PhoneDetailResponse:
    phone = current_domain.repository_for(Phone).get(phone_id)
    reviews = public_reviews(phone_id, viewer_id=viewer_id)
    return PhoneDetailResponse(**_phone_fields(phone), reviews=[_review(r) for r in reviews])


@phone_router.put("/{phone_id}/disabled", response_model=StatusResponse)
async def set_phone_disabled(
    phone_id: str, body: SetStatusRequest, user_id: str = Depends(current_user_id)
) -> StatusResponse:
    command = SetPhoneDisabled(phone_id=phone_id, is_disabled=body.is_disabled, actor_id=user_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@phone_router.delete("/{phone_id}", response_model=StatusResponse)
async def remove_phone(phone_id: str, user_id: str = Depends(current_user_id)) -> StatusResponse:
    delete_phone(phone_id, actor_id=user_id)
    return StatusResponse()


@phone_router.get("/{phone_id}/reviews", response_model=list[ReviewResponse])
async def list_reviews(phone_id: str, viewer_id: str | None = Depends(optional_user_id)) -> list[ReviewResponse]:
    return [_review(r) for r in public_reviews(phone_id, viewer_id=viewer_id)]


@phone_router.post("/{phone_id}/reviews", status_code=201, response_model=ReviewIdResponse)
async def post_review(
    phone_id: str, body: AddReviewRequest, user_id: str = Depends(current_user_id)
) -> ReviewIdResponse:
    review = add_review(phone_id, reviewer_id=user_id, rating=body.rating, comment=body.comment)
    return ReviewIdResponse(review_id=str(review.id))


@phone_router.put("/{phone_id}/reviews/{review_id}/visibility", response_model=StatusResponse)
async def set_review_visibility(
    phone_id: str,
    review_id: str,
    body: ReviewVisibilityRequest,
    user_id: str = Depends(current_user_id),
) -> StatusResponse:
    toggle_review_visibility(phone_id, review_id, is_hidden=body.is_hidden, actor_id=user_id)
    return StatusResponse()


@phone_router.delete("/{phone_id}/reviews/{review_id}", response_model=StatusResponse)
async def remove_review(phone_id: str, review_id: str, user_id: str = Depends(current_user_id)) -> StatusResponse:
    delete_review(phone_id, review_id, actor_id=user_id)
    return StatusResponse()


# --- Cart endpoints ---


@cart_router.get("", response_model=CartResponse)
async def view_cart(user_id: str = Depends(current_user_id)) -> CartResponse:
    return _cart(get_cart(user_id))


@cart_router.post("/items", response_model=CartResponse)
async def add_cart_item(body: CartItemRequest, user_id: str = Depends(current_user_id)) -> CartResponse:
    return _cart(add_to_cart(user_id, body.phone_id, body.quantity))


@cart_router.put("/items/{phone_id}", response_model=CartResponse)
async def update_cart_line(
    phone_id: str, body: CartQuantityRequest, user_id: str = Depends(current_user_id)
) -> CartResponse:
    return _cart(update_cart_item(user_id, phone_id, body.quantity))


@cart_router.delete("/items/{phone_id}", response_model=CartResponse)
async def remove_cart_line(phone_id: str, user_id: str = Depends(current_user_id)) -> CartResponse:
    return _cart(remove_from_cart(user_id, phone_id))


# --- Order endpoints ---


@order_router.post("", status_code=201, response_model=OrderResponse)
async def place_order(body: CheckoutRequest, user_id: str = Depends(current_user_id)) -> OrderResponse:
    address = body.address.model_dump() if body.address else {}
    return _order(checkout(user_id, address))


@order_router.get("", response_model=list[OrderResponse])
async def list_orders(user_id: str = Depends(current_user_id)) -> list[OrderResponse]:
    return [_order(order) for order in orders_for_user(user_id)]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, user_id: str = Depends(current_user_id)) -> OrderResponse:
    return _order(order_for_user(order_id, user_id))


# --- Wishlist endpoints ---


@wishlist_router.get("", response_model=WishlistResponse)
async def view_wishlist(user_id: str = Depends(current_user_id)) -> WishlistResponse:
    user = current_domain.repository_for(User).get(user_id)
    return WishlistResponse(phone_ids=list(user.wishlist or []))


@wishlist_router.post("", status_code=201, response_model=WishlistResponse)
async def add_wishlist_item(body: WishlistRequest, user_id: str = Depends(current_user_id)) -> WishlistResponse:
    command = AddToWishlist(user_id=user_id, phone_id=body.phone_id)
    result = current_domain.process(command, asynchronous=False)
    return WishlistResponse(phone_ids=result)


@wishlist_router.delete("/{phone_id}", response_model=WishlistResponse)
async def remove_wishlist_item(phone_id: str, user_id: str = Depends(current_user_id)) -> WishlistResponse:
    command = RemoveFromWishlist(user_id=user_id, phone_id=phone_id)
    result = current_domain.process(command, asynchronous=False)
    return WishlistResponse(phone_ids=result)


# --- Admin endpoints ---


@admin_router.get("/stats", response_model=DashboardStatsResponse)
async def get_dashboard_stats(admin_id: str = Depends(admin_user_id)) -> DashboardStatsResponse:
    return DashboardStatsResponse(**dashboard_stats())


@admin_router.get("/users", response_model=UserPageResponse)
async def list_users(
    search: str | None = None,
    is_disabled: bool | None = None,
    page: int = 1,
    limit: int = 10,
    admin_id: str = Depends(admin_user_id),
) -> UserPageResponse:
    users, total = paginate(admin_users(search=search, is_disabled=is_disabled), page, limit)
    return UserPageResponse(total=total, page=page, limit=limit, users=[_user(u) for u in users])


@admin_router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, admin_id: str = Depends(admin_user_id)) -> UserResponse:
    return _user(current_domain.repository_for(User).get(user_id))


@admin_router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str, body: AdminUpdateUserRequest, admin_id: str = Depends(admin_user_id)
) -> UserResponse:
    user = admin_update_user(user_id, admin_id, **body.model_dump(exclude_none=True))
    return _user(user)


@admin_router.get("/users/{user_id}/phones", response_model=list[PhoneResponse])
async def list_user_phones(user_id: str, admin_id: str = Depends(admin_user_id)) -> list[PhoneResponse]:
    # Raises ObjectNotFoundError for an unknown user
    current_domain.repository_for(User).get(user_id)
    return [PhoneResponse(**_phone_fields(phone)) for phone in phones_by_seller(user_id)]


@admin_router.get("/users/{user_id}/reviews", response_model=list[SellerReviewResponse])
async def list_user_reviews(user_id: str, admin_id: str = Depends(admin_user_id)) -> list[SellerReviewResponse]:
    current_domain.repository_for(User).get(user_id)
    return [_seller_review(phone, review) for phone, review in reviews_written_by(user_id)]


@admin_router.put("/users/{user_id}/status", response_model=StatusResponse)
async def set_user_status(
    user_id: str, body: SetStatusRequest, admin_id: str = Depends(admin_user_id)
) -> StatusResponse:
    command = AdminSetUserStatus(user_id=user_id, is_disabled=body.is_disabled, admin_id=admin_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_router.delete("/users/{user_id}", response_model=StatusResponse)
async def remove_user(user_id: str, admin_id: str = Depends(admin_user_id)) -> StatusResponse:
    delete_user(user_id, actor_id=admin_id)
    return StatusResponse()


@admin_router.put("/phones/{phone_id}", response_model=PhoneResponse)
async def update_phone(
    phone_id: str, body: AdminUpdatePhoneRequest, admin_id: str = Depends(admin_user_id)
) -> PhoneResponse:
    phone = admin_update_phone(phone_id, admin_id, **body.model_dump(exclude_none=True))
    return PhoneResponse(**_phone_fields(phone))


@admin_router.delete("/phones/{phone_id}", response_model=StatusResponse)
async def admin_remove_phone(phone_id: str, admin_id: str = Depends(admin_user_id)) -> StatusResponse:
    delete_phone(phone_id, actor_id=admin_id)
    return StatusResponse()


@admin_router.get("/reviews", response_model=list[SellerReviewResponse])
async def list_all_reviews(admin_id: str = Depends(admin_user_id)) -> list[SellerReviewResponse]:
    return [_seller_review(phone, review) for phone, review in all_reviews()]


@admin_router.get("/phones/{phone_id}/reviews", response_model=list[ReviewResponse])
async def list_phone_reviews(phone_id: str, admin_id: str = Depends(admin_user_id)) -> list[ReviewResponse]:
    return [_review(r) for r in admin_reviews_for_phone(phone_id)]


@admin_router.put("/phones/{phone_id}/reviews/{review_id}/visibility", response_model=StatusResponse)
async def admin_review_visibility(
    phone_id: str,
    review_id: str,
    body: ReviewVisibilityRequest,
    admin_id: str = Depends(admin_user_id),
) -> StatusResponse:
    command = AdminSetReviewVisibility(
        phone_id=phone_id,
        review_id=review_id,
        is_hidden=body.is_hidden,
        admin_id=admin_id,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_router.delete("/phones/{phone_id}/reviews/{review_id}", response_model=StatusResponse)
async def admin_remove_review(phone_id: str, review_id: str, admin_id: str = Depends(admin_user_id)) -> StatusResponse:
    command = AdminDeleteReview(phone_id=phone_id, review_id=review_id, admin_id=admin_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


def _admin_order(order, buyer) -> AdminOrderResponse:
    return AdminOrderResponse(
        **_order(order).model_dump(),
        buyer=BuyerSchema(
            user_id=str(buyer.id),
            first_name=buyer.first_name,
            last_name=buyer.last_name,
            email=buyer.email,
        )
        if buyer is not None
        else None,
    )


@admin_router.get("/orders/export")
async def export_order_list(
    export_format: str = Query("csv", alias="format"),
    user_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    search: str | None = None,
    brand: str | None = None,
    sort_order: str = "desc",
    admin_id: str = Depends(admin_user_id),
) -> Response:
    content = export_orders(
        admin_id,
        export_format,
        user_id=user_id,
        start=start_date,
        end=end_date,
        search=search,
        brand=brand,
        ascending=sort_order == "asc",
    )
    media_type = "application/json" if export_format == "json" else "text/csv"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="orders.{export_format}"'},
    )


@admin_router.get("/orders/stats", response_model=SalesStatsResponse)
async def get_sales_stats(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    admin_id: str = Depends(admin_user_id),
) -> SalesStatsResponse:
    return SalesStatsResponse(**sales_stats(start=start_date, end=end_date))


@admin_router.get("/orders", response_model=OrderPageResponse)
async def list_all_orders(
    user_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    search: str | None = None,
    brand: str | None = None,
    sort_order: str = "desc",
    page: int = 1,
    limit: int = 10,
    admin_id: str = Depends(admin_user_id),
) -> OrderPageResponse:
    pairs = admin_orders(
        user_id=user_id,
        start=start_date,
        end=end_date,
        search=search,
        brand=brand,
        ascending=sort_order == "asc",
    )
    rows, total = paginate(pairs, page, limit)
    return OrderPageResponse(
        total=total,
        page=page,
        limit=limit,
        orders=[_admin_order(order, buyer) for order, buyer in rows],
    )


@admin_router.get("/orders/{order_id}", response_model=AdminOrderResponse)
async def get_any_order(order_id: str, admin_id: str = Depends(admin_user_id)) -> AdminOrderResponse:
    return _admin_order(*admin_order(order_id))


@admin_router.get("/logs", response_model=list[AdminLogResponse])
async def list_admin_logs(
    action: str | None = None, admin_id: str = Depends(admin_user_id)
) -> list[AdminLogResponse]:
    entries = admin_logs(action=action) if action else admin_logs()
    return [
        AdminLogResponse(
            log_id=str(e.id),
            admin_user_id=str(e.admin_user_id),
            action=e.action,
            target_type=e.target_type,
            target_id=str(e.target_id),
            details=e.details,
            created_at=e.created_at,
        )
        for e in entries
    ]
