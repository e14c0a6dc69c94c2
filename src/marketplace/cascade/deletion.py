"""Deletion cascades across Phones, Carts, Users and Orders.

These aggregates are stored independently and reference one another only by
id, so deleting a phone or a user has to sweep the others for dangling
references.

Phone cascade:
    1. delete the listing image (best-effort, failures are logged),
    2. strip the phone from every cart,
    3. strip the phone from every wishlist,
    4. delete the phone together with its embedded reviews.

User cascade:
    1. run the phone cascade for every phone the user sells,
    2. delete the user's cart and orders,
    3. remove reviews the user wrote on other phones,
    4. strip the user's former listings from every wishlist,
    5. delete the user.

Sweeps scan whole collections and only write aggregates they actually
changed. Running a cascade for something already gone repeats the sweeps
without error and removes nothing further.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from marketplace.audit.admin_log import AdminAction, TargetType, record_admin_action
from marketplace.cart.cart import Cart
from marketplace.domain import marketplace
from marketplace.order.order import Order
from marketplace.phone.phone import Phone
from marketplace.shared.errors import UnauthorizedError
from marketplace.storage.images import LocalImageStorage
from marketplace.user.user import User
from marketplace.utils.queries import find_all

logger = structlog.get_logger(__name__)


def _get_or_none(aggregate_cls, identifier):
    try:
        return current_domain.repository_for(aggregate_cls).get(identifier)
    except ObjectNotFoundError:
        return None


def _remove(aggregate):
    """Persist the emptied child collections and raised events, then delete the record."""
    repo = current_domain.repository_for(type(aggregate))
    repo.add(aggregate)
    repo._dao.delete(aggregate)


class CascadeConsistencyManager:
    def __init__(self, storage=None):
        self.storage = storage or LocalImageStorage.from_env()

    # -------------------------------------------------------------------
    # Phone
    # -------------------------------------------------------------------
    def delete_phone(self, phone_id):
        phone_id = str(phone_id)
        phone = _get_or_none(Phone, phone_id)
        if phone is None:
            logger.info("Phone already gone, sweeping references", phone_id=phone_id)

        if phone is not None and phone.image:
            self._delete_image(phone)

        carts_changed = self._strip_from_carts(phone_id)
        wishlists_changed = self._strip_from_wishlists({phone_id})

        if phone is not None:
            phone.discard()
            _remove(phone)

        logger.info(
            "Phone deleted",
            phone_id=phone_id,
            carts_changed=carts_changed,
            wishlists_changed=wishlists_changed,
        )

    def _delete_image(self, phone):
        try:
            self.storage.delete(phone.image)
        except Exception as exc:
            logger.warning(
                "Failed to delete listing image",
                phone_id=str(phone.id),
                image=phone.image,
                error=str(exc),
            )

    def _strip_from_carts(self, phone_id):
        repo = current_domain.repository_for(Cart)
        changed = 0
        for cart in find_all(Cart):
            if cart.strip_phone(phone_id):
                repo.add(cart)
                changed += 1
        return changed

    def _strip_from_wishlists(self, phone_ids):
        if not phone_ids:
            return 0

        repo = current_domain.repository_for(User)
        changed = 0
        for user in find_all(User):
            if user.remove_from_wishlist(phone_ids):
                repo.add(user)
                changed += 1
        return changed

    # -------------------------------------------------------------------
    # User
    # -------------------------------------------------------------------
    def delete_user(self, user_id):
        user_id = str(user_id)
        user = _get_or_none(User, user_id)
        if user is None:
            logger.info("User already gone, sweeping references", user_id=user_id)

        listed_ids = {str(phone.id) for phone in find_all(Phone, seller_id=user_id)}
        for phone_id in sorted(listed_ids):
            self.delete_phone(phone_id)

        self._delete_cart_of(user_id)
        orders_deleted = self._delete_orders_of(user_id)
        reviews_removed = self._remove_reviews_by(user_id, skip=listed_ids)
        self._strip_from_wishlists(listed_ids)

        if user is not None:
            user.mark_deleted()
            _remove(user)

        logger.info(
            "User deleted",
            user_id=user_id,
            phones_deleted=len(listed_ids),
            orders_deleted=orders_deleted,
            reviews_removed=reviews_removed,
        )

    def _delete_cart_of(self, user_id):
        for cart in find_all(Cart, user_id=user_id):
            cart.clear()
            _remove(cart)

    def _delete_orders_of(self, user_id):
        orders = find_all(Order, user_id=user_id)
        for order in orders:
            for item in list(order.items):
                order.remove_items(item)
            _remove(order)
        return len(orders)

    def _remove_reviews_by(self, user_id, skip=()):
        repo = current_domain.repository_for(Phone)
        removed = 0
        for phone in find_all(Phone):
            if str(phone.id) in skip:
                continue
            count = phone.remove_reviews_by(user_id)
            if count:
                repo.add(phone)
                removed += count
        return removed


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@marketplace.command(part_of="Phone")
class DeletePhone:
    phone_id = Identifier(required=True)
    actor_id = Identifier()


@marketplace.command(part_of="User")
class DeleteUser:
    user_id = Identifier(required=True)
    actor_id = Identifier()


def _actor(actor_id):
    actor = _get_or_none(User, actor_id)
    if actor is None:
        raise UnauthorizedError({"actor": ["Unknown actor"]})
    return actor


@marketplace.command_handler(part_of=Phone)
class DeletePhoneHandler:
    @handle(DeletePhone)
    def delete_phone(self, command):
        phone = _get_or_none(Phone, command.phone_id)
        actor = None
        if command.actor_id is not None and phone is not None:
            actor = _actor(command.actor_id)
            if not (actor.is_admin or phone.is_sold_by(actor.id)):
                raise UnauthorizedError({"phone": ["Not authorized to delete this phone"]})

        CascadeConsistencyManager().delete_phone(command.phone_id)

        if actor is not None and actor.is_admin:
            record_admin_action(
                actor_id=actor.id,
                action=AdminAction.DELETE_PHONE,
                target_type=TargetType.PHONE,
                target_id=str(command.phone_id),
                details={"title": phone.title, "seller_id": str(phone.seller_id)},
            )


@marketplace.command_handler(part_of=User)
class DeleteUserHandler:
    @handle(DeleteUser)
    def delete_user(self, command):
        user = _get_or_none(User, command.user_id)
        if user is not None and user.is_admin:
            raise ValidationError({"user": ["Cannot delete admin user"]})

        actor = None
        if command.actor_id is not None and user is not None:
            actor = _actor(command.actor_id)
            if not actor.is_admin:
                raise UnauthorizedError({"user": ["Not authorized to delete this user"]})

        CascadeConsistencyManager().delete_user(command.user_id)

        if actor is not None:
            record_admin_action(
                actor_id=actor.id,
                action=AdminAction.DELETE_USER,
                target_type=TargetType.USER,
                target_id=str(command.user_id),
                details={"email": user.email},
            )


def delete_phone(phone_id, actor_id=None):
    return current_domain.process(DeletePhone(phone_id=phone_id, actor_id=actor_id), asynchronous=False)


def delete_user(user_id, actor_id=None):
    return current_domain.process(DeleteUser(user_id=user_id, actor_id=actor_id), asynchronous=False)
