"""Listing management: sellers list and enable/disable phones, admins edit them."""

import structlog
from protean import handle
from protean.fields import Boolean, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.audit.admin_log import AdminAction, TargetType, record_admin_action
from marketplace.domain import marketplace
from marketplace.inventory.ledger import inventory_ledger
from marketplace.phone.phone import Brand, Phone
from marketplace.shared.errors import UnauthorizedError
from marketplace.user.user import User
from marketplace.utils.queries import find_all

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Phone")
class CreatePhone:
    seller_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    brand = String(required=True, choices=Brand)
    image = String(max_length=500)
    price = Float(required=True, min_value=0.0)
    stock = Integer(required=True, min_value=0)


@marketplace.command(part_of="Phone")
class SetPhoneDisabled:
    phone_id = Identifier(required=True)
    is_disabled = Boolean(required=True)
    actor_id = Identifier(required=True)


@marketplace.command(part_of="Phone")
class AdminUpdatePhone:
    phone_id = Identifier(required=True)
    admin_id = Identifier(required=True)
    title = String(max_length=255)
    brand = String(choices=Brand)
    image = String(max_length=500)
    price = Float(min_value=0.0)
    stock = Integer(min_value=0)
    is_disabled = Boolean()


def _admin_action_for(updated_fields, disabled_changed, is_disabled):
    if updated_fields:
        return AdminAction.UPDATE_PHONE
    if disabled_changed:
        return AdminAction.DISABLE_PHONE if is_disabled else AdminAction.ENABLE_PHONE
    return None


@marketplace.command_handler(part_of=Phone)
class ManageListingsHandler:
    @handle(CreatePhone)
    def create_phone(self, command):
        # Raises ObjectNotFoundError when the seller does not exist
        current_domain.repository_for(User).get(command.seller_id)

        phone = Phone.list_for_sale(
            seller_id=command.seller_id,
            title=command.title,
            brand=command.brand,
            price=command.price,
            stock=command.stock,
            image=command.image,
        )
        current_domain.repository_for(Phone).add(phone)

        logger.info("Phone listed", phone_id=str(phone.id), seller_id=str(command.seller_id), stock=phone.stock)
        return str(phone.id)

    @handle(SetPhoneDisabled)
    def set_disabled(self, command):
        repo = current_domain.repository_for(Phone)
        phone = repo.get(command.phone_id)
        if not phone.is_sold_by(command.actor_id):
            raise UnauthorizedError({"phone": ["Only the seller can change this listing"]})

        if phone.set_disabled(command.is_disabled):
            repo.add(phone)
        return phone

    @handle(AdminUpdatePhone)
    def admin_update(self, command):
        repo = current_domain.repository_for(Phone)
        phone = repo.get(command.phone_id)

        updated = phone.update_details(
            title=command.title,
            brand=command.brand,
            image=command.image,
            price=command.price,
            stock=command.stock,
        )
        disabled_changed = command.is_disabled is not None and phone.set_disabled(command.is_disabled)

        action = _admin_action_for(updated, disabled_changed, phone.is_disabled)
        if action is None:
            return phone

        repo.add(phone)

        details = {"fields_updated": updated}
        if disabled_changed:
            details["is_disabled"] = phone.is_disabled
        record_admin_action(
            actor_id=command.admin_id,
            action=action,
            target_type=TargetType.PHONE,
            target_id=str(phone.id),
            details=details,
        )
        return phone


def admin_update_phone(phone_id, admin_id, **changes):
    command = AdminUpdatePhone(phone_id=phone_id, admin_id=admin_id, **changes)
    if command.stock is None:
        return current_domain.process(command, asynchronous=False)

    with inventory_ledger.exclusive():
        return current_domain.process(command, asynchronous=False)


def available_phones(brand=None):
    """Enabled listings, optionally narrowed to one brand."""
    filters = {"is_disabled": False}
    if brand:
        filters["brand"] = brand
    return find_all(Phone, **filters)


def phones_by_seller(seller_id):
    return find_all(Phone, seller_id=str(seller_id))
