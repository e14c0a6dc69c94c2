"""Account administration: user status, profile edits and the admin user listing."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from marketplace.audit.admin_log import AdminAction, TargetType, record_admin_action
from marketplace.domain import marketplace
from marketplace.user.user import User, UserRole
from marketplace.utils.queries import find_all, find_one


@marketplace.command(part_of="User")
class AdminSetUserStatus:
    user_id = Identifier(required=True)
    is_disabled = Boolean(required=True)
    admin_id = Identifier(required=True)


@marketplace.command(part_of="User")
class AdminUpdateUser:
    user_id = Identifier(required=True)
    admin_id = Identifier(required=True)
    first_name = String(max_length=100)
    last_name = String(max_length=100)
    email = String(max_length=254)
    is_disabled = Boolean()


@marketplace.command_handler(part_of=User)
class AccountAdministrationHandler:
    @handle(AdminSetUserStatus)
    def set_user_status(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        user.set_disabled(command.is_disabled)
        repo.add(user)

        record_admin_action(
            actor_id=command.admin_id,
            action=AdminAction.DISABLE_USER if command.is_disabled else AdminAction.ENABLE_USER,
            target_type=TargetType.USER,
            target_id=str(user.id),
        )

    @handle(AdminUpdateUser)
    def update_user(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)

        if command.email and command.email.lower() != user.email:
            if find_one(User, email=command.email.lower()) is not None:
                raise ValidationError({"email": ["Email already in use"]})

        updated = user.update_profile(
            first_name=command.first_name,
            last_name=command.last_name,
            email=command.email,
            is_disabled=command.is_disabled,
        )
        repo.add(user)

        record_admin_action(
            actor_id=command.admin_id,
            action=AdminAction.UPDATE_USER,
            target_type=TargetType.USER,
            target_id=str(user.id),
            details={"fields_updated": updated} if updated else None,
        )
        return user


def admin_update_user(user_id, admin_id, **changes):
    return current_domain.process(
        AdminUpdateUser(user_id=user_id, admin_id=admin_id, **changes),
        asynchronous=False,
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def admin_users(search=None, is_disabled=None):
    """Non-admin accounts, newest first.

    `search` matches first name, last name or email, ignoring case.
    `is_disabled` narrows the list to disabled or enabled accounts.
    """
    users = [user for user in find_all(User) if user.role != UserRole.ADMIN.value]

    if is_disabled is not None:
        users = [user for user in users if bool(user.is_disabled) == is_disabled]

    if search:
        needle = search.lower()
        users = [
            user
            for user in users
            if any(needle in (value or "").lower() for value in (user.first_name, user.last_name, user.email))
        ]

    return sorted(users, key=lambda u: u.created_at, reverse=True)
