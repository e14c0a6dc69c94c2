"""User registration: command and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.user.user import User, UserRole
from marketplace.utils.queries import find_one


@marketplace.command(part_of="User")
class RegisterUser:
    first_name = String(required=True, max_length=100)
    last_name = String(required=True, max_length=100)
    email = String(required=True, max_length=254)
    role = String(choices=UserRole, default=UserRole.USER.value)


@marketplace.command_handler(part_of=User)
class RegisterUserHandler:
    @handle(RegisterUser)
    def register_user(self, command):
        if find_one(User, email=command.email.lower()) is not None:
            raise ValidationError({"email": ["Email already in use"]})

        user = User.register(
            first_name=command.first_name,
            last_name=command.last_name,
            email=command.email,
            role=command.role or UserRole.USER.value,
        )
        current_domain.repository_for(User).add(user)
        return str(user.id)
