"""Wishlist management: commands, handler and read helper."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.phone.phone import Phone
from marketplace.user.user import User


@marketplace.command(part_of="User")
class AddToWishlist:
    user_id = Identifier(required=True)
    phone_id = Identifier(required=True)


@marketplace.command(part_of="User")
class RemoveFromWishlist:
    user_id = Identifier(required=True)
    phone_id = Identifier(required=True)


@marketplace.command_handler(part_of=User)
class WishlistHandler:
    @handle(AddToWishlist)
    def add_to_wishlist(self, command):
        # Raises ObjectNotFoundError when the phone does not exist
        current_domain.repository_for(Phone).get(command.phone_id)

        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        user.add_to_wishlist(command.phone_id)
        repo.add(user)
        return list(user.wishlist)

    @handle(RemoveFromWishlist)
    def remove_from_wishlist(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        if not user.has_in_wishlist(command.phone_id):
            raise ObjectNotFoundError({"wishlist": ["Item not found in wishlist"]})

        user.remove_from_wishlist([command.phone_id])
        repo.add(user)
        return list(user.wishlist)


def wishlist_phones(user_id):
    """The user's wishlisted phones, in wishlist order."""
    user = current_domain.repository_for(User).get(user_id)
    phone_repo = current_domain.repository_for(Phone)

    phones = []
    for phone_id in user.wishlist or []:
        try:
            phones.append(phone_repo.get(phone_id))
        except ObjectNotFoundError:
            continue
    return phones
