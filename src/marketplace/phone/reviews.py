"""Review operations: commands, handler and read helpers.

Buyers add reviews; the reviewer or the seller may hide and unhide them; only
the reviewer may delete one. Administrators can do both to any review, and
those actions are audited. Reads for ordinary viewers go through
`marketplace.phone.visibility`; the admin reads return everything.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, Integer, Text
from protean.utils.globals import current_domain

from marketplace.audit.admin_log import AdminAction, TargetType, record_admin_action
from marketplace.domain import marketplace
from marketplace.phone.phone import Phone
from marketplace.phone.visibility import visible_reviews_for
from marketplace.shared.errors import UnauthorizedError
from marketplace.user.user import User
from marketplace.utils.queries import find_all


@marketplace.command(part_of="Phone")
class AddReview:
    phone_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    rating = Integer(required=True, min_value=1, max_value=5)
    comment = Text(required=True)


@marketplace.command(part_of="Phone")
class ToggleReviewVisibility:
    phone_id = Identifier(required=True)
    review_id = Identifier(required=True)
    is_hidden = Boolean(required=True)
    actor_id = Identifier(required=True)


@marketplace.command(part_of="Phone")
class DeleteReview:
    phone_id = Identifier(required=True)
    review_id = Identifier(required=True)
    actor_id = Identifier(required=True)


@marketplace.command(part_of="Phone")
class AdminSetReviewVisibility:
    phone_id = Identifier(required=True)
    review_id = Identifier(required=True)
    is_hidden = Boolean(required=True)
    admin_id = Identifier(required=True)


@marketplace.command(part_of="Phone")
class AdminDeleteReview:
    phone_id = Identifier(required=True)
    review_id = Identifier(required=True)
    admin_id = Identifier(required=True)


def _review_on(phone, review_id):
    review = phone.find_review(review_id)
    if review is None:
        raise ObjectNotFoundError({"review_id": ["Review not found"]})
    return review


@marketplace.command_handler(part_of=Phone)
class ReviewsHandler:
    @handle(AddReview)
    def add_review(self, command):
        repo = current_domain.repository_for(Phone)
        phone = repo.get(command.phone_id)
        current_domain.repository_for(User).get(command.reviewer_id)

        review = phone.add_review(
            reviewer_id=command.reviewer_id,
            rating=command.rating,
            comment=command.comment,
        )
        repo.add(phone)
        return review

    @handle(ToggleReviewVisibility)
    def toggle_visibility(self, command):
        repo = current_domain.repository_for(Phone)
        phone = repo.get(command.phone_id)
        review = _review_on(phone, command.review_id)

        actor = str(command.actor_id)
        if actor not in (str(review.reviewer_id), str(phone.seller_id)):
            raise UnauthorizedError({"review": ["Not authorized to change this review's visibility"]})

        phone.set_review_visibility(review.id, command.is_hidden, changed_by=actor)
        repo.add(phone)
        return review

    @handle(DeleteReview)
    def delete_review(self, command):
        repo = current_domain.repository_for(Phone)
        phone = repo.get(command.phone_id)
        review = _review_on(phone, command.review_id)

        if str(command.actor_id) != str(review.reviewer_id):
            raise UnauthorizedError({"review": ["Not authorized to delete this review"]})

        phone.remove_review(review.id, removed_by=command.actor_id)
        repo.add(phone)

    @handle(AdminSetReviewVisibility)
    def admin_set_visibility(self, command):
        repo = current_domain.repository_for(Phone)
        phone = repo.get(command.phone_id)
        review = _review_on(phone, command.review_id)

        phone.set_review_visibility(review.id, command.is_hidden, changed_by=command.admin_id)
        repo.add(phone)

        record_admin_action(
            actor_id=command.admin_id,
            action=AdminAction.HIDE_REVIEW if command.is_hidden else AdminAction.SHOW_REVIEW,
            target_type=TargetType.REVIEW,
            target_id=str(review.id),
            details={"phone_id": str(phone.id)},
        )
        return review

    @handle(AdminDeleteReview)
    def admin_delete_review(self, command):
        repo = current_domain.repository_for(Phone)
        phone = repo.get(command.phone_id)
        review = _review_on(phone, command.review_id)

        phone.remove_review(review.id, removed_by=command.admin_id)
        repo.add(phone)

        record_admin_action(
            actor_id=command.admin_id,
            action=AdminAction.DELETE_REVIEW,
            target_type=TargetType.REVIEW,
            target_id=str(review.id),
            details={"phone_id": str(phone.id), "reviewer_id": str(review.reviewer_id)},
        )


# ---------------------------------------------------------------------------
# Command shortcuts
# ---------------------------------------------------------------------------
def add_review(phone_id, reviewer_id, rating, comment):
    return current_domain.process(
        AddReview(phone_id=phone_id, reviewer_id=reviewer_id, rating=rating, comment=comment),
        asynchronous=False,
    )


def toggle_review_visibility(phone_id, review_id, is_hidden, actor_id):
    return current_domain.process(
        ToggleReviewVisibility(phone_id=phone_id, review_id=review_id, is_hidden=is_hidden, actor_id=actor_id),
        asynchronous=False,
    )


def delete_review(phone_id, review_id, actor_id):
    return current_domain.process(
        DeleteReview(phone_id=phone_id, review_id=review_id, actor_id=actor_id),
        asynchronous=False,
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def public_reviews(phone_id, viewer_id=None):
    """Reviews on a phone that `viewer_id` (None for anonymous) is allowed to see."""
    phone = current_domain.repository_for(Phone).get(phone_id)
    return visible_reviews_for(phone, viewer_id=viewer_id)


def admin_reviews_for_phone(phone_id):
    phone = current_domain.repository_for(Phone).get(phone_id)
    return list(phone.reviews)


def all_reviews():
    """Every review on every phone as (phone, review) pairs, hidden ones included."""
    return [(phone, review) for phone in find_all(Phone) for review in phone.reviews]


def reviews_by_seller(seller_id):
    """Every review across a seller's phones as (phone, review) pairs, hidden ones included."""
    return [(phone, review) for phone in find_all(Phone, seller_id=str(seller_id)) for review in phone.reviews]


def reviews_written_by(reviewer_id):
    """Every review a user has written, newest first, as (phone, review) pairs."""
    pairs = [
        (phone, review)
        for phone in find_all(Phone)
        for review in phone.reviews
        if str(review.reviewer_id) == str(reviewer_id)
    ]
    return sorted(pairs, key=lambda pair: pair[1].created_at, reverse=True)
