"""Review visibility rules.

A hidden review stays visible to the two people with a stake in it: the
reviewer who wrote it and the seller of the phone. Everyone else, including
anonymous viewers, only sees reviews that are not hidden.

These functions are pure and never raise. The administrative listing in
`marketplace.phone.reviews` deliberately does not go through them.
"""


def _same(left, right) -> bool:
    return left is not None and right is not None and str(left) == str(right)


def is_visible(review, viewer_id=None, seller_id=None) -> bool:
    if not review.is_hidden:
        return True
    if viewer_id is None:
        return False
    return _same(viewer_id, seller_id) or _same(viewer_id, review.reviewer_id)


def filter_visible_reviews(reviews, viewer_id=None, seller_id=None) -> list:
    """Return the reviews `viewer_id` may see, preserving their order."""
    return [review for review in reviews if is_visible(review, viewer_id, seller_id)]


def visible_reviews_for(phone, viewer_id=None) -> list:
    return filter_visible_reviews(phone.reviews, viewer_id=viewer_id, seller_id=phone.seller_id)
