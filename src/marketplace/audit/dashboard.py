"""Admin console summary counts."""

from marketplace.order.order import Order
from marketplace.phone.phone import Phone
from marketplace.user.user import User, UserRole
from marketplace.utils.queries import find_all


def dashboard_stats():
    phones = find_all(Phone)
    return {
        "total_users": sum(1 for user in find_all(User) if user.role != UserRole.ADMIN.value),
        "total_listings": len(phones),
        "total_reviews": sum(len(phone.reviews) for phone in phones),
        "total_sales": len(find_all(Order)),
    }
