"""Order history queries for buyers and the admin console.

Buyers see only their own orders. Administrators can list, search and export
every order and read sales totals; exports are recorded in the audit log.
"""

import csv
import io
import json
from datetime import UTC

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from marketplace.audit.admin_log import AdminAction, TargetType, record_admin_action
from marketplace.order.order import Order
from marketplace.shared.errors import UnauthorizedError
from marketplace.user.user import User
from marketplace.utils.queries import find_all, find_one

EXPORT_FORMATS = ("csv", "json")
EXPORT_HEADERS = ["Timestamp", "Buyer", "Items", "Total Amount"]
ALL_BRANDS = "All Brands"


def orders_for_user(user_id):
    """A user's orders, newest first."""
    orders = find_all(Order, user_id=str(user_id))
    return sorted(orders, key=lambda o: o.created_at, reverse=True)


def order_for_user(order_id, user_id):
    # Raises ObjectNotFoundError when the order does not exist
    order = current_domain.repository_for(Order).get(order_id)
    if str(order.user_id) != str(user_id):
        raise UnauthorizedError({"order": ["Not authorized to view this order"]})
    return order


# ---------------------------------------------------------------------------
# Admin reads
# ---------------------------------------------------------------------------
def _utc(moment):
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def _within(order, start, end):
    placed = _utc(order.created_at)
    if start is not None and placed < _utc(start):
        return False
    if end is not None and placed > _utc(end):
        return False
    return True


def _matches(order, buyer, needle):
    values = [item.title for item in order.items]
    values += [buyer.first_name, buyer.last_name, buyer.email]
    return any(needle in (value or "").lower() for value in values)


def admin_orders(user_id=None, start=None, end=None, search=None, brand=None, ascending=False):
    """Orders with their buyers as (order, buyer) pairs, newest first by default.

    `brand` matches item titles and `search` matches item titles or the
    buyer's name or email, both ignoring case. Orders whose buyer no longer
    exists are left out.
    """
    buyers = {str(user.id): user for user in find_all(User)}
    filters = {"user_id": str(user_id)} if user_id else {}

    pairs = []
    for order in find_all(Order, **filters):
        buyer = buyers.get(str(order.user_id))
        if buyer is None or not _within(order, start, end):
            continue
        if brand and brand != ALL_BRANDS:
            if not any(brand.lower() in item.title.lower() for item in order.items):
                continue
        if search and not _matches(order, buyer, search.lower()):
            continue
        pairs.append((order, buyer))

    return sorted(pairs, key=lambda pair: _utc(pair[0].created_at), reverse=not ascending)


def admin_order(order_id):
    """An order and its buyer; the buyer is None when the account is gone."""
    # Raises ObjectNotFoundError when the order does not exist
    order = current_domain.repository_for(Order).get(order_id)
    buyer = find_one(User, id=str(order.user_id))
    return order, buyer


def sales_stats(start=None, end=None):
    orders = [order for order in find_all(Order) if _within(order, start, end)]
    return {
        "total_sales": sum(order.total_amount for order in orders),
        "total_transactions": len(orders),
    }


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------
def _as_csv(pairs):
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for order, buyer in pairs:
        writer.writerow(
            [
                _utc(order.created_at).isoformat(),
                buyer.full_name,
                "; ".join(f"{item.title} x {item.quantity}" for item in order.items),
                order.total_amount,
            ]
        )
    return buffer.getvalue()


def _as_json(pairs):
    rows = [
        {
            "timestamp": _utc(order.created_at).isoformat(),
            "buyer": buyer.full_name,
            "items": [{"name": item.title, "quantity": item.quantity} for item in order.items],
            "total_amount": order.total_amount,
        }
        for order, buyer in pairs
    ]
    return json.dumps(rows, indent=2)


def export_orders(admin_id, export_format="csv", **filters):
    """Render the filtered admin order list as CSV or JSON text and audit the export."""
    if export_format not in EXPORT_FORMATS:
        raise ValidationError({"format": [f"Unsupported export format: {export_format}"]})

    pairs = admin_orders(**filters)
    content = _as_json(pairs) if export_format == "json" else _as_csv(pairs)

    record_admin_action(
        actor_id=admin_id,
        action=AdminAction.EXPORT_ORDERS,
        target_type=TargetType.ORDER,
        target_id="orders",
        details={
            "format": export_format,
            "count": len(pairs),
            "filters": {key: str(value) for key, value in filters.items() if value is not None},
        },
    )
    return content
