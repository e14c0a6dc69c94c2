"""In-process guard around stock mutation.

Stock and sales counters live on the Phone aggregate and are changed with a
plain read-modify-write. Two checkouts racing for the last unit would both
pass validation, so every flow that reads stock, decides and writes it back
runs inside `inventory_ledger.exclusive()`.

The lock is process-wide and re-entrant. It does not coordinate separate
worker processes.
"""

import threading
from contextlib import contextmanager

import structlog
from protean.exceptions import ValidationError

logger = structlog.get_logger(__name__)


class InventoryLedger:
    def __init__(self):
        self._lock = threading.RLock()

    @contextmanager
    def exclusive(self):
        with self._lock:
            yield self

    @staticmethod
    def ensure_available(phone, quantity):
        """Raise ValidationError unless `phone` can supply `quantity` units."""
        if quantity > phone.stock:
            logger.info(
                "Stock check failed",
                phone_id=str(phone.id),
                available=phone.stock,
                requested=quantity,
            )
            raise ValidationError(
                {"stock": [f"Insufficient stock for phone {phone.title}. Available: {phone.stock}, Requested: {quantity}"]}
            )


inventory_ledger = InventoryLedger()
