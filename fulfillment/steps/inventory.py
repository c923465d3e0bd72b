"""
Inventory ledger - stock checks and the deduct/restore pair for books.
"""

from fulfillment.core.exceptions import InvalidInput, NotFound, OutOfStock
from fulfillment.core.logger import get_logger
from fulfillment.core.types import Book, to_quantity
from fulfillment.ledger.base import BOOKS, LedgerStore, decrement_marker
from fulfillment.ledger.errors import LedgerInsufficientError
from fulfillment.monitoring.logging import bind_order_context
from fulfillment.monitoring.metrics import FulfillmentMetrics

logger = get_logger(__name__)


def is_book_available(book: Book, quantity: int) -> bool:
    """Stock must stay strictly positive after the order."""
    return (book.quantity - quantity) > 0


def _require_book_id(book_id: str) -> str:
    if not isinstance(book_id, str) or not book_id:
        msg = f"book_id must be a non-empty string, got {book_id!r}"
        raise InvalidInput(msg, field="book_id")
    return book_id


class InventoryLedger:
    """
    Per-book available quantity.

    ``check`` never mutates; ``deduct`` and ``restore`` are single atomic
    store operations, so concurrent orders against one book cannot lose
    updates.
    """

    def __init__(self, store: LedgerStore, metrics: FulfillmentMetrics | None = None):
        self.store = store
        self.metrics = metrics

    def _record(self, operation: str, outcome: str = "ok") -> None:
        if self.metrics is not None:
            self.metrics.record_ledger_operation(operation, outcome)

    async def check(self, book_id: str, quantity: int) -> Book:
        """
        Look a book up and make sure the order leaves stock behind.

        Raises:
            InvalidInput: Malformed book id or quantity
            NotFound: No such book, or the lookup itself failed
            OutOfStock: ``book.quantity - quantity <= 0``
        """
        _require_book_id(book_id)
        to_quantity(quantity)

        with bind_order_context(book_id=book_id, step_name="check_inventory"):
            try:
                items = await self.store.query(BOOKS, book_id)
                book = Book.from_record(items[0]) if items else None
            except Exception as e:
                logger.warning(f"Inventory lookup failed for {book_id}: {e}")
                self._record("check", NotFound.kind.value)
                raise NotFound(book_id, f"Book {book_id} not found: {e}") from e

            if book is None:
                self._record("check", NotFound.kind.value)
                raise NotFound(book_id)

            if not is_book_available(book, quantity):
                logger.info(
                    f"Book {book_id} out of stock: have={book.quantity}, need={quantity}"
                )
                self._record("check", OutOfStock.kind.value)
                raise OutOfStock(book_id, available=book.quantity, requested=quantity)

            self._record("check")
            logger.debug(f"Book {book_id} available: have={book.quantity}, need={quantity}")
            return book

    async def deduct(
        self, book_id: str, quantity: int, idempotency_key: str | None = None
    ) -> bool:
        """
        Atomically subtract ``quantity`` from the book's stock.

        Only valid after ``check`` passed for the same order. With an
        idempotency key a repeated call for the same key is a no-op.
        Stock never goes below zero: a deduct larger than the current stock
        is rejected before anything is written.

        Returns:
            True if stock was deducted by this call

        Raises:
            OutOfStock: Current stock is smaller than ``quantity``
        """
        _require_book_id(book_id)
        to_quantity(quantity)

        with bind_order_context(book_id=book_id, step_name="deduct_inventory"):
            try:
                applied = await self.store.decrement_once(
                    BOOKS, book_id, "quantity", quantity, idempotency_key=idempotency_key
                )
            except LedgerInsufficientError as e:
                logger.warning(
                    f"Deduct rejected for {book_id}: have={e.available}, need={quantity}"
                )
                self._record("deduct", OutOfStock.kind.value)
                raise OutOfStock(book_id, available=e.available, requested=quantity) from e

            if applied:
                logger.info(f"Inventory deducted: {book_id} qty={quantity}")
                self._record("deduct")
            else:
                logger.info(f"Inventory deduction already applied: {book_id} qty={quantity}")
                self._record("deduct", "duplicate")
            return applied

    async def void_deduction(self, idempotency_key: str) -> bool:
        """
        Burn an idempotency key so a later ``deduct`` with it is a no-op.

        Returns:
            True if the key was unused until now
        """
        voided = await self.store.mark_once(decrement_marker(idempotency_key))
        if voided:
            logger.debug("Deduction key voided before use")
        return voided

    async def restore(self, book_id: str, quantity: int) -> int:
        """
        Compensation: add ``quantity`` back to the book's stock.

        Purely additive, so it stays correct however the record changed
        since the deduction.

        Returns:
            The stock level after the restore
        """
        _require_book_id(book_id)
        to_quantity(quantity)

        with bind_order_context(book_id=book_id, step_name="restore_quantity"):
            new_quantity = await self.store.increment(BOOKS, book_id, "quantity", quantity)
            logger.info(f"Inventory restored: {book_id} qty={quantity} (quantity={new_quantity})")
            self._record("restore")
            return new_quantity
