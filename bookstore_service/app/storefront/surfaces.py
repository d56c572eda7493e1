# bookstore_service/app/storefront/surfaces.py
"""
Cart synchronization for the storefront surfaces.

Each surface (navigation badge, catalog, book page, cart page) owns its own
copy of the cart, rebuilt from the store with merge-on-read. Changes go to
the store first or optimistically to the local copy, and every successful
change is announced on ``CartEvents`` so the other surfaces re-read.

Nothing is locked and nothing is retried: a failed protocol either leaves the
local copy untouched (add), or throws the optimistic change away by reading
the store again (set quantity, remove). Clear has no rollback.
"""
import asyncio
import enum
import logging
from typing import Callable, Dict, List, Optional, Set

import catalog
from catalog import Book, Review
from db.exceptions import BookNotFound, BookOutOfStock, BookstoreError, CartItemNotFound, CartValidationError
from db.functions import check_quantity
from storefront.events import CartEvents, Subscription
from storefront.merge import CartLine, DisplayLine, cart_total, decorate, item_count, merge_rows, rows_for_book

logger = logging.getLogger(__name__)


class ItemStatus(str, enum.Enum):
    PENDING = "pending"          # локально изменено, ответа стора ещё нет
    COMMITTED = "committed"      # совпадает с последним чтением или подтверждённой записью
    RECONCILING = "reconciling"  # запись упала, идёт перечитывание


class CartSurface:
    """Base for every UI surface that shows cart-derived data."""

    def __init__(self, gateway, events: CartEvents, user_id: str,
                 lookup: Callable[[str], Optional[Book]] = catalog.by_id):
        self.gateway = gateway
        self.events = events
        self.user_id = user_id
        self.lookup = lookup
        self.lines: Dict[str, CartLine] = {}
        self.status: Dict[str, ItemStatus] = {}
        self.error: Optional[str] = None
        self.loading = False
        self.mounted = False
        self._subscription: Optional[Subscription] = None

    # --- lifecycle -------------------------------------------------------

    async def mount(self) -> None:
        self.mounted = True
        self._subscription = self.events.subscribe(self.refresh)
        await self.refresh()

    def unmount(self) -> None:
        self.mounted = False
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def status_of(self, book_id: str) -> Optional[ItemStatus]:
        return self.status.get(book_id)

    def quantity_of(self, book_id: str) -> int:
        line = self.lines.get(book_id)
        return line.quantity if line else 0

    # --- reads -----------------------------------------------------------

    async def refresh(self) -> bool:
        """Re-read the store and rebuild the local cart from scratch."""
        self.loading = True
        try:
            rows = await self.gateway.list_for_user(self.user_id)
        except BookstoreError as exc:
            logger.warning("%s: cart refresh failed for %s: %s", type(self).__name__, self.user_id, exc)
            if self.mounted:
                self.error = exc.message
            return False
        finally:
            self.loading = False

        if not self.mounted:
            logger.debug("%s: dropping cart read after unmount", type(self).__name__)
            return False

        merged = merge_rows(rows)
        self.lines = {line.book_id: line for line in merged}
        self.status = {line.book_id: ItemStatus.COMMITTED for line in merged}
        self.error = None
        return True

    async def _reconcile(self, book_id: str, exc: BookstoreError) -> None:
        logger.warning("%s: cart write for book %s failed, re-reading: %s",
                       type(self).__name__, book_id, exc)
        if not self.mounted:
            return
        self.status[book_id] = ItemStatus.RECONCILING
        await self.refresh()
        if self.mounted:
            self.error = exc.message

    # --- store writes ----------------------------------------------------

    async def _delete_row(self, item_id: str) -> None:
        try:
            await self.gateway.delete_by_id(item_id)
        except CartItemNotFound:
            logger.debug("Cart item %s already gone", item_id)

    async def _delete_all(self, rows: List) -> List[BookstoreError]:
        """Issue every deletion, wait until all of them settle, return the failures."""
        results = await asyncio.gather(
            *(self._delete_row(row.id) for row in rows if row.id),
            return_exceptions=True
        )
        failures = [result for result in results if isinstance(result, BaseException)]
        for failure in failures:
            if not isinstance(failure, BookstoreError):
                raise failure
        return failures

    async def _delete_rows(self, rows: List) -> None:
        # первую ошибку поднимаем только когда все удаления завершились,
        # иначе перечитывание увидит промежуточное состояние
        failures = await self._delete_all(rows)
        if failures:
            raise failures[0]

    async def _set_row_quantity(self, row, book_id: str, quantity: int) -> None:
        try:
            await self.gateway.update_quantity(row.id, quantity)
        except CartItemNotFound:
            # строку удалили между чтением и записью
            await self.gateway.create(self.user_id, book_id, quantity)

    # --- protocols -------------------------------------------------------

    async def add_to_cart(self, book_id: str, quantity: int = 1) -> bool:
        """
        Add ``quantity`` copies of a book.

        Reads the live rows, bumps an existing row for the book or creates a
        new one. Local state only moves after the store accepted the write.
        """
        try:
            check_quantity(quantity)
        except CartValidationError as exc:
            self.error = exc.message
            return False

        previous = self.status.get(book_id)
        self.status[book_id] = ItemStatus.PENDING
        try:
            rows = await self.gateway.list_for_user(self.user_id)
            existing = rows_for_book(rows, book_id)
            if existing and existing[0].id:
                row = existing[0]
                await self._set_row_quantity(row, book_id, row.quantity + quantity)
            else:
                await self.gateway.create(self.user_id, book_id, quantity)
        except BookstoreError as exc:
            logger.error("%s: add of book %s failed: %s", type(self).__name__, book_id, exc)
            if self.mounted:
                if previous is None:
                    self.status.pop(book_id, None)
                else:
                    self.status[book_id] = previous
                self.error = exc.message
            return False

        if self.mounted:
            line = self.lines.get(book_id)
            if line is None:
                self.lines[book_id] = CartLine(book_id=book_id, quantity=quantity)
            else:
                line.quantity += quantity
            self.status[book_id] = ItemStatus.COMMITTED
            self.error = None
        await self.events.publish()
        return True

    async def set_quantity(self, book_id: str, quantity: int) -> bool:
        """
        Replace the quantity of a book.

        A book spread over several rows is collapsed: all its rows are
        deleted and one fresh row is created with the new quantity.
        """
        try:
            check_quantity(quantity)
        except CartValidationError as exc:
            self.error = exc.message
            return False

        line = self.lines.get(book_id)
        if line is None:
            self.lines[book_id] = CartLine(book_id=book_id, quantity=quantity)
        else:
            line.quantity = quantity
        self.status[book_id] = ItemStatus.PENDING

        try:
            rows = await self.gateway.list_for_user(self.user_id)
            group = rows_for_book(rows, book_id)
            if len(group) == 1 and group[0].id:
                await self._set_row_quantity(group[0], book_id, quantity)
            else:
                await self._delete_rows(group)
                await self.gateway.create(self.user_id, book_id, quantity)
        except BookstoreError as exc:
            await self._reconcile(book_id, exc)
            return False

        if self.mounted:
            self.status[book_id] = ItemStatus.COMMITTED
            self.error = None
        await self.events.publish()
        return True

    async def remove(self, book_id: str) -> bool:
        self.lines.pop(book_id, None)
        self.status[book_id] = ItemStatus.PENDING

        try:
            rows = await self.gateway.list_for_user(self.user_id)
            await self._delete_rows(rows_for_book(rows, book_id))
        except BookstoreError as exc:
            await self._reconcile(book_id, exc)
            return False

        if self.mounted:
            self.status.pop(book_id, None)
            self.error = None
        await self.events.publish()
        return True

    async def clear(self) -> bool:
        """
        Delete every row of the user.

        The local cart is emptied once all deletions have been issued, even
        if some of them failed; the next read shows what is really left.
        """
        try:
            rows = await self.gateway.list_for_user(self.user_id)
        except BookstoreError as exc:
            logger.error("%s: clear failed for %s: %s", type(self).__name__, self.user_id, exc)
            if self.mounted:
                self.error = exc.message
            return False

        failures = await self._delete_all(rows)

        if self.mounted:
            self.lines = {}
            self.status = {}

        if failures:
            logger.error("%s: %d of %d deletions failed while clearing cart of %s",
                         type(self).__name__, len(failures), len(rows), self.user_id)
            if self.mounted:
                self.error = failures[0].message
            return False

        if self.mounted:
            self.error = None
        await self.events.publish()
        return True


class NavBadge(CartSurface):
    @property
    def count(self) -> int:
        return item_count(self.lines.values())


class CatalogSurface(CartSurface):
    """Book grid with one-click "add to cart"."""

    def __init__(self, gateway, events: CartEvents, user_id: str,
                 lookup: Callable[[str], Optional[Book]] = catalog.by_id):
        super().__init__(gateway, events, user_id, lookup)
        self.books = catalog.list_all()
        self.adding: Set[str] = set()

    @property
    def added(self) -> Set[str]:
        return set(self.lines)

    async def add(self, book_id: str) -> bool:
        # повторные клики по той же книге игнорируем
        if book_id in self.adding or book_id in self.lines:
            return False
        book = self.lookup(book_id)
        if book is None:
            self.error = BookNotFound(book_id).message
            return False
        if not book.in_stock:
            self.error = BookOutOfStock(book_id).message
            return False

        self.adding.add(book_id)
        try:
            return await self.add_to_cart(book_id, 1)
        finally:
            self.adding.discard(book_id)


class BookDetailSurface(CartSurface):
    def __init__(self, gateway, events: CartEvents, user_id: str, book_id: str,
                 lookup: Callable[[str], Optional[Book]] = catalog.by_id):
        super().__init__(gateway, events, user_id, lookup)
        self.book_id = book_id
        self.book = lookup(book_id)
        self.selected_quantity = 1
        self.adding = False

    async def mount(self) -> None:
        if self.book is None:
            self.mounted = True
            self.error = "Book not found."
            return
        await super().mount()

    @property
    def reviews(self) -> List[Review]:
        return catalog.reviews_for(self.book_id)

    @property
    def in_cart_quantity(self) -> int:
        return self.quantity_of(self.book_id)

    @property
    def is_added(self) -> bool:
        return self.book_id in self.lines

    def select_quantity(self, quantity: int) -> None:
        self.selected_quantity = max(1, quantity)

    async def add(self) -> bool:
        if self.book is None or self.adding or self.is_added:
            return False
        if not self.book.in_stock:
            self.error = BookOutOfStock(self.book_id).message
            return False
        self.adding = True
        try:
            return await self.add_to_cart(self.book_id, self.selected_quantity)
        finally:
            self.adding = False


class CartPageSurface(CartSurface):
    @property
    def display_lines(self) -> List[DisplayLine]:
        return decorate(self.lines.values(), self.lookup)

    @property
    def total(self) -> float:
        return cart_total(self.display_lines)

    @property
    def is_empty(self) -> bool:
        return not self.display_lines

    async def update_quantity(self, book_id: str, quantity: int) -> bool:
        # ниже единицы кнопка "-" ничего не делает
        if quantity < 1:
            return False
        return await self.set_quantity(book_id, quantity)

    async def remove_item(self, book_id: str) -> bool:
        return await self.remove(book_id)

    async def clear_cart(self) -> bool:
        return await self.clear()
