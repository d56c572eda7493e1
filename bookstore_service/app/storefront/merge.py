# bookstore_service/app/storefront/merge.py
"""
Merge-on-read for cart rows.

The store may hold several rows for one (user, book) pair. Every read folds
them into one line per book whose quantity is the sum of the rows. Storage is
never touched here.
"""
from typing import Callable, Iterable, List, Optional

from pydantic import BaseModel

from catalog import Book


class CartLine(BaseModel):
    book_id: str
    quantity: int
    item_ids: List[str] = []

    @property
    def fragmented(self) -> bool:
        return len(self.item_ids) > 1


class DisplayLine(BaseModel):
    book: Book
    quantity: int
    item_ids: List[str] = []

    @property
    def line_total(self) -> float:
        return round(self.book.price * self.quantity, 2)


def _row_ids(row) -> List[str]:
    item_ids = getattr(row, "item_ids", None)
    if item_ids is not None:
        return list(item_ids)
    row_id = getattr(row, "id", None)
    return [row_id] if row_id else []


def merge_rows(rows: Iterable) -> List[CartLine]:
    """
    Group rows by book and sum their quantities.

    Accepts raw cart rows (anything with ``book_id``, ``quantity`` and ``id``)
    or already merged ``CartLine`` objects, so merging a merged cart returns
    it unchanged. Lines keep the order in which each book was first seen.
    """
    merged = {}
    for row in rows:
        line = merged.get(row.book_id)
        if line is None:
            merged[row.book_id] = CartLine(
                book_id=row.book_id,
                quantity=row.quantity,
                item_ids=_row_ids(row),
            )
        else:
            line.quantity += row.quantity
            line.item_ids.extend(_row_ids(row))
    return list(merged.values())


def rows_for_book(rows: Iterable, book_id: str) -> list:
    return [row for row in rows if row.book_id == book_id]


def decorate(lines: Iterable[CartLine], lookup: Callable[[str], Optional[Book]]) -> List[DisplayLine]:
    # строки с книгами, которых нет в каталоге, не показываем
    display = []
    for line in lines:
        book = lookup(line.book_id)
        if book is None:
            continue
        display.append(DisplayLine(book=book, quantity=line.quantity, item_ids=list(line.item_ids)))
    return display


def cart_total(lines: Iterable[DisplayLine]) -> float:
    return round(sum(line.book.price * line.quantity for line in lines), 2)


def item_count(lines: Iterable) -> int:
    return sum(line.quantity for line in lines)
