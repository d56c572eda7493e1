# bookstore_service/app/db/functions.py
import functools
import logging
from typing import List

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from db.exceptions import CartItemNotFound, CartValidationError, StoreUnavailable
from db.models import CartItem

logger = logging.getLogger(__name__)


def _store_call(func):
    """Переводит ошибки соединения с базой в StoreUnavailable."""

    @functools.wraps(func)
    async def wrapper(db: AsyncSession, *args, **kwargs):
        try:
            return await func(db, *args, **kwargs)
        except (OperationalError, InterfaceError, OSError) as exc:
            logger.error("Cart store call %s failed: %s", func.__name__, exc)
            await _safe_rollback(db)
            raise StoreUnavailable(
                "Cart store is unavailable, please try again",
                details={"operation": func.__name__}
            ) from exc

    return wrapper


async def _safe_rollback(db: AsyncSession):
    try:
        await db.rollback()
    except (OperationalError, InterfaceError, OSError) as exc:
        logger.warning("Rollback after store failure also failed: %s", exc)


def check_quantity(quantity) -> int:
    # bool тоже int, но количеством не считается
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise CartValidationError(
            "Quantity must be a positive integer.",
            details={"quantity": quantity}
        )
    return quantity


def _check_identity(value, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise CartValidationError(f"{field} is required.", details={"field": field})
    return value


# Все строки корзины пользователя, без гарантий порядка
@_store_call
async def list_for_user(db: AsyncSession, user_id: str) -> List[CartItem]:
    result = await db.execute(
        select(CartItem).filter(CartItem.user_id == user_id).order_by(CartItem.added_at)
    )
    items = result.scalars().all()
    logger.debug("list_for_user user_id=%s rows=%d", user_id, len(items))
    return list(items)


@_store_call
async def create_cart_item(db: AsyncSession, user_id: str, book_id: str, quantity: int) -> CartItem:
    """
    Добавляет новую строку в корзину.

    Существующие строки для той же книги не проверяются: дубликаты
    допустимы и складываются при чтении.
    """
    _check_identity(user_id, "userId")
    _check_identity(book_id, "bookId")
    check_quantity(quantity)

    new_item = CartItem(user_id=user_id, book_id=book_id, quantity=quantity)
    db.add(new_item)
    await db.commit()
    await db.refresh(new_item)
    logger.debug("create_cart_item id=%s user_id=%s book_id=%s quantity=%d",
                 new_item.id, user_id, book_id, quantity)
    return new_item


@_store_call
async def update_quantity(db: AsyncSession, item_id: str, quantity: int) -> CartItem:
    check_quantity(quantity)

    result = await db.execute(select(CartItem).filter(CartItem.id == item_id))
    cart_item = result.scalar_one_or_none()
    if not cart_item:
        raise CartItemNotFound(item_id)

    cart_item.quantity = quantity
    await db.commit()
    logger.debug("update_quantity id=%s quantity=%d", item_id, quantity)
    return cart_item


@_store_call
async def delete_by_id(db: AsyncSession, item_id: str) -> None:
    result = await db.execute(select(CartItem).filter(CartItem.id == item_id))
    cart_item = result.scalar_one_or_none()
    if not cart_item:
        raise CartItemNotFound(item_id)

    await db.delete(cart_item)
    await db.commit()
    logger.debug("delete_by_id id=%s", item_id)
