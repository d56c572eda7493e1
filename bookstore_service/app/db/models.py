# bookstore_service/app/db/models.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime
from db.database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CartItem(Base):
    __tablename__ = 'cart_items'

    # Одна пара (user_id, book_id) может встречаться в нескольких строках,
    # при чтении они складываются
    id = Column(String(32), primary_key=True, default=_new_id)
    user_id = Column(String, index=True, nullable=False)
    book_id = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    added_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def __repr__(self) -> str:
        return f"CartItem(id={self.id!r}, user_id={self.user_id!r}, book_id={self.book_id!r}, quantity={self.quantity})"
