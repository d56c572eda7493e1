# bookstore_service/app/db/schemas.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, StrictInt


# Строка корзины в том виде, в каком она ходит по сети
class CartItemSchema(BaseModel):
    id: Optional[str] = None
    user_id: str = Field(alias="userId")
    book_id: str = Field(alias="bookId")
    quantity: int
    added_at: Optional[datetime] = Field(default=None, alias="addedAt")

    class Config:
        from_attributes = True
        populate_by_name = True


class CartItemCreate(BaseModel):
    user_id: Optional[str] = Field(default=None, alias="userId")
    book_id: str = Field(alias="bookId")
    quantity: StrictInt = 1

    class Config:
        populate_by_name = True


class CartItemUpdate(BaseModel):
    id: str
    quantity: StrictInt


class SuccessResponse(BaseModel):
    success: bool = True


class CartLineSchema(BaseModel):
    book_id: str = Field(alias="bookId")
    title: str
    author: str
    price: float
    quantity: int
    line_total: float = Field(alias="lineTotal")
    item_ids: List[str] = Field(alias="itemIds")

    class Config:
        populate_by_name = True


class CartSummary(BaseModel):
    user_id: str = Field(alias="userId")
    lines: List[CartLineSchema]
    item_count: int = Field(alias="itemCount")
    total_price: float = Field(alias="totalPrice")

    class Config:
        populate_by_name = True
