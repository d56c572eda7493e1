# bookstore_service/app/main.py
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

import catalog
from catalog import Book, Review
from config import Settings, get_settings
from db.database import StoreClient, get_db
from db.exceptions import (
    BookNotFound,
    BookstoreError,
    CartItemNotFound,
    CartValidationError,
    ConfigurationError,
    StoreUnavailable,
)
from db.functions import create_cart_item, delete_by_id, list_for_user, update_quantity
from db.init_db import init_db
from db.schemas import (
    CartItemCreate,
    CartItemSchema,
    CartItemUpdate,
    CartLineSchema,
    CartSummary,
    SuccessResponse,
)
from logging_config import setup_logging
from storefront.merge import cart_total, decorate, item_count, merge_rows

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    CartValidationError: 400,
    CartItemNotFound: 404,
    BookNotFound: 404,
    StoreUnavailable: 503,
    ConfigurationError: 500,
}


def _status_for(exc: BookstoreError) -> int:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


async def bookstore_error_handler(request: Request, exc: BookstoreError):
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %r", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content=exc.to_response())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": CartValidationError.code, "details": details})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    settings = app.state.settings or get_settings()
    app.state.settings = settings
    setup_logging(settings.log_level, settings.sql_echo)

    store = StoreClient(settings.db_url, echo=settings.sql_echo)
    app.state.store = store
    app.state.db = store.database(settings.db_name)
    await init_db(app.state.db)
    logger.info("bookstore_service started, guest user %s", settings.guest_user_id)
    yield
    await store.close()


def _user_id(request: Request, user_id: Optional[str]) -> str:
    return user_id or request.app.state.settings.guest_user_id


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(BookstoreError, bookstore_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    @app.get("/")
    async def health_check():
        """Health check endpoint."""
        return {"status": "bookstore_service running"}

    @app.get("/api/books", response_model=List[Book])
    async def read_books():
        return list(catalog.list_all())

    @app.get("/api/books/{book_id}", response_model=Book)
    async def read_book(book_id: str):
        book = catalog.by_id(book_id)
        if book is None:
            raise BookNotFound(book_id)
        return book

    @app.get("/api/books/{book_id}/reviews", response_model=List[Review])
    async def read_book_reviews(book_id: str):
        if catalog.by_id(book_id) is None:
            raise BookNotFound(book_id)
        return catalog.reviews_for(book_id)

    # Все строки корзины как есть, дубликаты не склеиваются
    @app.get("/api/cart", response_model=List[CartItemSchema])
    async def get_cart(request: Request, user_id: Optional[str] = Query(default=None, alias="userId"),
                       db: AsyncSession = Depends(get_db)):
        return await list_for_user(db, _user_id(request, user_id))

    @app.post("/api/cart", response_model=CartItemSchema, status_code=201)
    async def add_cart_item(request: Request, item: CartItemCreate, db: AsyncSession = Depends(get_db)):
        user_id = _user_id(request, item.user_id)
        created = await create_cart_item(db, user_id, item.book_id, item.quantity)
        logger.info("Added book %s x%d to cart of %s (item %s)", item.book_id, item.quantity, user_id, created.id)
        return created

    @app.put("/api/cart", response_model=SuccessResponse)
    async def update_cart_item(item: CartItemUpdate, db: AsyncSession = Depends(get_db)):
        await update_quantity(db, item.id, item.quantity)
        return SuccessResponse()

    @app.delete("/api/cart", response_model=SuccessResponse)
    async def delete_cart_item(item_id: str = Query(alias="itemId"), db: AsyncSession = Depends(get_db)):
        await delete_by_id(db, item_id)
        return SuccessResponse()

    # Корзина для отображения: одна строка на книгу, с ценами из каталога
    @app.get("/api/cart/summary", response_model=CartSummary)
    async def get_cart_summary(request: Request, user_id: Optional[str] = Query(default=None, alias="userId"),
                               db: AsyncSession = Depends(get_db)):
        user_id = _user_id(request, user_id)
        rows = await list_for_user(db, user_id)
        lines = decorate(merge_rows(rows), catalog.by_id)
        return CartSummary(
            user_id=user_id,
            lines=[
                CartLineSchema(
                    book_id=line.book.id,
                    title=line.book.title,
                    author=line.book.author,
                    price=line.book.price,
                    quantity=line.quantity,
                    line_total=line.line_total,
                    item_ids=line.item_ids,
                )
                for line in lines
            ],
            item_count=item_count(lines),
            total_price=cart_total(lines),
        )

    return app


app = create_app()
