"""
Bookstore error taxonomy.

Every error carries a machine-readable ``code`` (sent to clients as ``error``)
and a human-readable message (sent as ``details``).
"""


class BookstoreError(Exception):
    """
    Base exception for all bookstore errors.

    Attributes:
        message: shown to the user as the ``details`` field
        details: ids and values involved, for logs only
    """

    code = "bookstore_error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_response(self) -> dict:
        return {"error": self.code, "details": self.message}

    def __repr__(self) -> str:
        context = "".join(f", {key}={value!r}" for key, value in self.details.items())
        return f"{self.__class__.__name__}[{self.code}]({self.message!r}{context})"


class ConfigurationError(BookstoreError):
    """Raised at startup when required settings are missing."""

    code = "configuration_error"


class StoreUnavailable(BookstoreError):
    """Raised when the cart store cannot be reached. Transient, never retried here."""

    code = "store_unavailable"


class CartItemNotFound(BookstoreError):
    """Raised when an update or delete targets a cart item that does not exist."""

    code = "not_found"

    def __init__(self, item_id: str):
        super().__init__(
            f"Cart item {item_id} not found",
            details={'item_id': item_id}
        )
        self.item_id = item_id


class CartValidationError(BookstoreError):
    """Raised before any store call when a request is malformed."""

    code = "validation_error"


class BookNotFound(BookstoreError):
    code = "not_found"

    def __init__(self, book_id: str):
        super().__init__(
            f"Book {book_id} not found",
            details={'book_id': book_id}
        )
        self.book_id = book_id


class BookOutOfStock(BookstoreError):
    code = "out_of_stock"

    def __init__(self, book_id: str):
        super().__init__(
            f"Book {book_id} is out of stock",
            details={'book_id': book_id}
        )
        self.book_id = book_id
