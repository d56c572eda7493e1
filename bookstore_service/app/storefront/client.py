# bookstore_service/app/storefront/client.py
import logging
from typing import List, Optional

import httpx

from db.exceptions import CartItemNotFound, CartValidationError, StoreUnavailable
from db.schemas import CartItemSchema

logger = logging.getLogger(__name__)

TIMEOUT = 5  # Максимальное время ожидания ответа в секундах


class CartClient:
    """
    Talks to the cart API of the bookstore service.

    Errors come back as the same exceptions the store accessor raises, so the
    sync logic does not care whether it sits next to the database or across
    HTTP.
    """

    def __init__(self, base_url: str = "http://localhost:8000", http: Optional[httpx.AsyncClient] = None):
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(base_url=base_url, timeout=TIMEOUT)

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def _request(self, method: str, url: str, item_id: str = "", **kwargs) -> httpx.Response:
        try:
            response = await self.http.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            logger.error("Cart API %s %s unreachable: %s", method, url, exc)
            raise StoreUnavailable(
                "Cart service is unreachable",
                details={"method": method, "url": url}
            ) from exc

        if response.is_success:
            return response

        error, detail = self._error_body(response)
        logger.warning("Cart API %s %s -> %s %s: %s", method, url, response.status_code, error, detail)
        if response.status_code == 404:
            raise CartItemNotFound(item_id)
        if response.status_code in (400, 422):
            raise CartValidationError(detail, details={"error": error})
        raise StoreUnavailable(detail, details={"error": error, "status": response.status_code})

    @staticmethod
    def _error_body(response: httpx.Response):
        try:
            body = response.json()
        except ValueError:
            return "http_error", response.text or response.reason_phrase
        if isinstance(body, dict):
            return body.get("error", "http_error"), str(body.get("details", body.get("detail", "")))
        return "http_error", str(body)

    async def list_for_user(self, user_id: str) -> List[CartItemSchema]:
        response = await self._request("GET", "/api/cart", params={"userId": user_id})
        return [CartItemSchema.model_validate(row) for row in response.json()]

    async def create(self, user_id: str, book_id: str, quantity: int) -> CartItemSchema:
        response = await self._request(
            "POST", "/api/cart",
            json={"userId": user_id, "bookId": book_id, "quantity": quantity}
        )
        return CartItemSchema.model_validate(response.json())

    async def update_quantity(self, item_id: str, quantity: int) -> None:
        await self._request("PUT", "/api/cart", item_id=item_id, json={"id": item_id, "quantity": quantity})

    async def delete_by_id(self, item_id: str) -> None:
        await self._request("DELETE", "/api/cart", item_id=item_id, params={"itemId": item_id})
