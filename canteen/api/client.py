"""Async REST client for the canteen backend."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from canteen.core.config import settings
from canteen.core.errors import ApiError
from canteen.schemas import MenuItem, Notification, NotificationCreate, Order, RemoteCart

logger = logging.getLogger(__name__)

_menu_list = TypeAdapter(list[MenuItem])
_cart = TypeAdapter(RemoteCart)
_optional_cart = TypeAdapter(RemoteCart | None)
_order = TypeAdapter(Order)
_order_list = TypeAdapter(list[Order])
_optional_notification = TypeAdapter(Notification | None)
_notification_list = TypeAdapter(list[Notification])


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            if body.get(key):
                return str(body[key])
    return response.reason_phrase


class CanteenApiClient:
    """Thin wrapper over ``httpx.AsyncClient``; every failure becomes ``ApiError``."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        token: str | None = None,
        timeout: float | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout if timeout is not None else settings.http_timeout_seconds,
        )
        token = token if token is not None else settings.api_token
        if token:
            self._http.headers["Authorization"] = f"Bearer {token}"

    async def __aenter__(self) -> "CanteenApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            response = await self._http.request(method, path, json=json, params=params)
        except httpx.HTTPError as exc:
            logger.warning("[API] %s %s failed: %s", method, path, exc)
            raise ApiError(str(exc) or exc.__class__.__name__, method=method, path=path) from exc

        if response.is_error:
            message = _error_message(response)
            logger.warning("[API] %s %s returned %s: %s", method, path, response.status_code, message)
            raise ApiError(message, method=method, path=path, status_code=response.status_code)
        return response

    @staticmethod
    def _decode(response: httpx.Response, method: str, path: str) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError("Malformed JSON response", method=method, path=path, status_code=response.status_code) from exc

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._send(method, path, **kwargs)
        return self._decode(response, method, path)

    async def _fetch(self, adapter: TypeAdapter, method: str, path: str, default: Any = None, **kwargs: Any) -> Any:
        response = await self._send(method, path, **kwargs)
        data = self._decode(response, method, path)
        if data is None:
            data = default
        try:
            return adapter.validate_python(data)
        except ValidationError as exc:
            logger.warning("[API] %s %s returned an unexpected payload: %s", method, path, exc)
            raise ApiError(
                "Unexpected response payload", method=method, path=path, status_code=response.status_code
            ) from exc

    # Menu

    async def list_menu_items(self) -> list[MenuItem]:
        return await self._fetch(_menu_list, "GET", "/menu", default=[])

    # Cart

    async def get_cart(self, user_id: int) -> RemoteCart:
        return await self._fetch(_cart, "GET", f"/carts/user/{user_id}", default={})

    async def add_cart_item(
        self,
        user_id: int,
        menu_item_id: int,
        quantity: int,
        note: str | None = None,
        addon: bool = False,
    ) -> RemoteCart:
        payload: dict[str, Any] = {"menuItemId": menu_item_id, "quantity": quantity}
        if note is not None:
            payload["note"] = note
        if addon:
            payload["addon"] = True
        return await self._fetch(_cart, "POST", f"/carts/user/{user_id}/items", default={}, json=payload)

    async def update_cart_item(self, cart_item_id: int, quantity: int) -> RemoteCart:
        return await self._fetch(_cart, "PUT", f"/carts/items/{cart_item_id}", default={}, json={"quantity": quantity})

    async def remove_cart_item(self, cart_item_id: int) -> RemoteCart | None:
        """Delete a cart line; returns the cart only when the backend echoes it."""
        return await self._fetch(_optional_cart, "DELETE", f"/carts/items/{cart_item_id}")

    # Orders

    async def create_order_from_cart(self, user_id: int, payment_method: str | None = None) -> Order:
        params = {"paymentMethod": payment_method or settings.default_payment_method}
        return await self._fetch(_order, "POST", f"/orders/user/{user_id}", params=params)

    async def get_order(self, order_id: int) -> Order:
        return await self._fetch(_order, "GET", f"/orders/{order_id}")

    async def list_user_orders(self, user_id: int) -> list[Order]:
        return await self._fetch(_order_list, "GET", f"/orders/user/{user_id}", default=[])

    async def list_orders(self) -> list[Order]:
        return await self._fetch(_order_list, "GET", "/orders", default=[])

    async def update_order_status(self, order_id: int, status: str) -> Order:
        return await self._fetch(_order, "PUT", f"/orders/{order_id}/status", json={"status": status})

    # Notifications

    async def create_notification(self, payload: NotificationCreate) -> Notification | None:
        body = payload.model_dump(by_alias=True)
        return await self._fetch(_optional_notification, "POST", "/notifications", json=body)

    async def list_notifications(self, user_id: int) -> list[Notification]:
        return await self._fetch(_notification_list, "GET", f"/notifications/user/{user_id}", default=[])

    async def mark_notification_read(self, notification_id: int) -> Notification | None:
        return await self._fetch(_optional_notification, "PUT", f"/notifications/{notification_id}/read")

    async def mark_all_notifications_read(self, user_id: int) -> None:
        await self._request("PUT", f"/notifications/user/{user_id}/read-all")
