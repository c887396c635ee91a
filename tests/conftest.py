"""Shared fixtures: an in-memory canteen backend served over ASGI."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import httpx
import pytest
from fastapi import APIRouter, Body, FastAPI, HTTPException, Request, Response

from canteen.api.client import CanteenApiClient

ADDON_PRICE = Decimal("15.00")


class FakeBackend:
    """Minimal stand-in for the canteen REST backend."""

    def __init__(self) -> None:
        self.menu: dict[int, dict[str, Any]] = {
            1: {"itemId": 1, "name": "Chicken Adobo", "price": 50.0, "isAvailable": True},
            2: {"itemId": 2, "name": "Pancit", "price": "29.99", "isAvailable": True},
            3: {"itemId": 3, "name": "Halo-halo", "price": {"value": "45.50"}, "isAvailable": False},
        }
        self.cart_items: dict[int, dict[str, Any]] = {}
        self.orders: dict[int, dict[str, Any]] = {}
        self.notifications: list[dict[str, Any]] = []
        self.requests: list[tuple[str, str]] = []
        self.fail_cart_writes = False
        self.fail_status_updates = False
        self.fail_notifications = False
        self._next_cart_item_id = 100
        self._next_order_id = 1
        self.app = self._build_app()

    # helpers used by tests

    def add_order(self, order_id: int, status: Any, user_id: int = 42, **extra: Any) -> dict[str, Any]:
        order = {
            "orderId": order_id,
            "userId": user_id,
            "status": status,
            "totalPrice": 100.0,
            "orderTime": datetime(2026, 10, 17, 9, order_id % 60, tzinfo=timezone.utc).isoformat(),
            "orderItems": [],
            **extra,
        }
        self.orders[order_id] = order
        self._next_order_id = max(self._next_order_id, order_id + 1)
        return order

    def paths(self, method: str | None = None) -> list[str]:
        return [path for m, path in self.requests if method is None or m == method]

    def _cart(self, user_id: int) -> dict[str, Any]:
        items = [
            {**item, "menuItem": self.menu[item["itemId"]]}
            for item in self.cart_items.values()
            if item["userId"] == user_id
        ]
        return {"cartId": user_id, "userId": user_id, "cartItems": items}

    def _build_app(self) -> FastAPI:
        app = FastAPI()
        router = APIRouter(prefix="/api")
        backend = self

        @app.middleware("http")
        async def record(request: Request, call_next):
            backend.requests.append((request.method, request.url.path))
            return await call_next(request)

        @router.get("/menu")
        def list_menu() -> list[dict[str, Any]]:
            return list(backend.menu.values())

        @router.get("/carts/user/{user_id}")
        def get_cart(user_id: int) -> dict[str, Any]:
            return backend._cart(user_id)

        @router.post("/carts/user/{user_id}/items")
        def add_item(user_id: int, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
            if backend.fail_cart_writes:
                raise HTTPException(status_code=503, detail="Cart service unavailable")
            signature = (payload["menuItemId"], payload.get("note"), bool(payload.get("addon")))
            for item in backend.cart_items.values():
                if item["userId"] == user_id and (item["itemId"], item.get("note"), item["addon"]) == signature:
                    item["quantity"] += payload["quantity"]
                    return backend._cart(user_id)
            cart_item_id = backend._next_cart_item_id
            backend._next_cart_item_id += 1
            backend.cart_items[cart_item_id] = {
                "cartItemId": cart_item_id,
                "userId": user_id,
                "itemId": payload["menuItemId"],
                "quantity": payload["quantity"],
                "note": payload.get("note"),
                "addon": bool(payload.get("addon")),
            }
            return backend._cart(user_id)

        @router.put("/carts/items/{cart_item_id}")
        def update_item(cart_item_id: int, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
            if backend.fail_cart_writes:
                raise HTTPException(status_code=503, detail="Cart service unavailable")
            item = backend.cart_items.get(cart_item_id)
            if item is None:
                raise HTTPException(status_code=404, detail="Cart item not found")
            item["quantity"] = payload["quantity"]
            return backend._cart(item["userId"])

        @router.delete("/carts/items/{cart_item_id}", status_code=204)
        def delete_item(cart_item_id: int) -> Response:
            if backend.fail_cart_writes:
                raise HTTPException(status_code=503, detail="Cart service unavailable")
            backend.cart_items.pop(cart_item_id, None)
            return Response(status_code=204)

        @router.post("/orders/user/{user_id}")
        def create_order(user_id: int, paymentMethod: str = "Cash") -> dict[str, Any]:
            items = [item for item in backend.cart_items.values() if item["userId"] == user_id]
            if not items:
                raise HTTPException(status_code=400, detail="Cart is empty")
            order_id = backend._next_order_id
            backend._next_order_id += 1
            lines = []
            total = Decimal("0")
            for item in items:
                price = Decimal(str(backend.menu[item["itemId"]]["price"]))
                if item["addon"]:
                    price += ADDON_PRICE
                subtotal = price * item["quantity"]
                total += subtotal
                lines.append(
                    {
                        "orderItemId": len(lines) + 1,
                        "orderId": order_id,
                        "itemId": item["itemId"],
                        "quantity": item["quantity"],
                        "priceAtOrder": str(price),
                        "subtotalPrice": str(subtotal),
                        "note": item.get("note"),
                    }
                )
                backend.cart_items.pop(item["cartItemId"])
            order = {
                "orderId": order_id,
                "userId": user_id,
                "status": "PENDING",
                "totalPrice": str(total),
                "paymentMethod": paymentMethod,
                "orderTime": datetime.now(timezone.utc).isoformat(),
                "orderItems": lines,
            }
            backend.orders[order_id] = order
            return order

        @router.get("/orders")
        def list_orders() -> list[dict[str, Any]]:
            return list(backend.orders.values())

        @router.get("/orders/user/{user_id}")
        def list_user_orders(user_id: int) -> list[dict[str, Any]]:
            return [order for order in backend.orders.values() if order["userId"] == user_id]

        @router.get("/orders/{order_id}")
        def get_order(order_id: int) -> dict[str, Any]:
            if order_id not in backend.orders:
                raise HTTPException(status_code=404, detail="Order not found")
            return backend.orders[order_id]

        @router.put("/orders/{order_id}/status")
        def update_status(order_id: int, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
            if backend.fail_status_updates:
                raise HTTPException(status_code=500, detail="Status update failed")
            order = backend.orders.get(order_id)
            if order is None:
                raise HTTPException(status_code=404, detail="Order not found")
            # the real backend echoes statuses back in lowercase
            order["status"] = payload["status"].lower()
            return order

        @router.post("/notifications")
        def create_notification(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
            if backend.fail_notifications:
                raise HTTPException(status_code=502, detail="Notification service down")
            notification = {
                "notificationId": len(backend.notifications) + 1,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "isRead": False,
                **payload,
            }
            backend.notifications.append(notification)
            return notification

        @router.get("/notifications/user/{user_id}")
        def list_notifications(user_id: int) -> list[dict[str, Any]]:
            return [n for n in backend.notifications if n["userId"] == user_id]

        @router.put("/notifications/{notification_id}/read")
        def mark_read(notification_id: int) -> dict[str, Any]:
            for notification in backend.notifications:
                if notification["notificationId"] == notification_id:
                    notification["isRead"] = True
                    return notification
            raise HTTPException(status_code=404, detail="Notification not found")

        @router.put("/notifications/user/{user_id}/read-all")
        def mark_all_read(user_id: int) -> Response:
            for notification in backend.notifications:
                if notification["userId"] == user_id:
                    notification["isRead"] = True
            return Response(status_code=204)

        app.include_router(router)
        return app


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def connect(backend: FakeBackend) -> Callable[[], Any]:
    """Return an async context manager yielding a client wired to the fake backend."""

    @asynccontextmanager
    async def _connect() -> AsyncIterator[CanteenApiClient]:
        transport = httpx.ASGITransport(app=backend.app)
        async with httpx.AsyncClient(transport=transport, base_url="http://canteen.test/api") as http:
            yield CanteenApiClient(http=http, token="test-token")

    return _connect
