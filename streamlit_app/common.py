"""Shared helpers for the Streamlit customer and staff pages."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, TypeVar

import streamlit as st

from canteen.api.client import CanteenApiClient
from canteen.core.errors import CanteenError

T = TypeVar("T")


def run_with_client(
    action: Callable[[CanteenApiClient], Awaitable[T]],
    client_factory: Callable[[], CanteenApiClient] = CanteenApiClient,
) -> T:
    """Run one async action against a fresh API client on a private event loop."""

    async def _runner() -> T:
        async with client_factory() as client:
            return await action(client)

    return asyncio.run(_runner())


def attempt(
    action: Callable[[CanteenApiClient], Awaitable[Any]],
    client_factory: Callable[[], CanteenApiClient] = CanteenApiClient,
) -> bool:
    """Run ``action``; a ``CanteenError`` is shown with ``st.error`` and ``False`` returned."""
    try:
        run_with_client(action, client_factory)
    except CanteenError as exc:
        st.error(str(exc))
        return False
    return True


def now_string() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M")
