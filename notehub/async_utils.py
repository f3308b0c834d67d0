"""Helpers for running blocking code from async handlers."""

import asyncio
from typing import Callable, TypeVar

T = TypeVar("T")


async def run_sync(func: Callable[..., T], *args, **kwargs) -> T:
    """
    Run a blocking function in the default thread pool so the event loop keeps serving.

    Used to wrap SQLAlchemy calls made through the synchronous psycopg2 driver.

    Example:
        note = await run_sync(self._select_one, note_id)
    """
    return await asyncio.to_thread(func, *args, **kwargs)
