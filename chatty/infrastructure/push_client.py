# chatty/infrastructure/push_client.py
import asyncio
import logging
from typing import Any

import httpx


class PushNotificationClient:
    """Fire-and-forget sender for FCM style push notifications."""

    def __init__(
        self,
        url: str,
        server_key: str,
        logger: logging.Logger,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self.server_key = server_key
        self.logger = logger
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._tasks: set[asyncio.Task] = set()

    async def send(self, notification: dict[str, Any]) -> bool:
        try:
            response = await self.client.post(
                self.url,
                json=notification,
                headers={"Authorization": f"key={self.server_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            self.logger.warning(f"Push notification failed: {e!s}")
            return False
        self.logger.debug(f"Push notification sent to {notification.get('to')}")
        return True

    def send_in_background(self, notification: dict[str, Any]) -> asyncio.Task:
        task = asyncio.create_task(self.send(notification))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def close(self) -> None:
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        await self.client.aclose()
