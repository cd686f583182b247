"""Slack incoming-webhook notifier with a send cooldown.

Messages that arrive inside the cooldown window are dropped, not queued.
Only a confirmed delivery starts a new window.
"""

import time
from typing import Callable

import httpx

from agentwatch.monitor.errors import DeliveryFailure
from agentwatch.shared.logger import get_logger


class SlackNotifier:
    """Best-effort, rate-limited delivery to a single Slack webhook."""

    def __init__(
        self,
        webhook_url: str,
        cooldown_seconds: float = 60,
        timeout: float = 10,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._webhook_url = webhook_url
        self._cooldown = cooldown_seconds
        self._timeout = timeout
        self._clock = clock
        self._last_sent: float | None = None
        self.logger = get_logger("notifier")

    @property
    def last_sent(self) -> float | None:
        return self._last_sent

    def seconds_until_ready(self) -> float:
        """Seconds left in the current cooldown window (0 when ready)."""
        if self._last_sent is None:
            return 0.0
        remaining = self._cooldown - (self._clock() - self._last_sent)
        return max(0.0, remaining)

    async def notify(self, message: str) -> bool:
        """Send ``message``. Returns True only if Slack accepted it."""
        if not self._webhook_url:
            self.logger.error("Slack webhook is not configured; alert not sent")
            self.logger.info(f"Undelivered alert: {message}")
            return False

        if self.seconds_until_ready() > 0:
            self.logger.debug("Notification dropped: cooldown active")
            return False

        try:
            await self._post(message)
        except DeliveryFailure as e:
            self.logger.error(f"Slack delivery failed: {e}")
            return False

        self._last_sent = self._clock()
        self.logger.info("Slack notification sent")
        return True

    async def _post(self, message: str):
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._webhook_url, json={"text": message})
        except Exception as e:
            raise DeliveryFailure(str(e) or type(e).__name__) from e
        if response.status_code // 100 != 2:
            raise DeliveryFailure(f"webhook returned HTTP {response.status_code}")
