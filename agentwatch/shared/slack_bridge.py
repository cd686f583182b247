"""Slack Socket Mode bridge: delivers slash commands to the command handler."""

import asyncio
import json

import aiohttp

from agentwatch.shared.logger import get_logger

CONNECTIONS_OPEN_URL = "https://slack.com/api/apps.connections.open"


class BridgeStartupError(Exception):
    """The Slack connection could not be established at startup."""


class SlackBridge:
    """WebSocket bridge between Slack Socket Mode and the CommandHandler.

    Slash commands are acknowledged as soon as they arrive; the command
    itself runs as a separate task and its result is posted to the
    command's ``response_url``.
    """

    def __init__(
        self,
        handler,
        app_token: str,
        command: str = "/heartbeat",
        reconnect_delay: float = 5.0,
        max_reconnect_delay: float = 60.0,
        max_startup_attempts: int = 5,
    ):
        self._handler = handler
        self._app_token = app_token
        self._command = command
        self._reconnect_delay = reconnect_delay
        self._max_reconnect_delay = max_reconnect_delay
        self._max_startup_attempts = max_startup_attempts
        self._running = False
        self._connected_once = False
        self._ws = None
        self._session = None
        self._pending: set[asyncio.Task] = set()
        self.logger = get_logger("slack_bridge")

    async def start(self):
        """Connect with auto-reconnect. Raises BridgeStartupError if never connected."""
        self._running = True
        self._session = aiohttp.ClientSession()
        delay = self._reconnect_delay
        attempts = 0
        while self._running:
            attempts += 1
            try:
                await self._connect_and_listen()
                delay = self._reconnect_delay
            except Exception as e:
                self.logger.error(f"Bridge connection error: {e}")
                if not self._connected_once and attempts >= self._max_startup_attempts:
                    await self.stop()
                    raise BridgeStartupError(
                        f"Could not connect to Slack after {attempts} attempts"
                    ) from e
            if self._running:
                self.logger.info(f"Reconnecting in {delay:.1f}s...")
                await asyncio.sleep(delay)
                delay = min(delay * 2, self._max_reconnect_delay)

    async def stop(self):
        """Disconnect from Slack and drop in-flight commands."""
        self._running = False
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        if self._ws and not self._ws.closed:
            await self._ws.close()
        if self._session and not self._session.closed:
            await self._session.close()

    async def _open_socket_url(self) -> str:
        headers = {"Authorization": f"Bearer {self._app_token}"}
        async with self._session.post(CONNECTIONS_OPEN_URL, headers=headers) as resp:
            data = await resp.json()
        if not data.get("ok"):
            raise ConnectionError(f"apps.connections.open failed: {data.get('error', 'unknown')}")
        return data["url"]

    async def _connect_and_listen(self):
        url = await self._open_socket_url()
        self._ws = await self._session.ws_connect(url)
        self._connected_once = True
        self.logger.info("Connected to Slack Socket Mode")

        async for msg in self._ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                await self._handle_socket_message(msg.data)
            elif msg.type in (aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.ERROR):
                break

    async def _handle_socket_message(self, raw: str):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            self.logger.error(f"Invalid JSON from Slack: {raw[:100]}")
            return

        kind = data.get("type")
        if kind == "hello":
            self.logger.info("Slack socket ready")
            return
        if kind == "disconnect":
            self.logger.info(f"Slack requested disconnect ({data.get('reason', 'unknown')})")
            if self._ws and not self._ws.closed:
                await self._ws.close()
            return

        envelope_id = data.get("envelope_id")
        if kind != "slash_commands" or not envelope_id:
            if envelope_id:
                await self._ack(envelope_id)
            return

        payload = data.get("payload", {})
        if payload.get("command") != self._command:
            await self._ack(envelope_id)
            return

        text = payload.get("text", "")
        await self._ack(envelope_id, self._handler.acknowledge(text))

        task = asyncio.create_task(self._run_command(text, payload.get("response_url")))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _ack(self, envelope_id: str, text: str = ""):
        if not (self._ws and not self._ws.closed):
            return
        message = {"envelope_id": envelope_id}
        if text:
            message["payload"] = {"text": text}
        await self._ws.send_json(message)

    async def _run_command(self, text: str, response_url: str | None):
        try:
            reply = await self._handler.handle(text)
        except Exception as e:
            self.logger.error(f"Command '{text}' failed: {e}")
            reply = "Sorry, that command failed. Check the monitor logs."
        await self._send_reply(response_url, reply)

    async def _send_reply(self, response_url: str | None, text: str):
        if not response_url:
            self.logger.warning("Slash command had no response_url; reply dropped")
            return
        try:
            async with self._session.post(
                response_url, json={"response_type": "in_channel", "text": text}
            ) as resp:
                if resp.status // 100 != 2:
                    self.logger.error(f"Slack reply failed with HTTP {resp.status}")
        except Exception as e:
            self.logger.error(f"Slack reply failed: {e}")
