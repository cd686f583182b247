"""agentwatch launcher: runs the heartbeat monitor and Slack bridge in one event loop."""

import argparse
import asyncio
import signal
import sys
from pathlib import Path

from agentwatch.monitor.agent import HeartbeatMonitor
from agentwatch.monitor.commands import CommandHandler
from agentwatch.monitor.errors import CommandError
from agentwatch.shared.config import load_monitor_config
from agentwatch.shared.logger import get_logger
from agentwatch.shared.slack_bridge import SlackBridge

logger = get_logger("launcher")

DEFAULT_CONFIG = str(Path(__file__).parent / "monitor" / "config.json")


class Launcher:
    """Wires the monitor, command handler and Slack bridge together."""

    def __init__(self, config_path: str | None = None, monitor: HeartbeatMonitor | None = None):
        self.config = load_monitor_config(config_path)
        self._monitor = monitor or HeartbeatMonitor(config=self.config)
        self._commands = CommandHandler(self._monitor.registry, monitor=self._monitor)
        self._shutdown_event = asyncio.Event()
        self._tasks: list[asyncio.Task] = []
        self._bridge = None

        if self.config.get("command_bridge_enabled") and self.config.get("slack_app_token"):
            self._bridge = SlackBridge(
                handler=self._commands,
                app_token=self.config["slack_app_token"],
                command=self.config.get("slack_command", "/heartbeat"),
                max_startup_attempts=self.config.get("bridge_max_startup_attempts", 5),
            )
        elif self.config.get("command_bridge_enabled"):
            logger.warning("SLACK_APP_TOKEN not set; slash commands are disabled")

    @property
    def monitor(self) -> HeartbeatMonitor:
        return self._monitor

    async def seed_sessions(self):
        """Register the sessions listed under ``initial_sessions``."""
        for raw_id in self.config.get("initial_sessions", []):
            try:
                session_id = await self._monitor.registry.add(raw_id)
                logger.info(f"Monitoring session {session_id} from config")
            except CommandError as e:
                logger.warning(f"Skipping configured session {raw_id}: {e}")

    async def start(self) -> int:
        """Run until a shutdown signal. Returns the process exit code."""
        self._install_signal_handlers()
        await self.seed_sessions()

        self._tasks.append(asyncio.create_task(self._monitor.run()))
        if self._bridge:
            self._tasks.append(asyncio.create_task(self._bridge.start()))
        logger.info("agentwatch launched")

        shutdown = asyncio.create_task(self._shutdown_event.wait())
        done, _ = await asyncio.wait(
            [shutdown, *self._tasks], return_when=asyncio.FIRST_COMPLETED
        )

        exit_code = 0
        for task in done:
            if task is shutdown or task.cancelled():
                continue
            error = task.exception()
            if error is not None:
                logger.error(f"Fatal error: {error}")
                exit_code = 1
        shutdown.cancel()
        await asyncio.gather(shutdown, return_exceptions=True)
        await self.stop()
        return exit_code

    async def run_once(self) -> int:
        """Seed sessions, run a single heartbeat cycle, and exit."""
        await self.seed_sessions()
        down = await self._monitor.run_once()
        logger.info(f"Single cycle finished: {len(down)} agent(s) down")
        return 0

    async def stop(self):
        """Stop the monitor and close the Slack connection."""
        logger.info("Shutting down...")
        self._monitor.stop()
        if self._bridge:
            try:
                await self._bridge.stop()
            except Exception as e:
                logger.error(f"Error stopping Slack bridge: {e}")
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("agentwatch stopped")

    def _install_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._shutdown_event.set)
            except NotImplementedError:
                pass  # Windows fallback below
        if sys.platform == "win32":
            signal.signal(signal.SIGINT, lambda s, f: self._shutdown_event.set())


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="agentwatch", description="Agent heartbeat monitor")
    parser.add_argument("config", nargs="?", default=None, help="Path to a JSON config file")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None):
    args = parse_args(argv)
    config_path = args.config
    if config_path is None and Path(DEFAULT_CONFIG).exists():
        config_path = DEFAULT_CONFIG

    async def _run() -> int:
        launcher = Launcher(config_path=config_path)
        if args.once:
            return await launcher.run_once()
        return await launcher.start()

    try:
        exit_code = asyncio.run(_run())
    except KeyboardInterrupt:
        print("\nagentwatch shutting down...")
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
