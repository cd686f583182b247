"""Heartbeat monitor: polls agent liveness for every monitored session."""

import asyncio
import time
from typing import Any, Callable

from agentwatch.monitor.classifier import MS_PER_MINUTE, classify
from agentwatch.monitor.formatter import (
    DownAgent,
    format_down_alert,
    format_eviction_notice,
)
from agentwatch.monitor.liveness import FirestoreLivenessStore
from agentwatch.monitor.metadata import GraphQLMetadataSource, SessionStatusFetcher
from agentwatch.monitor.notifier import SlackNotifier
from agentwatch.monitor.registry import SessionRegistry
from agentwatch.shared.config import DEFAULT_CONFIG
from agentwatch.shared.logger import get_logger


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class HeartbeatMonitor:
    """Owns the session registry and runs the poll cycle on a fixed interval."""

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        metadata: GraphQLMetadataSource | None = None,
        liveness: FirestoreLivenessStore | None = None,
        notifier: SlackNotifier | None = None,
        clock: Callable[[], int] | None = None,
    ):
        self.config = {**DEFAULT_CONFIG, **(config or {})}
        self.logger = get_logger("monitor")
        timeout = self.config["http_timeout_seconds"]

        self._metadata = metadata or GraphQLMetadataSource(
            endpoint=self.config["graphql_endpoint"],
            timeout=timeout,
        )
        self._liveness = liveness or FirestoreLivenessStore(
            project_id=self.config["firebase_project_id"],
            api_key=self.config["firebase_api_key"],
            base_url=self.config["firestore_base_url"],
            timeout=timeout,
        )
        self.notifier = notifier or SlackNotifier(
            webhook_url=self.config["slack_webhook"],
            cooldown_seconds=self.config["notify_cooldown_seconds"],
            timeout=timeout,
        )
        self.status_fetcher = SessionStatusFetcher(self._metadata)
        self.registry = SessionRegistry(self.status_fetcher)

        self._clock = clock or _epoch_ms
        self._poll_interval = self.config["poll_interval_seconds"]
        self._threshold_ms = self.config["down_threshold_minutes"] * MS_PER_MINUTE
        self._running = False
        self._last_cycle_at: int | None = None
        self._last_down_count: int | None = None

    async def run(self):
        """Main poll loop. A cycle always finishes before the next one starts."""
        self._running = True
        self.logger.info(f"Heartbeat monitor started (interval {self._poll_interval}s)")
        while self._running:
            started = time.monotonic()
            await self.run_once()
            elapsed = time.monotonic() - started
            await asyncio.sleep(max(0.0, self._poll_interval - elapsed))

    def stop(self):
        self._running = False
        self.logger.info("Heartbeat monitor stopped")

    async def run_once(self) -> list[DownAgent]:
        """Run one cycle, logging instead of raising on failure."""
        try:
            return await self.run_cycle()
        except Exception as e:
            self.logger.error(f"Heartbeat cycle failed: {e}", exc_info=True)
            return []

    async def run_cycle(self) -> list[DownAgent]:
        """Evict inactive sessions, check every remaining agent, alert once."""
        await self.evict_inactive_sessions()

        session_ids = self.registry.list()
        if not session_ids:
            self.logger.info("No sessions monitored; skipping agent checks")
            self._record_cycle([])
            return []

        agents = await self._metadata.fetch_agents(session_ids)
        now = self._clock()
        down: list[DownAgent] = []
        for agent in agents:
            if agent.session_id not in self.registry:
                continue
            record = await self._liveness.fetch_latest(agent)
            verdict = classify(now, record, self._threshold_ms)
            if verdict.needs_alert:
                self.logger.warning(
                    f"agent-{agent.agent_number} in session {agent.session_id} is {verdict.status}",
                    extra={"data": {**agent.to_dict(), **verdict.to_dict()}},
                )
                down.append(DownAgent(
                    agent_index=agent.agent_index,
                    session_id=agent.session_id,
                    downtime_minutes=verdict.downtime_minutes,
                ))

        if down:
            self.logger.warning(
                f"{len(down)} of {len(agents)} agents need attention",
                extra={"data": {"down": [entry.to_dict() for entry in down]}},
            )
            await self.notifier.notify(format_down_alert(down))
        else:
            self.logger.info(f"All {len(agents)} agents are healthy")
        self._record_cycle(down)
        return down

    async def evict_inactive_sessions(self) -> list[int]:
        """Drop sessions that are gone, ended, or suspended. Returns evicted ids."""
        evicted = []
        for session_id in self.registry.list():
            status = await self.status_fetcher.fetch(session_id)
            reason = status.eviction_reason
            if reason is None:
                continue
            if not self.registry.evict(session_id):
                continue
            evicted.append(session_id)
            self.logger.info(
                f"Evicted session {session_id}: {reason}",
                extra={"data": status.to_dict()},
            )
            if reason != "not_found":
                await self.notifier.notify(format_eviction_notice(session_id, reason))
        return evicted

    def status_report(self) -> dict[str, Any]:
        return {
            "sessions": self.registry.list(),
            "last_cycle_at": self._last_cycle_at,
            "last_down_count": self._last_down_count,
            "cooldown_remaining_seconds": round(self.notifier.seconds_until_ready(), 1),
        }

    def _record_cycle(self, down: list[DownAgent]):
        self._last_cycle_at = self._clock()
        self._last_down_count = len(down)
