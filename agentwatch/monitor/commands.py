"""Operator commands for the session registry (``/heartbeat <action>``)."""

from agentwatch.monitor.errors import CommandError
from agentwatch.shared.logger import get_logger

USAGE = (
    "Usage: /heartbeat <action>\n"
    "  add <session-id>     start monitoring a game session\n"
    "  remove <session-id>  stop monitoring a game session\n"
    "  list                 show monitored sessions\n"
    "  clear                stop monitoring every session\n"
    "  status               show the last heartbeat cycle"
)


def describe_sessions(session_ids: list[int]) -> str:
    if not session_ids:
        return "No sessions are being monitored."
    return "Monitored sessions: " + ", ".join(str(s) for s in session_ids)


class CommandHandler:
    """Maps slash command text onto SessionRegistry operations."""

    def __init__(self, registry, monitor=None):
        self._registry = registry
        self._monitor = monitor
        self.logger = get_logger("commands")

    def acknowledge(self, text: str) -> str:
        """Immediate reply sent before the command runs."""
        command = text.strip()
        if not command:
            return "Received."
        return f"Received `{command}`, working on it..."

    async def handle(self, text: str) -> str:
        parts = text.strip().split()
        if not parts:
            return USAGE
        action = parts[0].lower()
        args = parts[1:]
        self.logger.info(f"Command: {action} {' '.join(args)}".strip())

        try:
            if action == "add":
                if not args:
                    return USAGE
                session_id = await self._registry.add(args[0])
                return f"Now monitoring session {session_id}. {describe_sessions(self._registry.list())}"
            if action == "remove":
                if not args:
                    return USAGE
                session_id = self._registry.remove(args[0])
                return f"Stopped monitoring session {session_id}. {describe_sessions(self._registry.list())}"
            if action == "list":
                return describe_sessions(self._registry.list())
            if action == "clear":
                removed = self._registry.clear()
                return f"Cleared {removed} monitored session(s). {describe_sessions([])}"
            if action == "status" and self._monitor is not None:
                return self._format_status(self._monitor.status_report())
        except CommandError as e:
            return str(e)

        return USAGE

    def _format_status(self, report: dict) -> str:
        lines = [describe_sessions(report["sessions"])]
        if report["last_cycle_at"] is None:
            lines.append("No heartbeat cycle has run yet.")
        else:
            lines.append(f"Last cycle found {report['last_down_count']} agent(s) down.")
        remaining = report["cooldown_remaining_seconds"]
        if remaining:
            lines.append(f"Alert cooldown: {remaining}s remaining.")
        return "\n".join(lines)
