"""Error taxonomy for the heartbeat monitor.

Command errors carry operator-facing messages and are shown verbatim in
slash command replies. Fetch and delivery failures are logged only.
"""


class MonitorError(Exception):
    """Base class for all agentwatch errors."""


class CommandError(MonitorError):
    """A registry command was rejected. ``str(err)`` is the operator message."""


class InvalidIdentifier(CommandError):
    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"`{raw}` is not a valid session id (expected a non-negative integer).")


class AlreadyMonitored(CommandError):
    def __init__(self, session_id: int):
        self.session_id = session_id
        super().__init__(f"Session {session_id} is already being monitored.")


class NotMonitored(CommandError):
    def __init__(self, session_id: int):
        self.session_id = session_id
        super().__init__(f"Session {session_id} is not being monitored.")


class SessionNotFound(CommandError):
    def __init__(self, session_id: int):
        self.session_id = session_id
        super().__init__(f"Session {session_id} does not exist.")


class FetchFailure(MonitorError):
    """An external lookup (GraphQL, Firestore) failed."""


class DeliveryFailure(MonitorError):
    """The alert webhook rejected or failed to accept a message."""
