"""Custom exceptions for hivewatch.

Clients raise these; the service layer catches them, logs, and converts
to empty/null defaults so the dashboard degrades instead of failing.
"""


class HiveWatchError(Exception):
    """Base exception for all hivewatch errors."""


class RpcError(HiveWatchError):
    """Raised when a JSON-RPC response carries an ``error`` member."""

    def __init__(self, method: str, message: str, code: int | None = None) -> None:
        super().__init__(f"{method}: {message}")
        self.method = method
        self.code = code


class UpstreamError(HiveWatchError):
    """Raised when a REST upstream (HAFBE, HAF-SQL, beacon) answers non-2xx."""

    def __init__(self, url: str, status: int) -> None:
        super().__init__(f"{url} returned HTTP {status}")
        self.url = url
        self.status = status


class NodeUnavailableError(HiveWatchError):
    """Raised when both the selected node and the default node failed a call."""
