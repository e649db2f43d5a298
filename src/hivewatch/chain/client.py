"""Abstract Hive chain client interface.

Defines the JSON-RPC calls the dashboard depends on. Services depend only on
this interface, keeping node selection and wire details isolated in the
concrete implementation.
"""

from abc import ABC, abstractmethod


class ChainClient(ABC):
    """Abstract base class for Hive API clients."""

    @abstractmethod
    async def close(self) -> None:
        """Release HTTP resources."""
        ...

    @abstractmethod
    async def get_dynamic_global_properties(self) -> dict:
        """condenser_api.get_dynamic_global_properties."""
        ...

    @abstractmethod
    async def get_current_median_history_price(self) -> dict:
        """Median HBD/HIVE price feed: ``{"base": "0.234 HBD", "quote": "1.000 HIVE"}``."""
        ...

    @abstractmethod
    async def get_witnesses_by_vote(self, start: str, limit: int) -> list[dict]:
        """Witnesses sorted by approval votes, starting at witness ``start`` (inclusive).

        An empty ``start`` begins at the top-ranked witness.
        """
        ...

    @abstractmethod
    async def get_witness_by_account(self, name: str) -> dict | None:
        """Witness object for ``name``, or None if the account is not a witness."""
        ...

    @abstractmethod
    async def get_accounts(self, names: list[str]) -> list[dict]:
        """Account objects for ``names``; unknown names are silently omitted."""
        ...

    @abstractmethod
    async def get_witness_schedule(self) -> dict:
        """Current witness schedule including ``current_shuffled_witnesses``."""
        ...

    @abstractmethod
    async def list_witness_votes(
        self, start: list[str], limit: int, order: str = "by_witness_account"
    ) -> list[dict]:
        """database_api.list_witness_votes; returns ``[{"witness", "account"}, ...]``."""
        ...

    @abstractmethod
    async def get_account_history(
        self, account: str, start: int = -1, limit: int = 100
    ) -> list[list]:
        """condenser_api.get_account_history entries ``[index, {"block", "timestamp", "op"}]``."""
        ...
