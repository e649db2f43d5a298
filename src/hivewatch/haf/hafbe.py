"""HAF block explorer (HAFBE) REST client.

HAFBE indexes witness votes with each voter's own and proxied VESTS, which
condenser_api does not expose. Amounts come back as VESTS * 10^6 strings.
"""

from typing import Any

import httpx

from hivewatch.exceptions import UpstreamError
from hivewatch.logging import get_logger

logger = get_logger(__name__)


class HafbeClient:
    """Thin async wrapper around the HAFBE REST API.

    Args:
        http: Async client whose ``base_url`` points at the HAFBE API root.
    """

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def close(self) -> None:
        await self._http.aclose()

    async def forward(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` with query parameters passed through unchanged.

        Raises:
            UpstreamError: On non-2xx responses, carrying the upstream status.
        """
        response = await self._http.get(path, params=params)
        if response.is_error:
            logger.warning("hafbe_request_failed", path=path, status=response.status_code)
            raise UpstreamError(str(response.request.url), response.status_code)
        return response.json()

    async def get_witness_voters(
        self,
        witness: str,
        page: int = 1,
        page_size: int = 100,
        sort: str = "vests",
        direction: str = "desc",
    ) -> dict:
        """One page of voters: ``{"total_votes", "total_pages", "voters": [...]}``."""
        return await self.forward(
            f"/witnesses/{witness}/voters",
            {"page": page, "page-size": page_size, "sort": sort, "direction": direction},
        )

    async def get_witness_votes_history(
        self,
        witness: str,
        page: int = 1,
        page_size: int = 100,
        voter_name: str | None = None,
    ) -> dict:
        params: dict[str, Any] = {"page": page, "page-size": page_size}
        if voter_name:
            params["voter-name"] = voter_name
        return await self.forward(f"/witnesses/{witness}/votes/history", params)

    async def get_proxy_power(self, account: str) -> dict:
        """Accounts proxying to ``account`` with their proxied VESTS."""
        return await self.forward(f"/accounts/{account}/proxy-power")
