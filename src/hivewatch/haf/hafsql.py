"""HAF-SQL REST client for historical operation ranges."""

import httpx

from hivewatch.exceptions import UpstreamError


class HafSqlClient:
    """Async wrapper around the public HAF-SQL API.

    Args:
        http: Async client whose ``base_url`` points at the HAF-SQL API root.
    """

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def close(self) -> None:
        await self._http.aclose()

    async def _get(self, path: str, params: dict | None = None):
        response = await self._http.get(path, params=params)
        if response.is_error:
            raise UpstreamError(str(response.request.url), response.status_code)
        return response.json()

    async def get_dynamic_global_properties(self) -> dict:
        """Chain head as indexed by HAF; the head block is in ``block_num``."""
        return await self._get("/chain/dynamic-global-properties")

    async def get_operations_by_range(
        self, op_type: str, start_block: int, end_block: int
    ) -> list[dict]:
        """All ``op_type`` operations with ``start_block <= block_num <= end_block``."""
        data = await self._get(
            f"/operations/by-range/{op_type}",
            {"block_range": f"{start_block}-{end_block}"},
        )
        return data if isinstance(data, list) else []
