from typing import Any, Dict, List, Optional

import httpx

from storefront.core.config import get_config
from storefront.utils.logger import get_logger

logger = get_logger("utils.supabase_client")

_OPERATORS = ("eq", "neq", "gt", "lt", "gte", "lte", "like", "ilike", "in", "is")


class SupabaseClient:
    """
    Lightweight client for interacting with Supabase REST API.

    Unlike a fire-and-forget helper, transport and HTTP errors propagate so
    callers can decide whether to retry.
    """
    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        config = get_config()
        self.url = url if url is not None else config.supabase_url
        self.key = key if key is not None else config.supabase_key

        if not self.url or not self.key:
            logger.warning("SUPABASE_URL or SUPABASE_KEY not set in environment.")

        self.headers = {
            "apikey": self.key or "",
            "Authorization": f"Bearer {self.key or ''}",
            "Content-Type": "application/json",
            "Prefer": "return=representation"
        }
        self.client = httpx.Client(
            base_url=self.url or "http://localhost",
            headers=self.headers,
            timeout=timeout if timeout is not None else config.http_timeout,
            transport=transport,
        )

    @staticmethod
    def _filter_params(filters: Optional[Dict[str, Any]]) -> Dict[str, str]:
        params = {}
        for key, val in (filters or {}).items():
            if isinstance(val, str) and "." in val and val.split(".")[0] in _OPERATORS:
                params[key] = val
            else:
                params[key] = f"eq.{val}"
        return params

    def select(self, table: str, filters: Optional[Dict[str, Any]] = None, select: str = "*", limit: Optional[int] = None, order: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Query a Supabase table.
        """
        params = {"select": select}
        params.update(self._filter_params(filters))

        if limit:
            params["limit"] = str(limit)

        if order:
            params["order"] = order

        response = self.client.get(f"/rest/v1/{table}", params=params)
        response.raise_for_status()
        rows = response.json()
        return rows if isinstance(rows, list) else []

    def upsert(self, table: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Insert or update a row keyed by its primary key; returns the stored row.
        """
        response = self.client.post(
            f"/rest/v1/{table}",
            json=payload,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        response.raise_for_status()
        rows = response.json()
        if isinstance(rows, list):
            return rows[0] if rows else None
        return rows if isinstance(rows, dict) else None

    def delete(self, table: str, filters: Dict[str, Any]) -> None:
        """
        Delete rows matching the filters.
        """
        response = self.client.delete(f"/rest/v1/{table}", params=self._filter_params(filters))
        response.raise_for_status()

    def close(self) -> None:
        self.client.close()
