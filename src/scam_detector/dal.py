from typing import Any, Dict, List, Optional, Protocol

import requests
from requests import Response

from .config import Settings


class ProviderError(Exception):
    """Raised when the data provider responds with an error or unexpected payload."""


class TransactionNotFound(ProviderError):
    """Raised when a per-hash lookup returns no transaction."""


class TransactionProvider(Protocol):
    def get_transactions_for_address(self, chain: str, address: str) -> Dict[str, Any]: ...

    def get_transaction(self, chain: str, tx_hash: str) -> Dict[str, Any]: ...


class GoldRushClient:
    """Thin client for the GoldRush (Covalent) transaction endpoints."""

    def __init__(
        self, settings: Settings, session: Optional[requests.Session] = None
    ) -> None:
        self.settings = settings
        self.session = session or requests.Session()

    def get_transactions_for_address(
        self,
        chain: str,
        address: str,
        *,
        no_logs: bool = False,
        quote_currency: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Return every transaction for the address as {"items": [...]}.

        Pages are walked from page 0 while the provider advertises a next link,
        bounded by settings.max_pages.
        """
        params = self._params(no_logs=no_logs, quote_currency=quote_currency)
        params["page-size"] = self.settings.page_size
        items: List[Dict[str, Any]] = []
        for page in range(max(1, self.settings.max_pages)):
            data = self._get(f"{chain}/address/{address}/transactions_v3/page/{page}/", params)
            items.extend(self._items(data))
            links = data.get("links") or {}
            if not isinstance(links, dict) or not links.get("next"):
                break
        return {"items": items}

    def get_transaction(
        self,
        chain: str,
        tx_hash: str,
        *,
        no_logs: bool = False,
        quote_currency: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Return the single transaction as {"items": [tx]}."""
        params = self._params(no_logs=no_logs, quote_currency=quote_currency)
        data = self._get(f"{chain}/transaction_v2/{tx_hash}/", params)
        items = self._items(data)
        if not items:
            raise TransactionNotFound(f"No transaction found for hash {tx_hash}")
        return {"items": items[:1]}

    @staticmethod
    def _params(*, no_logs: bool, quote_currency: Optional[str]) -> Dict[str, Any]:
        params: Dict[str, Any] = {"no-logs": "true" if no_logs else "false"}
        if quote_currency:
            params["quote-currency"] = quote_currency
        return params

    @staticmethod
    def _items(data: Dict[str, Any]) -> List[Dict[str, Any]]:
        items = data.get("items")
        if not isinstance(items, list):
            raise ProviderError("Invalid response from blockchain data provider")
        return items

    def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"Accept": "application/json"}
        if self.settings.goldrush_api_key:
            headers["Authorization"] = f"Bearer {self.settings.goldrush_api_key}"
        url = f"{self.settings.goldrush_api_url.rstrip('/')}/{path}"
        try:
            resp: Response = self.session.get(
                url,
                params=params,
                headers=headers,
                timeout=self.settings.request_timeout_seconds,
                verify=self.settings.request_verify_tls,
            )
        except requests.RequestException as e:
            raise ProviderError(f"Provider request error: {e}") from e

        try:
            payload = resp.json()
        except ValueError as e:
            if not resp.ok:
                raise ProviderError(
                    f"Provider non-OK status {resp.status_code}: {resp.text[:500]}"
                ) from e
            raise ProviderError("Provider returned non-JSON response") from e

        if not isinstance(payload, dict):
            raise ProviderError("Provider response must be a JSON object")
        if payload.get("error"):
            raise ProviderError(
                payload.get("error_message") or f"Provider error (status {resp.status_code})"
            )
        if not resp.ok:
            raise ProviderError(f"Provider non-OK status {resp.status_code}: {resp.text[:500]}")

        data = payload.get("data")
        if not isinstance(data, dict):
            raise ProviderError("Invalid response from blockchain data provider")
        return data
