"""Minimal Microsoft Graph client for worker tasks"""

from typing import Any, Dict, Iterator, Optional

import httpx

import settings


class GraphError(Exception):
    """Graph request failed; str() is Graph's own error message when available"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GraphClient:
    """Bearer-authenticated httpx client rooted at the Graph API base URL"""

    def __init__(self, access_token: str, base_url: Optional[str] = None, timeout: float = 30.0):
        self._client = httpx.Client(
            base_url=base_url or settings.GRAPH_API_BASE,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
            timeout=timeout,
        )

    def __enter__(self) -> "GraphClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise GraphError(f"Graph request failed: {e}") from e

        if response.is_error:
            raise GraphError(_error_message(response), status_code=response.status_code)
        return response

    def _get_json(self, url: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        response = self._request("GET", url, params=params)
        try:
            body = response.json()
        except ValueError as e:
            raise GraphError(
                f"Graph returned a non-JSON response (HTTP {response.status_code})",
                status_code=response.status_code,
            ) from e
        if not isinstance(body, dict):
            raise GraphError("Graph returned an unexpected response body", status_code=response.status_code)
        return body

    def get(self, path: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        return self._get_json(path, params=params)

    def get_paged(self, path: str, params: Optional[Dict[str, str]] = None) -> Iterator[Dict[str, Any]]:
        """Yield every item of a collection, following @odata.nextLink"""
        page = self.get(path, params=params)
        while True:
            yield from page.get("value", [])
            next_link = page.get("@odata.nextLink")
            if not next_link:
                return
            page = self._get_json(next_link)

    def delete(self, path: str) -> None:
        self._request("DELETE", path)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"Graph request failed with HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"Graph request failed with HTTP {response.status_code}"
