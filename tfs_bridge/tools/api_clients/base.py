"""Base API client for TFS services"""
import logging
from typing import Dict, Any, Optional, Tuple
from abc import ABC

import httpx

from ...utils.exceptions import SourceUnavailableException

logger = logging.getLogger(__name__)


class BaseAPIClient(ABC):
    """Abstract base class for API clients

    Usage:
        async with CoreServiceClient(url, api_key=token) as client:
            projects = await client.list_projects()
    """

    service_name = "TFS"

    def __init__(self, base_url: str, api_key: Optional[str] = None,
                 credentials: Optional[Tuple[str, str]] = None,
                 api_version: str = "5.0", timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.credentials = credentials
        self.api_version = api_version
        self.timeout = timeout
        self.headers = self._build_headers()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _build_headers(self) -> Dict[str, str]:
        """Build common headers"""
        headers = {
            'Accept': 'application/json',
            'User-Agent': 'TfsBridge/1.0'
        }
        return headers

    def _build_auth(self) -> Optional[httpx.Auth]:
        """Basic auth from username/password, or from a personal access token"""
        if self.credentials:
            return httpx.BasicAuth(*self.credentials)
        if self.api_key:
            return httpx.BasicAuth('', self.api_key)
        return None

    async def __aenter__(self):
        self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        """Get HTTP client, creating one if needed"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                auth=self._build_auth(),
                timeout=self.timeout,
                transport=self._transport
            )
        return self._client

    async def close(self):
        """Close the underlying HTTP client"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, params: Optional[Dict] = None,
                       json: Optional[Any] = None,
                       headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        """Send a request, mapping transport failures to SourceUnavailableException

        Callers that give a status code its own meaning (404 for a missing work
        item) check the response before calling raise_for_status themselves.
        """
        params = {**(params or {}), 'api-version': self.api_version}
        logger.debug(f"{method} {path} params={params}")

        try:
            response = await self._get_client().request(
                method, path.lstrip('/'), params=params, json=json, headers=headers
            )
        except httpx.RequestError as e:
            logger.error(f"{self.service_name} request to {path} failed: {e}")
            raise SourceUnavailableException(self.service_name, str(e)) from e

        return response

    def _raise_for_status(self, response: httpx.Response):
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"{self.service_name} error: {response.status_code} - {response.text}")
            raise SourceUnavailableException(
                self.service_name, response.text or response.reason_phrase, response.status_code
            ) from e

    async def _get_json(self, path: str, params: Optional[Dict] = None) -> Dict[str, Any]:
        response = await self._request('GET', path, params=params)
        self._raise_for_status(response)
        return response.json()

    async def _get_all(self, path: str, params: Optional[Dict] = None,
                       page_size: int = 100) -> list:
        """Fetch every item from a $top/$skip paginated list endpoint"""
        items = []
        skip = 0

        while True:
            page_params = {**(params or {}), '$top': page_size, '$skip': skip}
            page = (await self._get_json(path, params=page_params)).get('value', [])
            items.extend(page)

            if len(page) < page_size:
                break
            skip += page_size

        return items
