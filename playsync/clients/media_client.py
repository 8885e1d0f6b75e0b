import logging
import httpx
from typing import Any, Dict, List, Optional
from urllib.parse import quote
from pydantic import ValidationError
from ..models import ItemsPage, MediaItem, ServerEndpoint

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
SEARCH_LIMIT = 100


class MediaServerError(Exception):
    def __init__(self, host: str, message: str):
        super().__init__(f"{host}: {message}")
        self.host = host


class TransportError(MediaServerError):
    """No response was obtained (connection failure, timeout)."""


class ProtocolError(MediaServerError):
    """A response arrived but had a non-2xx status or an undecodable body."""

    def __init__(self, host: str, message: str, status_code: Optional[int] = None):
        super().__init__(host, message)
        self.status_code = status_code


class MediaServerClient:
    def __init__(self, endpoint: ServerEndpoint, timeout: float = 20,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.endpoint = endpoint
        self.client = httpx.AsyncClient(
            base_url=endpoint.host,
            headers={
                "Authorization": f'MediaBrowser Token="{endpoint.token}"',
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def host(self) -> str:
        return self.endpoint.host

    async def __aenter__(self) -> "MediaServerClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self):
        await self.client.aclose()

    async def _request(self, method: str, path: str, params: Dict[str, Any]) -> httpx.Response:
        # httpx reads and releases the body before returning, on every path
        try:
            resp = await self.client.request(method, path, params=params)
        except httpx.TransportError as e:
            raise TransportError(self.host, f"{method} {path} failed: {e!r}") from e
        except httpx.RequestError as e:
            # a response arrived but its body could not be decoded (e.g. bad Content-Encoding)
            raise ProtocolError(self.host, f"{method} {path} failed: {e!r}") from e

        if not resp.is_success:
            raise ProtocolError(
                self.host,
                f"{method} {path} failed: {resp.status_code} {resp.reason_phrase} -> {resp.text}",
                status_code=resp.status_code,
            )
        return resp

    async def _get_page(self, path: str, params: Dict[str, Any]) -> ItemsPage:
        resp = await self._request("GET", path, params)
        try:
            return ItemsPage.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise ProtocolError(self.host, f"malformed response from {path}: {e}", resp.status_code) from e

    async def fetch_played_items(self) -> List[MediaItem]:
        """
        Lists every movie visible to the user, page by page, and keeps the played ones.
        Paging stops at the first short page; TotalRecordCount is not trusted.
        """
        path = f"/Users/{quote(self.endpoint.user_id, safe='')}/Items"
        results: List[MediaItem] = []
        start = 0
        while True:
            page = await self._get_page(path, {
                "IncludeItemTypes": "Movie",
                "Recursive": "true",
                "Limit": PAGE_SIZE,
                "StartIndex": start,
            })
            logger.debug(
                f"{self.host}: page at {start} returned {page.received_count} items "
                f"(server reports {page.total_record_count} total)"
            )
            results.extend(it for it in page.items if it.is_played)

            if page.received_count < PAGE_SIZE:
                break
            start += PAGE_SIZE

        logger.info(f"Found {len(results)} played items on {self.host}")
        return results

    async def search_items(self, term: str) -> List[MediaItem]:
        page = await self._get_page("/Items", {
            "userId": self.endpoint.user_id,
            "limit": SEARCH_LIMIT,
            "recursive": "true",
            "searchTerm": term,
        })
        return page.items

    async def mark_played(self, item_id: str):
        await self._request(
            "POST",
            f"/UserPlayedItems/{quote(item_id, safe='')}",
            {"userId": self.endpoint.user_id},
        )
