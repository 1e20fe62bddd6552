"""
Async client for the Gmail threads REST endpoints.

HTTP goes through ``requests`` on a worker thread; an asyncio semaphore
bounds how many upstream requests run at once. Token acquisition is the
caller's job: the client only asks ``token_provider`` for a bearer token.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import requests

from .models import FullMailThread, SlimMailThread

logger = logging.getLogger("gmail.api_client")

DEFAULT_BASE_URL = "https://gmail.googleapis.com/gmail/v1"

THREAD_FORMATS = ("full", "metadata", "minimal")


@dataclass
class ListThreadsResponse:
    """One page of a thread listing."""
    threads: List[SlimMailThread] = field(default_factory=list)
    next_page_token: Optional[str] = None
    result_size_estimate: Optional[int] = None
    params: Dict[str, Any] = field(default_factory=dict)


class GmailThreadsClient:
    """
    Thin async wrapper over ``users.threads.get`` and ``users.threads.list``.

    Errors are not caught: HTTP failures surface as ``requests.HTTPError``
    and transport failures as ``requests.RequestException``.
    """

    def __init__(
        self,
        token_provider: Callable[[], str],
        base_url: str = DEFAULT_BASE_URL,
        user_id: str = "me",
        timeout: float = 30.0,
        max_concurrent_requests: int = 10,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            token_provider: Returns a current OAuth access token
            base_url: Gmail REST root, without trailing slash
            user_id: Mailbox owner, "me" for the authenticated user
            timeout: Per-request timeout in seconds
            max_concurrent_requests: Upper bound on simultaneous upstream calls
            session: Pre-configured requests session (a new one by default)
        """
        self._token_provider = token_provider
        self._base_url = base_url.rstrip("/")
        self._user_id = user_id
        self._timeout = timeout
        self._max_concurrent_requests = max_concurrent_requests
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._semaphore_loop: Optional[asyncio.AbstractEventLoop] = None
        self._session = session or requests.Session()

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token_provider()}",
            "Accept": "application/json",
        }

    def _request(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self._base_url}/users/{self._user_id}/{path}"
        response = self._session.get(
            url,
            headers=self._get_headers(),
            params=params,
            timeout=self._timeout,
        )
        response.raise_for_status()
        return response.json()

    def _get_semaphore(self) -> asyncio.Semaphore:
        # One semaphore per running event loop
        loop = asyncio.get_running_loop()
        if self._semaphore is None or self._semaphore_loop is not loop:
            self._semaphore = asyncio.Semaphore(self._max_concurrent_requests)
            self._semaphore_loop = loop
        return self._semaphore

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        async with self._get_semaphore():
            logger.debug(f"GET {path} {params}")
            return await asyncio.to_thread(self._request, path, params)

    # =========================================================================
    # Threads
    # =========================================================================

    async def get_thread(self, thread_id: str, format: str = "full") -> Dict[str, Any]:
        """
        Fetch one raw thread resource.

        Args:
            thread_id: Gmail thread id
            format: One of "full", "metadata", "minimal"

        Returns:
            The thread resource as decoded JSON
        """
        if format not in THREAD_FORMATS:
            raise ValueError(f"Unsupported thread format: {format}")
        return await self._get(f"threads/{thread_id}", {"format": format})

    async def get_slim_thread(self, thread_id: str) -> SlimMailThread:
        """Fetch the summary tier of a thread."""
        raw = await self.get_thread(thread_id, format="minimal")
        return SlimMailThread.from_api(raw)

    async def get_full_thread(self, thread_id: str) -> FullMailThread:
        """Fetch the complete tier of a thread."""
        raw = await self.get_thread(thread_id, format="full")
        return FullMailThread.from_api(raw)

    async def list_threads(
        self,
        query: Optional[str] = None,
        label_ids: Optional[List[str]] = None,
        max_results: Optional[int] = None,
        page_token: Optional[str] = None,
        include_spam_trash: bool = False,
    ) -> ListThreadsResponse:
        """
        List one page of threads as summaries.

        Args:
            query: Gmail search query, e.g. "is:unread"
            label_ids: Only threads carrying all of these labels
            max_results: Page size
            page_token: Token from a previous page
            include_spam_trash: Include SPAM and TRASH threads

        Returns:
            ListThreadsResponse with slim threads and paging info
        """
        params: Dict[str, Any] = {
            "q": query,
            "labelIds": label_ids,
            "maxResults": max_results,
            "pageToken": page_token,
            "includeSpamTrash": "true" if include_spam_trash else None,
        }
        params = {k: v for k, v in params.items() if v is not None}

        data = await self._get("threads", params)
        threads = [SlimMailThread.from_api(raw) for raw in data.get("threads") or []]
        logger.debug(f"Listed {len(threads)} threads (estimate={data.get('resultSizeEstimate')})")
        return ListThreadsResponse(
            threads=threads,
            next_page_token=data.get("nextPageToken"),
            result_size_estimate=data.get("resultSizeEstimate"),
            params=params,
        )
