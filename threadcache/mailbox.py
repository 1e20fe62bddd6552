"""
Mailbox facade: one Gmail client plus one tiered thread cache.

Build it once at startup with ``create_mailbox`` and pass it to whatever
needs thread data.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Union

from config.settings import Settings
from config.settings import settings as default_settings

from .cache import ThreadTier, TieredThreadCache, get_ttl_for_tier
from .gmail import FullMailThread, GmailThreadsClient, ListThreadsResponse, SlimMailThread

logger = logging.getLogger("mailbox")

PACKAGE_LOGGERS = ("cache", "gmail", "mailbox")


class Mailbox:
    """Cached access to the threads of one Gmail account."""

    def __init__(
        self,
        client: GmailThreadsClient,
        cache: Optional[TieredThreadCache] = None,
    ):
        self.client = client
        if cache is None:
            cache = TieredThreadCache(
                fetch_summary=client.get_slim_thread,
                fetch_complete=client.get_full_thread,
            )
        self.threads = cache

    async def get_thread(self, thread_id: str) -> Union[SlimMailThread, FullMailThread]:
        """Get a thread at whatever tier is cached, the summary on a miss."""
        return await self.threads.get(thread_id)

    async def get_full_thread(self, thread_id: str) -> FullMailThread:
        """Get the complete thread, promoting a cached summary if needed."""
        return await self.threads.get_complete(thread_id)

    async def list_threads(self, **params: Any) -> ListThreadsResponse:
        """
        List one page of threads and seed the cache with their summaries.

        Args:
            **params: Forwarded to GmailThreadsClient.list_threads

        Returns:
            The listing as returned by the client
        """
        response = await self.client.list_threads(**params)
        seeded = sum(1 for thread in response.threads if self.threads.seed_summary(thread.id, thread))
        logger.info(f"Listed {len(response.threads)} threads, seeded {seeded} summaries")
        return response

    async def list_full_threads(self, **params: Any) -> List[FullMailThread]:
        """
        List one page of threads and resolve each to its complete record.

        Complete records are fetched concurrently through the cache, so
        threads already cached in full cost no request.
        """
        response = await self.list_threads(**params)
        return list(
            await asyncio.gather(*(self.get_full_thread(thread.id) for thread in response.threads))
        )

    def invalidate_thread(self, thread_id: str) -> bool:
        """Force the next read of a thread to go upstream."""
        return self.threads.invalidate(thread_id)

    def get_stats(self) -> Dict[str, Any]:
        return self.threads.get_stats()


def create_mailbox(
    token_provider: Optional[Callable[[], str]] = None,
    settings: Optional[Settings] = None,
) -> Mailbox:
    """
    Build a Mailbox from settings.

    Args:
        token_provider: Returns a current access token; defaults to the
            configured static ``gmail_access_token``
        settings: Settings instance (module-level settings if None)

    Raises:
        ValueError: No token provider given and no access token configured
    """
    settings = settings or default_settings

    for name in PACKAGE_LOGGERS:
        logging.getLogger(name).setLevel(settings.log_level.upper())

    if token_provider is None:
        if not settings.gmail_access_token:
            raise ValueError("No token_provider given and THREADCACHE_GMAIL_ACCESS_TOKEN is not set")
        static_token = settings.gmail_access_token

        def static_token_provider() -> str:
            return static_token

        token_provider = static_token_provider

    client = GmailThreadsClient(
        token_provider=token_provider,
        base_url=settings.gmail_api_base_url,
        user_id=settings.gmail_user_id,
        timeout=settings.request_timeout_seconds,
        max_concurrent_requests=settings.max_concurrent_requests,
    )
    cache = TieredThreadCache(
        fetch_summary=client.get_slim_thread,
        fetch_complete=client.get_full_thread,
        capacity=settings.thread_cache_capacity,
        summary_policy=get_ttl_for_tier(ThreadTier.SUMMARY, settings),
        complete_policy=get_ttl_for_tier(ThreadTier.COMPLETE, settings),
    )
    return Mailbox(client, cache)
