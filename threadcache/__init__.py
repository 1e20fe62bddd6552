"""
Cached, rate-bounded access to Gmail threads.
"""
from .cache import (
    BoundedKeyedCache,
    EntryState,
    FetchFailure,
    InvalidFetchResult,
    ThreadCacheError,
    ThreadConstructionError,
    ThreadTier,
    TieredThreadCache,
    TtlCell,
)
from .gmail import FullMailThread, GmailThreadsClient, MailMessage, SlimMailThread
from .mailbox import Mailbox, create_mailbox

__all__ = [
    "BoundedKeyedCache",
    "EntryState",
    "FetchFailure",
    "InvalidFetchResult",
    "ThreadCacheError",
    "ThreadConstructionError",
    "ThreadTier",
    "TieredThreadCache",
    "TtlCell",
    "FullMailThread",
    "GmailThreadsClient",
    "MailMessage",
    "SlimMailThread",
    "Mailbox",
    "create_mailbox",
]
