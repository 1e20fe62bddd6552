"""
Gmail threads access: REST client and thread records.
"""
from .models import FullMailThread, MailMessage, SlimMailThread, UNREAD_LABEL
from .api_client import GmailThreadsClient, ListThreadsResponse

__all__ = [
    # Models
    "FullMailThread",
    "MailMessage",
    "SlimMailThread",
    "UNREAD_LABEL",
    # Client
    "GmailThreadsClient",
    "ListThreadsResponse",
]
