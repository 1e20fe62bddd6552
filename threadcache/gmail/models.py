"""
Thread and message records built from Gmail REST responses.

Threads come in two tiers: a slim summary (id, history id, snippet) used for
list views, and a full record carrying every message.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from threadcache.cache.core import ThreadTier
from threadcache.cache.errors import ThreadConstructionError
from threadcache.utils.deferred import DeferredParse
from threadcache.utils.helpers import (
    decode_snippet,
    epoch_ms_to_datetime,
    first_header,
    safe_int,
    safe_str,
)

UNREAD_LABEL = "UNREAD"


@dataclass
class MailMessage:
    """One message of a thread."""
    id: str
    thread_id: Optional[str] = None
    history_id: Optional[str] = None
    internal_date: Optional[datetime] = None
    label_ids: List[str] = field(default_factory=list)
    size_estimate: Optional[int] = None
    subject: Optional[str] = None
    sender: Optional[str] = None
    _snippet: DeferredParse = field(
        default_factory=lambda: DeferredParse(decode_snippet), repr=False, compare=False
    )

    @property
    def snippet(self) -> Optional[str]:
        """Short part of the message text, entity-decoded on first read."""
        return self._snippet.value

    @property
    def unread(self) -> bool:
        return UNREAD_LABEL in self.label_ids

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "MailMessage":
        """
        Build a message from a Gmail ``Message`` resource.

        Raises:
            ThreadConstructionError: The record has no id
        """
        message_id = safe_str(raw.get("id"))
        if not message_id:
            raise ThreadConstructionError("Message id is required")

        headers = (raw.get("payload") or {}).get("headers")
        return cls(
            id=message_id,
            thread_id=safe_str(raw.get("threadId")),
            history_id=safe_str(raw.get("historyId")),
            internal_date=epoch_ms_to_datetime(raw.get("internalDate")),
            label_ids=list(raw.get("labelIds") or []),
            size_estimate=safe_int(raw.get("sizeEstimate")),
            subject=first_header(headers, "Subject"),
            sender=first_header(headers, "From"),
            _snippet=DeferredParse(decode_snippet, raw.get("snippet")),
        )


@dataclass
class SlimMailThread:
    """Summary tier thread: no message contents."""
    tier: ClassVar[ThreadTier] = ThreadTier.SUMMARY

    id: str
    history_id: Optional[str] = None
    snippet: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return False

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "SlimMailThread":
        """
        Build a summary from a Gmail ``Thread`` resource (any format).

        Raises:
            ThreadConstructionError: The record has no id
        """
        thread_id = safe_str(raw.get("id"))
        if not thread_id:
            raise ThreadConstructionError("Thread id is required")
        return cls(
            id=thread_id,
            history_id=safe_str(raw.get("historyId")),
            snippet=decode_snippet(raw.get("snippet")),
        )


@dataclass
class FullMailThread:
    """Complete tier thread: every message, plus subject and read state."""
    tier: ClassVar[ThreadTier] = ThreadTier.COMPLETE

    id: str
    messages: List[MailMessage]
    history_id: Optional[str] = None
    snippet: Optional[str] = None
    subject: Optional[str] = None
    unread: bool = False

    @property
    def is_complete(self) -> bool:
        return True

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "FullMailThread":
        """
        Build a full thread from a Gmail ``Thread`` resource fetched with format=full.

        Raises:
            ThreadConstructionError: The record has no id or no messages
        """
        thread_id = safe_str(raw.get("id"))
        if not thread_id:
            raise ThreadConstructionError("Thread id is required")

        raw_messages = raw.get("messages") or []
        if not raw_messages:
            raise ThreadConstructionError(
                f"Thread {thread_id} has no messages, use SlimMailThread for summaries"
            )

        messages = [MailMessage.from_api(message) for message in raw_messages]
        snippet, unread = _summarize_read_state(messages)
        return cls(
            id=thread_id,
            messages=messages,
            history_id=safe_str(raw.get("historyId")),
            # All messages in a thread share the subject
            subject=messages[0].subject,
            snippet=snippet if snippet is not None else decode_snippet(raw.get("snippet")),
            unread=unread,
        )


def _summarize_read_state(messages: List[MailMessage]) -> Tuple[Optional[str], bool]:
    """
    Pick the snippet shown for a thread and whether it is unread.

    Returns:
        (snippet, unread): last message's snippet if it has been read,
        otherwise the first unread message's snippet
    """
    last = messages[-1]
    if not last.unread:
        return last.snippet, False

    first_unread = next(message for message in messages if message.unread)
    return first_unread.snippet, True
