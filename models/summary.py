"""
Meeting summary models as returned by the backend.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class SummaryStatus:
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    NOT_REQUESTED = "not_requested"

    ALL = (PENDING, COMPLETED, FAILED, NOT_REQUESTED)
    # A summary can be (re)requested from these states
    REQUESTABLE = (FAILED, NOT_REQUESTED)


def _first(data: Dict[str, Any], *keys, default=None):
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


@dataclass
class SummaryListItem:
    id: str
    title: str
    status: str = SummaryStatus.PENDING
    created_at: Optional[str] = None
    has_summary: bool = False

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "SummaryListItem":
        status = _first(data, "summary_status", "status", default=SummaryStatus.PENDING)
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title") or "Untitled meeting",
            status=status,
            created_at=_first(data, "created_at", "createdAt", "meetingDate"),
            has_summary=bool(_first(data, "has_summary", "summary", default=False)),
        )


@dataclass
class SummaryPage:
    items: List[SummaryListItem]
    total: int
    limit: int
    offset: int
    has_more: bool

    @classmethod
    def from_api(cls, data: Optional[Dict[str, Any]], limit: int = 10, offset: int = 0) -> "SummaryPage":
        """Accepts both history payload shapes the backend has served:
        ``{items, pagination: {total, limit, offset, hasMore}}`` and
        ``{summaries, pagination: {total, page, limit, totalPages}}``.
        """
        data = data or {}
        raw_items = data.get("items")
        if raw_items is None:
            raw_items = data.get("summaries")
        if not isinstance(raw_items, list):
            raw_items = []
        items = [SummaryListItem.from_api(i) for i in raw_items if isinstance(i, dict)]

        pagination = data.get("pagination") or {}
        page_limit = int(pagination.get("limit") or limit or len(items) or 1)
        total = int(pagination.get("total", len(items)))

        if "offset" in pagination:
            page_offset = int(pagination["offset"])
        elif "page" in pagination:
            page_offset = (max(int(pagination["page"]), 1) - 1) * page_limit
        else:
            page_offset = offset

        if "hasMore" in pagination:
            has_more = bool(pagination["hasMore"])
        elif "totalPages" in pagination:
            has_more = (page_offset // page_limit) + 1 < int(pagination["totalPages"])
        else:
            has_more = page_offset + len(items) < total

        return cls(items=items, total=total, limit=page_limit, offset=page_offset, has_more=has_more)

    @property
    def page(self) -> int:
        return self.offset // self.limit + 1

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total / self.limit))

    @property
    def has_previous(self) -> bool:
        return self.offset > 0


@dataclass
class TranscriptItem:
    text: str
    timestamp: Optional[str] = None
    speaker: Optional[str] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "TranscriptItem":
        return cls(
            text=data.get("text") or "",
            timestamp=data.get("timestamp"),
            speaker=data.get("speaker"),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
        )

    def to_api(self) -> Dict[str, Any]:
        payload = {"text": self.text}
        if self.timestamp is not None:
            payload["timestamp"] = self.timestamp
        if self.speaker is not None:
            payload["speaker"] = self.speaker
        if self.start_time is not None:
            payload["startTime"] = self.start_time
        if self.end_time is not None:
            payload["endTime"] = self.end_time
        return payload


@dataclass
class MeetingMetadata:
    duration_minutes: Optional[float] = None
    participants: List[str] = field(default_factory=list)
    meeting_title: Optional[str] = None
    meeting_url: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    KNOWN_KEYS = ("duration_minutes", "participants", "meeting_title", "meeting_url")

    @classmethod
    def from_api(cls, data: Optional[Dict[str, Any]]) -> Optional["MeetingMetadata"]:
        if not data:
            return None
        return cls(
            duration_minutes=data.get("duration_minutes"),
            participants=list(data.get("participants") or []),
            meeting_title=data.get("meeting_title"),
            meeting_url=data.get("meeting_url"),
            extra={k: v for k, v in data.items() if k not in cls.KNOWN_KEYS},
        )


@dataclass
class SummaryDetail:
    id: str
    title: Optional[str]
    summary_text: Optional[str]
    transcript_text: str
    status: str
    created_at: Optional[str] = None
    transcript_items: List[TranscriptItem] = field(default_factory=list)
    metadata: Optional[MeetingMetadata] = None
    duration_minutes: Optional[float] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "SummaryDetail":
        raw_items = data.get("transcript_json") or []
        metadata = MeetingMetadata.from_api(data.get("meeting_metadata"))
        duration = data.get("meeting_duration_minutes")
        if duration is None and metadata is not None:
            duration = metadata.duration_minutes
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title"),
            summary_text=data.get("summary_text"),
            transcript_text=data.get("transcript_text") or "",
            status=_first(data, "summary_status", "status", default=SummaryStatus.PENDING),
            created_at=_first(data, "created_at", "createdAt"),
            transcript_items=[TranscriptItem.from_api(i) for i in raw_items if isinstance(i, dict)],
            metadata=metadata,
            duration_minutes=duration,
        )

    @property
    def display_title(self) -> str:
        return self.title or "Meeting Summary"

    @property
    def is_pending(self) -> bool:
        return self.status == SummaryStatus.PENDING

    @property
    def is_settled(self) -> bool:
        return not self.is_pending

    @property
    def can_request(self) -> bool:
        return self.status in SummaryStatus.REQUESTABLE

    @property
    def has_summary(self) -> bool:
        return bool(self.summary_text)
