from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class SortOrder(str, Enum):
    NEWEST = "newest"
    SCORE = "score"


DEFAULT_SORT_ORDER = SortOrder.NEWEST


class RenderTarget(str, Enum):
    HTML = "html"
    JSON = "json"


class ViewState(BaseModel):
    """Normalized list request parameters, resolved before any data is fetched."""

    model_config = ConfigDict(frozen=True)

    is_search_mode: bool = False
    has_backlink: bool = False
    main_page: bool = True
    page_number: int = Field(default=1, ge=1)
    sort_order: SortOrder = DEFAULT_SORT_ORDER
    window_start: int = Field(default=0, ge=0)
    window_limit: int = Field(default=32, gt=0)
    window_end: int = Field(default=32, ge=0)
    search_query: str | None = None
    content_only: bool = False


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str | None = None
    name: str | None = None


class EntrySummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    short_name: str | None = None
    description: str = ""
    manifest_url: str
    start_url: str | None = None
    icon_url: str | None = None
    background_color: str | None = None
    score: float | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Entry(EntrySummary):
    theme_color: str | None = None
    raw_manifest: dict[str, Any] = Field(default_factory=dict)
    creator: User | None = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def summary(self) -> EntrySummary:
        return EntrySummary(**self.model_dump(include=set(EntrySummary.model_fields)))


class ListPage(BaseModel):
    model_config = ConfigDict(frozen=True)

    entries: tuple[EntrySummary, ...] = ()
    has_more: bool = False


class AuditResult(BaseModel):
    entry_id: str
    score: float | None = None
    audit_info: dict[str, Any] = Field(default_factory=dict)


class PageMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    url: str


class DisplayModel(BaseModel):
    """Everything a list template needs; built once per request and never mutated."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    url: str

    entries: tuple[EntrySummary, ...]
    has_next_page: bool
    has_previous_page: bool
    next_page_number: int
    previous_page_number: int | None
    current_page_number: int
    sort_order: SortOrder | Literal[False]
    show_newest: bool
    show_score: bool
    start_entry: int

    main_page: bool
    search: bool
    backlink: bool
    search_query: str | None
    content_only: bool

    next_page_url: str | None
    previous_page_url: str | None
    newest_url: str
    score_url: str


class SubmitEntryRequest(BaseModel):
    manifest_url: str | None = None
    id_token: str | None = None


class EntryDraft(BaseModel):
    manifest_url: str = ""


class EntryForm(BaseModel):
    title: str
    description: str
    url: str
    action: str = "Add"
    draft: EntryDraft = Field(default_factory=EntryDraft)
    backlink: bool = True
    submit: bool = True
    content_only: bool = False
    error: str | None = None


class EntryView(BaseModel):
    title: str
    description: str
    url: str
    entry: Entry
    audit: AuditResult | None = None
    backlink: bool = True
    content_only: bool = False
