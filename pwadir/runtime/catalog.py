from __future__ import annotations

import asyncio
import json
import logging
import os
import threading
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import urlparse

from pwadir.core.config import Settings
from pwadir.core.models import Entry, EntrySummary, ListPage, SortOrder, User


logger = logging.getLogger(__name__)


class CatalogError(RuntimeError):
    pass


class EntryNotFound(CatalogError, LookupError):
    def __init__(self, entry_id: str):
        super().__init__(f"Entry not found: {entry_id}")
        self.entry_id = entry_id


class EntryValidationError(CatalogError):
    """Rejected submission; ``messages`` may use the ``ERROR: <text>.`` format."""

    def __init__(self, messages: list[str]):
        super().__init__("; ".join(messages))
        self.messages = list(messages)


class ManifestUrlMissing(EntryValidationError):
    def __init__(self) -> None:
        super().__init__(["Missing manifestUrl"])


class InvalidManifestUrl(EntryValidationError):
    def __init__(self, manifest_url: str):
        super().__init__([f"pwa.manifestUrl [{manifest_url}] is not a valid URL"])
        self.manifest_url = manifest_url


class MissingUserInformation(EntryValidationError):
    def __init__(self) -> None:
        super().__init__(["Missing user information"])


class Catalog(Protocol):
    async def list(self, start: int, limit: int, sort_order: SortOrder) -> ListPage: ...

    async def count(self) -> int: ...

    async def find(self, entry_id: str) -> Entry: ...

    async def create_or_update(self, manifest_url: str, user: User | None) -> Entry: ...


class SearchIndex(Protocol):
    async def search(self, query: str) -> ListPage: ...


def _sort_key(sort_order: SortOrder):
    if sort_order == SortOrder.SCORE:
        return lambda entry: (entry.score is None, -(entry.score or 0.0), entry.id)
    return lambda entry: (-entry.created_at.timestamp(), entry.id)


def _display_name(manifest_url: str) -> str:
    host = urlparse(manifest_url).hostname or manifest_url
    return host[4:] if host.startswith("www.") else host


class JsonCatalog:
    """Catalog and search index backed by a single JSON document."""

    def __init__(self, settings: Settings):
        self.settings = settings
        # Guards every read-modify-write of the catalog file.
        self._state_lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self.settings.entries_path

    def _read_entries(self, *, strict: bool = False) -> dict[str, Entry]:
        """Load all entries; with ``strict`` an unreadable file raises instead of reading as empty."""
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except Exception as exc:  # noqa: BLE001
            if strict:
                raise CatalogError(f"Catalog file {self.path} is unreadable; refusing to overwrite it") from exc
            logger.warning("Unreadable catalog file %s; treating as empty", self.path)
            return {}
        records = payload.get("entries") if isinstance(payload, dict) else None
        if not isinstance(records, dict):
            return {}

        entries: dict[str, Entry] = {}
        for entry_id, record in records.items():
            if not isinstance(record, dict):
                continue
            try:
                entries[entry_id] = Entry.model_validate({**record, "id": entry_id})
            except ValueError:
                logger.warning("Skipping malformed catalog record %s", entry_id)
        return entries

    def _write_entries(self, entries: dict[str, Entry]) -> None:
        payload: dict[str, Any] = {
            "updated_at": datetime.now(UTC).isoformat(),
            "entries": {entry_id: entry.model_dump(mode="json") for entry_id, entry in entries.items()},
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.{uuid.uuid4().hex}.tmp")
        tmp_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def _list_sync(self, start: int, limit: int, sort_order: SortOrder) -> ListPage:
        ordered = sorted(self._read_entries().values(), key=_sort_key(sort_order))
        window = ordered[start : start + limit]
        return ListPage(
            entries=tuple(entry.summary() for entry in window),
            has_more=start + limit < len(ordered),
        )

    def _search_sync(self, query: str) -> ListPage:
        needle = query.strip().lower()
        matches: list[EntrySummary] = []
        for entry in sorted(self._read_entries().values(), key=_sort_key(SortOrder.NEWEST)):
            haystack = " ".join(
                part for part in (entry.name, entry.short_name, entry.description, entry.manifest_url) if part
            ).lower()
            if needle in haystack:
                matches.append(entry.summary())
        return ListPage(entries=tuple(matches), has_more=False)

    def _save_sync(self, manifest_url: str, user: User | None) -> Entry:
        if not manifest_url:
            raise ManifestUrlMissing()
        parsed = urlparse(manifest_url)
        if parsed.scheme not in {"http", "https"} or not parsed.hostname:
            raise InvalidManifestUrl(manifest_url)
        if user is None or not user.user_id:
            raise MissingUserInformation()

        with self._state_lock:
            entries = self._read_entries(strict=True)
            now = datetime.now(UTC)
            existing = next((entry for entry in entries.values() if entry.manifest_url == manifest_url), None)
            if existing is not None:
                entry = existing.model_copy(update={"creator": user, "updated_at": now})
            else:
                entry = Entry(
                    id=uuid.uuid4().hex[:12],
                    name=_display_name(manifest_url),
                    manifest_url=manifest_url,
                    creator=user,
                    created_at=now,
                    updated_at=now,
                )
            entries[entry.id] = entry
            self._write_entries(entries)
        logger.info("Saved entry %s for %s", entry.id, manifest_url)
        return entry

    async def list(self, start: int, limit: int, sort_order: SortOrder) -> ListPage:
        return await asyncio.to_thread(self._list_sync, start, limit, sort_order)

    async def count(self) -> int:
        entries = await asyncio.to_thread(self._read_entries)
        return len(entries)

    async def find(self, entry_id: str) -> Entry:
        entries = await asyncio.to_thread(self._read_entries)
        entry = entries.get(entry_id)
        if entry is None:
            raise EntryNotFound(entry_id)
        return entry

    async def search(self, query: str) -> ListPage:
        return await asyncio.to_thread(self._search_sync, query)

    async def create_or_update(self, manifest_url: str, user: User | None) -> Entry:
        return await asyncio.to_thread(self._save_sync, manifest_url, user)

    def seed(self, entries: list[Entry]) -> None:
        with self._state_lock:
            current = self._read_entries(strict=True)
            for entry in entries:
                current[entry.id] = entry
            self._write_entries(current)
