from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol

from pwadir.core.config import Settings
from pwadir.core.models import AuditResult


logger = logging.getLogger(__name__)


class AuditStore(Protocol):
    async def find_by_entry_id(self, entry_id: str) -> AuditResult | None: ...


def _decode_audit_info(raw: Any) -> dict[str, Any]:
    # Audit payloads are sometimes stored as serialized JSON text.
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding undecodable audit payload")
            return {}
    if isinstance(raw, dict):
        return raw
    return {}


class JsonAuditStore:
    def __init__(self, settings: Settings):
        self.settings = settings

    def _read_audits(self) -> dict[str, Any]:
        path = self.settings.audits_path
        if not path.exists():
            return {}
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(payload, dict):
                return payload
        except Exception:  # noqa: BLE001
            return {}
        return {}

    def _find_sync(self, entry_id: str) -> AuditResult | None:
        record = self._read_audits().get(entry_id)
        if not isinstance(record, dict):
            return None
        score = record.get("score")
        return AuditResult(
            entry_id=entry_id,
            score=float(score) if isinstance(score, (int, float)) else None,
            audit_info=_decode_audit_info(record.get("audit_info")),
        )

    async def find_by_entry_id(self, entry_id: str) -> AuditResult | None:
        return await asyncio.to_thread(self._find_sync, entry_id)
