from __future__ import annotations

from datetime import UTC, datetime

from fastapi import FastAPI

from pwadir.core.config import Settings, get_settings
from pwadir.runtime.audits import AuditStore, JsonAuditStore
from pwadir.runtime.catalog import Catalog, JsonCatalog, SearchIndex
from pwadir.runtime.identity import IdentityVerifier, TokenInfoVerifier
from pwadir.web.routes import build_web_router


def create_app(
    settings: Settings,
    *,
    catalog: Catalog | None = None,
    search_index: SearchIndex | None = None,
    audit_store: AuditStore | None = None,
    identity: IdentityVerifier | None = None,
) -> FastAPI:
    json_catalog = JsonCatalog(settings)
    application = FastAPI(title="PWA Directory", version="0.1.0")
    application.include_router(
        build_web_router(
            settings=settings,
            catalog=catalog or json_catalog,
            search_index=search_index or json_catalog,
            audit_store=audit_store or JsonAuditStore(settings),
            identity=identity or TokenInfoVerifier(settings),
        )
    )

    @application.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "time": datetime.now(UTC).isoformat()}

    return application


app = create_app(get_settings())
