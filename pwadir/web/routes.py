from __future__ import annotations

import logging
import re

from fastapi import APIRouter, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response

from pwadir.core.config import Settings
from pwadir.core.list_view import compose_display_model, fetch_list_page
from pwadir.core.models import (
    DisplayModel,
    EntryDraft,
    EntryForm,
    EntryView,
    PageMetadata,
    RenderTarget,
    SortOrder,
    SubmitEntryRequest,
)
from pwadir.core.pagination import parse_flag, resolve_view_state
from pwadir.runtime.audits import AuditStore
from pwadir.runtime.catalog import Catalog, EntryNotFound, EntryValidationError, SearchIndex
from pwadir.runtime.identity import IdentityVerifier, InvalidToken
from pwadir.web.page_entry import entry_section_html, form_section_html
from pwadir.web.page_list import list_section_html
from pwadir.web.page_shell import header_html, page_html


logger = logging.getLogger(__name__)

_ERROR_LINE = re.compile(r"^ERROR:\s+(.*)\.$")


def format_validation_messages(messages: list[str]) -> str:
    """Join ``ERROR: <text>.`` messages as ``text, text``; unrecognized lines pass through."""
    cleaned: list[str] = []
    for message in messages:
        match = _ERROR_LINE.match(message)
        cleaned.append(match.group(1) if match else message)
    return ", ".join(cleaned)


def normalize_manifest_url(raw: str | None) -> str:
    manifest_url = (raw or "").strip()
    if manifest_url.startswith("http://"):
        manifest_url = "https://" + manifest_url[len("http://") :]
    return manifest_url


def build_web_router(
    *,
    settings: Settings,
    catalog: Catalog,
    search_index: SearchIndex,
    audit_store: AuditStore,
    identity: IdentityVerifier,
) -> APIRouter:
    router = APIRouter()
    site_title = settings.site_title

    def _metadata(request: Request, title: str | None = None, description: str | None = None) -> PageMetadata:
        return PageMetadata(
            title=title or site_title,
            description=description or f"{site_title}: A Directory of Progressive Web Apps",
            url=str(request.url),
        )

    async def _list_display_model(request: Request) -> DisplayModel:
        view_state = resolve_view_state(request.query_params)
        try:
            page = await fetch_list_page(view_state, catalog, search_index)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Listing entries failed for %s", request.url)
            raise HTTPException(status_code=500, detail=f"Failed loading entries: {exc}") from exc
        return compose_display_model(view_state, page, _metadata(request))

    def _render_list(display: DisplayModel, target: RenderTarget) -> Response:
        if target == RenderTarget.JSON:
            return JSONResponse(display.model_dump(mode="json"))

        section = list_section_html(display)
        if display.content_only:
            return HTMLResponse(section)

        current_tab = None
        if display.main_page:
            current_tab = SortOrder.SCORE.value if display.show_score else SortOrder.NEWEST.value
        header = header_html(
            site_title=site_title,
            backlink=display.backlink,
            subtitle=display.main_page,
            search_open=display.search,
            show_tabs=display.main_page,
            current_tab=current_tab,
            search_query=display.search_query,
        )
        return HTMLResponse(
            page_html(
                title=display.title,
                description=display.description,
                header=header,
                section=section,
                config=settings.client_config(),
            )
        )

    def _chrome_page(title: str, description: str, section: str) -> HTMLResponse:
        header = header_html(
            site_title=site_title,
            backlink=True,
            subtitle=False,
            search_open=False,
            show_tabs=False,
            current_tab=None,
        )
        return HTMLResponse(
            page_html(
                title=title,
                description=description,
                header=header,
                section=section,
                config=settings.client_config(),
            )
        )

    def _render_form(request: Request, draft: EntryDraft, error: str | None = None) -> HTMLResponse:
        metadata = _metadata(
            request,
            title=f"{site_title} - Submit a PWA",
            description=f"{site_title}: Submit a Progressive Web App",
        )
        form = EntryForm(
            title=metadata.title,
            description=metadata.description,
            url=metadata.url,
            draft=draft,
            content_only=parse_flag(request.query_params.get("contentOnly")),
            error=error,
        )
        section = form_section_html(form)
        if form.content_only:
            return HTMLResponse(section)
        return _chrome_page(form.title, form.description, section)

    async def _entry_view(request: Request, entry_id: str) -> EntryView:
        try:
            entry = await catalog.find(entry_id)
        except EntryNotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except Exception as exc:  # noqa: BLE001
            logger.exception("Loading entry %s failed", entry_id)
            raise HTTPException(status_code=500, detail=f"Failed loading entry: {exc}") from exc

        try:
            audit = await audit_store.find_by_entry_id(entry_id)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Loading audit for %s failed", entry_id)
            raise HTTPException(status_code=500, detail=f"Failed loading audit: {exc}") from exc

        metadata = _metadata(
            request,
            title=f"{site_title}: {entry.name}",
            description=f"{site_title}: {entry.name} - {entry.description}",
        )
        return EntryView(
            title=metadata.title,
            description=metadata.description,
            url=metadata.url,
            entry=entry,
            audit=audit,
            content_only=parse_flag(request.query_params.get("contentOnly")),
        )

    @router.get("/")
    def home() -> RedirectResponse:
        return RedirectResponse("/pwas")

    @router.get("/pwas", response_class=HTMLResponse)
    async def list_entries(request: Request) -> Response:
        return _render_list(await _list_display_model(request), RenderTarget.HTML)

    @router.get("/pwas/search", response_class=HTMLResponse)
    async def search_entries(request: Request) -> Response:
        return _render_list(await _list_display_model(request), RenderTarget.HTML)

    @router.get("/api/pwas")
    async def api_list_entries(request: Request) -> Response:
        return _render_list(await _list_display_model(request), RenderTarget.JSON)

    @router.get("/api/pwas/search")
    async def api_search_entries(request: Request) -> Response:
        return _render_list(await _list_display_model(request), RenderTarget.JSON)

    @router.get("/pwas/add", response_class=HTMLResponse)
    def add_entry_form(request: Request) -> HTMLResponse:
        return _render_form(request, EntryDraft())

    @router.post("/pwas/add")
    async def add_entry(
        request: Request,
        manifest_url: str | None = Form(default=None, alias="manifestUrl"),
        id_token: str | None = Form(default=None, alias="idToken"),
    ) -> Response:
        # Field names match the inputs rendered by form_section_html.
        payload = SubmitEntryRequest(manifest_url=manifest_url, id_token=id_token)
        manifest_url = normalize_manifest_url(payload.manifest_url)
        draft = EntryDraft(manifest_url=manifest_url)
        if not manifest_url or not payload.id_token:
            error = "user not logged in" if manifest_url else "no manifest provided"
            return _render_form(request, draft, error=error)

        try:
            user = await identity.verify(payload.id_token)
            entry = await catalog.create_or_update(manifest_url, user)
        except InvalidToken as exc:
            return _render_form(request, draft, error=str(exc))
        except EntryValidationError as exc:
            return _render_form(request, draft, error=format_validation_messages(exc.messages))

        return RedirectResponse(f"/pwas/{entry.id}", status_code=303)

    @router.get("/pwas/{entry_id}", response_class=HTMLResponse)
    async def view_entry(request: Request, entry_id: str) -> HTMLResponse:
        view = await _entry_view(request, entry_id)
        section = entry_section_html(view)
        if view.content_only:
            return HTMLResponse(section)
        return _chrome_page(view.title, view.description, section)

    @router.get("/api/pwas/{entry_id}")
    async def api_view_entry(request: Request, entry_id: str) -> dict:
        view = await _entry_view(request, entry_id)
        return view.model_dump(mode="json")

    return router
