from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

from fastapi import FastAPI
from fastapi.testclient import TestClient

from pwadir.client.dom import parse_html
from pwadir.core.config import Settings
from pwadir.core.models import Entry, ListPage, SortOrder, User
from pwadir.runtime.audits import JsonAuditStore
from pwadir.runtime.catalog import JsonCatalog
from pwadir.runtime.identity import InvalidToken
from pwadir.web.routes import build_web_router, format_validation_messages, normalize_manifest_url


class FakeIdentity:
    def __init__(self) -> None:
        self.tokens: list[str] = []

    async def verify(self, token: str) -> User:
        self.tokens.append(token)
        if token != "good-token":
            raise InvalidToken("Identity token was issued for a different client")
        return User(user_id="user-1", email="dev@example.com")


class FailingCatalog:
    async def list(self, start: int, limit: int, sort_order: SortOrder) -> ListPage:
        raise RuntimeError("datastore offline")


class RecordingSearch:
    def __init__(self) -> None:
        self.queries: list[str] = []

    async def search(self, query: str) -> ListPage:
        self.queries.append(query)
        return ListPage()


def _build_settings(tmp_path: Path) -> Settings:
    settings = Settings(_env_file=None, PWADIR_DATA_DIR=str(tmp_path / "data"), PWADIR_CLIENT_ID="client-123")
    settings.ensure_runtime_dirs()
    return settings


def _seed(settings: Settings, count: int) -> JsonCatalog:
    base = datetime(2026, 1, 1, tzinfo=UTC)
    catalog = JsonCatalog(settings)
    catalog.seed(
        [
            Entry(
                id=f"app-{index:02d}",
                name=f"App {index:02d}",
                manifest_url=f"https://app{index}.example/manifest.json",
                score=float(index),
                created_at=base + timedelta(hours=index),
            )
            for index in range(count)
        ]
    )
    return catalog


def _build_client(tmp_path: Path, *, count: int = 0, catalog=None, search_index=None):
    settings = _build_settings(tmp_path)
    json_catalog = _seed(settings, count)
    identity = FakeIdentity()
    app = FastAPI()
    app.include_router(
        build_web_router(
            settings=settings,
            catalog=catalog or json_catalog,
            search_index=search_index or json_catalog,
            audit_store=JsonAuditStore(settings),
            identity=identity,
        )
    )
    return TestClient(app), settings, identity


def test_home_redirects_to_list(tmp_path: Path) -> None:
    client, _, _ = _build_client(tmp_path)
    resp = client.get("/", follow_redirects=False)
    assert resp.status_code in {302, 307}
    assert resp.headers["location"] == "/pwas"


def test_list_page_renders_cards_and_chrome(tmp_path: Path) -> None:
    client, _, _ = _build_client(tmp_path, count=3)
    resp = client.get("/pwas")
    assert resp.status_code == 200

    document = parse_html(resp.text)
    cards = document.query_selector_all("a.card.online-aware")
    assert [card.get_attribute("href") for card in cards] == ["/pwas/app-02", "/pwas/app-01", "/pwas/app-00"]
    assert document.get_element_by_id("newest").class_list.contains("activetab")
    assert not document.get_element_by_id("subtitle").class_list.contains("hidden")
    assert document.get_element_by_id("backlink").class_list.contains("hidden")
    assert document.get_element_by_id("search").class_list.contains("hidden")
    assert document.query_selector("div.offline-status.online-aware") is not None

    config = json.loads(document.get_element_by_id("config").text_content)
    assert config == {"client_id": "client-123", "ga_id": None}


def test_api_list_paginates(tmp_path: Path) -> None:
    client, _, _ = _build_client(tmp_path, count=40)

    first = client.get("/api/pwas").json()
    assert len(first["entries"]) == 32
    assert first["has_next_page"] is True
    assert first["has_previous_page"] is False
    assert first["sort_order"] is False
    assert first["next_page_url"] == "/pwas?page=2"

    second = client.get("/api/pwas", params={"page": "2"}).json()
    assert len(second["entries"]) == 8
    assert second["has_next_page"] is False
    assert second["previous_page_number"] is None
    assert second["previous_page_url"] == "/pwas"
    assert second["start_entry"] == 33


def test_api_list_score_sort_and_malformed_page(tmp_path: Path) -> None:
    client, _, _ = _build_client(tmp_path, count=3)
    data = client.get("/api/pwas", params={"sort": "score", "page": "abc"}).json()
    assert data["current_page_number"] == 1
    assert data["sort_order"] == "score"
    assert data["show_score"] is True
    assert [entry["id"] for entry in data["entries"]] == ["app-02", "app-01", "app-00"]


def test_search_bypasses_catalog(tmp_path: Path) -> None:
    search = RecordingSearch()
    client, _, _ = _build_client(tmp_path, catalog=FailingCatalog(), search_index=search)

    resp = client.get("/pwas/search", params={"query": "maps"})
    assert resp.status_code == 200
    assert search.queries == ["maps"]

    document = parse_html(resp.text)
    assert not document.get_element_by_id("backlink").class_list.contains("hidden")
    assert not document.get_element_by_id("search").class_list.contains("hidden")
    assert document.get_element_by_id("search-input").value == "maps"

    data = client.get("/api/pwas/search", params={"query": "maps"}).json()
    assert data["search"] is True
    assert data["backlink"] is True
    assert data["main_page"] is False


def test_list_failure_returns_500(tmp_path: Path) -> None:
    client, _, _ = _build_client(tmp_path, catalog=FailingCatalog())
    resp = client.get("/api/pwas")
    assert resp.status_code == 500
    assert "datastore offline" in resp.json()["detail"]


def test_content_only_returns_fragment(tmp_path: Path) -> None:
    client, _, _ = _build_client(tmp_path, count=1)
    resp = client.get("/pwas", params={"contentOnly": "true"})
    assert resp.status_code == 200
    assert resp.text.lstrip().startswith('<section id="list"')
    assert "<header" not in resp.text


def test_entry_page_and_api(tmp_path: Path) -> None:
    client, settings, _ = _build_client(tmp_path, count=1)
    settings.audits_path.write_text(
        json.dumps({"app-00": {"score": 91, "audit_info": {"installable": True}}}),
        encoding="utf-8",
    )

    resp = client.get("/pwas/app-00")
    assert resp.status_code == 200
    document = parse_html(resp.text)
    assert document.get_element_by_id("entry").dataset["entry-id"] == "app-00"
    assert "Score: <strong>91</strong>" in resp.text

    data = client.get("/api/pwas/app-00").json()
    assert data["entry"]["name"] == "App 00"
    assert data["audit"]["score"] == 91.0
    assert data["backlink"] is True


def test_unknown_entry_returns_404(tmp_path: Path) -> None:
    client, _, _ = _build_client(tmp_path)
    assert client.get("/pwas/missing").status_code == 404
    assert client.get("/api/pwas/missing").status_code == 404


def test_add_form_renders_gated_controls(tmp_path: Path) -> None:
    client, _, _ = _build_client(tmp_path)
    document = parse_html(client.get("/pwas/add").text)
    assert document.query_selector("button#pwaSubmit.online-aware.signedin-aware") is not None
    assert document.query_selector("div.signin-note.online-aware.signedin-aware") is not None
    assert document.get_element_by_id("idToken").get_attribute("type") == "hidden"


def test_submit_requires_manifest_and_token(tmp_path: Path) -> None:
    client, _, identity = _build_client(tmp_path)

    resp = client.post("/pwas/add", data={"manifestUrl": "", "idToken": "good-token"})
    assert resp.status_code == 200
    assert "no manifest provided" in resp.text

    resp = client.post("/pwas/add", data={"manifestUrl": "https://a.example/manifest.json"})
    assert "user not logged in" in resp.text
    assert identity.tokens == []


def test_submit_rejects_bad_token(tmp_path: Path) -> None:
    client, _, _ = _build_client(tmp_path)
    resp = client.post("/pwas/add", data={"manifestUrl": "https://a.example/m.json", "idToken": "forged"})
    assert resp.status_code == 200
    assert "different client" in resp.text


def test_submit_creates_entry_and_redirects(tmp_path: Path) -> None:
    client, settings, _ = _build_client(tmp_path)
    resp = client.post(
        "/pwas/add",
        data={"manifestUrl": "  http://www.apps.example/manifest.json ", "idToken": "good-token"},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    entry_id = resp.headers["location"].rsplit("/", 1)[-1]

    stored = json.loads(settings.entries_path.read_text(encoding="utf-8"))["entries"][entry_id]
    assert stored["manifest_url"] == "https://www.apps.example/manifest.json"
    assert stored["name"] == "apps.example"
    assert stored["creator"]["user_id"] == "user-1"


def test_rendered_add_form_submits_as_the_browser_would(tmp_path: Path) -> None:
    client, settings, identity = _build_client(tmp_path)
    document = parse_html(client.get("/pwas/add").text)
    form = document.get_element_by_id("pwaForm")
    assert form.get_attribute("method") == "post"

    document.get_element_by_id("manifestUrl").value = "https://app.example/manifest.json"
    document.get_element_by_id("idToken").value = "good-token"
    fields = {field.get_attribute("name"): field.value for field in form.query_selector_all("input")}

    resp = client.post(form.get_attribute("action"), data=fields, follow_redirects=False)

    assert resp.status_code == 303
    assert identity.tokens == ["good-token"]
    entry_id = resp.headers["location"].rsplit("/", 1)[-1]
    stored = json.loads(settings.entries_path.read_text(encoding="utf-8"))["entries"]
    assert stored[entry_id]["manifest_url"] == "https://app.example/manifest.json"


def test_submit_reports_validation_messages(tmp_path: Path) -> None:
    client, _, _ = _build_client(tmp_path)
    resp = client.post("/pwas/add", data={"manifestUrl": "notaurl", "idToken": "good-token"})
    assert resp.status_code == 200
    assert "pwa.manifestUrl [notaurl] is not a valid URL" in resp.text


def test_format_validation_messages() -> None:
    messages = ["ERROR: Manifest is missing a name.", "ERROR: Icon too small.", "plain message"]
    assert format_validation_messages(messages) == "Manifest is missing a name, Icon too small, plain message"


def test_normalize_manifest_url() -> None:
    assert normalize_manifest_url(" http://a.example/m.json ") == "https://a.example/m.json"
    assert normalize_manifest_url("https://a.example/m.json") == "https://a.example/m.json"
    assert normalize_manifest_url(None) == ""
