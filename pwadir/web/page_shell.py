"""Shared HTML shell: <head>, header chrome, client config, and page assembly."""

from __future__ import annotations

import html
import json
from typing import Any

ONLINE_AWARE = "online-aware"
SIGNEDIN_AWARE = "signedin-aware"


def _hidden(visible: bool) -> str:
    return "" if visible else " hidden"


def head_html(title: str, description: str) -> str:
    """Return everything inside <head>: meta, Tailwind, and the chrome CSS."""
    return f"""\
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>{html.escape(title)}</title>
    <meta name="description" content="{html.escape(description, quote=True)}" />
    <link rel="manifest" href="/manifest.json" />
    <script src="https://cdn.tailwindcss.com"></script>
    <style>
      .hidden {{ display: none; }}
      .tab {{ padding: 6px 14px; border-bottom: 2px solid transparent; }}
      .tab.activetab {{ border-bottom-color: #3b82f6; color: #1e40af; }}
      .card {{ display: block; transition: opacity .5s ease-in-out; }}
      .offline-status {{ opacity: 0; position: fixed; bottom: 12px; left: 12px; }}
    </style>"""


def header_html(
    *,
    site_title: str,
    backlink: bool,
    subtitle: bool,
    search_open: bool,
    show_tabs: bool,
    current_tab: str | None,
    search_query: str | None = None,
) -> str:
    """Return the header chrome whose visibility the client shell manages per route."""

    def tab(tab_id: str, label: str, href: str) -> str:
        active = " activetab" if current_tab == tab_id else ""
        return (
            f'<a id="{tab_id}" class="tab{active}{_hidden(show_tabs)}" href="{href}">{label}</a>'
        )

    query_value = html.escape(search_query or "", quote=True)
    return f"""\
      <header class="flex items-center justify-between pb-3 mb-3 border-b">
        <div class="flex items-center gap-3">
          <a id="backlink" class="backlink{_hidden(backlink)}" href="/pwas">&larr;</a>
          <div>
            <h1 class="text-lg font-bold"><a href="/pwas">{html.escape(site_title)}</a></h1>
            <p id="subtitle" class="text-xs{_hidden(subtitle)}">A directory of Progressive Web Apps</p>
          </div>
        </div>
        <nav class="flex items-center gap-2">
          {tab("newest", "Newest", "/pwas")}
          {tab("score", "Top score", "/pwas?sort=score")}
          <form id="search" class="search{_hidden(search_open)}" action="/pwas/search" method="get">
            <input id="search-input" name="query" type="search" value="{query_value}" placeholder="Search" />
          </form>
          <button id="search-button" type="button">Search</button>
          <button id="auth-button" class="{ONLINE_AWARE} {SIGNEDIN_AWARE}" type="button">Login</button>
        </nav>
      </header>"""


def offline_banner_html() -> str:
    return f'<div class="offline-status {ONLINE_AWARE}"></div>'


def config_script_html(config: dict[str, Any]) -> str:
    payload = json.dumps(config, sort_keys=True).replace("</", "<\\/")
    return f'<script id="config" type="application/json">{payload}</script>'


def page_html(*, title: str, description: str, header: str, section: str, config: dict[str, Any]) -> str:
    return (
        '<!doctype html>\n<html lang="en">\n  <head>\n'
        + head_html(title, description)
        + "\n  </head>\n"
        + '  <body class="text-sm leading-relaxed min-h-screen">\n'
        + '    <div class="max-w-5xl mx-auto px-5 py-4">\n'
        + header
        + "\n"
        + '      <main id="content">\n'
        + section
        + "\n      </main>\n"
        + "    </div>\n"
        + "    "
        + offline_banner_html()
        + "\n    "
        + config_script_html(config)
        + "\n  </body>\n</html>\n"
    )
