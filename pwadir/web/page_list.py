from __future__ import annotations

import html

from pwadir.core.models import DisplayModel, EntrySummary
from pwadir.web.page_shell import ONLINE_AWARE


def _entry_card_html(entry: EntrySummary) -> str:
    href = f"/pwas/{html.escape(entry.id, quote=True)}"
    icon = ""
    if entry.icon_url:
        icon = f'<img class="w-12 h-12" src="{html.escape(entry.icon_url, quote=True)}" alt="" />'
    score = ""
    if entry.score is not None:
        score = f'<span class="score">{entry.score:.0f}</span>'
    style = ""
    if entry.background_color:
        style = f' style="background-color: {html.escape(entry.background_color, quote=True)}"'
    return f"""\
          <a class="card {ONLINE_AWARE}" href="{href}"{style}>
            {icon}
            <span class="name">{html.escape(entry.name)}</span>
            {score}
          </a>"""


def list_section_html(display: DisplayModel) -> str:
    if display.entries:
        cards = "\n".join(_entry_card_html(entry) for entry in display.entries)
    elif display.search:
        cards = f'          <p class="empty">No results for "{html.escape(display.search_query or "")}".</p>'
    else:
        cards = '          <p class="empty">No apps yet.</p>'

    links: list[str] = []
    if display.has_previous_page and display.previous_page_url:
        links.append(f'<a id="previous-page" href="{html.escape(display.previous_page_url, quote=True)}">Previous</a>')
    if display.has_next_page and display.next_page_url:
        links.append(f'<a id="next-page" href="{html.escape(display.next_page_url, quote=True)}">Next</a>')

    heading = "Search results" if display.search else f"Showing from #{display.start_entry}"
    return f"""\
      <section id="list" data-page="{display.current_page_number}">
        <h2 class="text-sm">{html.escape(heading)}</h2>
        <div class="grid grid-cols-4 gap-3">
{cards}
        </div>
        <div class="pagination flex gap-3">{" ".join(links)}</div>
      </section>"""
