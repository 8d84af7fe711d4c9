from __future__ import annotations

import html
import json

from pwadir.core.models import EntryForm, EntryView
from pwadir.web.page_shell import ONLINE_AWARE, SIGNEDIN_AWARE


def entry_section_html(view: EntryView) -> str:
    entry = view.entry
    audit_html = '<p class="audit-missing">No audit available yet.</p>'
    if view.audit is not None:
        score = "n/a" if view.audit.score is None else f"{view.audit.score:.0f}"
        details = html.escape(json.dumps(view.audit.audit_info, indent=2, sort_keys=True))
        audit_html = f"""\
        <div class="audit">
          <p>Score: <strong>{score}</strong></p>
          <pre>{details}</pre>
        </div>"""

    manifest = html.escape(json.dumps(entry.raw_manifest, indent=2, sort_keys=True))
    start_url = entry.start_url or entry.manifest_url
    return f"""\
      <section id="entry" data-entry-id="{html.escape(entry.id, quote=True)}">
        <h2 class="text-base font-bold">{html.escape(entry.name)}</h2>
        <p>{html.escape(entry.description)}</p>
        <p><a href="{html.escape(start_url, quote=True)}" rel="noopener">Open app</a></p>
{audit_html}
        <details><summary>Manifest</summary><pre>{manifest}</pre></details>
      </section>"""


def form_section_html(form: EntryForm) -> str:
    error = ""
    if form.error:
        error = f'<p class="error" role="alert">{html.escape(form.error)}</p>'
    manifest_url = html.escape(form.draft.manifest_url, quote=True)
    return f"""\
      <section id="submit">
        <h2 class="text-base font-bold">{html.escape(form.action)} a PWA</h2>
        {error}
        <form id="pwaForm" action="/pwas/add" method="post">
          <input id="manifestUrl" name="manifestUrl" type="url" value="{manifest_url}" />
          <input id="idToken" name="idToken" type="hidden" value="" />
          <div class="signin-note {ONLINE_AWARE} {SIGNEDIN_AWARE}">Sign in to submit.</div>
          <button id="pwaSubmit" class="{ONLINE_AWARE} {SIGNEDIN_AWARE}" type="submit">{html.escape(form.action)}</button>
        </form>
      </section>"""
