import pytest

from pwadir.client.dom import Event, parse_html


MARKUP = """\
<div id="root" class="panel">
  <button id="go" class="online-aware signedin-aware" disabled>Go</button>
  <a class="card online-aware" href="/pwas/a" style="opacity: 1; color: red">A</a>
  <input id="name" value="initial">
  <p data-page="2">Text <b>bold</b></p>
</div>
"""


def test_parse_builds_tree_and_attributes() -> None:
    document = parse_html(MARKUP)
    root = document.get_element_by_id("root")
    assert root is not None
    assert [child.tag for child in root.children] == ["button", "a", "input", "p"]

    button = document.get_element_by_id("go")
    assert button.disabled is True
    assert button.text == "Go"

    card = document.query_selector("a.card")
    assert card.style == {"opacity": "1", "color": "red"}
    assert document.query_selector("p").text_content == "Text bold"
    assert document.query_selector("p").dataset["page"] == "2"


def test_compound_and_grouped_selectors() -> None:
    document = parse_html(MARKUP)
    assert document.query_selector("button.online-aware.signedin-aware").id == "go"
    assert document.query_selector("div.online-aware") is None
    assert [el.tag for el in document.query_selector_all("#go, a.card")] == ["button", "a"]
    assert len(document.query_selector_all(".online-aware")) == 2
    with pytest.raises(ValueError):
        document.query_selector_all("div > a")


def test_class_list_and_dataset_mutation() -> None:
    document = parse_html(MARKUP)
    card = document.query_selector("a.card")

    card.class_list.add("hidden")
    assert card.get_attribute("class") == "card online-aware hidden"
    assert card.class_list.toggle("hidden") is False
    assert card.class_list.toggle("hidden", force=True) is True
    card.class_list.remove("hidden")
    assert "hidden" not in card.class_list

    card.dataset["online"] = "true"
    assert card.get_attribute("data-online") == "true"
    assert dict(card.dataset) == {"online": "true"}
    del card.dataset["online"]
    assert len(card.dataset) == 0


def test_dispatch_runs_onclick_before_listeners() -> None:
    document = parse_html(MARKUP)
    card = document.query_selector("a.card")
    calls: list[str] = []

    def cancel(event: Event) -> None:
        calls.append("onclick")
        event.prevent_default()

    card.onclick = cancel
    card.add_event_listener("click", lambda event: calls.append("listener"))

    assert card.click() is False
    assert calls == ["onclick", "listener"]


def test_disabled_element_ignores_click() -> None:
    document = parse_html(MARKUP)
    button = document.get_element_by_id("go")
    clicks: list[Event] = []
    button.add_event_listener("click", clicks.append)

    assert button.click() is False
    assert clicks == []

    button.disabled = False
    assert button.click() is True
    assert clicks[0].target is button


def test_remove_listener_and_focus() -> None:
    document = parse_html(MARKUP)
    field = document.get_element_by_id("name")
    events: list[Event] = []
    field.add_event_listener("change", events.append)
    field.remove_event_listener("change", events.append)
    field.dispatch_event(Event("change"))
    assert events == []

    field.focus()
    assert document.active_element is field
    assert field.value == "initial"
    field.value = "updated"
    assert field.get_attribute("value") == "updated"
