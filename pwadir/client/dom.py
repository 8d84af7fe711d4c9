"""In-process DOM model the client engine binds to.

Pages rendered by the server are parsed into this tree, so the engine sees the
same ids and marker classes a browser would.
"""

from __future__ import annotations

import re
from collections import defaultdict
from collections.abc import Callable, Iterator, MutableMapping
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import Any

VOID_TAGS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "source", "track", "wbr",
}

_SIMPLE_SELECTOR = re.compile(r"^(?P<tag>[a-zA-Z][\w-]*|\*)?(?P<rest>(?:[#.][\w-]+)*)$")
_SELECTOR_PART = re.compile(r"([#.])([\w-]+)")


@dataclass
class Event:
    type: str
    detail: Any = None
    target: Element | None = None
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


Listener = Callable[[Event], None]


class ClassList:
    def __init__(self, element: Element):
        self._element = element

    def _tokens(self) -> list[str]:
        return self._element.attributes.get("class", "").split()

    def _store(self, tokens: list[str]) -> None:
        self._element.attributes["class"] = " ".join(tokens)

    def __contains__(self, name: str) -> bool:
        return name in self._tokens()

    def __iter__(self) -> Iterator[str]:
        return iter(self._tokens())

    def contains(self, name: str) -> bool:
        return name in self

    def add(self, *names: str) -> None:
        tokens = self._tokens()
        tokens.extend(name for name in names if name not in tokens)
        self._store(tokens)

    def remove(self, *names: str) -> None:
        self._store([token for token in self._tokens() if token not in names])

    def toggle(self, name: str, force: bool | None = None) -> bool:
        present = name in self if force is None else not force
        if present:
            self.remove(name)
            return False
        self.add(name)
        return True


class Dataset(MutableMapping[str, str]):
    """``data-*`` attributes keyed without their prefix."""

    def __init__(self, element: Element):
        self._element = element

    def __getitem__(self, key: str) -> str:
        return self._element.attributes[f"data-{key}"]

    def __setitem__(self, key: str, value: str) -> None:
        self._element.attributes[f"data-{key}"] = str(value)

    def __delitem__(self, key: str) -> None:
        del self._element.attributes[f"data-{key}"]

    def __iter__(self) -> Iterator[str]:
        return (name[5:] for name in list(self._element.attributes) if name.startswith("data-"))

    def __len__(self) -> int:
        return sum(1 for _ in self)


def _parse_style(raw: str) -> dict[str, str]:
    style: dict[str, str] = {}
    for declaration in raw.split(";"):
        name, sep, value = declaration.partition(":")
        if sep and name.strip():
            style[name.strip()] = value.strip()
    return style


class Element:
    def __init__(self, tag: str, attributes: dict[str, str] | None = None):
        self.tag = tag.lower()
        self.attributes: dict[str, str] = dict(attributes or {})
        self.children: list[Element] = []
        self.parent: Element | None = None
        self.document: Document | None = None
        self.text = ""
        self.style = _parse_style(self.attributes.get("style", ""))
        self.disabled = "disabled" in self.attributes
        self.onclick: Listener | None = None
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def __repr__(self) -> str:
        ident = f"#{self.id}" if self.id else ""
        return f"<Element {self.tag}{ident}>"

    @property
    def id(self) -> str:
        return self.attributes.get("id", "")

    @property
    def class_list(self) -> ClassList:
        return ClassList(self)

    @property
    def dataset(self) -> Dataset:
        return Dataset(self)

    @property
    def value(self) -> str:
        return self.attributes.get("value", "")

    @value.setter
    def value(self, value: str) -> None:
        self.attributes["value"] = value

    @property
    def text_content(self) -> str:
        return self.text + "".join(child.text_content for child in self.children)

    def get_attribute(self, name: str) -> str | None:
        return self.attributes.get(name)

    def set_attribute(self, name: str, value: str) -> None:
        self.attributes[name] = value

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def append_child(self, child: Element) -> Element:
        child.parent = self
        child._adopt(self.document)
        self.children.append(child)
        return child

    def _adopt(self, document: Document | None) -> None:
        self.document = document
        for child in self.children:
            child._adopt(document)

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        self._listeners[event_type].append(listener)

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        if listener in self._listeners[event_type]:
            self._listeners[event_type].remove(listener)

    def dispatch_event(self, event: Event) -> bool:
        """Run the click handler and listeners; return False when the default was cancelled."""
        event.target = self
        if event.type == "click" and self.onclick is not None:
            self.onclick(event)
        for listener in list(self._listeners[event.type]):
            listener(event)
        return not event.default_prevented

    def click(self) -> bool:
        if self.disabled:
            return False
        return self.dispatch_event(Event("click"))

    def focus(self) -> None:
        if self.document is not None:
            self.document.active_element = self

    def iter_descendants(self) -> Iterator[Element]:
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    def query_selector_all(self, selector: str) -> list[Element]:
        matchers = [_compile_selector(part) for part in selector.split(",")]
        return [element for element in self.iter_descendants() if any(match(element) for match in matchers)]

    def query_selector(self, selector: str) -> Element | None:
        matches = self.query_selector_all(selector)
        return matches[0] if matches else None


def _compile_selector(selector: str) -> Callable[[Element], bool]:
    """Compile a compound selector such as ``div.button.online-aware`` or ``#search``."""
    match = _SIMPLE_SELECTOR.match(selector.strip())
    if not match or not selector.strip():
        raise ValueError(f"Unsupported selector: {selector!r}")
    tag = match.group("tag")
    ids = [name for kind, name in _SELECTOR_PART.findall(match.group("rest")) if kind == "#"]
    classes = [name for kind, name in _SELECTOR_PART.findall(match.group("rest")) if kind == "."]

    def matches(element: Element) -> bool:
        if tag and tag != "*" and element.tag != tag.lower():
            return False
        if any(element.id != ident for ident in ids):
            return False
        return all(element.class_list.contains(name) for name in classes)

    return matches


class Document:
    def __init__(self) -> None:
        self.root = Element("#document")
        self.root.document = self
        self.active_element: Element | None = None

    def query_selector_all(self, selector: str) -> list[Element]:
        return self.root.query_selector_all(selector)

    def query_selector(self, selector: str) -> Element | None:
        return self.root.query_selector(selector)

    def get_element_by_id(self, element_id: str) -> Element | None:
        for element in self.root.iter_descendants():
            if element.id == element_id:
                return element
        return None


class _TreeBuilder(HTMLParser):
    def __init__(self, document: Document):
        super().__init__(convert_charrefs=True)
        self._stack = [document.root]

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        element = Element(tag, {name: value or "" for name, value in attrs})
        self._stack[-1].append_child(element)
        if element.tag not in VOID_TAGS:
            self._stack.append(element)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        element = Element(tag, {name: value or "" for name, value in attrs})
        self._stack[-1].append_child(element)

    def handle_endtag(self, tag: str) -> None:
        tag = tag.lower()
        for depth in range(len(self._stack) - 1, 0, -1):
            if self._stack[depth].tag == tag:
                del self._stack[depth:]
                return

    def handle_data(self, data: str) -> None:
        self._stack[-1].text += data


def parse_html(markup: str) -> Document:
    document = Document()
    builder = _TreeBuilder(document)
    builder.feed(markup)
    builder.close()
    return document
