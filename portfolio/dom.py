"""Headless page model on top of BeautifulSoup.

The document is a BeautifulSoup tree. Event listeners, element geometry and
visibility are kept beside the tree, keyed by element identity: bs4 tags
compare equal by markup, so two identical ``<img>`` tags must never be
confused through ``==``.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from bs4 import BeautifulSoup, Tag


NON_BUBBLING = {"mouseenter", "mouseleave"}


@dataclass
class Rect:
    left: float = 0.0
    width: float = 0.0

    @property
    def midpoint(self) -> float:
        return self.left + self.width / 2


@dataclass
class Event:
    type: str
    target: Tag
    client_x: float = 0.0
    key: Optional[str] = None
    default_prevented: bool = False
    current_target: Optional[Tag] = None

    def prevent_default(self) -> None:
        self.default_prevented = True


@dataclass
class IntersectionEntry:
    target: Tag
    is_intersecting: bool
    ratio: float


def classes(tag: Tag) -> list:
    value = tag.get("class")
    if not value:
        return []
    if isinstance(value, str):
        return value.split()
    return list(value)


def has_class(tag: Tag, name: str) -> bool:
    return name in classes(tag)


def add_class(tag: Tag, *names: str) -> None:
    current = classes(tag)
    current.extend(name for name in names if name not in current)
    tag["class"] = current


def remove_class(tag: Tag, *names: str) -> None:
    current = [name for name in classes(tag) if name not in names]
    if current:
        tag["class"] = current
    elif tag.has_attr("class"):
        del tag["class"]


def style(tag: Tag) -> dict:
    """Inline style attribute as an ordered property -> value dict."""
    props = {}
    for declaration in tag.get("style", "").split(";"):
        name, sep, value = declaration.partition(":")
        if sep and name.strip():
            props[name.strip()] = value.strip()
    return props


def set_style(tag: Tag, props: dict) -> None:
    """Merge ``props`` into the inline style; empty values remove a property."""
    current = style(tag)
    for name, value in props.items():
        if value:
            current[name] = value
        else:
            current.pop(name, None)
    if current:
        tag["style"] = "; ".join(f"{name}: {value}" for name, value in current.items())
    elif tag.has_attr("style"):
        del tag["style"]


class Page:
    """A parsed page plus the browser-side state attached to its elements."""

    def __init__(self, markup: str = "", parser: str = "html.parser"):
        self.soup = BeautifulSoup(markup, parser)
        if self.soup.html is None:
            self.soup.append(self.soup.new_tag("html"))
        if self.soup.head is None:
            self.soup.html.insert(0, self.soup.new_tag("head"))
        if self.soup.body is None:
            self.soup.html.append(self.soup.new_tag("body"))
        self._listeners = {}
        self._rects = {}
        self._observers = []

    @property
    def head(self) -> Tag:
        return self.soup.head

    @property
    def body(self) -> Tag:
        return self.soup.body

    def select(self, selector: str) -> list:
        return self.soup.select(selector)

    def select_one(self, selector: str) -> Optional[Tag]:
        return self.soup.select_one(selector)

    def closest(self, element, selector: str) -> Optional[Tag]:
        """Nearest ancestor (the element included) matching ``selector``."""
        if not isinstance(element, Tag):
            return None
        return element.css.closest(selector)

    def new_tag(self, name: str, **attrs) -> Tag:
        return self.soup.new_tag(name, attrs={key.replace("_", "-"): value for key, value in attrs.items()})

    def remove(self, element: Tag) -> None:
        """Detach ``element`` and forget listeners and geometry of its subtree."""
        for node in [element, *element.find_all(True)]:
            key = id(node)
            self._rects.pop(key, None)
            for listener_key in [k for k in self._listeners if k[0] == key]:
                del self._listeners[listener_key]
        element.decompose()

    # Events

    def on(self, event_type: str, handler: Callable[[Event], None], target: Optional[Tag] = None,
           once: bool = False) -> None:
        """Subscribe ``handler``; without a target it listens on the whole document."""
        key = (id(target) if target is not None else None, event_type)
        self._listeners.setdefault(key, []).append((handler, once))

    def dispatch(self, event: Event) -> Event:
        path = [event.target]
        if event.type not in NON_BUBBLING:
            path.extend(parent for parent in event.target.parents if parent is not self.soup)
            path.append(None)

        for node in path:
            key = (id(node) if node is not None else None, event.type)
            listeners = self._listeners.get(key)
            if not listeners:
                continue
            event.current_target = node
            for handler, once in list(listeners):
                if once:
                    listeners.remove((handler, once))
                handler(event)
        return event

    def click(self, element: Tag, client_x: float = 0.0) -> Event:
        return self.dispatch(Event("click", element, client_x=client_x))

    def press(self, key: str) -> Event:
        return self.dispatch(Event("keydown", self.body, key=key))

    def swipe(self, element: Tag, start_x: float, end_x: float) -> None:
        self.dispatch(Event("touchstart", element, client_x=start_x))
        self.dispatch(Event("touchend", element, client_x=end_x))

    def hover(self, element: Tag) -> Event:
        return self.dispatch(Event("mouseenter", element))

    def unhover(self, element: Tag) -> Event:
        return self.dispatch(Event("mouseleave", element))

    # Geometry and visibility, reported by the host

    def set_rect(self, element: Tag, rect: Rect) -> None:
        self._rects[id(element)] = rect

    def bounding_rect(self, element: Tag) -> Rect:
        return self._rects.get(id(element), Rect())

    def report_visibility(self, element: Tag, ratio: float) -> None:
        for observer in list(self._observers):
            observer.notify(element, ratio)


class IntersectionObserver:
    """Calls back when an observed element crosses the visibility threshold."""

    def __init__(self, page: Page, callback: Callable, threshold: float = 0.0):
        self.page = page
        self.callback = callback
        self.threshold = threshold
        self._targets = {}
        page._observers.append(self)

    def observe(self, element: Tag) -> None:
        self._targets[id(element)] = [element, None]

    def unobserve(self, element: Tag) -> None:
        self._targets.pop(id(element), None)

    def disconnect(self) -> None:
        self._targets.clear()
        if self in self.page._observers:
            self.page._observers.remove(self)

    def notify(self, element: Tag, ratio: float) -> None:
        state = self._targets.get(id(element))
        if state is None:
            return
        if self.threshold > 0:
            intersecting = ratio >= self.threshold
        else:
            intersecting = ratio > 0
        if intersecting == state[1]:
            return
        state[1] = intersecting
        self.callback([IntersectionEntry(element, intersecting, ratio)], self)
