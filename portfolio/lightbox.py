"""
Lightbox gallery for the portfolio pages.

Any element carrying ``data-gallery`` (a JSON array of ``{"src", "alt"}``
objects) opens the overlay at its first item. Navigation works through the
arrow buttons, the keyboard, clicks on either half of the media, horizontal
swipes and the indicator dots.

Deferred work (entry animation, fade-in, hide after the exit transition) runs
through the page scheduler. Every open and close bumps ``generation`` so that a
callback scheduled for an older session does nothing.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from bs4 import BeautifulSoup, Tag

from .dom import Event, Page, add_class, remove_class, set_style
from .errors import EmptyGalleryError
from .media import HeadlessPlayer, is_video_file
from .scheduler import Scheduler

logger = logging.getLogger(__name__)

TRANSITION_MS = 400
FADE_MS = 50
SWIPE_THRESHOLD = 50

MEDIUM_INDICATORS_FROM = 6
SMALL_INDICATORS_FROM = 16

GALLERY_SELECTOR = "[data-gallery]"
INDICATOR_SELECTOR = ".lightbox-indicator"

LIGHTBOX_HTML = """
<div class="lightbox" id="lightbox" role="dialog" aria-hidden="true" style="display: none">
  <button type="button" class="lightbox-arrow lightbox-arrow-left" id="lightbox-prev" aria-label="Previous"></button>
  <div class="lightbox-content" id="lightbox-content">
    <img src="" alt="" class="lightbox-image" id="lightbox-image" style="display: none"/>
    <video class="lightbox-video" id="lightbox-video" style="display: none" controls></video>
  </div>
  <button type="button" class="lightbox-arrow lightbox-arrow-right" id="lightbox-next" aria-label="Next"></button>
</div>
"""


@dataclass(frozen=True)
class GalleryItem:
    src: str
    alt: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "GalleryItem":
        return cls(src=str(data["src"]), alt=str(data.get("alt") or ""))


@dataclass
class GallerySession:
    images: tuple = ()
    current_index: int = 0
    is_open: bool = False

    @property
    def is_single(self) -> bool:
        return len(self.images) == 1

    @property
    def last_index(self) -> int:
        return len(self.images) - 1


def indicator_size(count: int) -> str:
    if count >= SMALL_INDICATORS_FROM:
        return "small"
    if count >= MEDIUM_INDICATORS_FROM:
        return "medium"
    return "normal"


def parse_gallery(raw: str) -> list:
    """Gallery items from a ``data-gallery`` value; ValueError if it is not a list of {src, alt} objects."""
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError("gallery data must be a JSON array")
    try:
        return [GalleryItem.from_dict(entry) for entry in data]
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"invalid gallery entry: {e!r}") from e


class LightboxGallery:
    def __init__(self, page: Page, scheduler: Scheduler, player=None,
                 transition_ms: float = TRANSITION_MS, fade_ms: float = FADE_MS,
                 swipe_threshold: float = SWIPE_THRESHOLD):
        self.page = page
        self.scheduler = scheduler
        self.player = player or HeadlessPlayer()
        self.transition_ms = transition_ms
        self.fade_ms = fade_ms
        self.swipe_threshold = swipe_threshold

        self.session = GallerySession()
        self.generation = 0
        self.indicators = None
        self._touch_start_x = None

        self._create_lightbox()
        self._attach_listeners()

    @property
    def is_open(self) -> bool:
        return self.session.is_open

    @property
    def current_index(self) -> int:
        return self.session.current_index

    @property
    def images(self) -> tuple:
        return self.session.images

    def _create_lightbox(self) -> None:
        fragment = BeautifulSoup(LIGHTBOX_HTML, "html.parser")
        self.lightbox = fragment.find(id="lightbox")
        self.page.body.append(self.lightbox)

        self.lightbox_image = self.lightbox.find(id="lightbox-image")
        self.lightbox_video = self.lightbox.find(id="lightbox-video")
        self.lightbox_content = self.lightbox.find(id="lightbox-content")
        self.prev_btn = self.lightbox.find(id="lightbox-prev")
        self.next_btn = self.lightbox.find(id="lightbox-next")

    def _attach_listeners(self) -> None:
        page = self.page
        page.on("click", self._handle_trigger_click)
        page.on("keydown", self._handle_keyboard)

        page.on("click", lambda e: self.prev(), target=self.prev_btn)
        page.on("click", lambda e: self.next(), target=self.next_btn)
        page.on("click", self._handle_lightbox_click, target=self.lightbox)
        page.on("touchstart", self._handle_touch_start, target=self.lightbox)
        page.on("touchend", self._handle_touch_end, target=self.lightbox)

        for media in (self.lightbox_image, self.lightbox_video):
            page.on("click", self._handle_media_click, target=media)
            page.on("mousemove", self._handle_pointer_move, target=media)
            page.on("mouseleave", lambda e: self._clear_cursor_hint(), target=media)

    # State transitions

    def open(self, images: Sequence, start_index: int = 0) -> None:
        items = tuple(item if isinstance(item, GalleryItem) else GalleryItem.from_dict(item) for item in images)
        if not items:
            raise EmptyGalleryError("cannot open a gallery without items")
        if not 0 <= start_index < len(items):
            raise IndexError(f"start index {start_index} outside 0..{len(items) - 1}")

        self.generation += 1
        generation = self.generation
        self.session = GallerySession(images=items, current_index=start_index, is_open=True)

        # Single items get no arrows, dots or cursor hints
        if self.session.is_single:
            self.lightbox["data-single-image"] = "true"
        elif self.lightbox.has_attr("data-single-image"):
            del self.lightbox["data-single-image"]

        set_style(self.lightbox, {"display": "flex"})
        set_style(self.page.body, {"overflow": "hidden"})
        self.lightbox["aria-hidden"] = "false"

        self._build_indicators()
        self._load(self.session.current_index)
        self._update_buttons()

        # The class must land after the overlay is laid out or the transition is skipped
        self.scheduler.request_frame(lambda: self._activate(generation))

    def _activate(self, generation: int) -> None:
        if generation == self.generation and self.session.is_open:
            add_class(self.lightbox, "active")

    def close(self) -> None:
        if not self.session.is_open:
            return

        self.generation += 1
        generation = self.generation
        self.session = GallerySession()
        remove_class(self.lightbox, "active")
        self.lightbox["aria-hidden"] = "true"

        # Hide only once the exit transition is over, unless reopened meanwhile
        self.scheduler.call_later(self.transition_ms, lambda: self._hide(generation))

        set_style(self.lightbox_image, {"display": "none"})
        set_style(self.lightbox_video, {"display": "none"})
        self._reset_video()
        self._clear_cursor_hint()
        self._remove_indicators()

    def _hide(self, generation: int) -> None:
        if generation != self.generation or self.session.is_open:
            return
        set_style(self.lightbox, {"display": "none"})
        set_style(self.page.body, {"overflow": ""})

    def next(self) -> None:
        if self.session.is_open and self.session.current_index < self.session.last_index:
            self._go_to(self.session.current_index + 1)

    def prev(self) -> None:
        if self.session.is_open and self.session.current_index > 0:
            self._go_to(self.session.current_index - 1)

    def jump_to(self, index: int) -> None:
        if not self.session.is_open or not 0 <= index <= self.session.last_index:
            return
        if index != self.session.current_index:
            self._go_to(index)

    def _go_to(self, index: int) -> None:
        self.session.current_index = index
        self._load(index)
        self._update_buttons()

    # Content

    def _load(self, index: int) -> None:
        item = self.session.images[index]
        self._clear_cursor_hint()

        if is_video_file(item.src):
            shown = self.lightbox_video
            set_style(self.lightbox_image, {"display": "none"})
            set_style(self.lightbox_video, {"display": "block"})
            set_style(shown, {"opacity": "0", "transform": "scale(0.9)"})
            self.lightbox_video["src"] = item.src
        else:
            shown = self.lightbox_image
            set_style(self.lightbox_video, {"display": "none"})
            self._reset_video()
            set_style(self.lightbox_image, {"display": "block"})
            set_style(shown, {"opacity": "0", "transform": "scale(0.9)"})
            self.lightbox_image["src"] = item.src
            self.lightbox_image["alt"] = item.alt

        self.scheduler.call_later(self.fade_ms, lambda: set_style(shown, {"opacity": "", "transform": ""}))
        self._update_indicators()

    def _reset_video(self) -> None:
        self.player.pause(self.lightbox_video)
        self.lightbox_video["src"] = ""

    def _update_buttons(self) -> None:
        for button, disabled in (
            (self.prev_btn, self.session.current_index == 0),
            (self.next_btn, self.session.current_index == self.session.last_index),
        ):
            if disabled:
                button["disabled"] = ""
            elif button.has_attr("disabled"):
                del button["disabled"]

    # Indicators

    def _build_indicators(self) -> None:
        self._remove_indicators()
        if self.session.is_single:
            return

        count = len(self.session.images)
        size = indicator_size(count)
        rail = self.page.new_tag("div", id="lightbox-indicators", role="tablist", data_size=size)
        rail["class"] = ["lightbox-indicators"]
        for index in range(count):
            dot = self.page.new_tag("button", type="button", aria_label=f"Item {index + 1} of {count}",
                                    data_index=str(index))
            dot["class"] = ["lightbox-indicator", f"lightbox-indicator--{size}"]
            rail.append(dot)

        self.lightbox.append(rail)
        self.indicators = rail

    def _update_indicators(self) -> None:
        if self.indicators is None:
            return
        for dot in self.indicators.find_all("button"):
            if int(dot["data-index"]) == self.session.current_index:
                add_class(dot, "active")
                dot["aria-current"] = "true"
            else:
                remove_class(dot, "active")
                if dot.has_attr("aria-current"):
                    del dot["aria-current"]

    def _remove_indicators(self) -> None:
        if self.indicators is not None:
            self.page.remove(self.indicators)
            self.indicators = None

    # Input

    def _handle_trigger_click(self, event: Event) -> None:
        card = self.page.closest(event.target, GALLERY_SELECTOR)
        if card is None:
            return
        event.prevent_default()

        try:
            items = parse_gallery(card["data-gallery"])
        except ValueError as e:
            logger.warning("Ignoring malformed gallery data: %s", e)
            return
        if not items:
            logger.warning("Ignoring empty gallery")
            return

        self.open(items, 0)

    def _handle_keyboard(self, event: Event) -> None:
        if not self.session.is_open:
            return

        if event.key == "Escape":
            self.close()
        elif event.key == "ArrowLeft":
            self.prev()
        elif event.key == "ArrowRight":
            self.next()

    def _handle_lightbox_click(self, event: Event) -> None:
        indicator = self.page.closest(event.target, INDICATOR_SELECTOR)
        if indicator is not None:
            self.jump_to(int(indicator["data-index"]))
            return

        # Media, content wrapper and arrows never close the overlay
        if event.target is self.lightbox:
            self.close()

    def _points_left(self, event: Event) -> bool:
        rect = self.page.bounding_rect(event.current_target)
        return event.client_x < rect.midpoint

    def _handle_media_click(self, event: Event) -> None:
        if not self.session.is_open:
            return
        if self.session.is_single:
            self.close()
        elif self._points_left(event):
            self.prev()
        else:
            self.next()

    def _handle_pointer_move(self, event: Event) -> None:
        if not self.session.is_open or self.session.is_single:
            return
        media = event.current_target
        if self._points_left(event):
            remove_class(media, "cursor-right")
            add_class(media, "cursor-left")
        else:
            remove_class(media, "cursor-left")
            add_class(media, "cursor-right")

    def _clear_cursor_hint(self) -> None:
        for media in (self.lightbox_image, self.lightbox_video):
            remove_class(media, "cursor-left", "cursor-right")

    def _handle_touch_start(self, event: Event) -> None:
        self._touch_start_x = event.client_x

    def _handle_touch_end(self, event: Event) -> None:
        start_x: Optional[float] = self._touch_start_x
        self._touch_start_x = None
        if start_x is None or not self.session.is_open:
            return

        distance = start_x - event.client_x
        if distance > self.swipe_threshold:
            self.next()
        elif distance < -self.swipe_threshold:
            self.prev()
