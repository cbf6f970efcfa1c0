"""Card video autoplay, home-column videos and the column slideshow."""

import logging

from .dom import IntersectionObserver, Page, add_class, remove_class
from .media import try_play
from .scheduler import Scheduler

logger = logging.getLogger(__name__)

SLIDESHOW_INTERVAL_MS = 3000
VIDEO_VISIBILITY_THRESHOLD = 0.25


class ProjectCardHandler:
    """Plays a card's preview video while the pointer is over the card."""

    def __init__(self, page: Page, player):
        self.page = page
        self.player = player
        self.cards = []
        self.handle_video_cards()

    def handle_video_cards(self) -> None:
        for video in self.page.select(".project-card-video"):
            card = self.page.closest(video, ".project-card")
            if card is None:
                continue

            self.page.on("mouseenter", lambda e, video=video: try_play(self.player, video), target=card)
            self.page.on("mouseleave", lambda e, video=video: self._stop(video), target=card)
            self.cards.append(card)

    def _stop(self, video) -> None:
        self.player.pause(video)
        self.player.seek(video, 0)


class VideoHandler:
    """Home slideshow videos: start right away, then follow scroll visibility."""

    def __init__(self, page: Page, player, threshold: float = VIDEO_VISIBILITY_THRESHOLD):
        self.page = page
        self.player = player
        self.videos = page.select(".column-video")
        self.observer = None
        if self.videos:
            self.observer = IntersectionObserver(page, self._on_visibility, threshold=threshold)
            for video in self.videos:
                try_play(self.player, video)
                self.observer.observe(video)

    def _on_visibility(self, entries, observer) -> None:
        for entry in entries:
            if entry.is_intersecting:
                try_play(self.player, entry.target)
            else:
                self.player.pause(entry.target)


class SlideshowHandler:
    def __init__(self, page: Page, scheduler: Scheduler, interval_ms: float = SLIDESHOW_INTERVAL_MS):
        self.page = page
        self.scheduler = scheduler
        self.interval_ms = interval_ms
        self.timers = {}
        self.positions = {}

        for column in page.select("[data-slideshow]"):
            slides = column.select(".column-slide")
            if len(slides) <= 1:
                continue
            key = id(column)
            self.positions[key] = 0
            self.timers[key] = scheduler.call_every(interval_ms, lambda key=key, slides=slides: self._next_slide(key, slides))

        logger.debug("Slideshow running on %d column(s)", len(self.timers))

    def _next_slide(self, key: int, slides: list) -> None:
        current = self.positions[key]
        remove_class(slides[current], "active")
        current = (current + 1) % len(slides)
        add_class(slides[current], "active")
        self.positions[key] = current

    def destroy(self) -> None:
        for timer in self.timers.values():
            timer.cancel()
        self.timers.clear()
