"""Wires the page components together for one loaded page."""

from dataclasses import dataclass
from typing import Optional

from .dom import Page, add_class
from .handlers import ProjectCardHandler, SlideshowHandler, VideoHandler
from .lightbox import LightboxGallery
from .media import HeadlessPlayer
from .performance import PerformanceOptimizer
from .scheduler import Scheduler


@dataclass
class Site:
    page: Page
    scheduler: Scheduler
    player: HeadlessPlayer
    lightbox: LightboxGallery
    cards: ProjectCardHandler
    videos: VideoHandler
    slideshow: SlideshowHandler
    performance: PerformanceOptimizer

    def destroy(self) -> None:
        self.slideshow.destroy()


def init_site(markup: str, scheduler: Optional[Scheduler] = None, player=None,
              native_lazy_loading: bool = True) -> Site:
    page = Page(markup)
    scheduler = scheduler or Scheduler()
    player = player or HeadlessPlayer()

    site = Site(
        page=page,
        scheduler=scheduler,
        player=player,
        lightbox=LightboxGallery(page, scheduler, player=player),
        cards=ProjectCardHandler(page, player),
        videos=VideoHandler(page, player),
        slideshow=SlideshowHandler(page, scheduler),
        performance=PerformanceOptimizer(page, native_lazy_loading=native_lazy_loading),
    )
    add_class(page.body, "loaded")
    return site
