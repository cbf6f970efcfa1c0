import pytest

from portfolio.dom import Page, Rect
from portfolio.lightbox import LightboxGallery
from portfolio.media import HeadlessPlayer
from portfolio.scheduler import Scheduler
from tests.helpers import GALLERY_ITEMS, MEDIA_WIDTH, PAGE_HTML


@pytest.fixture
def scheduler():
    return Scheduler()


@pytest.fixture
def player():
    return HeadlessPlayer()


@pytest.fixture
def page():
    return Page(PAGE_HTML)


@pytest.fixture
def gallery(page, scheduler, player):
    lightbox = LightboxGallery(page, scheduler, player=player)
    page.set_rect(lightbox.lightbox_image, Rect(left=0, width=MEDIA_WIDTH))
    page.set_rect(lightbox.lightbox_video, Rect(left=0, width=MEDIA_WIDTH))
    return lightbox


@pytest.fixture
def opened(gallery, scheduler):
    """A multi-item gallery, open and past its entry animation."""
    gallery.open(GALLERY_ITEMS)
    scheduler.advance(100)
    return gallery
