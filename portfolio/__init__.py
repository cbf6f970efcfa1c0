from .errors import EmptyGalleryError, PlaybackRejected, PortfolioError
from .lightbox import GalleryItem, GallerySession, LightboxGallery
from .site import Site, init_site

__all__ = [
    "EmptyGalleryError",
    "GalleryItem",
    "GallerySession",
    "LightboxGallery",
    "PlaybackRejected",
    "PortfolioError",
    "Site",
    "init_site",
]
