class PortfolioError(Exception):
    """Base class for errors raised by the portfolio page components."""


class EmptyGalleryError(PortfolioError, ValueError):
    """A gallery was opened without any items."""


class PlaybackRejected(PortfolioError):
    """The host refused to start media playback (autoplay policy)."""
