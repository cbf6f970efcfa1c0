"""Media playback capability.

The page components only ask for play / pause / seek; a real host plugs in its
own player. ``HeadlessPlayer`` keeps the playback state per element and can be
told to refuse playback, which is how browsers report blocked autoplay.
"""

import logging
from dataclasses import dataclass

from bs4 import Tag

from .errors import PlaybackRejected

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = (".mp4", ".webm", ".mov", ".avi", ".mkv", ".m4v", ".ogv")


def is_video_file(src: str) -> bool:
    return src.lower().endswith(VIDEO_EXTENSIONS)


@dataclass
class MediaState:
    paused: bool = True
    current_time: float = 0.0


class HeadlessPlayer:
    def __init__(self, autoplay_allowed: bool = True):
        self.autoplay_allowed = autoplay_allowed
        self._states = {}

    def state(self, element: Tag) -> MediaState:
        return self._states.setdefault(id(element), MediaState())

    def play(self, element: Tag) -> None:
        if not self.autoplay_allowed:
            raise PlaybackRejected(f"playback of {element.get('src', '<no src>')} was not allowed")
        self.state(element).paused = False

    def pause(self, element: Tag) -> None:
        self.state(element).paused = True

    def seek(self, element: Tag, seconds: float) -> None:
        self.state(element).current_time = seconds

    def is_playing(self, element: Tag) -> bool:
        return not self.state(element).paused


def try_play(player, element: Tag) -> bool:
    """Start playback, logging instead of raising when the host refuses."""
    try:
        player.play(element)
    except PlaybackRejected as e:
        logger.info("Autoplay prevented: %s", e)
        return False
    return True
