"""
阅读会话核心

翻页、显示偏好、阅读计时、书签、背景音乐以及防抖写库。
"""

from .config import ReaderConfig, get_reader_config
from .debounce import Debouncer, Ticker
from .gateway import ReaderGateway
from .playback import AudioPlayer, Idle, Paused, Playing, PlaybackState
from .records import BookRef, BookmarkEntry, Track
from .registry import SessionRegistry, get_session_registry, reset_session_registry
from .scheduler import Scheduler, ThreadingScheduler, TimerHandle
from .session import (
    HIGHLIGHT_COLORS,
    ReadingSession,
    SessionClosedError,
    page_for_progress,
    progress_percent,
)

__all__ = [
    "ReaderConfig",
    "get_reader_config",
    "Debouncer",
    "Ticker",
    "ReaderGateway",
    "AudioPlayer",
    "Idle",
    "Paused",
    "Playing",
    "PlaybackState",
    "BookRef",
    "BookmarkEntry",
    "Track",
    "SessionRegistry",
    "get_session_registry",
    "reset_session_registry",
    "Scheduler",
    "ThreadingScheduler",
    "TimerHandle",
    "HIGHLIGHT_COLORS",
    "ReadingSession",
    "SessionClosedError",
    "page_for_progress",
    "progress_percent",
]
