"""
背景音乐播放状态机

状态是显式的标签变体：Idle | Playing(track) | Paused(track)，
不存在“暂停但没有曲目”这样的组合。

    idle --play_track--> playing --pause--> paused --play_track--> playing
    playing --play_track(other)--> playing

音量与静音独立于播放状态。
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from .records import Track


@dataclass(frozen=True)
class Idle:
    name = "idle"


@dataclass(frozen=True)
class Playing:
    track: Track
    name = "playing"


@dataclass(frozen=True)
class Paused:
    track: Track
    name = "paused"


PlaybackState = Union[Idle, Playing, Paused]

MIN_VOLUME = 0
MAX_VOLUME = 100


class AudioPlayer:
    """单个阅读会话内的背景音乐播放器"""

    def __init__(self, volume: int = 50):
        self.state: PlaybackState = Idle()
        self.volume = min(max(int(volume), MIN_VOLUME), MAX_VOLUME)
        self.muted = False

    @property
    def status(self) -> str:
        return self.state.name

    @property
    def current_track(self) -> Optional[Track]:
        if isinstance(self.state, (Playing, Paused)):
            return self.state.track
        return None

    def play_track(self, track: Track) -> PlaybackState:
        """任意状态 -> Playing(track)；播放中切换曲目也走这里"""
        self.state = Playing(track)
        return self.state

    def pause(self) -> PlaybackState:
        """Playing -> Paused，其他状态不变"""
        if isinstance(self.state, Playing):
            self.state = Paused(self.state.track)
        return self.state

    def set_volume(self, value: int) -> int:
        self.volume = min(max(int(value), MIN_VOLUME), MAX_VOLUME)
        return self.volume

    def toggle_mute(self) -> bool:
        self.muted = not self.muted
        return self.muted

    def reset(self) -> None:
        """会话关闭时回到 Idle"""
        self.state = Idle()

    def to_dict(self) -> Dict[str, Any]:
        track = self.current_track
        return {
            "status": self.status,
            "track": track.to_dict() if track else None,
            "volume": self.volume,
            "muted": self.muted,
        }
