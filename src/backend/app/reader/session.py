"""
阅读会话状态模型

一个 ReadingSession 对应一个用户打开的一本书，负责：
- 翻页（边界处静默不动，current_page 始终在 [1, total_pages]）
- 缩放 / 字号 / 夜间模式（仅本地状态，不触发写库）
- 阅读计时（每 tick_interval 秒累计一分钟；超过 idle_timeout 无操作则停止计时并自动关闭）
- 书签与高亮
- 背景音乐播放
- 进度写库：页码或计时变化后防抖 persist_delay 秒写一次，关闭时立即写一次

会话会被请求线程和定时器线程同时访问，所有状态修改都在 self._lock 内完成。
"""

import logging
import math
import threading
from typing import Any, Callable, Dict, List, Optional

from .config import ReaderConfig
from .debounce import Debouncer, Ticker
from .gateway import ReaderGateway
from .playback import AudioPlayer, PlaybackState
from .records import BookRef, BookmarkEntry, Track
from .scheduler import Scheduler

logger = logging.getLogger(__name__)

MIN_ZOOM, MAX_ZOOM = 50, 200
MIN_FONT_SIZE, MAX_FONT_SIZE = 12, 24

# 高亮颜色（固定色板）
HIGHLIGHT_COLORS = {
    "Yellow": "#fbbf24",
    "Green": "#10b981",
    "Blue": "#3b82f6",
    "Pink": "#ec4899",
    "Purple": "#8b5cf6",
}
DEFAULT_HIGHLIGHT_COLOR = HIGHLIGHT_COLORS["Yellow"]


class SessionClosedError(RuntimeError):
    """会话已关闭后仍被调用"""


def round_half_up(value: float) -> int:
    """四舍五入（0.5 进位），与前端 Math.round 一致"""
    return int(math.floor(value + 0.5))


def clamp(value: int, low: int, high: int) -> int:
    return min(max(value, low), high)


def progress_percent(current_page: int, total_pages: int) -> int:
    """阅读百分比（0-100 的整数）"""
    return round_half_up(current_page / total_pages * 100)


def page_for_progress(progress: float, total_pages: int) -> int:
    """由百分比换算页码，结果落在 [1, total_pages]"""
    return clamp(round_half_up(progress / 100 * total_pages), 1, total_pages)


class ReadingSession:
    """单个用户对单本书的阅读会话"""

    def __init__(
        self,
        book: BookRef,
        user_id: Optional[str],
        gateway: ReaderGateway,
        scheduler: Scheduler,
        config: Optional[ReaderConfig] = None,
        current_page: int = 1,
        elapsed_minutes: int = 0,
        on_close: Optional[Callable[["ReadingSession"], None]] = None,
    ):
        if book.total_pages < 1:
            raise ValueError(f"图书 {book.id} 没有可阅读的页面")

        self.config = config or ReaderConfig()
        self.book = book
        self.user_id = user_id
        self._gateway = gateway
        self._lock = threading.RLock()
        self._closed = False
        self._on_close = on_close
        # 距最后一次用户操作经过的秒数，由计时器累加
        self._idle_seconds = 0.0

        self.current_page = clamp(current_page, 1, book.total_pages)
        self.zoom = self.config.default_zoom
        self.font_size = self.config.default_font_size
        self.dark_mode = False
        self.elapsed_minutes = max(0, int(elapsed_minutes))
        self._bookmarks: List[BookmarkEntry] = []
        self.player = AudioPlayer(volume=self.config.default_volume)

        self._debouncer = Debouncer(self.config.persist_delay, self._on_debounce, scheduler)
        self._ticker = Ticker(self.config.tick_interval, self._on_tick, scheduler)

    @classmethod
    def open(
        cls,
        book: BookRef,
        initial_progress: float,
        *,
        user_id: Optional[str],
        gateway: ReaderGateway,
        scheduler: Scheduler,
        config: Optional[ReaderConfig] = None,
        elapsed_minutes: int = 0,
        on_close: Optional[Callable[["ReadingSession"], None]] = None,
    ) -> "ReadingSession":
        """
        打开阅读会话

        Args:
            book: 图书信息（total_pages 必须 >= 1）
            initial_progress: 已有阅读百分比（0-100）
            user_id: 当前用户，匿名阅读时为 None
            gateway: 数据网关
            scheduler: 定时器调度器
            config: 阅读器配置
            elapsed_minutes: 已累计的阅读时长
            on_close: 会话关闭（含空闲超时自动关闭）后的回调

        Returns:
            ReadingSession: 已开始计时的会话

        Raises:
            ValueError: 图书没有页面
        """
        session = cls(
            book,
            user_id,
            gateway,
            scheduler,
            config=config,
            current_page=page_for_progress(initial_progress, book.total_pages),
            elapsed_minutes=elapsed_minutes,
            on_close=on_close,
        )
        if user_id:
            session._bookmarks = session._load_bookmarks()
        session._ticker.start()
        logger.info(
            f"阅读会话已打开: user={user_id} book={book.id} page={session.current_page}/{book.total_pages}"
        )
        return session

    # ==================== 状态查询 ====================

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def progress(self) -> int:
        return progress_percent(self.current_page, self.book.total_pages)

    @property
    def persist_pending(self) -> bool:
        return self._debouncer.pending

    @property
    def playback(self) -> PlaybackState:
        return self.player.state

    def bookmarks(self) -> List[BookmarkEntry]:
        """渲染顺序：页码降序"""
        with self._lock:
            self._touch()
            return sorted(self._bookmarks, key=lambda b: b.page_number, reverse=True)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            self._touch()
            return {
                "book_id": self.book.id,
                "user_id": self.user_id,
                "title": self.book.title,
                "current_page": self.current_page,
                "total_pages": self.book.total_pages,
                "progress": self.progress,
                "zoom": self.zoom,
                "font_size": self.font_size,
                "dark_mode": self.dark_mode,
                "elapsed_minutes": self.elapsed_minutes,
                "audio": self.player.to_dict(),
                "closed": self._closed,
            }

    # ==================== 翻页与显示 ====================

    def turn_page(self, direction: int) -> int:
        """
        前后翻一页，到达首页或末页时不动

        Args:
            direction: +1 下一页，-1 上一页

        Returns:
            int: 翻页后的页码
        """
        if direction not in (1, -1):
            raise ValueError("direction 只能是 1 或 -1")

        with self._lock:
            self._ensure_open()
            self._touch()
            target = self.current_page + direction
            if 1 <= target <= self.book.total_pages:
                self.current_page = target
                self._debouncer.schedule()
            return self.current_page

    def set_zoom(self, value: int) -> int:
        with self._lock:
            self._ensure_open()
            self._touch()
            self.zoom = clamp(int(value), MIN_ZOOM, MAX_ZOOM)
            return self.zoom

    def reset_zoom(self) -> int:
        return self.set_zoom(self.config.default_zoom)

    def set_font_size(self, value: int) -> int:
        with self._lock:
            self._ensure_open()
            self._touch()
            self.font_size = clamp(int(value), MIN_FONT_SIZE, MAX_FONT_SIZE)
            return self.font_size

    def set_dark_mode(self, enabled: bool) -> bool:
        with self._lock:
            self._ensure_open()
            self._touch()
            self.dark_mode = bool(enabled)
            return self.dark_mode

    # ==================== 计时与写库 ====================

    def record_elapsed(self) -> int:
        """阅读时长 +1 分钟，并重置写库防抖"""
        with self._lock:
            self._ensure_open()
            self.elapsed_minutes += 1
            self._debouncer.schedule()
            return self.elapsed_minutes

    def persist_progress(self) -> bool:
        """
        立即写入阅读进度

        写库失败只记日志，不抛出、不重试。

        Returns:
            bool: 是否写入成功（匿名会话或已关闭的会话不写库，返回 False）
        """
        with self._lock:
            if self._closed:
                return False
            return self._write_progress()

    def _write_progress(self) -> bool:
        with self._lock:
            if not self.user_id:
                return False
            current_page = self.current_page
            percent = self.progress
            elapsed = self.elapsed_minutes
            try:
                self._gateway.upsert_progress(
                    self.user_id, self.book.id, current_page, percent, elapsed
                )
            except Exception:
                logger.exception(
                    f"阅读进度写入失败: user={self.user_id} book={self.book.id} page={current_page}"
                )
                return False
            return True

    def _on_debounce(self) -> None:
        # close() 里的 flush 也走这里，此时 _closed 尚未置位
        with self._lock:
            if self._closed:
                return
            self._write_progress()

    def _on_tick(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._idle_seconds += self.config.tick_interval
            timeout = self.config.idle_timeout
            idle = bool(timeout) and self._idle_seconds > timeout
            if not idle:
                self.record_elapsed()
        if idle:
            logger.info(
                f"阅读会话空闲超时: user={self.user_id} book={self.book.id} "
                f"idle={self._idle_seconds:.0f}s"
            )
            self.close()

    def _touch(self) -> None:
        self._idle_seconds = 0.0

    # ==================== 书签 ====================

    def create_bookmark(
        self,
        page_number: Optional[int] = None,
        note: Optional[str] = None,
        highlight_text: Optional[str] = None,
        color: Optional[str] = None,
    ) -> BookmarkEntry:
        """
        新增书签 / 高亮

        Args:
            page_number: 页码，默认当前页
            note: 笔记
            highlight_text: 选中的高亮文本
            color: 高亮颜色，必须在 HIGHLIGHT_COLORS 中；有高亮文本时默认黄色

        Returns:
            BookmarkEntry: 新书签

        Raises:
            PermissionError: 没有登录用户
            ValueError: 笔记和高亮都为空、页码越界或颜色不在色板中
        """
        with self._lock:
            self._ensure_open()
            self._touch()
            if not self.user_id:
                raise PermissionError("请先登录再添加书签")

            note = (note or "").strip() or None
            highlight_text = (highlight_text or "").strip() or None
            if not note and not highlight_text:
                raise ValueError("书签需要笔记或高亮文本")

            page = self.current_page if page_number is None else int(page_number)
            if not 1 <= page <= self.book.total_pages:
                raise ValueError(f"页码 {page} 超出范围 1-{self.book.total_pages}")

            if color is None and highlight_text:
                color = DEFAULT_HIGHLIGHT_COLOR
            if color is not None and color not in HIGHLIGHT_COLORS.values():
                raise ValueError(f"不支持的高亮颜色: {color}")

            entry = self._gateway.insert_bookmark(
                self.user_id,
                self.book.id,
                page,
                note=note,
                highlight_text=highlight_text,
                highlight_color=color if highlight_text else None,
            )
            self._bookmarks.append(entry)
            self._bookmarks.sort(key=lambda b: b.page_number)
            return entry

    def _load_bookmarks(self) -> List[BookmarkEntry]:
        try:
            return self._gateway.fetch_bookmarks(self.user_id, self.book.id)
        except Exception:
            logger.exception(f"书签加载失败: user={self.user_id} book={self.book.id}")
            return []

    # ==================== 背景音乐 ====================

    def play_track(self, track: Track) -> PlaybackState:
        with self._lock:
            self._ensure_open()
            self._touch()
            return self.player.play_track(track)

    def pause(self) -> PlaybackState:
        with self._lock:
            self._ensure_open()
            self._touch()
            return self.player.pause()

    def set_volume(self, value: int) -> int:
        with self._lock:
            self._ensure_open()
            self._touch()
            return self.player.set_volume(value)

    def toggle_mute(self) -> bool:
        with self._lock:
            self._ensure_open()
            self._touch()
            return self.player.toggle_mute()

    # ==================== 关闭 ====================

    def close(self) -> None:
        """
        关闭会话：停止计时、取消挂起的防抖、立即写一次进度、音乐回到 Idle

        重复关闭不会再次写库。
        """
        with self._lock:
            if self._closed:
                return
            self._ticker.stop()
            self._debouncer.flush()
            self.player.reset()
            self._closed = True
        logger.info(
            f"阅读会话已关闭: user={self.user_id} book={self.book.id} page={self.current_page} "
            f"elapsed={self.elapsed_minutes}min"
        )
        if self._on_close is not None:
            self._on_close(self)

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("阅读会话已关闭")
