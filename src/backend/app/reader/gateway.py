"""
阅读器与数据网关之间的契约

四个调用：写入阅读进度、新增书签、查询书签、查询启用的背景音乐。
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .records import BookmarkEntry, Track


class ReaderGateway(ABC):
    """阅读器数据网关基类"""

    @abstractmethod
    def upsert_progress(
        self,
        user_id: str,
        book_id: str,
        current_page: int,
        progress_percent: int,
        elapsed_minutes: int,
    ) -> None:
        """按 (user_id, book_id) 写入进度，一对至多一行，最后写入者生效"""

    @abstractmethod
    def insert_bookmark(
        self,
        user_id: str,
        book_id: str,
        page_number: int,
        note: Optional[str] = None,
        highlight_text: Optional[str] = None,
        highlight_color: Optional[str] = None,
    ) -> BookmarkEntry:
        """新增书签，返回带生成 ID 的记录"""

    @abstractmethod
    def fetch_bookmarks(self, user_id: str, book_id: str) -> List[BookmarkEntry]:
        """按页码升序返回书签"""

    @abstractmethod
    def fetch_active_music(self) -> List[Track]:
        """按标题返回所有启用的背景音乐"""
