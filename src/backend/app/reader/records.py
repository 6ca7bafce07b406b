"""
阅读器使用的只读数据记录

会话对象会跨请求线程和定时器线程存活，不直接持有 ORM 实例。
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class BookRef:
    """打开会话所需的图书信息"""
    id: str
    title: str
    total_pages: int


@dataclass(frozen=True)
class Track:
    """背景音乐曲目"""
    id: str
    title: str
    file_url: str
    artist: Optional[str] = None
    genre: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BookmarkEntry:
    """书签 / 高亮记录"""
    id: str
    user_id: str
    book_id: str
    page_number: int
    note: Optional[str] = None
    highlight_text: Optional[str] = None
    highlight_color: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat() if self.created_at else None
        return data
