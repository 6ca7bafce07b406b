"""
阅读会话服务
负责从数据库装配图书与已有进度，再交给在线会话登记表
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from app.models import UserBook
from app.reader import BookRef, ReadingSession, SessionRegistry, Track
from app.services.book_service import BookService


class ReaderService:
    """阅读会话服务"""

    @staticmethod
    def open_session(
        db: Session,
        registry: SessionRegistry,
        user_id: str,
        book_id: str,
        initial_progress: Optional[float] = None,
        is_admin: bool = False
    ) -> ReadingSession:
        """
        打开（或取回）阅读会话

        未指定 initial_progress 时，从已保存的阅读进度继续；
        阅读时长在已保存的基础上累计。

        Args:
            db: 数据库会话
            registry: 在线会话登记表
            user_id: 用户 ID
            book_id: 图书 ID
            initial_progress: 起始百分比（0-100，可选）
            is_admin: 是否管理员（可打开未审核的图书）

        Returns:
            ReadingSession: 在线会话

        Raises:
            ValueError: 图书不存在、对该用户不可见或没有页面
        """
        existing = registry.get(user_id, book_id)
        if existing is not None:
            return existing

        book = BookService.get_visible_book(db, book_id, viewer_id=user_id, viewer_is_admin=is_admin)
        if not book:
            raise ValueError(f"图书 {book_id} 不存在")

        stored = db.query(UserBook).filter(
            UserBook.user_id == user_id,
            UserBook.book_id == book_id
        ).first()

        if initial_progress is None:
            initial_progress = stored.reading_progress if stored else 0
        initial_progress = min(max(float(initial_progress), 0.0), 100.0)
        elapsed = stored.reading_time if stored else 0

        return registry.open(
            BookRef(id=book.id, title=book.title, total_pages=book.total_pages or 0),
            initial_progress,
            user_id,
            elapsed_minutes=elapsed or 0,
        )

    @staticmethod
    def get_session(registry: SessionRegistry, user_id: str, book_id: str) -> ReadingSession:
        """
        Raises:
            ValueError: 没有在线会话
        """
        session = registry.get(user_id, book_id)
        if session is None:
            raise ValueError(f"图书 {book_id} 没有打开的阅读会话")
        return session

    @staticmethod
    def close_session(registry: SessionRegistry, user_id: str, book_id: str) -> bool:
        return registry.close(user_id, book_id)

    @staticmethod
    def list_music(registry: SessionRegistry) -> List[Track]:
        """启用的背景音乐，按标题排序"""
        return registry.gateway.fetch_active_music()

    @staticmethod
    def find_track(registry: SessionRegistry, track_id: str) -> Track:
        """
        Raises:
            ValueError: 曲目不存在或已停用
        """
        for track in registry.gateway.fetch_active_music():
            if track.id == track_id:
                return track
        raise ValueError(f"曲目 {track_id} 不存在或已停用")
