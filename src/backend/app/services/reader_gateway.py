"""
阅读器数据网关的数据库实现

会话的防抖写入运行在定时器线程里，不能复用请求的数据库会话，
每次调用都通过 session_scope 开一个独立事务。
"""
import uuid
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import session_scope
from app.models import BackgroundMusic, Bookmark, UserBook
from app.reader.gateway import ReaderGateway
from app.reader.records import BookmarkEntry, Track

logger = logging.getLogger(__name__)


def bookmark_entry(bookmark: Bookmark) -> BookmarkEntry:
    return BookmarkEntry(
        id=bookmark.id,
        user_id=bookmark.user_id,
        book_id=bookmark.book_id,
        page_number=bookmark.page_number,
        note=bookmark.note,
        highlight_text=bookmark.highlight_text,
        highlight_color=bookmark.highlight_color,
        created_at=bookmark.created_at,
    )


def music_track(music: BackgroundMusic) -> Track:
    return Track(
        id=music.id,
        title=music.title,
        file_url=music.file_url,
        artist=music.artist,
        genre=music.genre,
    )


class DatabaseReaderGateway(ReaderGateway):
    """基于 SQLAlchemy 的阅读器数据网关"""

    def __init__(self, session_factory=None):
        """
        Args:
            session_factory: 会话工厂，默认 SessionLocal（测试传入内存库的工厂）
        """
        self._session_factory = session_factory

    def upsert_progress(
        self,
        user_id: str,
        book_id: str,
        current_page: int,
        progress_percent: int,
        elapsed_minutes: int,
    ) -> None:
        try:
            with session_scope(self._session_factory) as db:
                self._apply_progress(db, user_id, book_id, current_page, progress_percent, elapsed_minutes)
        except IntegrityError:
            # 另一个写入者刚插入了同一 (user, book)，改为更新
            logger.info(f"阅读进度插入冲突，改为更新: user={user_id} book={book_id}")
            with session_scope(self._session_factory) as db:
                self._apply_progress(db, user_id, book_id, current_page, progress_percent, elapsed_minutes)

    @staticmethod
    def _apply_progress(
        db: Session,
        user_id: str,
        book_id: str,
        current_page: int,
        progress_percent: int,
        elapsed_minutes: int,
    ) -> UserBook:
        now = datetime.utcnow()
        progress = db.query(UserBook).filter(
            UserBook.user_id == user_id,
            UserBook.book_id == book_id
        ).first()

        if progress is None:
            progress = UserBook(
                id=str(uuid.uuid4()),
                user_id=user_id,
                book_id=book_id,
                started_reading_at=now,
            )
            db.add(progress)

        progress.current_page = current_page
        progress.reading_progress = progress_percent
        progress.reading_time = elapsed_minutes
        progress.last_read_at = now
        if progress_percent >= 100 and progress.finished_reading_at is None:
            progress.finished_reading_at = now

        db.flush()
        return progress

    def insert_bookmark(
        self,
        user_id: str,
        book_id: str,
        page_number: int,
        note: Optional[str] = None,
        highlight_text: Optional[str] = None,
        highlight_color: Optional[str] = None,
    ) -> BookmarkEntry:
        with session_scope(self._session_factory) as db:
            bookmark = Bookmark(
                id=str(uuid.uuid4()),
                user_id=user_id,
                book_id=book_id,
                page_number=page_number,
                note=note,
                highlight_text=highlight_text,
                highlight_color=highlight_color,
                created_at=datetime.utcnow(),
            )
            db.add(bookmark)
            db.flush()
            return bookmark_entry(bookmark)

    def fetch_bookmarks(self, user_id: str, book_id: str) -> List[BookmarkEntry]:
        with session_scope(self._session_factory) as db:
            bookmarks = db.query(Bookmark).filter(
                Bookmark.user_id == user_id,
                Bookmark.book_id == book_id
            ).order_by(Bookmark.page_number.asc(), Bookmark.created_at.asc()).all()
            return [bookmark_entry(b) for b in bookmarks]

    def fetch_active_music(self) -> List[Track]:
        with session_scope(self._session_factory) as db:
            tracks = db.query(BackgroundMusic).filter(
                BackgroundMusic.is_active == True
            ).order_by(BackgroundMusic.title.asc()).all()
            return [music_track(t) for t in tracks]
