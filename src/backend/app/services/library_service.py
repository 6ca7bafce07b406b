"""
个人书架服务
"""
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from app.models import Book, UserBook
from app.services.book_service import serialize_book

SHELVES = ("reading", "favorites", "finished")


class LibraryService:
    """个人书架服务"""

    @staticmethod
    def get_user_book(db: Session, user_id: str, book_id: str) -> Optional[UserBook]:
        return db.query(UserBook).filter(
            UserBook.user_id == user_id,
            UserBook.book_id == book_id
        ).first()

    @staticmethod
    def list_library(db: Session, user_id: str, shelf: Optional[str] = None) -> List[Dict]:
        """
        用户书架，最近阅读的在前

        Args:
            db: 数据库会话
            user_id: 用户 ID
            shelf: reading（0 < 进度 < 100）| favorites | finished，None 表示全部

        Returns:
            List[Dict]: 图书字典，附带个人阅读状态

        Raises:
            ValueError: 不支持的书架名
        """
        if shelf is not None and shelf not in SHELVES:
            raise ValueError(f"不支持的书架: {shelf}")

        rows = db.query(UserBook).options(
            joinedload(UserBook.book).joinedload(Book.author)
        ).filter(
            UserBook.user_id == user_id
        ).order_by(UserBook.last_read_at.desc()).all()

        if shelf == "reading":
            rows = [r for r in rows if 0 < (r.reading_progress or 0) < 100]
        elif shelf == "favorites":
            rows = [r for r in rows if r.is_favorite]
        elif shelf == "finished":
            rows = [r for r in rows if r.finished_reading_at is not None]

        return [LibraryService.to_dict(r) for r in rows]

    @staticmethod
    def toggle_favorite(db: Session, user_id: str, book_id: str) -> UserBook:
        """
        收藏 / 取消收藏；没有阅读记录时新建一条

        Raises:
            ValueError: 图书不存在
        """
        if not db.query(Book).filter(Book.id == book_id).first():
            raise ValueError(f"图书 {book_id} 不存在")

        user_book = LibraryService.get_user_book(db, user_id, book_id)
        if user_book is None:
            user_book = UserBook(
                id=str(uuid.uuid4()),
                user_id=user_id,
                book_id=book_id,
                current_page=1,
                reading_progress=0,
                reading_time=0,
                is_favorite=True,
                started_reading_at=datetime.utcnow(),
                last_read_at=datetime.utcnow()
            )
            db.add(user_book)
        else:
            user_book.is_favorite = not user_book.is_favorite

        db.commit()
        db.refresh(user_book)
        return user_book

    @staticmethod
    def to_dict(user_book: UserBook) -> Dict:
        data = serialize_book(user_book.book)
        data.update({
            "current_page": user_book.current_page,
            "reading_progress": user_book.reading_progress,
            "reading_time": user_book.reading_time,
            "is_favorite": user_book.is_favorite,
            "started_reading_at": user_book.started_reading_at.isoformat() if user_book.started_reading_at else None,
            "finished_reading_at": user_book.finished_reading_at.isoformat() if user_book.finished_reading_at else None,
            "last_read_at": user_book.last_read_at.isoformat() if user_book.last_read_at else None,
        })
        return data
