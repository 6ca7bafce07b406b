"""
评分服务
"""
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models import Rating
from app.services.book_service import BookService


class RatingService:
    """评分服务（每个用户对每本书一条评分）"""

    @staticmethod
    def submit_rating(
        db: Session,
        user_id: str,
        book_id: str,
        rating: int,
        review: Optional[str] = None,
        is_admin: bool = False
    ) -> Rating:
        """
        提交或修改评分，并重新计算图书平均分

        Args:
            db: 数据库会话
            user_id: 用户 ID
            book_id: 图书 ID
            rating: 1-5 星
            review: 书评（可选）
            is_admin: 评分者是否管理员（可对未审核的图书评分）

        Returns:
            Rating: 评分记录

        Raises:
            ValueError: 评分越界，或图书不存在、对该用户不可见
        """
        if not 1 <= int(rating) <= 5:
            raise ValueError("评分必须在 1 到 5 之间")

        book = BookService.get_visible_book(db, book_id, viewer_id=user_id, viewer_is_admin=is_admin)
        if not book:
            raise ValueError(f"图书 {book_id} 不存在")

        record = db.query(Rating).filter(
            Rating.user_id == user_id,
            Rating.book_id == book_id
        ).first()

        if record:
            record.rating = int(rating)
            record.review = review
        else:
            record = Rating(
                id=str(uuid.uuid4()),
                user_id=user_id,
                book_id=book_id,
                rating=int(rating),
                review=review,
                created_at=datetime.utcnow()
            )
            db.add(record)
        db.flush()

        average = db.query(func.avg(Rating.rating)).filter(Rating.book_id == book_id).scalar()
        book.avg_rating = round(float(average or 0), 2)

        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def list_reviews(db: Session, book_id: str, limit: int = 20) -> List[Rating]:
        """图书的评分 / 书评，最新的在前"""
        return db.query(Rating).filter(
            Rating.book_id == book_id
        ).order_by(Rating.created_at.desc()).limit(limit).all()
