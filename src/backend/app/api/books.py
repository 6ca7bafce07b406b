"""
图书目录API：浏览、上传、评分
"""
from typing import List, Optional
from pydantic import BaseModel, Field
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.identity import Identity, get_identity, require_identity
from app.services import BookService, CategoryService, RatingService, UserService
from app.services.book_service import serialize_book


router = APIRouter(tags=["图书目录"])


# 请求模型
class BookUpload(BaseModel):
    """图书上传请求（文件已上传到外部存储，这里只传地址）"""
    title: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    tags: Optional[str] = None  # 逗号分隔
    total_pages: int = Field(0, ge=0)
    file_url: Optional[str] = None
    cover_url: Optional[str] = None


class RatingSubmit(BaseModel):
    """评分请求"""
    rating: int = Field(..., ge=1, le=5)
    review: Optional[str] = None


@router.get("/books/personalized")
def list_personalized(category: Optional[str] = None, db: Session = Depends(get_db)):
    """个性化推荐（最新在前，可按分类过滤）"""
    return [serialize_book(b) for b in BookService.list_personalized(db, category=category)]


@router.get("/books/trending")
def list_trending(db: Session = Depends(get_db)):
    """热门图书（按平均评分）"""
    return [serialize_book(b) for b in BookService.list_trending(db)]


@router.get("/books/{book_id}")
def get_book(
    book_id: str,
    identity: Optional[Identity] = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """图书详情；未审核的图书只有作者本人和管理员能看到"""
    book = BookService.get_visible_book(
        db,
        book_id,
        viewer_id=identity.user_id if identity else None,
        viewer_is_admin=bool(identity and identity.is_admin),
    )
    if not book:
        raise HTTPException(status_code=404, detail="图书不存在")
    return serialize_book(book)


@router.post("/books", status_code=status.HTTP_201_CREATED)
def upload_book(
    payload: BookUpload,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    """
    上传图书

    新书状态为 pending，需要管理员审核后才会出现在目录中
    """
    author = UserService.get_user(db, identity.user_id)
    try:
        book = BookService.upload_book(
            db,
            author,
            payload.title,
            description=payload.description,
            category_id=payload.category_id,
            tags=payload.tags,
            total_pages=payload.total_pages,
            file_url=payload.file_url,
            cover_url=payload.cover_url,
        )
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return serialize_book(book)


@router.get("/categories")
def list_categories(db: Session = Depends(get_db)):
    """前台可见的分类"""
    return [CategoryService.to_dict(c) for c in CategoryService.list_active(db)]


@router.post("/books/{book_id}/ratings")
def submit_rating(
    book_id: str,
    payload: RatingSubmit,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    """提交或修改评分"""
    try:
        record = RatingService.submit_rating(
            db, identity.user_id, book_id, payload.rating,
            review=payload.review, is_admin=identity.is_admin
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    book = BookService.get_book(db, book_id)
    return {
        "id": record.id,
        "book_id": book_id,
        "rating": record.rating,
        "review": record.review,
        "avg_rating": book.avg_rating,
    }


@router.get("/books/{book_id}/ratings")
def list_ratings(book_id: str, limit: int = 20, db: Session = Depends(get_db)) -> List[dict]:
    """图书评分列表，最新在前"""
    return [
        {
            "id": r.id,
            "username": r.user.username if r.user else None,
            "rating": r.rating,
            "review": r.review,
            "created_at": r.created_at.isoformat() if r.created_at else None,
        }
        for r in RatingService.list_reviews(db, book_id, limit=limit)
    ]
