"""
个人书架API
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.identity import Identity, require_identity
from app.services import LibraryService


router = APIRouter(prefix="/library", tags=["个人书架"])


@router.get("")
def list_library(
    shelf: Optional[str] = None,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    """
    用户书架

    shelf: reading | favorites | finished，不传返回全部
    """
    try:
        return LibraryService.list_library(db, identity.user_id, shelf=shelf)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{book_id}/favorite")
def toggle_favorite(
    book_id: str,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    """收藏 / 取消收藏"""
    try:
        user_book = LibraryService.toggle_favorite(db, identity.user_id, book_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"book_id": book_id, "is_favorite": user_book.is_favorite}
