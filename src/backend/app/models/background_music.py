"""
背景音乐模型（管理员维护，阅读器只读）
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime
from datetime import datetime

from .base import Base


class BackgroundMusic(Base):
    """背景音乐"""
    __tablename__ = "background_music"

    id = Column(String(36), primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    artist = Column(String(200), nullable=True)
    genre = Column(String(50), nullable=True)
    file_url = Column(String(500), nullable=False)
    duration = Column(Integer, default=0)  # 秒
    is_active = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<BackgroundMusic(id='{self.id}' title='{self.title}' active={self.is_active})>"
