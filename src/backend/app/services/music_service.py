"""
背景音乐管理服务（管理后台）
音频文件由外部存储托管，这里只维护记录
"""
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.models import BackgroundMusic


class MusicService:
    """背景音乐管理服务"""

    @staticmethod
    def list_music(db: Session) -> List[BackgroundMusic]:
        """全部曲目，新上传的在前"""
        return db.query(BackgroundMusic).order_by(BackgroundMusic.created_at.desc()).all()

    @staticmethod
    def get_music(db: Session, music_id: str) -> Optional[BackgroundMusic]:
        return db.query(BackgroundMusic).filter(BackgroundMusic.id == music_id).first()

    @staticmethod
    def create_music(
        db: Session,
        title: str,
        file_url: str,
        artist: Optional[str] = None,
        genre: Optional[str] = None,
        duration: int = 0,
        is_active: bool = True
    ) -> BackgroundMusic:
        """
        新增曲目

        Raises:
            ValueError: 标题或文件地址为空
        """
        if not title or not title.strip():
            raise ValueError("曲目标题不能为空")
        if not file_url:
            raise ValueError("音频文件地址不能为空")

        music = BackgroundMusic(
            id=str(uuid.uuid4()),
            title=title.strip(),
            artist=artist or None,
            genre=genre or None,
            file_url=file_url,
            duration=max(0, duration),
            is_active=is_active,
            created_at=datetime.utcnow()
        )
        db.add(music)
        db.commit()
        db.refresh(music)
        return music

    @staticmethod
    def update_music(db: Session, music_id: str, **fields) -> BackgroundMusic:
        """更新曲目，值为 None 的字段保持不变"""
        music = MusicService.get_music(db, music_id)
        if not music:
            raise ValueError(f"曲目 {music_id} 不存在")

        for key in ("title", "artist", "genre", "file_url", "duration", "is_active"):
            if fields.get(key) is not None:
                setattr(music, key, fields[key])

        db.commit()
        db.refresh(music)
        return music

    @staticmethod
    def toggle_active(db: Session, music_id: str) -> BackgroundMusic:
        music = MusicService.get_music(db, music_id)
        if not music:
            raise ValueError(f"曲目 {music_id} 不存在")

        music.is_active = not music.is_active
        db.commit()
        db.refresh(music)
        return music

    @staticmethod
    def delete_music(db: Session, music_id: str) -> None:
        music = MusicService.get_music(db, music_id)
        if not music:
            raise ValueError(f"曲目 {music_id} 不存在")

        db.delete(music)
        db.commit()

    @staticmethod
    def to_dict(music: BackgroundMusic) -> Dict:
        return {
            "id": music.id,
            "title": music.title,
            "artist": music.artist,
            "genre": music.genre,
            "file_url": music.file_url,
            "duration": music.duration,
            "is_active": music.is_active,
            "created_at": music.created_at.isoformat() if music.created_at else None,
        }
