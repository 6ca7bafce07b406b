#!/usr/bin/env python3
"""
数据库初始化脚本
创建所有数据库表，并可选地写入管理员与示例数据
"""
import argparse
import sys
import os
from pathlib import Path

# Add src/backend to path
backend_dir = Path(__file__).parent / ".." / "src" / "backend"
sys.path.insert(0, str(backend_dir))

# Change to backend directory so relative paths work
os.chdir(str(backend_dir))

# Ensure data directory exists
data_dir = Path("data")
data_dir.mkdir(exist_ok=True)

from app.core.database import session_scope
from app.models import init_db
from app.services import UserService, CategoryService, MusicService

DEMO_CATEGORIES = [
    ("Technology", "Cpu", "#06b6d4"),
    ("Science", "Microscope", "#10b981"),
    ("Fiction", "Feather", "#8b5cf6"),
    ("Self-Help", "Heart", "#ec4899"),
]

DEMO_TRACKS = [
    ("Rain on Glass", "Ambient Loops", "Ambient"),
    ("Quiet Library", "Study Beats", "Lo-fi"),
]


def seed_demo_data():
    """写入管理员、作者和示例分类 / 背景音乐（已存在则跳过）"""
    with session_scope() as db:
        UserService.get_or_create_user(db, "admin", role="admin")
        UserService.get_or_create_user(db, "demo_author", role="author")
        UserService.get_or_create_user(db, "demo", role="user")

        existing = {c["name"] for c in CategoryService.list_categories(db)}
        for name, icon, color in DEMO_CATEGORIES:
            if name not in existing:
                CategoryService.create_category(db, name, icon=icon, color=color)

        if not MusicService.list_music(db):
            for title, artist, genre in DEMO_TRACKS:
                MusicService.create_music(
                    db, title, f"/music/{title.lower().replace(' ', '-')}.mp3",
                    artist=artist, genre=genre
                )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="初始化 WordVale 数据库")
    parser.add_argument("--seed", action="store_true", help="写入示例数据")
    args = parser.parse_args()

    print("初始化数据库...")
    init_db()
    if args.seed:
        seed_demo_data()
        print("示例数据已写入")
    print("完成！")
