"""
数据库配置
支持SQLite（开发）和PostgreSQL（生产）
"""
from contextlib import contextmanager
from typing import Iterator
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

# 数据库连接配置
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "sqlite:///./data/wordvale.db"  # 默认SQLite
)

# 创建引擎（阅读会话的定时器线程也会写库，SQLite 需要关闭同线程检查）
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if "sqlite" in DATABASE_URL else {}
)

# 创建会话工厂
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# 依赖注入
def get_db():
    """数据库会话依赖注入"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(factory=None) -> Iterator[Session]:
    """
    请求之外使用的事务作用域（定时器回调、脚本）

    正常退出时提交，异常时回滚并继续抛出。

    Args:
        factory: 会话工厂，默认 SessionLocal（测试可替换）
    """
    session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
