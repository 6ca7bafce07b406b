"""
ORM 声明基类
"""
from sqlalchemy.orm import declarative_base

Base = declarative_base()
