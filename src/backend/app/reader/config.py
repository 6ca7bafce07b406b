"""
阅读器配置模块

统一管理阅读会话的定时器与显示默认值。
配置优先级：环境变量 > 默认值
"""

import os
from dataclasses import dataclass


@dataclass
class ReaderConfig:
    """
    阅读会话配置

    Attributes:
        persist_delay: 进度写入的防抖延迟（秒）
        tick_interval: 阅读计时间隔（秒），每次计一分钟
        idle_timeout: 无操作多久后停止计时并关闭会话（秒），0 表示不限
        default_zoom: 打开会话时的缩放百分比
        default_font_size: 打开会话时的字号（px）
        default_volume: 背景音乐初始音量（0-100）
    """
    persist_delay: float = 2.0
    tick_interval: float = 60.0
    idle_timeout: float = 1800.0
    default_zoom: int = 100
    default_font_size: int = 16
    default_volume: int = 50


def get_reader_config() -> ReaderConfig:
    """
    从环境变量获取阅读器配置

    环境变量：
        READER_PERSIST_DELAY_SECONDS: 防抖延迟，默认 2
        READER_TICK_INTERVAL_SECONDS: 计时间隔，默认 60
        READER_IDLE_TIMEOUT_SECONDS: 空闲超时，默认 1800
    """
    return ReaderConfig(
        persist_delay=float(os.getenv("READER_PERSIST_DELAY_SECONDS", "2.0")),
        tick_interval=float(os.getenv("READER_TICK_INTERVAL_SECONDS", "60.0")),
        idle_timeout=float(os.getenv("READER_IDLE_TIMEOUT_SECONDS", "1800.0")),
    )
