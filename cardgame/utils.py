"""通用工具函数"""

from __future__ import annotations

import time
import uuid
from typing import Any


def generate_id(prefix: str = "id") -> str:
    """生成带前缀的唯一 ID，形如 ``card_18c2f0a1b3d_5f2c9e1a``"""
    return f"{prefix}_{now_ms():x}_{uuid.uuid4().hex[:8]}"


def now_ms() -> int:
    """当前时间戳（毫秒）"""
    return int(time.time() * 1000)


def compare(actual: float, operator: str | None, expected: float) -> bool:
    """按运算符比较两个数值，未知运算符返回 False"""
    if operator == ">":
        return actual > expected
    if operator == "<":
        return actual < expected
    if operator == ">=":
        return actual >= expected
    if operator == "<=":
        return actual <= expected
    if operator == "==":
        return actual == expected
    if operator == "!=":
        return actual != expected
    return False


def as_number(value: Any, default: float = 0) -> float:
    """把效果/条件里的 value 转成数值

    卡牌数据里的数值可能是字符串（"3"），无法解析时返回 default。
    整数值保持 int 类型，便于状态序列化。
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return int(number) if number.is_integer() else number
