"""游戏配置中心 (SSOT - 单一事实来源)

- GameConfig / WinCondition: 一局游戏的规则集，随 GameState 一起保存，不可变
- EngineSettings: 引擎运行参数，支持从环境变量覆盖
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from typing import Any

from .enums import COMPARISON_OPERATORS, WinConditionType


def _get_env_float(key: str, default: float) -> float:
    """从环境变量获取浮点数配置"""
    value = os.environ.get(key)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            pass
    return default


def _get_env_int(key: str, default: int) -> int:
    """从环境变量获取整数配置"""
    value = os.environ.get(key)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            pass
    return default


def _get_env_bool(key: str, default: bool) -> bool:
    """从环境变量获取布尔配置"""
    value = os.environ.get(key, "").lower()
    if value in ("true", "1", "yes", "on"):
        return True
    elif value in ("false", "0", "no", "off"):
        return False
    return default


# ==================== 规则集 ====================


@dataclass(frozen=True)
class WinCondition:
    """胜利条件

    Attributes:
        type: 条件类型
        stat: 属性名（stat_threshold）
        resource: 资源名（resource_threshold，缺省时回退到 stat）
        operator: 比较运算符
        value: 阈值；turn_limit 时为回合上限
        custom_check: 自定义判定器名称（custom）
        tiebreak_stat: 回合上限到达时用于比较高低的属性（turn_limit 必填）
    """

    type: WinConditionType
    stat: str | None = None
    resource: str | None = None
    operator: str | None = None
    value: float | None = None
    custom_check: str | None = None
    tiebreak_stat: str | None = None

    def __post_init__(self):
        if isinstance(self.type, str) and not isinstance(self.type, WinConditionType):
            object.__setattr__(self, "type", WinConditionType(self.type))

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WinCondition:
        return cls(
            type=WinConditionType(data["type"]),
            stat=data.get("stat"),
            resource=data.get("resource"),
            operator=data.get("operator"),
            value=data.get("value"),
            custom_check=data.get("custom_check"),
            tiebreak_stat=data.get("tiebreak_stat"),
        )


@dataclass(frozen=True)
class GameConfig:
    """游戏规则配置 (不可变)

    所有玩家共用同一份初始属性/资源，加入游戏时各自复制。
    """

    # ==================== 玩家与手牌 ====================
    max_players: int = 4
    min_players: int = 1
    initial_hand_size: int = 3
    max_hand_size: int = 7
    turn_time_limit: int | None = None  # 秒

    # ==================== 胜利条件 ====================
    win_conditions: tuple[WinCondition, ...] = ()

    # ==================== 初始数值 ====================
    initial_stats: dict[str, float] = field(default_factory=dict)
    initial_resources: dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        # 允许以 list 传入，统一收敛为 tuple
        if not isinstance(self.win_conditions, tuple):
            object.__setattr__(self, "win_conditions", tuple(self.win_conditions))

    def validate(self) -> list[str]:
        """校验配置，返回错误列表（空表示通过）"""
        errors: list[str] = []
        if self.min_players < 1:
            errors.append(f"min_players must be >= 1, got {self.min_players}")
        if self.max_players < self.min_players:
            errors.append(
                f"min_players ({self.min_players}) exceeds max_players ({self.max_players})"
            )
        if self.max_hand_size < 1:
            errors.append(f"max_hand_size must be >= 1, got {self.max_hand_size}")
        if self.initial_hand_size < 0:
            errors.append(f"initial_hand_size must be >= 0, got {self.initial_hand_size}")
        if self.initial_hand_size > self.max_hand_size:
            errors.append(
                f"initial_hand_size ({self.initial_hand_size}) exceeds "
                f"max_hand_size ({self.max_hand_size})"
            )
        for i, cond in enumerate(self.win_conditions):
            if cond.operator is not None and cond.operator not in COMPARISON_OPERATORS:
                errors.append(f"win_conditions[{i}]: unknown operator {cond.operator!r}")
            if cond.type == WinConditionType.TURN_LIMIT and not cond.tiebreak_stat:
                errors.append(f"win_conditions[{i}]: turn_limit requires tiebreak_stat")
            if cond.type == WinConditionType.CUSTOM and not cond.custom_check:
                errors.append(f"win_conditions[{i}]: custom requires custom_check")
        return errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_players": self.max_players,
            "min_players": self.min_players,
            "initial_hand_size": self.initial_hand_size,
            "max_hand_size": self.max_hand_size,
            "turn_time_limit": self.turn_time_limit,
            "win_conditions": [c.to_dict() for c in self.win_conditions],
            "initial_stats": dict(self.initial_stats),
            "initial_resources": dict(self.initial_resources),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameConfig:
        return cls(
            max_players=data.get("max_players", 4),
            min_players=data.get("min_players", 1),
            initial_hand_size=data.get("initial_hand_size", 3),
            max_hand_size=data.get("max_hand_size", 7),
            turn_time_limit=data.get("turn_time_limit"),
            win_conditions=tuple(
                WinCondition.from_dict(c) for c in data.get("win_conditions", [])
            ),
            initial_stats=dict(data.get("initial_stats", {})),
            initial_resources=dict(data.get("initial_resources", {})),
        )


# ==================== 引擎运行参数 ====================


@dataclass(frozen=True)
class EngineSettings:
    """引擎运行参数 (不可变)

    所有配置项支持通过环境变量覆盖：
    - CARDGAME_EVENT_HISTORY: 事件历史记录上限
    - CARDGAME_TURN_DRAW: 每回合自动摸牌数
    - CARDGAME_AI_THINK_DELAY: AI 思考延迟秒数（供外部 AI 使用）
    - CARDGAME_LOG_LEVEL: 日志级别
    """

    event_history_size: int = field(
        default_factory=lambda: _get_env_int("CARDGAME_EVENT_HISTORY", 100)
    )
    turn_draw_count: int = field(
        default_factory=lambda: _get_env_int("CARDGAME_TURN_DRAW", 1)
    )
    auto_draw_on_turn_start: bool = field(
        default_factory=lambda: _get_env_bool("CARDGAME_AUTO_DRAW", True)
    )
    ai_think_delay: float = field(
        default_factory=lambda: _get_env_float("CARDGAME_AI_THINK_DELAY", 0.5)
    )
    log_level: str = field(
        default_factory=lambda: os.environ.get("CARDGAME_LOG_LEVEL", "INFO")
    )

    @classmethod
    def from_env(cls) -> EngineSettings:
        """从环境变量创建配置实例"""
        return cls()


# 运行参数懒加载（只读，不含任何对局状态）
_settings: EngineSettings | None = None


def get_settings() -> EngineSettings:
    """获取引擎运行参数（懒加载）"""
    global _settings
    if _settings is None:
        _settings = EngineSettings.from_env()
    return _settings


def reset_settings() -> None:
    """重置运行参数（用于测试）"""
    global _settings
    _settings = None
