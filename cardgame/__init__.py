"""
回合制卡牌游戏规则引擎
包含事件总线、效果结算器、游戏状态管理器和回合管理器

- 事件总线 (events.py): 同步、按优先级派发，带有限长度的历史记录
- 效果结算器 (effects.py): 解释卡牌/状态上的声明式效果，支持自定义处理器
- 状态管理器 (state_manager.py): 权威 GameState 与所有修改操作
- 回合管理器 (turn_manager.py): 阶段状态机与可替换的调度器
"""

from .card import Card, CardFilter, Deck
from .config import EngineSettings, GameConfig, WinCondition, get_settings, reset_settings
from .effects import EffectContext, EffectResolver, TargetSelectionRequest
from .enums import (
    ActionType, CardRarity, CardState, CardType, ConditionType,
    EffectTarget, EffectType, EventType, GamePhase, WinConditionType,
)
from .events import EventBus, GameEvent
from .exceptions import ConfigError, ExtensionConflictError, GameError, UnknownPhaseError
from .hand import Hand
from .models import (
    ActionResult, CardDefinition, CardInstance, CardModifier, Effect, EffectCondition,
    GameAction, GameState, PlayerState, PlayerStatus, ResolvedEffect,
)
from .scheduling import AsyncioScheduler, ManualScheduler, PhaseScheduler
from .schemas import Theme, load_theme, parse_theme
from .state_manager import GameStateManager, WinCheckResult
from .turn_manager import TurnManager, TurnPhaseConfig, default_phases

__all__ = [
    # 卡牌系统
    'Card', 'CardFilter', 'Deck', 'Hand',
    'CardDefinition', 'CardInstance', 'CardModifier',
    # 状态数据
    'GameState', 'PlayerState', 'PlayerStatus', 'GameAction', 'ActionResult',
    # 配置
    'GameConfig', 'WinCondition', 'EngineSettings', 'get_settings', 'reset_settings',
    # 枚举
    'ActionType', 'CardRarity', 'CardState', 'CardType', 'ConditionType',
    'EffectTarget', 'EffectType', 'EventType', 'GamePhase', 'WinConditionType',
    # 事件系统
    'EventBus', 'GameEvent',
    # 效果系统
    'Effect', 'EffectCondition', 'EffectContext', 'EffectResolver',
    'ResolvedEffect', 'TargetSelectionRequest',
    # 状态管理与回合
    'GameStateManager', 'WinCheckResult',
    'TurnManager', 'TurnPhaseConfig', 'default_phases',
    'AsyncioScheduler', 'ManualScheduler', 'PhaseScheduler',
    # 主题
    'Theme', 'load_theme', 'parse_theme',
    # 异常
    'GameError', 'ConfigError', 'ExtensionConflictError', 'UnknownPhaseError',
]

__version__ = '0.1.0'
