"""引擎枚举：阶段、卡牌状态、效果类型、事件类型

所有枚举都以 str 为基类，状态对象可直接 json.dumps，
事件总线也可以同时接受 ``EventType.CARD_PLAYED`` 与 ``"card_played"``。
"""

from enum import Enum


class GamePhase(str, Enum):
    """游戏阶段枚举"""

    SETUP = "setup"  # 准备（未开局）
    DRAW = "draw"  # 摸牌阶段
    MAIN = "main"  # 主阶段
    ACTION = "action"  # 行动阶段
    RESOLVE = "resolve"  # 结算阶段
    END = "end"  # 结束阶段
    GAME_OVER = "game_over"  # 游戏结束


class CardState(str, Enum):
    """卡牌实例所在位置"""

    IN_DECK = "in_deck"
    IN_HAND = "in_hand"
    IN_PLAY = "in_play"
    DISCARDED = "discarded"
    REMOVED = "removed"


class CardType(str, Enum):
    """卡牌类型枚举"""

    ACTION = "action"
    EVENT = "event"
    RESOURCE = "resource"
    CHARACTER = "character"
    MODIFIER = "modifier"


class CardRarity(str, Enum):
    """稀有度"""

    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    LEGENDARY = "legendary"


class EffectType(str, Enum):
    """内置效果类型

    未列出的字符串类型由 EffectResolver 的自定义处理器注册表负责。
    """

    MODIFY_STAT = "modify_stat"
    DRAW_CARDS = "draw_cards"
    DISCARD_CARDS = "discard_cards"
    GAIN_RESOURCE = "gain_resource"
    LOSE_RESOURCE = "lose_resource"
    TRIGGER_EVENT = "trigger_event"
    APPLY_STATUS = "apply_status"
    REMOVE_STATUS = "remove_status"
    # 竞争模式
    TRANSFER_STAT = "transfer_stat"
    STEAL_RESOURCE = "steal_resource"
    DAMAGE_STAT = "damage_stat"
    CLAIM_SHARED = "claim_shared"
    CUSTOM = "custom"


class EffectTarget(str, Enum):
    """效果目标选择器

    不在此枚举中的字符串被视为显式玩家 ID。
    """

    SELF = "self"
    OPPONENT = "opponent"
    ALL_PLAYERS = "all_players"
    RANDOM_PLAYER = "random_player"
    SELECTED_CARD = "selected_card"
    ALL_CARDS = "all_cards"
    GAME = "game"
    # 竞争模式
    SELECTED_OPPONENT = "selected_opponent"
    ALL_OPPONENTS = "all_opponents"
    WEAKEST_OPPONENT = "weakest_opponent"
    STRONGEST_OPPONENT = "strongest_opponent"


class ConditionType(str, Enum):
    """效果条件类型"""

    STAT_CHECK = "stat_check"
    CARD_COUNT = "card_count"
    TURN_COUNT = "turn_count"
    CUSTOM = "custom"


class WinConditionType(str, Enum):
    """胜利条件类型"""

    STAT_THRESHOLD = "stat_threshold"
    RESOURCE_THRESHOLD = "resource_threshold"
    TURN_LIMIT = "turn_limit"
    CUSTOM = "custom"


class ActionType(str, Enum):
    """历史记录中的动作类型"""

    PLAY_CARD = "play_card"
    DRAW_CARD = "draw_card"
    DISCARD_CARD = "discard_card"
    USE_ABILITY = "use_ability"
    END_TURN = "end_turn"
    SELECT_TARGET = "select_target"
    RESPOND = "respond"
    PASS = "pass"
    CUSTOM = "custom"


class EventType(str, Enum):
    """游戏事件类型枚举"""

    # 游戏流程
    GAME_STARTED = "game_started"
    GAME_ENDED = "game_ended"
    TURN_STARTED = "turn_started"
    TURN_ENDED = "turn_ended"
    PHASE_CHANGED = "phase_changed"

    # 卡牌
    CARD_DRAWN = "card_drawn"
    CARD_PLAYED = "card_played"
    CARD_DISCARDED = "card_discarded"

    # 效果与数值
    EFFECT_TRIGGERED = "effect_triggered"
    STAT_CHANGED = "stat_changed"
    RESOURCE_CHANGED = "resource_changed"

    # 状态（由外部状态系统发布）
    STATUS_APPLIED = "status_applied"
    STATUS_REMOVED = "status_removed"
    STATUS_TICK = "status_tick"

    # 外部扩展系统
    COMBO_TRIGGERED = "combo_triggered"
    CARD_UPGRADED = "card_upgraded"
    PLAYER_ACTION = "player_action"

    # 玩家管理
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"

    CUSTOM = "custom"


# 比较运算符（条件与胜利判定共用）
COMPARISON_OPERATORS: tuple[str, ...] = (">", "<", ">=", "<=", "==", "!=")
