"""主题校验 Pydantic 模型

主题文件（JSON）包含一局游戏的规则配置和全部卡牌定义。
加载流程:
  1. 用 ThemeModel.model_validate_json 校验原始 JSON
  2. 转换为引擎使用的不可变数据类（GameConfig / CardDefinition）

设计原则:
  - 校验模型与引擎数据类分离 (校验层 vs 规则层)
  - 校验失败抛出 pydantic.ValidationError，由调用方统一处理
  - 结构模型使用 ConfigDict(extra="forbid") 拒绝未知字段（拼写错误）；
    metadata 等自由字典不受限制
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .config import GameConfig, WinCondition
from .enums import CardRarity, CardType, ConditionType, WinConditionType
from .models import CardDefinition, Effect, EffectCondition

logger = logging.getLogger(__name__)

Operator = Literal[">", "<", ">=", "<=", "==", "!="]
Number = int | float

# ====================================================================== #
#  效果                                                                   #
# ====================================================================== #


class EffectConditionModel(BaseModel):
    """效果条件校验模型"""

    model_config = ConfigDict(extra="forbid")

    type: ConditionType
    operator: Operator = ">="
    value: Number | str = 0
    target: str | None = None

    def to_engine(self) -> EffectCondition:
        return EffectCondition(
            type=self.type.value,
            operator=self.operator,
            value=self.value,
            target=self.target,
        )


class EffectModel(BaseModel):
    """效果校验模型（type 允许自定义字符串）"""

    model_config = ConfigDict(extra="forbid")

    type: str = Field(min_length=1)
    target: str = Field(default="self", min_length=1)
    value: Number | str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    condition: EffectConditionModel | None = None

    def to_engine(self) -> Effect:
        return Effect(
            type=self.type,
            target=self.target,
            value=self.value,
            metadata=dict(self.metadata),
            condition=self.condition.to_engine() if self.condition else None,
        )


# ====================================================================== #
#  卡牌                                                                   #
# ====================================================================== #


class CardDefinitionModel(BaseModel):
    """卡牌定义校验模型"""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, max_length=64)
    type: CardType
    name: str = Field(min_length=1)
    description: str = ""
    effects: list[EffectModel] = Field(default_factory=list)
    cost: Number = Field(default=0, ge=0)
    rarity: CardRarity | None = None
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id")
    @classmethod
    def id_has_no_spaces(cls, v: str) -> str:
        if v != v.strip() or " " in v:
            raise ValueError("card id must not contain spaces")
        return v

    def to_engine(self) -> CardDefinition:
        return CardDefinition(
            id=self.id,
            type=self.type,
            name=self.name,
            description=self.description,
            effects=tuple(e.to_engine() for e in self.effects),
            cost=self.cost,
            rarity=self.rarity,
            tags=tuple(self.tags),
            metadata=dict(self.metadata),
        )


# ====================================================================== #
#  规则                                                                   #
# ====================================================================== #


class WinConditionModel(BaseModel):
    """胜利条件校验模型"""

    model_config = ConfigDict(extra="forbid")

    type: WinConditionType
    stat: str | None = None
    resource: str | None = None
    operator: Operator | None = None
    value: Number | None = None
    custom_check: str | None = None
    tiebreak_stat: str | None = None

    @model_validator(mode="after")
    def check_required_fields(self) -> WinConditionModel:
        if self.type == WinConditionType.STAT_THRESHOLD:
            if not self.stat or self.operator is None or self.value is None:
                raise ValueError("stat_threshold requires stat, operator and value")
        elif self.type == WinConditionType.RESOURCE_THRESHOLD:
            if not (self.resource or self.stat) or self.operator is None or self.value is None:
                raise ValueError("resource_threshold requires resource, operator and value")
        elif self.type == WinConditionType.TURN_LIMIT:
            if self.value is None or self.value < 1:
                raise ValueError("turn_limit requires a positive value")
            if not self.tiebreak_stat:
                raise ValueError("turn_limit requires tiebreak_stat")
        elif self.type == WinConditionType.CUSTOM and not self.custom_check:
            raise ValueError("custom win condition requires custom_check")
        return self

    def to_engine(self) -> WinCondition:
        return WinCondition(
            type=self.type,
            stat=self.stat,
            resource=self.resource,
            operator=self.operator,
            value=self.value,
            custom_check=self.custom_check,
            tiebreak_stat=self.tiebreak_stat,
        )


class GameConfigModel(BaseModel):
    """规则配置校验模型"""

    model_config = ConfigDict(extra="forbid")

    max_players: int = Field(default=4, ge=1, le=16)
    min_players: int = Field(default=1, ge=1)
    initial_hand_size: int = Field(default=3, ge=0)
    max_hand_size: int = Field(default=7, ge=1)
    turn_time_limit: int | None = Field(default=None, ge=1)
    win_conditions: list[WinConditionModel] = Field(default_factory=list)
    initial_stats: dict[str, Number] = Field(default_factory=dict)
    initial_resources: dict[str, Number] = Field(default_factory=dict)

    @field_validator("initial_resources")
    @classmethod
    def resources_not_negative(cls, v: dict[str, Number]) -> dict[str, Number]:
        negative = [k for k, amount in v.items() if amount < 0]
        if negative:
            raise ValueError(f"initial resources must be >= 0: {', '.join(negative)}")
        return v

    @model_validator(mode="after")
    def check_limits(self) -> GameConfigModel:
        if self.min_players > self.max_players:
            raise ValueError("min_players exceeds max_players")
        if self.initial_hand_size > self.max_hand_size:
            raise ValueError("initial_hand_size exceeds max_hand_size")
        return self

    def to_engine(self) -> GameConfig:
        return GameConfig(
            max_players=self.max_players,
            min_players=self.min_players,
            initial_hand_size=self.initial_hand_size,
            max_hand_size=self.max_hand_size,
            turn_time_limit=self.turn_time_limit,
            win_conditions=tuple(c.to_engine() for c in self.win_conditions),
            initial_stats=dict(self.initial_stats),
            initial_resources=dict(self.initial_resources),
        )


class ThemeModel(BaseModel):
    """主题文件校验模型"""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    version: str = "1.0"
    description: str = ""
    config: GameConfigModel = Field(default_factory=GameConfigModel)
    cards: list[CardDefinitionModel] = Field(min_length=1)

    @field_validator("cards")
    @classmethod
    def card_ids_unique(cls, v: list[CardDefinitionModel]) -> list[CardDefinitionModel]:
        seen: set[str] = set()
        duplicates: set[str] = set()
        for card in v:
            if card.id in seen:
                duplicates.add(card.id)
            seen.add(card.id)
        if duplicates:
            raise ValueError(f"duplicate card ids: {', '.join(sorted(duplicates))}")
        return v

    def to_theme(self) -> Theme:
        return Theme(
            name=self.name,
            version=self.version,
            description=self.description,
            config=self.config.to_engine(),
            cards=tuple(c.to_engine() for c in self.cards),
        )


# ====================================================================== #
#  加载入口                                                                #
# ====================================================================== #


@dataclass(frozen=True)
class Theme:
    """校验通过的主题：引擎构造 GameStateManager 所需的全部输入"""

    name: str
    version: str
    description: str
    config: GameConfig
    cards: tuple[CardDefinition, ...]


def parse_theme(raw_json: str | bytes) -> Theme:
    """校验原始 JSON 并转换为 Theme

    Raises:
        pydantic.ValidationError: 校验失败
    """
    return ThemeModel.model_validate_json(raw_json).to_theme()


def load_theme(path: str | Path) -> Theme:
    """从文件加载主题

    Raises:
        OSError: 文件无法读取
        pydantic.ValidationError: 校验失败
    """
    path = Path(path)
    theme = parse_theme(path.read_text(encoding="utf-8"))
    logger.info("Loaded theme %r (%d cards) from %s", theme.name, len(theme.cards), path)
    return theme
