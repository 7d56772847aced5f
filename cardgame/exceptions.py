"""引擎异常模块

普通的非法输入（人数已满、卡牌不存在等）一律通过返回值拒绝，不抛异常。
这里的异常只用于配置/编程错误，例如两个扩展系统争抢同一个玩家字段。
"""

from i18n import t as _t


class GameError(Exception):
    """引擎异常基类

    所有引擎相关的异常都应该继承此类，
    提供统一的异常处理接口。
    """

    def __init__(self, message: str, details: dict | None = None):
        """初始化引擎异常

        Args:
            message: 错误消息
            details: 额外的错误详情（可选）
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigError(GameError):
    """规则配置错误（GameConfig.validate 未通过）"""

    def __init__(self, errors: list[str]):
        super().__init__(_t("exc.invalid_config", errors="; ".join(errors)), {"errors": errors})
        self.errors = errors


class ExtensionConflictError(GameError):
    """扩展字段所有权冲突

    当第二个系统声明已被其他系统占有的 PlayerState 扩展字段时抛出
    """

    def __init__(self, key: str, owner: str, claimant: str):
        super().__init__(
            _t("exc.extension_conflict", key=key, owner=owner, claimant=claimant),
            {"key": key, "owner": owner, "claimant": claimant},
        )
        self.key = key
        self.owner = owner
        self.claimant = claimant


class UnknownPhaseError(GameError):
    """阶段配置错误

    当 TurnManager 的阶段列表为空或阶段名无法识别时抛出
    """

    def __init__(self, phase: str | None = None):
        details = {"phase": phase} if phase is not None else {}
        super().__init__(_t("exc.unknown_phase", phase=phase), details)
        self.phase = phase
