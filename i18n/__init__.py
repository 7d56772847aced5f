"""引擎与演示程序的文案表，零外部依赖。

异常信息、胜负原因、目标选择提示和命令行界面都通过 ``t()`` 取文案::

    from i18n import t, set_locale

    set_locale("en_US")
    print(t("win.turn_limit", stat="score"))
    print(phase_name("main"))   # → "Main"

当前语言缺少的键回退到 zh_CN；两边都没有时返回 ``[key]``。
"""

from __future__ import annotations

import logging
from importlib import import_module

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "zh_CN"
LOCALES = ("zh_CN", "en_US")

_locale: str = DEFAULT_LOCALE
_tables: dict[str, dict[str, str]] = {}


def _table(locale: str) -> dict[str, str]:
    """取翻译表，首次使用时加载对应模块。"""
    if locale not in _tables:
        if locale not in LOCALES:
            raise ValueError(f"Unsupported locale: {locale}")
        _tables[locale] = import_module(f".{locale}", __name__).STRINGS
    return _tables[locale]


def _lookup(key: str) -> str | None:
    template = _table(_locale).get(key)
    if template is None and _locale != DEFAULT_LOCALE:
        template = _table(DEFAULT_LOCALE).get(key)
        if template is not None:
            logger.debug("i18n fallback: '%s' not in %s, using %s", key, _locale, DEFAULT_LOCALE)
    return template


def set_locale(locale: str) -> None:
    """切换语言；不支持的语言抛出 ValueError，当前语言保持不变。"""
    global _locale
    _table(locale)
    _locale = locale


def get_locale() -> str:
    return _locale


def get_available_locales() -> list[str]:
    return list(LOCALES)


def t(key: str, /, **kwargs: object) -> str:
    """按当前语言取文案，并用 ``kwargs`` 填充占位符。

    占位符缺参数时返回未填充的模板并记 warning。
    """
    template = _lookup(key)
    if template is None:
        logger.warning("i18n missing key: '%s' (lang=%s)", key, _locale)
        return f"[{key}]"
    if not kwargs:
        return template
    try:
        return template.format_map(kwargs)
    except KeyError as e:
        logger.warning("i18n format error: key='%s', missing=%s", key, e)
        return template


def phase_name(value: str) -> str:
    """阶段显示名；没有对应文案的自定义阶段原样返回。"""
    return _lookup(f"phase.{value}") or value
