"""简体中文翻译表。"""

STRINGS: dict[str, str] = {
    # ── 异常 ──
    "exc.extension_conflict": "扩展字段 '{key}' 已归 {owner} 所有，{claimant} 不能再次声明",
    "exc.unknown_phase": "无法识别的阶段: {phase}",
    "exc.invalid_config": "规则配置无效: {errors}",
    # ── 胜负判定 ──
    "win.threshold": "{key} 达到 {value}",
    "win.turn_limit": "回合数达到上限，按 {stat} 决出胜者",
    "win.turn_limit_draw": "回合数达到上限，平局",
    "win.custom": "满足自定义胜利条件 {name}",
    "win.default": "满足胜利条件",
    # ── 目标选择 ──
    "target.transfer_stat": "选择要将属性转移给的对手",
    "target.steal_resource": "选择要偷取资源的对手",
    "target.damage_stat": "选择要攻击的对手",
    "target.apply_status": "选择要施加状态的对手",
    "target.default": "选择目标对手",
    # ── 阶段 ──
    "phase.setup": "准备",
    "phase.draw": "摸牌阶段",
    "phase.main": "主要阶段",
    "phase.action": "行动阶段",
    "phase.resolve": "结算阶段",
    "phase.end": "结束阶段",
    "phase.game_over": "游戏结束",
    # ── main.py ──
    "cli.description": "卡牌规则引擎演示：按主题自动对战一局",
    "cli.title": "{theme} · 第 {turn} 回合",
    "cli.player_name": "玩家{n}",
    "cli.col_player": "玩家",
    "cli.col_stats": "属性",
    "cli.col_resources": "资源",
    "cli.col_hand": "手牌",
    "cli.col_deck": "牌堆",
    "cli.col_discard": "弃牌",
    "cli.col_status": "状态",
    "cli.active": "在场",
    "cli.eliminated": "已淘汰",
    "cli.played": "{player} 打出【{card}】",
    "cli.winner": "胜者: {name}",
    "cli.no_winner": "没有胜者",
    "cli.reason": "原因: {reason}",
    "cli.stopped": "达到演示回合上限",
    "cli.log_title": "对局记录",
    "cli.theme_error": "主题文件无效: {error}",
    "cli.interrupted": "\n\n演示被中断，再见！",
    "cli.error": "\n发生错误: {error}",
}
