"""English translation table."""

STRINGS: dict[str, str] = {
    # ── exceptions ──
    "exc.extension_conflict": "Extension '{key}' is owned by {owner}; {claimant} cannot claim it",
    "exc.unknown_phase": "Unknown phase: {phase}",
    "exc.invalid_config": "Invalid game config: {errors}",

    # ── win checks ──
    "win.threshold": "{key} reached {value}",
    "win.turn_limit": "Turn limit reached, highest {stat} wins",
    "win.turn_limit_draw": "Turn limit reached, the game is a draw",
    "win.custom": "Custom win condition {name} met",
    "win.default": "Win condition met",

    # ── target selection ──
    "target.transfer_stat": "Choose the opponent to pass the stat to",
    "target.steal_resource": "Choose the opponent to steal from",
    "target.damage_stat": "Choose the opponent to attack",
    "target.apply_status": "Choose the opponent to apply the status to",
    "target.default": "Choose a target opponent",

    # ── phases ──
    "phase.setup": "Setup",
    "phase.draw": "Draw",
    "phase.main": "Main",
    "phase.action": "Action",
    "phase.resolve": "Resolve",
    "phase.end": "End",
    "phase.game_over": "Game over",

    # ── main.py ──
    "cli.description": "Card rules engine demo: auto-play one themed game",
    "cli.title": "{theme} - turn {turn}",
    "cli.player_name": "Player {n}",
    "cli.col_player": "Player",
    "cli.col_stats": "Stats",
    "cli.col_resources": "Resources",
    "cli.col_hand": "Hand",
    "cli.col_deck": "Deck",
    "cli.col_discard": "Discard",
    "cli.col_status": "Status",
    "cli.active": "active",
    "cli.eliminated": "eliminated",
    "cli.played": "{player} played [{card}]",
    "cli.winner": "Winner: {name}",
    "cli.no_winner": "No winner",
    "cli.reason": "Reason: {reason}",
    "cli.stopped": "Demo turn cap reached",
    "cli.log_title": "Game log",
    "cli.theme_error": "Invalid theme file: {error}",
    "cli.interrupted": "\n\nDemo interrupted, bye!",
    "cli.error": "\nError: {error}",
}
