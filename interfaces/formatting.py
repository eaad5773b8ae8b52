from __future__ import annotations

from datetime import datetime
from typing import List

from application.services import player_history, promptpay_qr_url, standings
from domain.models import Player, RoundLedger, Session, Transaction


def format_signed(amount: float) -> str:
    return f"{amount:+.2f}"


def _format_time(timestamp: str) -> str:
    try:
        return datetime.fromisoformat(timestamp).strftime("%H:%M:%S")
    except ValueError:
        return timestamp


def format_round(session: Session, ledger: RoundLedger) -> str:
    dealer = session.get_player(session.dealer_id) if session.dealer_id else None
    lines = [f"Session {session.id}", f"Dealer: {dealer.name if dealer else '-'}"]

    for player in session.players:
        player_round = ledger.get(player.id)
        if player_round is None:
            continue
        for index, hand in enumerate(player_round.hands, start=1):
            label = player.name if len(player_round.hands) == 1 else f"{player.name} #{index}"
            doubled = " (doubled)" if hand.is_doubled else ""
            lines.append(f"{label}: {hand.bet:g} {hand.outcome}{doubled}")

    if len(lines) == 2:
        lines.append("No players to deal to yet.")
    return "\n".join(lines)


def format_standings(players: List[Player]) -> str:
    if not players:
        return "No players at the table yet."

    lines = [f"{p.name}: {format_signed(p.balance)}" for p in standings(players)]
    total = sum(p.balance for p in players)
    lines.append(f"Total balance: {format_signed(total)}")
    return "\n".join(lines)


def format_history(session: Session, player: Player) -> str:
    history = player_history(session, player.id)
    if not history:
        return f"{player.name}: no transactions yet."

    lines = [f"{player.name}'s history"]
    for timestamp, detail in history:
        lines.append(
            f"{_format_time(timestamp)}  {detail.description}  {format_signed(detail.amount)}"
        )
    return "\n".join(lines)


def format_settlement(transactions: List[Transaction]) -> str:
    if not transactions:
        return "Everyone is even!"

    lines = []
    for t in transactions:
        line = f"{t.from_name} pays {t.to_name} {t.amount:.2f}"
        if t.to_prompt_pay:
            line += f"\n  PromptPay: {promptpay_qr_url(t.to_prompt_pay, t.amount)}"
        lines.append(line)
    return "\n".join(lines)
