from __future__ import annotations

import math
from typing import Iterable, List

from .errors import UnbalancedLedgerError
from .models import SETTLEMENT_EPSILON, Player, Transaction


def net_debts(players: Iterable[Player]) -> List[Transaction]:
    """
    Convert final balances into a list of pairwise payments.

    Debtors and creditors are matched head-to-head in roster order (not by
    amount); whoever is paid off is dropped from its queue once less than
    `SETTLEMENT_EPSILON` remains. Transactions come out in the order they
    are produced.

    Raises `UnbalancedLedgerError` when the balances do not net to zero,
    or when any balance is not a finite number, since no complete payment
    plan exists in that case.
    """

    players = list(players)
    for player in players:
        if not math.isfinite(player.balance):
            raise UnbalancedLedgerError(
                f"{player.name} has an invalid balance ({player.balance}); cannot settle."
            )

    total = sum(player.balance for player in players)
    if abs(total) >= SETTLEMENT_EPSILON:
        raise UnbalancedLedgerError(
            f"Balances sum to {total:.2f} instead of zero; cannot settle."
        )

    # Each queue entry is [player, remaining magnitude].
    debtors = [[p, -p.balance] for p in players if p.balance < 0]
    creditors = [[p, p.balance] for p in players if p.balance > 0]

    transactions: List[Transaction] = []
    while debtors and creditors:
        debtor, creditor = debtors[0], creditors[0]
        amount = min(debtor[1], creditor[1])
        transactions.append(
            Transaction(
                from_name=debtor[0].name,
                to_name=creditor[0].name,
                amount=amount,
                to_prompt_pay=creditor[0].prompt_pay_id,
            )
        )
        debtor[1] -= amount
        creditor[1] -= amount

        if debtor[1] < SETTLEMENT_EPSILON:
            debtors.pop(0)
        if creditor[1] < SETTLEMENT_EPSILON:
            creditors.pop(0)

    return transactions
