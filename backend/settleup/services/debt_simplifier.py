"""Minimize number of transfers so everyone is settled (who owes whom)."""
import logging
from typing import Iterable

from settleup.errors import LedgerInvariantError
from settleup.schemas import MemberBalance, SimplifiedDebt
from settleup.services.money import EPSILON, is_zero, to_money

logger = logging.getLogger(__name__)


def simplify_debts(balances: Iterable[MemberBalance]) -> list[SimplifiedDebt]:
    """
    balances: net member balances (positive = is owed money, negative = owes money).
    Returns a list of suggested transfers, at most one fewer than the number of
    non-zero balances.

    Each round pairs the largest creditor with the largest debtor and moves the
    smaller of the two amounts between them, so at least one of them drops out.
    Among equal amounts the earlier balance is picked first. The input is left
    untouched.
    """
    # [balance, remaining amount]
    working = []
    for b in balances:
        amount = to_money(b.amount)
        if not is_zero(amount):
            working.append([b, amount])

    out: list[SimplifiedDebt] = []
    while len(working) > 1:
        ci = max(range(len(working)), key=lambda i: working[i][1])
        di = min(range(len(working)), key=lambda i: working[i][1])
        creditor, credit = working[ci]
        debtor, debt = working[di]
        if credit <= EPSILON or debt >= -EPSILON:
            # Only one side of the ledger is left.
            break

        transfer = min(credit, -debt)
        out.append(SimplifiedDebt(
            from_user_id=debtor.user_id,
            from_name=debtor.name,
            to_user_id=creditor.user_id,
            to_name=creditor.name,
            amount=transfer,
        ))
        working[ci][1] = credit - transfer
        working[di][1] = debt + transfer
        working = [w for w in working if not is_zero(w[1])]

    leftover = {w[0].user_id: str(w[1]) for w in working}
    if len(leftover) > 1:
        logger.error("Debt simplification left unmatched balances: %s", leftover)
        raise LedgerInvariantError(f"Unmatched balances after simplification: {leftover}")
    if leftover:
        # Debtors within the tolerance were dropped up front; their cents stay with one creditor.
        logger.warning("Debt simplification left a single balance unmatched: %s", leftover)
    return out
