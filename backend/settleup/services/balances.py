"""Net member balances from a group's obligations (expense splits)."""
import logging
from decimal import Decimal
from typing import Iterable, Optional

from settleup.errors import LedgerInvariantError
from settleup.schemas import MemberBalance
from settleup.services.money import to_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def compute_balances(
    obligations: Iterable,
    names: Optional[dict[int, str]] = None,
) -> list[MemberBalance]:
    """
    obligations: objects with payer_id, ower_id, amount and settled (ExpenseSplit rows).
    Returns one balance per member touched by an unsettled obligation
    (positive = is owed money, negative = owes money), in order of first appearance.
    """
    names = names or {}
    totals: dict[int, Decimal] = {}
    for ob in obligations:
        if ob.settled or ob.payer_id == ob.ower_id:
            continue
        amount = to_money(ob.amount)
        totals[ob.payer_id] = totals.get(ob.payer_id, ZERO) + amount
        totals[ob.ower_id] = totals.get(ob.ower_id, ZERO) - amount

    drift = sum(totals.values(), ZERO)
    if drift != 0:
        logger.error("Balances sum to %s instead of zero over %d members", drift, len(totals))
        raise LedgerInvariantError(f"Balances sum to {drift}, expected 0")

    return [
        MemberBalance(user_id=uid, name=names.get(uid, "Unknown"), amount=amount)
        for uid, amount in totals.items()
    ]


def group_balances(obligations: Iterable, members: Iterable) -> list[MemberBalance]:
    """Balances for every member of a group, zero for members with nothing outstanding.

    Sorted largest creditor first for display.
    """
    members = list(members)
    names = {m.id: m.display_name for m in members}
    computed = {b.user_id: b for b in compute_balances(obligations, names)}
    out = [computed.pop(m.id, MemberBalance(user_id=m.id, name=m.display_name, amount=ZERO)) for m in members]
    # Former members can still carry unsettled obligations.
    out.extend(computed.values())
    out.sort(key=lambda b: b.amount, reverse=True)
    return out
