"""Record a payment between two members and settle the obligations it covers.

A settlement is always stored, even when it discharges nothing: it documents
a real payment. Obligations from the payee to the payer are then cleared
oldest expense first, and the walk stops at the first obligation larger than
what is left of the payment. Partially covered obligations stay open and any
remainder is not carried forward.
"""
import logging
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from settleup.errors import SettlementValidationError
from settleup.models import Expense, ExpenseSplit, Group, Settlement
from settleup.services.money import to_money, to_payment

logger = logging.getLogger(__name__)


def validate_settlement(member_ids: Iterable[int], from_id: int, to_id: int, amount: Decimal) -> None:
    if from_id == to_id:
        raise SettlementValidationError("Cannot settle with yourself")
    members = set(member_ids)
    if from_id not in members or to_id not in members:
        raise SettlementValidationError("Both users must be members of the group")
    if amount <= 0:
        raise SettlementValidationError("Amount must be positive")


def select_obligations_to_discharge(obligations: Iterable, amount: Decimal) -> list:
    """Walk obligations in the given order, taking each one the payment fully covers."""
    remaining = to_payment(amount)
    chosen = []
    for ob in obligations:
        if remaining <= 0:
            break
        ob_amount = to_money(ob.amount)
        if ob_amount > remaining:
            break
        chosen.append(ob)
        remaining -= ob_amount
    return chosen


def outstanding_obligations(db: Session, group_id: int, from_id: int, to_id: int) -> list[ExpenseSplit]:
    """Unsettled splits where ``from_id`` owes ``to_id``, oldest expense first."""
    stmt = (
        select(ExpenseSplit)
        .join(Expense, ExpenseSplit.expense_id == Expense.id)
        .where(
            Expense.group_id == group_id,
            ExpenseSplit.payer_id == to_id,
            ExpenseSplit.ower_id == from_id,
            ExpenseSplit.settled.is_(False),
        )
        .order_by(Expense.date.asc(), Expense.id.asc(), ExpenseSplit.id.asc())
    )
    return list(db.scalars(stmt))


def record_settlement(
    db: Session,
    group_id: int,
    from_id: int,
    to_id: int,
    amount,
    notes: Optional[str] = None,
) -> Settlement:
    amount = to_payment(amount)
    try:
        # Row lock on the group serializes settlements within it. SQLite ignores
        # FOR UPDATE, but the settlement insert below takes its write lock
        # before the obligations are read.
        group = db.scalars(select(Group).where(Group.id == group_id).with_for_update()).first()
        if group is None:
            raise SettlementValidationError(f"Group {group_id} does not exist")
        validate_settlement((m.id for m in group.members), from_id, to_id, amount)

        settlement = Settlement(
            group_id=group_id,
            from_user_id=from_id,
            to_user_id=to_id,
            amount=amount,
            currency=group.currency,
            notes=notes,
        )
        db.add(settlement)
        db.flush()

        discharged = select_obligations_to_discharge(
            outstanding_obligations(db, group_id, from_id, to_id), amount
        )
        covered = Decimal("0.00")
        for ob in discharged:
            ob.settled = True
            covered += to_money(ob.amount)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(settlement)
    logger.info(
        "Settlement %s in group %s: %s -> %s paid %s, cleared %d obligation(s) worth %s, %s untracked",
        settlement.id, group_id, from_id, to_id, amount, len(discharged), covered, amount - covered,
    )
    return settlement
