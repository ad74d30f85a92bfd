"""Fan an expense out into one obligation per participant."""
from decimal import Decimal
from typing import Optional

from settleup.errors import ExpenseValidationError
from settleup.models import ExpenseSplit
from settleup.schemas import SPLIT_TYPES
from settleup.services.money import shares_match_total, split_evenly, to_money


def build_splits(
    payer_id: int,
    amount: Decimal,
    participant_ids: list[int],
    split_type: str = "equal",
    shares: Optional[dict[int, Decimal]] = None,
) -> list[ExpenseSplit]:
    """Unsaved ExpenseSplit rows for an expense, payer's own share included."""
    amount = to_money(amount)
    if amount <= 0:
        raise ExpenseValidationError("Amount must be positive")
    if not participant_ids:
        raise ExpenseValidationError("At least one participant required")
    if len(set(participant_ids)) != len(participant_ids):
        raise ExpenseValidationError("Participants must be unique")
    if split_type not in SPLIT_TYPES:
        raise ExpenseValidationError(f"Invalid split type. Must be one of: {', '.join(SPLIT_TYPES)}")

    if split_type == "equal":
        owed = dict(zip(participant_ids, split_evenly(amount, len(participant_ids))))
    else:
        if not shares:
            raise ExpenseValidationError("Custom split requires shares")
        if set(shares) != set(participant_ids):
            raise ExpenseValidationError("Shares must match participant list")
        owed = {uid: to_money(shares[uid]) for uid in participant_ids}
        if any(v <= 0 for v in owed.values()):
            raise ExpenseValidationError("Every share must be positive")
        if not shares_match_total(owed.values(), amount):
            total = sum(owed.values(), Decimal("0.00"))
            raise ExpenseValidationError(f"Shares total ({total}) must equal expense amount ({amount})")

    return [
        ExpenseSplit(payer_id=payer_id, ower_id=uid, amount=share, settled=False)
        for uid, share in owed.items()
    ]
