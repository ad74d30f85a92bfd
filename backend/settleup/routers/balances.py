"""Balances: who owes whom in a group, suggested transfers, recording settlements."""
from decimal import Decimal

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from settleup.database import get_db
from settleup.models import User, Group, Expense, ExpenseSplit, Settlement
from settleup.schemas import (
    MemberBalance, SimplifiedDebt, SettlementCreate, SettlementResponse,
    GroupBalanceSummary, UserBalanceSummary, DashboardStats, MemberSpending,
)
from settleup.auth import get_current_user, require_group_member
from settleup.services.balances import group_balances
from settleup.services.debt_simplifier import simplify_debts
from settleup.services.settlement_recorder import record_settlement

router = APIRouter(prefix="/balances", tags=["balances"])

ZERO = Decimal("0.00")


def _unsettled_splits(db: Session, group_id: int) -> list[ExpenseSplit]:
    return (
        db.query(ExpenseSplit)
        .join(Expense, ExpenseSplit.expense_id == Expense.id)
        .filter(Expense.group_id == group_id, ExpenseSplit.settled.is_(False))
        .all()
    )


def _balances_for(db: Session, group: Group) -> list[MemberBalance]:
    return group_balances(_unsettled_splits(db, group.id), group.members)


@router.get("/group/{group_id}", response_model=list[MemberBalance])
def get_group_balances(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    group = require_group_member(db, group_id, current_user)
    return _balances_for(db, group)


@router.get("/group/{group_id}/simplified", response_model=list[SimplifiedDebt])
def get_simplified_debts(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    group = require_group_member(db, group_id, current_user)
    return simplify_debts(_balances_for(db, group))


@router.post("/settle", response_model=SettlementResponse)
def settle(
    data: SettlementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_group_member(db, data.group_id, current_user)
    settlement = record_settlement(
        db, data.group_id, data.from_user_id, data.to_user_id, data.amount, notes=data.notes,
    )
    return SettlementResponse.model_validate(settlement)


@router.get("/settlements/{group_id}", response_model=list[SettlementResponse])
def list_settlements(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_group_member(db, group_id, current_user)
    settlements = (
        db.query(Settlement)
        .filter(Settlement.group_id == group_id)
        .order_by(Settlement.settled_at.desc(), Settlement.id.desc())
        .all()
    )
    return [SettlementResponse.model_validate(s) for s in settlements]


@router.get("/me", response_model=UserBalanceSummary)
def my_balances(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    you_owe, owed_to_you = ZERO, ZERO
    groups = []
    for group in current_user.groups:
        mine = next(b.amount for b in _balances_for(db, group) if b.user_id == current_user.id)
        if mine < 0:
            you_owe -= mine
        else:
            owed_to_you += mine
        groups.append(GroupBalanceSummary(group_id=group.id, group_name=group.name, balance=mine))
    return UserBalanceSummary(
        total_you_owe=you_owe,
        total_owed_to_you=owed_to_you,
        net_balance=owed_to_you - you_owe,
        groups=groups,
    )


@router.get("/dashboard/{group_id}", response_model=DashboardStats)
def get_dashboard(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    group = require_group_member(db, group_id, current_user)
    expenses = db.query(Expense).filter(Expense.group_id == group_id).all()

    total = sum((e.amount for e in expenses), ZERO)
    cat_totals: dict[str, Decimal] = {}
    member_paid: dict[int, Decimal] = {m.id: ZERO for m in group.members}

    for e in expenses:
        cat = e.category or "other"
        cat_totals[cat] = cat_totals.get(cat, ZERO) + e.amount
        member_paid[e.payer_id] = member_paid.get(e.payer_id, ZERO) + e.amount

    balances = _balances_for(db, group)
    member_map = {m.id: m.display_name for m in group.members}
    return DashboardStats(
        total_expenses=total,
        expense_count=len(expenses),
        category_totals=cat_totals,
        member_spending=[
            MemberSpending(user_id=uid, name=member_map.get(uid, str(uid)), paid=paid)
            for uid, paid in member_paid.items()
        ],
        your_balance=next((b.amount for b in balances if b.user_id == current_user.id), ZERO),
    )
