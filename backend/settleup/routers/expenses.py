"""Expenses: create, list, get, update, delete."""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from settleup.database import get_db
from settleup.models import User, Expense
from settleup.schemas import ExpenseCreate, ExpenseUpdate, ExpenseResponse, SplitResponse, EXPENSE_CATEGORIES
from settleup.auth import get_current_user, require_group_member
from settleup.services.money import to_money
from settleup.services.splits import build_splits

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/expenses", tags=["expenses"])


def _expense_response(exp: Expense) -> ExpenseResponse:
    return ExpenseResponse(
        id=exp.id,
        group_id=exp.group_id,
        payer_id=exp.payer_id,
        created_by_id=exp.created_by_id,
        amount=exp.amount,
        currency=exp.currency,
        description=exp.description,
        category=exp.category,
        notes=exp.notes,
        split_type=exp.split_type or "equal",
        date=exp.date,
        created_at=exp.created_at,
        participant_ids=[s.ower_id for s in exp.splits],
        splits=[SplitResponse.model_validate(s) for s in exp.splits],
    )


def _check_category(category: Optional[str]) -> None:
    if category and category not in EXPENSE_CATEGORIES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid category. Must be one of: {', '.join(EXPENSE_CATEGORIES)}",
        )


def _as_utc(value: datetime) -> datetime:
    # Stored dates carry no offset, so they must all be UTC to order correctly.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _get_own_expense(db: Session, expense_id: int, user: User, action: str) -> Expense:
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    require_group_member(db, expense.group_id, user)
    if expense.created_by_id != user.id:
        raise HTTPException(status_code=403, detail=f"Only the creator can {action} this expense")
    return expense


@router.post("", response_model=ExpenseResponse)
def create_expense(
    data: ExpenseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    group = require_group_member(db, data.group_id, current_user)
    member_ids = {m.id for m in group.members}
    if data.payer_id not in member_ids:
        raise HTTPException(status_code=400, detail="Payer must be a group member")
    if any(uid not in member_ids for uid in data.participant_ids):
        raise HTTPException(status_code=400, detail="All participants must be group members")
    _check_category(data.category)

    split_type = data.split_type or "equal"
    splits = build_splits(data.payer_id, data.amount, data.participant_ids, split_type, data.shares)

    expense = Expense(
        group_id=data.group_id,
        payer_id=data.payer_id,
        created_by_id=current_user.id,
        amount=to_money(data.amount),
        currency=group.currency,
        description=data.description,
        category=data.category,
        notes=data.notes,
        split_type=split_type,
        date=_as_utc(data.date) if data.date else datetime.now(timezone.utc),
    )
    expense.splits = splits
    db.add(expense)
    db.commit()
    db.refresh(expense)
    logger.info(
        "Expense %s in group %s: %s paid %s split %s ways",
        expense.id, expense.group_id, expense.payer_id, expense.amount, len(splits),
    )
    return _expense_response(expense)


@router.get("", response_model=list[ExpenseResponse])
def list_expenses(
    group_id: int,
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_group_member(db, group_id, current_user)
    q = db.query(Expense).filter(Expense.group_id == group_id)

    if search:
        q = q.filter(Expense.description.ilike(f"%{search}%"))
    if category:
        q = q.filter(Expense.category == category)

    expenses = q.order_by(Expense.date.desc(), Expense.id.desc()).offset(offset).limit(limit).all()
    return [_expense_response(e) for e in expenses]


@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    require_group_member(db, expense.group_id, current_user)
    return _expense_response(expense)


@router.patch("/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: int,
    data: ExpenseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # Amount and splits are fixed once obligations exist; delete and re-create instead.
    expense = _get_own_expense(db, expense_id, current_user, "update")

    if data.description is not None:
        expense.description = data.description
    if data.category is not None:
        _check_category(data.category)
        expense.category = data.category or None
    if data.notes is not None:
        expense.notes = data.notes
    if data.date is not None:
        expense.date = _as_utc(data.date)

    db.commit()
    db.refresh(expense)
    return _expense_response(expense)


@router.delete("/{expense_id}", status_code=204)
def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    expense = _get_own_expense(db, expense_id, current_user, "delete")
    db.delete(expense)
    db.commit()
    logger.info("User %s deleted expense %s", current_user.id, expense_id)
