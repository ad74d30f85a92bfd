"""Groups: create, list, get, update, delete, add/remove members."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from settleup.database import get_db
from settleup.models import User, Group, Expense, ExpenseSplit
from settleup.schemas import GroupCreate, GroupUpdate, GroupResponse, GroupAddMember, MemberInfo
from settleup.auth import get_current_user, require_group_admin, require_group_member

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/groups", tags=["groups"])


def _member_info(user: User) -> MemberInfo:
    return MemberInfo(id=user.id, name=user.name, email=user.email)


def _group_response(group: Group) -> GroupResponse:
    return GroupResponse(
        id=group.id,
        name=group.name,
        description=group.description,
        currency=group.currency,
        created_by_id=group.created_by_id,
        created_at=group.created_at,
        member_ids=[u.id for u in group.members],
        members=[_member_info(u) for u in group.members],
        expense_count=len(group.expenses),
    )


@router.get("", response_model=list[GroupResponse])
def list_groups(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    groups = (
        db.query(Group)
        .filter(Group.members.any(User.id == current_user.id))
        .order_by(Group.created_at.desc(), Group.id.desc())
        .all()
    )
    return [_group_response(g) for g in groups]


@router.post("", response_model=GroupResponse)
def create_group(
    data: GroupCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    members = [current_user]
    if data.member_ids:
        others = db.query(User).filter(User.id.in_(data.member_ids)).all()
        for u in others:
            if u not in members:
                members.append(u)
    group = Group(
        name=data.name,
        description=data.description,
        currency=data.currency,
        created_by_id=current_user.id,
    )
    group.members = members
    db.add(group)
    db.commit()
    db.refresh(group)
    logger.info("User %s created group %s with %d members", current_user.id, group.id, len(members))
    return _group_response(group)


@router.get("/{group_id}", response_model=GroupResponse)
def get_group(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _group_response(require_group_member(db, group_id, current_user))


@router.patch("/{group_id}", response_model=GroupResponse)
def update_group(
    group_id: int,
    data: GroupUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    group = require_group_admin(db, group_id, current_user)
    if data.name is not None:
        group.name = data.name
    if data.description is not None:
        group.description = data.description
    db.commit()
    db.refresh(group)
    return _group_response(group)


@router.delete("/{group_id}", status_code=204)
def delete_group(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    group = require_group_admin(db, group_id, current_user)
    db.delete(group)
    db.commit()
    logger.info("User %s deleted group %s", current_user.id, group_id)


@router.post("/{group_id}/members", response_model=GroupResponse)
def add_group_member(
    group_id: int,
    data: GroupAddMember,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    group = require_group_member(db, group_id, current_user)
    user = db.query(User).filter(User.email == data.email).first()
    if not user:
        raise HTTPException(status_code=404, detail="No user found with that email")
    if user in group.members:
        raise HTTPException(status_code=400, detail="User is already a member")
    group.members.append(user)
    db.commit()
    db.refresh(group)
    return _group_response(group)


@router.delete("/{group_id}/members/{user_id}", response_model=GroupResponse)
def remove_group_member(
    group_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    group = require_group_admin(db, group_id, current_user)
    user = next((m for m in group.members if m.id == user_id), None)
    if not user:
        raise HTTPException(status_code=404, detail="User not in this group")
    if user.id == current_user.id:
        raise HTTPException(status_code=400, detail="Cannot remove yourself")
    open_splits = (
        db.query(ExpenseSplit)
        .join(Expense, ExpenseSplit.expense_id == Expense.id)
        .filter(
            Expense.group_id == group_id,
            ExpenseSplit.settled.is_(False),
            ExpenseSplit.payer_id != ExpenseSplit.ower_id,
            or_(ExpenseSplit.payer_id == user_id, ExpenseSplit.ower_id == user_id),
        )
        .count()
    )
    if open_splits:
        raise HTTPException(status_code=400, detail="Member still has unsettled expenses in this group")
    group.members.remove(user)
    db.commit()
    db.refresh(group)
    return _group_response(group)
