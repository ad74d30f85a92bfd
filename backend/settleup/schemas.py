"""Pydantic schemas for request/response."""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, EmailStr, PlainSerializer

# Money travels as Decimal internally and as a JSON number on the wire.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


# ----- User -----
class UserBase(BaseModel):
    email: EmailStr
    name: Optional[str] = None


class UserCreate(UserBase):
    password: str


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(UserBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class MemberInfo(BaseModel):
    id: int
    name: Optional[str] = None
    email: EmailStr


# ----- Group -----
class GroupBase(BaseModel):
    name: str
    description: Optional[str] = None
    currency: str = "USD"


class GroupCreate(GroupBase):
    member_ids: list[int] = []


class GroupUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class GroupAddMember(BaseModel):
    email: EmailStr


class GroupResponse(GroupBase):
    id: int
    created_by_id: Optional[int] = None
    created_at: Optional[datetime] = None
    member_ids: list[int] = []
    members: list[MemberInfo] = []
    expense_count: int = 0

    class Config:
        from_attributes = True


# ----- Expense -----
EXPENSE_CATEGORIES = [
    "food",
    "transport",
    "housing",
    "entertainment",
    "utilities",
    "shopping",
    "health",
    "travel",
    "education",
    "other",
]

SPLIT_TYPES = ("equal", "custom")


class ExpenseBase(BaseModel):
    amount: Money
    description: Optional[str] = None
    participant_ids: list[int]


class ExpenseCreate(ExpenseBase):
    group_id: int
    payer_id: int
    split_type: str = "equal"
    shares: Optional[dict[int, Money]] = None
    category: Optional[str] = None
    notes: Optional[str] = None
    date: Optional[datetime] = None


class ExpenseUpdate(BaseModel):
    description: Optional[str] = None
    category: Optional[str] = None
    notes: Optional[str] = None
    date: Optional[datetime] = None


class SplitResponse(BaseModel):
    id: int
    payer_id: int
    ower_id: int
    amount: Money
    settled: bool

    class Config:
        from_attributes = True


class ExpenseResponse(ExpenseBase):
    id: int
    group_id: int
    payer_id: int
    created_by_id: int
    currency: str = "USD"
    split_type: str = "equal"
    category: Optional[str] = None
    notes: Optional[str] = None
    date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    splits: list[SplitResponse] = []


# ----- Balances -----
class MemberBalance(BaseModel):
    user_id: int
    name: str = "Unknown"
    amount: Money


class SimplifiedDebt(BaseModel):
    from_user_id: int
    from_name: str = "Unknown"
    to_user_id: int
    to_name: str = "Unknown"
    amount: Money


class GroupBalanceSummary(BaseModel):
    group_id: int
    group_name: str
    balance: Money


class UserBalanceSummary(BaseModel):
    total_you_owe: Money
    total_owed_to_you: Money
    net_balance: Money
    groups: list[GroupBalanceSummary]


# ----- Settlement (settle up) -----
class SettlementCreate(BaseModel):
    group_id: int
    from_user_id: int
    to_user_id: int
    amount: Money
    notes: Optional[str] = None


class SettlementResponse(BaseModel):
    id: int
    group_id: int
    from_user_id: int
    to_user_id: int
    amount: Money
    currency: str = "USD"
    notes: Optional[str] = None
    settled_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ----- Dashboard -----
class MemberSpending(BaseModel):
    user_id: int
    name: str
    paid: Money


class DashboardStats(BaseModel):
    total_expenses: Money
    expense_count: int
    category_totals: dict[str, Money]
    member_spending: list[MemberSpending]
    your_balance: Money
