"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Optional


class MemberSchema(BaseModel):
    """Group member"""

    member_id: str
    display_name: str


class MembersResponse(BaseModel):
    """Response for GET /v1/groups/{group_id}/members"""

    group_id: str
    members: List[MemberSchema]


class ExpenseCreateRequest(BaseModel):
    """Request body for POST /v1/groups/{group_id}/expenses"""

    title: str = Field(..., min_length=1, description="What was bought")
    amount_cents: int = Field(..., gt=0, description="Total paid in cents")
    participant_ids: Optional[List[str]] = Field(
        None, description="Members sharing the cost; omit to split among all current members"
    )
    payer_id: Optional[str] = Field(None, description="Who paid; defaults to the caller")


class ExpenseSchema(BaseModel):
    """Single expense"""

    expense_id: str
    title: str
    amount_cents: int
    payer_id: str
    participant_ids: List[str]
    split_scope: str
    created_at: datetime
    settled_at: Optional[datetime] = None


class ExpenseListResponse(BaseModel):
    """Response for GET /v1/groups/{group_id}/expenses"""

    group_id: str
    expenses: List[ExpenseSchema]


class BalanceSchema(BaseModel):
    """Net position of one member"""

    member_id: str
    display_name: Optional[str] = None
    balance_cents: int


class TransferSchema(BaseModel):
    """Planned transfer"""

    from_id: str
    to_id: str
    amount_cents: int


class BalancesResponse(BaseModel):
    """Response for GET /v1/groups/{group_id}/balances"""

    group_id: str
    balances: List[BalanceSchema]
    transfers: List[TransferSchema]
    unsettled_count: int


class SettlementTransferSchema(BaseModel):
    """Recorded transfer"""

    transfer_id: str
    from_id: str
    to_id: str
    amount_cents: int
    created_at: datetime
    created_by: str


class SettleResponse(BaseModel):
    """Response for POST /v1/groups/{group_id}/settle"""

    group_id: str
    settled: bool
    transfers: List[SettlementTransferSchema]


class SettlementHistoryResponse(BaseModel):
    """Response for GET /v1/groups/{group_id}/settlements"""

    group_id: str
    transfers: List[SettlementTransferSchema]


class NotificationSchema(BaseModel):
    """Notification feed entry"""

    notification_id: str
    type: str
    title: str
    body: str
    meta: Dict[str, Any]
    created_at: datetime
    created_by: str
    read: bool


class NotificationListResponse(BaseModel):
    """Response for GET /v1/groups/{group_id}/notifications"""

    group_id: str
    unread_count: int
    notifications: List[NotificationSchema]


class MarkReadResponse(BaseModel):
    """Response for notification read endpoints"""

    marked: int
