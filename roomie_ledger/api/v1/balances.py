"""Balances preview and POST /v1/groups/{group_id}/settle"""

import time
import logging
from fastapi import APIRouter, Depends, Request

from roomie_ledger.api.v1.schemas import (
    BalanceSchema,
    BalancesResponse,
    SettleResponse,
    SettlementTransferSchema,
    TransferSchema,
)
from roomie_ledger.api.dependencies import get_actor_id, get_ledger_service, get_request_id
from roomie_ledger.api.errors import to_http_exception
from roomie_ledger.config import settings
from roomie_ledger.domain.exceptions import DomainException
from roomie_ledger.infrastructure.observability.logging import log_settlement
from roomie_ledger.services.ledger import LedgerService

router = APIRouter()


@router.get("/groups/{group_id}/balances", response_model=BalancesResponse)
def get_balances(
    group_id: str,
    actor_id: str = Depends(get_actor_id),
    service: LedgerService = Depends(get_ledger_service),
):
    """
    Current balances and the transfers a settle-up would record.

    Read only; nothing is locked or written.
    """
    try:
        members = service.authorize(group_id, actor_id, "read")
        plan = service.preview(group_id)
    except DomainException as e:
        raise to_http_exception(e)

    names = {m.member_id: m.display_name for m in members}
    return BalancesResponse(
        group_id=group_id,
        balances=[
            BalanceSchema(member_id=mid, display_name=names.get(mid), balance_cents=amount)
            for mid, amount in sorted(plan.balances.items())
        ],
        transfers=[
            TransferSchema(from_id=t.from_id, to_id=t.to_id, amount_cents=t.amount_cents)
            for t in plan.transfers
        ],
        unsettled_count=len(plan.expense_ids),
    )


@router.post("/groups/{group_id}/settle", response_model=SettleResponse)
def settle_all(
    group_id: str,
    request: Request,
    actor_id: str = Depends(get_actor_id),
    service: LedgerService = Depends(get_ledger_service),
):
    """
    Settle every unsettled expense in one atomic step.

    Flow:
    1. Recompute balances and plan transfers from fresh data
    2. Mark all unsettled expenses settled and record the transfers together
    3. On a concurrent settlement, recompute and retry once, then 409
    4. Emit a "settled" notification (best effort)
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        transfers = service.settle_all(
            group_id, actor_id, conflict_retries=settings.settle_conflict_retries
        )
    except DomainException as e:
        logging.warning(f"Settlement failed: {e}", extra={"request_id": request_id, "group_id": group_id})
        raise to_http_exception(e)

    duration_ms = (time.time() - start_time) * 1000
    log_settlement(request_id, group_id, actor_id, len(transfers), duration_ms)

    return SettleResponse(
        group_id=group_id,
        settled=bool(transfers),
        transfers=[
            SettlementTransferSchema(
                transfer_id=t.transfer_id,
                from_id=t.from_id,
                to_id=t.to_id,
                amount_cents=t.amount_cents,
                created_at=t.created_at,
                created_by=t.created_by,
            )
            for t in transfers
        ],
    )
