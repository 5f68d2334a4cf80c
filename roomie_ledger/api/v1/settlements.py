"""GET /v1/groups/{group_id}/settlements - Recorded settlement transfers"""

from fastapi import APIRouter, Depends, Query

from roomie_ledger.api.v1.schemas import SettlementHistoryResponse, SettlementTransferSchema
from roomie_ledger.api.dependencies import get_actor_id, get_ledger_service
from roomie_ledger.api.errors import to_http_exception
from roomie_ledger.domain.exceptions import DomainException
from roomie_ledger.services.ledger import LedgerService

router = APIRouter()


@router.get("/groups/{group_id}/settlements", response_model=SettlementHistoryResponse)
def get_settlement_history(
    group_id: str,
    limit: int = Query(100, ge=1, le=500),
    actor_id: str = Depends(get_actor_id),
    service: LedgerService = Depends(get_ledger_service),
):
    """Transfers recorded by past settlements, newest first"""
    try:
        service.authorize(group_id, actor_id, "read")
        transfers = service.list_settlements(group_id, limit=limit)
    except DomainException as e:
        raise to_http_exception(e)

    return SettlementHistoryResponse(
        group_id=group_id,
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
