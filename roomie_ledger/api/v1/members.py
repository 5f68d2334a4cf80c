"""GET /v1/groups/{group_id}/members - Current group members"""

from fastapi import APIRouter, Depends

from roomie_ledger.api.v1.schemas import MembersResponse, MemberSchema
from roomie_ledger.api.dependencies import get_actor_id, get_ledger_service
from roomie_ledger.api.errors import to_http_exception
from roomie_ledger.domain.exceptions import DomainException
from roomie_ledger.services.ledger import LedgerService

router = APIRouter()


@router.get("/groups/{group_id}/members", response_model=MembersResponse)
def list_members(
    group_id: str,
    actor_id: str = Depends(get_actor_id),
    service: LedgerService = Depends(get_ledger_service),
):
    """List members as supplied by the member registry"""
    try:
        members = service.authorize(group_id, actor_id, "read")
    except DomainException as e:
        raise to_http_exception(e)

    return MembersResponse(
        group_id=group_id,
        members=[MemberSchema(member_id=m.member_id, display_name=m.display_name) for m in members],
    )
