"""Expense endpoints - list, add and remove shared expenses"""

import logging
from fastapi import APIRouter, Depends, Query, Request, Response

from roomie_ledger.api.v1.schemas import ExpenseCreateRequest, ExpenseListResponse, ExpenseSchema
from roomie_ledger.api.dependencies import get_actor_id, get_ledger_service, get_request_id
from roomie_ledger.api.errors import to_http_exception
from roomie_ledger.domain.exceptions import DomainException
from roomie_ledger.domain.models import Expense, scope_key
from roomie_ledger.infrastructure.observability.logging import log_expense_event
from roomie_ledger.services.ledger import LedgerService

router = APIRouter()


def _to_schema(expense: Expense) -> ExpenseSchema:
    return ExpenseSchema(
        expense_id=expense.expense_id,
        title=expense.title,
        amount_cents=expense.amount_cents,
        payer_id=expense.payer_id,
        participant_ids=sorted(expense.participant_ids),
        split_scope=scope_key(expense.scope),
        created_at=expense.created_at,
        settled_at=expense.settled_at,
    )


@router.get("/groups/{group_id}/expenses", response_model=ExpenseListResponse)
def list_expenses(
    group_id: str,
    include_settled: bool = Query(False, description="Also return settled expenses"),
    actor_id: str = Depends(get_actor_id),
    service: LedgerService = Depends(get_ledger_service),
):
    """Expenses for the group, newest first"""
    try:
        service.authorize(group_id, actor_id, "read")
        expenses = service.list_expenses(group_id, include_settled=include_settled)
    except DomainException as e:
        raise to_http_exception(e)

    return ExpenseListResponse(group_id=group_id, expenses=[_to_schema(e) for e in expenses])


@router.post("/groups/{group_id}/expenses", response_model=ExpenseSchema, status_code=201)
def add_expense(
    group_id: str,
    request_body: ExpenseCreateRequest,
    request: Request,
    actor_id: str = Depends(get_actor_id),
    service: LedgerService = Depends(get_ledger_service),
):
    """
    Record a shared expense split equally among the selected members.

    Validation:
    - amount_cents > 0
    - at least 2 participants, all current members
    - payer (default: caller) must be a current member
    """
    request_id = get_request_id(request)

    try:
        expense = service.add_expense(
            group_id=group_id,
            actor_id=actor_id,
            title=request_body.title,
            amount_cents=request_body.amount_cents,
            participant_ids=request_body.participant_ids,
            payer_id=request_body.payer_id,
        )
    except DomainException as e:
        logging.warning(f"Add expense rejected: {e}", extra={"request_id": request_id, "group_id": group_id})
        raise to_http_exception(e)

    log_expense_event(request_id, group_id, actor_id, "added", expense.expense_id, expense.amount_cents)
    return _to_schema(expense)


@router.delete("/groups/{group_id}/expenses/{expense_id}", status_code=204)
def remove_expense(
    group_id: str,
    expense_id: str,
    request: Request,
    actor_id: str = Depends(get_actor_id),
    service: LedgerService = Depends(get_ledger_service),
):
    """Delete an unsettled expense; only its payer may do this"""
    request_id = get_request_id(request)

    try:
        expense = service.remove_expense(group_id, actor_id, expense_id)
    except DomainException as e:
        logging.warning(f"Remove expense rejected: {e}", extra={"request_id": request_id, "group_id": group_id})
        raise to_http_exception(e)

    log_expense_event(request_id, group_id, actor_id, "removed", expense.expense_id, expense.amount_cents)
    return Response(status_code=204)
