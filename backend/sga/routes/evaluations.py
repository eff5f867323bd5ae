"""Evaluation endpoints: schedule, list, get, update, cancel. Staff only."""

from typing import Optional

from fastapi import APIRouter, Depends

from ..auth import authenticate, authorize_role
from ..responses import success_response
from ..schemas import EvaluationCreate, EvaluationUpdate
from . import provide

router = APIRouter(prefix="/evaluations", tags=["evaluations"], dependencies=[Depends(authenticate)])

staff = authorize_role("admin", "docente")


@router.post("", status_code=201, dependencies=[Depends(staff)])
def schedule_evaluation(payload: EvaluationCreate, use_case=Depends(provide("scheduleEvaluationUseCase"))):
    return success_response(use_case.execute(payload.model_dump()), "Evaluation scheduled")


@router.get("", dependencies=[Depends(staff)])
def list_evaluations(
    group_id: Optional[int] = None,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    use_case=Depends(provide("getEvaluationsUseCase")),
):
    result = use_case.execute(group_id=group_id, status=status, page=page, limit=limit)
    return success_response(result["evaluations"], pagination=result["pagination"])


@router.get("/{evaluation_id}", dependencies=[Depends(staff)])
def get_evaluation(evaluation_id: int, use_case=Depends(provide("getEvaluationByIdUseCase"))):
    return success_response(use_case.execute(evaluation_id))


@router.put("/{evaluation_id}", dependencies=[Depends(staff)])
def update_evaluation(evaluation_id: int, payload: EvaluationUpdate, use_case=Depends(provide("updateEvaluationUseCase"))):
    return success_response(use_case.execute(evaluation_id, payload.model_dump(exclude_unset=True)), "Evaluation updated")


@router.patch("/{evaluation_id}/cancel", dependencies=[Depends(staff)])
def cancel_evaluation(evaluation_id: int, use_case=Depends(provide("cancelEvaluationUseCase"))):
    return success_response(use_case.execute(evaluation_id), "Evaluation cancelled")
