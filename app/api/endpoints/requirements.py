# api/endpoints/requirements.py

from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Body, Depends, Form, HTTPException, status
from fastapi.responses import JSONResponse
from sqlmodel import Session

from app.database import get_session
from app.schemas.requirement import (
    RequirementFormState,
    RequirementNode,
    RequirementRead,
    RequirementStatusUpdate,
)
from app.services.requirement_service import (
    RequirementError,
    create_requirement,
    fetch_requirement_tree,
    list_requirements,
    update_requirement,
    update_requirement_status,
)
from app.services.view_cache import ViewCache, get_view_cache

router = APIRouter()


def form_state_response(state: RequirementFormState, success_code: int) -> JSONResponse:
    if state.errors:
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif state.store_error:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        code = success_code
    return JSONResponse(status_code=code, content=state.model_dump(exclude_none=True))


@router.post("/", response_model=RequirementFormState, status_code=status.HTTP_201_CREATED)
def create_requirement_form(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    status_: Optional[str] = Form(None, alias="status"),
    priority: Optional[str] = Form(None),
    project_id: Optional[str] = Form(None),
    parent_id: Optional[str] = Form(None),
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
):
    fields = {
        "title": title,
        "description": description,
        "status": status_,
        "priority": priority,
        "project_id": project_id,
        "parent_id": parent_id,
    }
    state = create_requirement(session, fields, cache)
    return form_state_response(state, status.HTTP_201_CREATED)


@router.get("/", response_model=List[RequirementRead])
def list_all_requirements(session: Session = Depends(get_session)):
    try:
        return list_requirements(session)
    except RequirementError as exc:
        raise HTTPException(status_code=500, detail=exc.message)


@router.get("/project/{project_id}", response_model=List[RequirementNode])
def get_project_requirements(project_id: str, session: Session = Depends(get_session)):
    try:
        return fetch_requirement_tree(session, project_id)
    except RequirementError as exc:
        raise HTTPException(status_code=404, detail=exc.message)


@router.put("/{requirement_id}", response_model=RequirementFormState)
def update_requirement_full(
    requirement_id: str,
    data: Dict[str, Any] = Body(...),
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
):
    try:
        state = update_requirement(session, requirement_id, data, cache)
    except RequirementError as exc:
        raise HTTPException(status_code=500, detail=exc.message)
    return form_state_response(state, status.HTTP_200_OK)


@router.patch("/{requirement_id}/status", response_model=RequirementRead)
def change_requirement_status(
    requirement_id: str,
    update: RequirementStatusUpdate,
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
):
    try:
        return update_requirement_status(
            session, requirement_id, update.status, update.project_id, cache
        )
    except RequirementError as exc:
        raise HTTPException(status_code=500, detail=exc.message)
