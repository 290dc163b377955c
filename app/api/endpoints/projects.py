import logging
from fastapi import APIRouter, HTTPException, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select
from typing import List
from app.models.project import Project
from app.schemas.project import ProjectCreate, ProjectDetail, ProjectRead, ProjectUpdate
from app.database import get_session
from app.services.requirement_service import RequirementError, fetch_requirement_tree
from app.services.view_cache import ViewCache, get_view_cache, project_path
from app.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_project(
    project_in: ProjectCreate,
    session: Session = Depends(get_session),
):
    project = Project(
        name=project_in.name,
        description=project_in.description,
    )
    try:
        session.add(project)
        session.commit()
        session.refresh(project)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Failed to create project %r", project_in.name)
        raise HTTPException(status_code=500, detail="Database Error: Failed to create project.")
    return project

@router.get("/", response_model=List[ProjectRead])
def list_projects(session: Session = Depends(get_session)):
    projects = session.exec(select(Project).order_by(Project.created_at.desc())).all()
    return projects

@router.get("/{project_id}", response_model=ProjectDetail)
def get_project(
    project_id: str,
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
):
    path = project_path(project_id)
    cached = cache.get(path)
    if cached is not None:
        return cached

    project = session.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    try:
        requirements = fetch_requirement_tree(session, project_id)
    except RequirementError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to load project: {exc.message}")

    detail = ProjectDetail(
        **ProjectRead.model_validate(project).model_dump(),
        requirements=requirements,
        requirements_count=len(requirements),
    )
    cache.set(path, detail)
    return detail

@router.put("/{project_id}", response_model=ProjectRead)
def update_project(
    project_id: str,
    project_in: ProjectUpdate,
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
):
    project = session.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    project_data = project_in.dict(exclude_unset=True)
    for key, value in project_data.items():
        setattr(project, key, value)
    project.updated_at = utcnow()
    try:
        session.add(project)
        session.commit()
        session.refresh(project)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Failed to update project %s", project_id)
        raise HTTPException(status_code=500, detail="Database Error: Failed to update project.")
    cache.invalidate(project_path(project_id))
    return project

@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: str,
    session: Session = Depends(get_session),
    cache: ViewCache = Depends(get_view_cache),
):
    project = session.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    # requirements are not cascaded; the store decides whether orphans are allowed
    try:
        session.delete(project)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Failed to delete project %s", project_id)
        raise HTTPException(status_code=500, detail="Database Error: Failed to delete project.")
    cache.invalidate(project_path(project_id))
