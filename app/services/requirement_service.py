import logging
from collections import defaultdict
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.models.project import Project
from app.models.requirement import Requirement, RequirementStatus
from app.schemas.requirement import (
    RequirementCreate,
    RequirementFormState,
    RequirementNode,
    RequirementUpdate,
)
from app.services.view_cache import ViewCache, project_path
from app.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

CREATE_FIELDS = ("title", "description", "status", "priority", "project_id", "parent_id")
UPDATE_FIELDS = ("title", "description", "status", "priority")

REQUIRED_MESSAGES = {
    "title": "Title is required",
    "project_id": "Project ID is required",
}

CREATE_FAILED = "Database Error: Failed to create requirement."
UPDATE_FAILED = "Failed to update requirement"
STATUS_FAILED = "Failed to update requirement status"
FETCH_FAILED = "Failed to fetch requirements"

# Levels below a project, top-level requirements being level 1. JSON
# serialisation of nested models stops well before a few hundred levels.
MAX_TREE_DEPTH = 64


class RequirementError(Exception):
    """A store failure reduced to a constant, user-facing message."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def clean_form(fields: Mapping[str, Any], allowed: Sequence[str] = CREATE_FIELDS) -> Dict[str, Any]:
    """Keep known fields that were actually submitted. A blank parent means top-level."""
    data = {key: value for key, value in fields.items() if key in allowed and value is not None}
    parent_id = data.get("parent_id")
    if isinstance(parent_id, str) and not parent_id.strip():
        data.pop("parent_id")
    return data


def field_errors(exc: ValidationError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        field = str(err["loc"][0]) if err["loc"] else "_form"
        if err["type"] in ("missing", "string_too_short") and field in REQUIRED_MESSAGES:
            message = REQUIRED_MESSAGES[field]
        else:
            message = err["msg"]
        errors.setdefault(field, []).append(message)
    return errors


def create_requirement(
    session: Session,
    fields: Mapping[str, Any],
    cache: ViewCache,
) -> RequirementFormState:
    """Validate a submitted requirement form and store it.

    Validation problems come back as ``errors`` keyed by field and nothing
    is written. Store problems come back as a generic ``message``.
    """
    try:
        data = RequirementCreate(**clean_form(fields))
    except ValidationError as exc:
        return RequirementFormState(errors=field_errors(exc), message="Invalid fields")

    try:
        if session.get(Project, data.project_id) is None:
            logger.warning("Cannot create requirement: project %s does not exist", data.project_id)
            return RequirementFormState(message=CREATE_FAILED, store_error=True)

        if data.parent_id is not None:
            parent = session.get(Requirement, data.parent_id)
            if parent is None or parent.project_id != data.project_id:
                return RequirementFormState(
                    errors={"parent_id": ["Parent requirement not found in this project"]},
                    message="Invalid fields",
                )
            if requirement_depth(session, parent) >= MAX_TREE_DEPTH:
                return RequirementFormState(
                    errors={"parent_id": [f"Requirements cannot be nested deeper than {MAX_TREE_DEPTH} levels"]},
                    message="Invalid fields",
                )

        requirement = Requirement(
            title=data.title,
            description=data.description,
            status=data.status.value,
            priority=data.priority.value,
            project_id=data.project_id,
            parent_id=data.parent_id,
        )
        session.add(requirement)
        session.commit()
        session.refresh(requirement)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Failed to create requirement in project %s", data.project_id)
        return RequirementFormState(message=CREATE_FAILED, store_error=True)

    cache.invalidate(project_path(data.project_id))
    logger.info("Created requirement %s in project %s", requirement.id, data.project_id)
    return RequirementFormState(message="Requirement created successfully", id=requirement.id)


def update_requirement(
    session: Session,
    requirement_id: str,
    data: Mapping[str, Any],
    cache: ViewCache,
) -> RequirementFormState:
    """Overwrite title, description, status and priority of a requirement."""
    try:
        validated = RequirementUpdate(**clean_form(data, UPDATE_FIELDS))
    except ValidationError as exc:
        return RequirementFormState(
            errors=field_errors(exc),
            message="Missing Fields. Failed to Update Requirement.",
        )

    try:
        requirement = session.get(Requirement, requirement_id)
        if requirement is None:
            logger.warning("Cannot update requirement %s: not found", requirement_id)
            raise RequirementError(UPDATE_FAILED)
        requirement.title = validated.title
        requirement.description = validated.description
        requirement.status = validated.status.value
        requirement.priority = validated.priority.value
        requirement.updated_at = utcnow()
        session.add(requirement)
        session.commit()
        session.refresh(requirement)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Failed to update requirement %s", requirement_id)
        raise RequirementError(UPDATE_FAILED) from exc

    cache.invalidate(project_path(requirement.project_id))
    return RequirementFormState(message="Requirement updated successfully")


def update_requirement_status(
    session: Session,
    requirement_id: str,
    status: Union[RequirementStatus, str],
    project_id: str,
    cache: ViewCache,
) -> Requirement:
    """Move a single requirement to ``status``.

    Any status may follow any other. Parent and children are left alone.
    ``project_id`` only selects the page to invalidate.
    """
    try:
        new_status = RequirementStatus(status)
    except ValueError as exc:
        logger.warning("Rejected unknown status %r for requirement %s", status, requirement_id)
        raise RequirementError(STATUS_FAILED) from exc

    try:
        requirement = session.get(Requirement, requirement_id)
        if requirement is None:
            logger.warning("Cannot update status of requirement %s: not found", requirement_id)
            raise RequirementError(STATUS_FAILED)
        requirement.status = new_status.value
        requirement.updated_at = utcnow()
        session.add(requirement)
        session.commit()
        session.refresh(requirement)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Failed to update status of requirement %s", requirement_id)
        raise RequirementError(STATUS_FAILED) from exc

    cache.invalidate(project_path(project_id))
    return requirement


def requirement_depth(session: Session, requirement: Requirement) -> int:
    """Level of ``requirement`` in its tree, counting at most MAX_TREE_DEPTH parents."""
    depth = 1
    current = requirement
    while current.parent_id is not None and depth < MAX_TREE_DEPTH:
        current = session.get(Requirement, current.parent_id)
        if current is None:
            break
        depth += 1
    return depth


def build_tree(rows: Sequence[Requirement]) -> List[RequirementNode]:
    """Materialise the forest from flat rows already sorted newest first.

    Raises ``RequirementError`` when a branch is deeper than MAX_TREE_DEPTH.
    """
    children: Dict[Optional[str], List[Requirement]] = defaultdict(list)
    for row in rows:
        children[row.parent_id].append(row)

    roots = [RequirementNode.model_validate(row) for row in children.get(None, [])]
    pending = [(node, 1) for node in roots]
    while pending:
        node, depth = pending.pop()
        kids = children.get(node.id, [])
        if kids and depth >= MAX_TREE_DEPTH:
            logger.error("Requirement %s has subtasks below level %d", node.id, MAX_TREE_DEPTH)
            raise RequirementError(FETCH_FAILED)
        node.subtasks = [RequirementNode.model_validate(kid) for kid in kids]
        pending.extend((child, depth + 1) for child in node.subtasks)
    return roots


def fetch_requirement_tree(session: Session, project_id: str) -> List[RequirementNode]:
    """Top-level requirements of a project with every descendant nested under ``subtasks``."""
    try:
        if session.get(Project, project_id) is None:
            logger.warning("Cannot fetch requirements: project %s does not exist", project_id)
            raise RequirementError(FETCH_FAILED)
        rows = session.exec(
            select(Requirement)
            .where(Requirement.project_id == project_id)
            .order_by(Requirement.created_at.desc())
        ).all()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Failed to fetch requirements of project %s", project_id)
        raise RequirementError(FETCH_FAILED) from exc
    return build_tree(rows)


def list_requirements(session: Session) -> List[Requirement]:
    try:
        return list(
            session.exec(select(Requirement).order_by(Requirement.created_at.desc())).all()
        )
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Failed to list requirements")
        raise RequirementError(FETCH_FAILED) from exc
