# schemas/requirement.py

from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime

from app.models.requirement import RequirementStatus, RequirementPriority

class RequirementCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    status: RequirementStatus = RequirementStatus.PENDING
    priority: RequirementPriority = RequirementPriority.MEDIUM
    project_id: str = Field(min_length=1)
    parent_id: Optional[str] = None

class RequirementUpdate(BaseModel):
    # project_id / parent_id are fixed at creation
    title: str = Field(min_length=1)
    description: Optional[str] = None
    status: RequirementStatus
    priority: RequirementPriority

class RequirementStatusUpdate(BaseModel):
    status: RequirementStatus
    project_id: str

class RequirementRead(BaseModel):
    id: str
    title: str
    description: Optional[str]
    status: RequirementStatus
    priority: RequirementPriority
    project_id: str
    parent_id: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class RequirementNode(RequirementRead):
    subtasks: List["RequirementNode"] = []

RequirementNode.model_rebuild()

class RequirementFormState(BaseModel):
    errors: Optional[Dict[str, List[str]]] = None
    message: Optional[str] = None
    id: Optional[str] = None
    # set by the service on store failures; never sent to clients
    store_error: bool = Field(default=False, exclude=True)
