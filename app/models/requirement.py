from enum import Enum
from typing import Optional
from uuid import uuid4
from sqlmodel import SQLModel, Field
from datetime import datetime
from app.utils.timestamps import utcnow


class RequirementStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class RequirementPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Requirement(SQLModel, table=True):
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    title: str
    description: Optional[str] = None
    status: str = RequirementStatus.PENDING.value      # 'PENDING', 'IN_PROGRESS', 'COMPLETED'
    priority: str = RequirementPriority.MEDIUM.value   # 'LOW', 'MEDIUM', 'HIGH'
    project_id: str = Field(foreign_key="project.id", index=True)
    # subtasks are never stored inline, only this back-reference
    parent_id: Optional[str] = Field(default=None, foreign_key="requirement.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
