from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.schemas.requirement import RequirementNode

class ProjectCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None

class ProjectRead(BaseModel):
    id: str
    name: str
    description: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None

class ProjectDetail(ProjectRead):
    requirements: List[RequirementNode] = []
    requirements_count: int = 0
