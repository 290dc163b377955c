from typing import Optional
from uuid import uuid4
from sqlmodel import SQLModel, Field
from datetime import datetime
from app.utils.timestamps import utcnow

class Project(SQLModel, table=True):
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    name: str
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
