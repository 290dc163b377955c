from fastapi import FastAPI
from app.api.endpoints import projects
from app.api.endpoints import requirements


from fastapi.middleware.cors import CORSMiddleware
from app.core.config import Settings
from app.core.logging_config import setup_logging

settings = Settings()
setup_logging(settings)
app = FastAPI(title="Requirement Tree Manager")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(projects.router, prefix="/projects", tags=["projects"])
app.include_router(requirements.router, prefix="/requirements", tags=["requirements"])
