import app.models.project  # noqa
import app.models.requirement  # noqa
from sqlmodel import SQLModel
from app.database import engine

def create_db_and_tables():
    SQLModel.metadata.create_all(engine)

if __name__ == "__main__":
    create_db_and_tables()
