# create_tables.py
from app.init_db import create_db_and_tables

if __name__ == "__main__":
    create_db_and_tables()
