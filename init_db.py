"""
Database initialization script
Run this to create the submissions table in the configured DATABASE_URL
"""
from dotenv import load_dotenv
import sys

load_dotenv()

from study_planner.database import Base, get_engine
from study_planner.models import SubmissionRecord

def init_database():
    """Create the submissions table if it does not exist"""
    engine = get_engine()
    if engine is None:
        print("❌ DATABASE_URL is not set; submissions will use local storage")
        sys.exit(1)

    Base.metadata.create_all(bind=engine, tables=[SubmissionRecord.__table__])
    print("✅ Database initialized successfully!")

if __name__ == "__main__":
    init_database()
