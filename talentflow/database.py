from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from talentflow.core.config import settings

# Support both PostgreSQL and SQLite via centralized settings
DATABASE_URL = settings.database_url

if DATABASE_URL.startswith("postgresql"):
    engine = create_engine(DATABASE_URL, pool_pre_ping=True)
else:
    # SQLite configuration for local development/testing
    engine = create_engine(
        DATABASE_URL, connect_args={"check_same_thread": False}
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def enum_values(enum_cls):
    """Persist enum members by value ("hr_coach") rather than by name ("HR_COACH")."""
    return [member.value for member in enum_cls]


def get_db():
    """
    Session Provider: Provides a database session per request.
    Transaction management is handled explicitly in the Service Layer.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    """
    Registers all domain models and initializes the database schema.
    This should be called during the application startup lifespan.
    """
    # Import all models to ensure they are registered with Base.metadata before create_all
    from talentflow.models import (  # noqa: F401
        user, department, career, project, objectives, evaluation,
        notification, audit_log,
    )
    Base.metadata.create_all(bind=engine)
