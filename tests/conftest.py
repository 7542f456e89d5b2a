import pytest
import os
import uuid
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["PROFILE_RETRY_WAIT_SECONDS"] = "0"

from talentflow.database import Base, get_db
from talentflow.main import app
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Fresh schema and session for each test function."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def make_user(db_session):
    """Factory creating an auth identity and its profile."""
    from talentflow.models.user import AuthIdentity, UserProfile, UserRole
    from talentflow.services import auth as auth_service

    def _make_user(role=UserRole.EMPLOYEE, email=None, password="Password123!", **profile_fields):
        email = email or f"{role.value}-{uuid.uuid4().hex[:6]}@alphacorp.com"
        identity = AuthIdentity(
            email=email,
            hashed_password=auth_service.get_password_hash(password),
            email_confirmed=True,
        )
        db_session.add(identity)
        db_session.flush()
        profile = UserProfile(
            id=identity.id,
            email=email,
            full_name=profile_fields.pop("full_name", f"{role.value.title()} User"),
            role=role,
            is_active=profile_fields.pop("is_active", True),
            **profile_fields,
        )
        db_session.add(profile)
        db_session.commit()
        return profile
    return _make_user


@pytest.fixture(scope="function")
def auth_headers():
    """Helper fixture building bearer headers for a profile."""
    from talentflow.services.auth import create_access_token

    def _auth_headers(user):
        token = create_access_token(data={"sub": user.id, "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers


@pytest.fixture(scope="function")
def admin_user(make_user):
    from talentflow.models.user import UserRole
    return make_user(UserRole.ADMIN, email="admin@alphacorp.com", password="AdminPassword123!",
                     full_name="System Admin")


@pytest.fixture(scope="function")
def coach_user(make_user):
    from talentflow.models.user import UserRole
    return make_user(UserRole.HR_COACH, full_name="Camille Coach")


@pytest.fixture(scope="function")
def referent_user(make_user):
    from talentflow.models.user import UserRole
    return make_user(UserRole.PROJECT_REFERENT, full_name="Rene Referent")


@pytest.fixture(scope="function")
def career(db_session):
    """One pathway and level with five skills across two active themes, plus an inactive theme."""
    from talentflow.models.career import CareerArea, CareerLevel, DevelopmentTheme, PathwaySkill

    area = CareerArea(name="Consulting", sort_order=1)
    other_area = CareerArea(name="Engineering", sort_order=2)
    level = CareerLevel(name="Senior Consultant", short_name="SC", sort_order=2)
    junior = CareerLevel(name="Junior Consultant", short_name="JC", sort_order=1)
    db_session.add_all([area, other_area, level, junior])
    db_session.flush()

    delivery = DevelopmentTheme(career_area_id=area.id, name="Delivery", sort_order=1)
    leadership = DevelopmentTheme(career_area_id=area.id, name="Leadership", sort_order=2)
    retired = DevelopmentTheme(career_area_id=area.id, name="Retired theme", is_active=False)
    foreign = DevelopmentTheme(career_area_id=other_area.id, name="Architecture")
    db_session.add_all([delivery, leadership, retired, foreign])
    db_session.flush()

    skills = [
        PathwaySkill(development_theme_id=delivery.id, career_level_id=level.id,
                     skill_description="Plans and tracks a workstream"),
        PathwaySkill(development_theme_id=delivery.id, career_level_id=level.id,
                     skill_description="Secures client acceptance of deliverables"),
        PathwaySkill(development_theme_id=leadership.id, career_level_id=level.id,
                     skill_description="Coaches junior consultants"),
        PathwaySkill(development_theme_id=leadership.id, career_level_id=level.id,
                     skill_description="Runs steering committee meetings"),
        PathwaySkill(development_theme_id=leadership.id, career_level_id=level.id,
                     skill_description="Shares knowledge across teams"),
    ]
    outside = [
        PathwaySkill(development_theme_id=delivery.id, career_level_id=junior.id,
                     skill_description="Writes meeting minutes"),
        PathwaySkill(development_theme_id=retired.id, career_level_id=level.id,
                     skill_description="Retired skill"),
        PathwaySkill(development_theme_id=foreign.id, career_level_id=level.id,
                     skill_description="Designs system architecture"),
    ]
    db_session.add_all(skills + outside)
    db_session.commit()
    return {"area": area, "other_area": other_area, "level": level, "skills": skills, "outside": outside}


@pytest.fixture(scope="function")
def employee_user(make_user, career, coach_user):
    from talentflow.models.user import UserRole
    return make_user(
        UserRole.EMPLOYEE,
        full_name="Eve Employee",
        department="Consulting",
        coach_id=coach_user.id,
        career_pathway_id=career["area"].id,
        career_level_id=career["level"].id,
    )


def _smart_objective(skill, **overrides):
    """A complete SMART objective entry for a pathway skill."""
    entry = {
        "skill_id": skill.id,
        "smart_objective": f"Improve: {skill.skill_description}",
        "specific": "Own the weekly status report",
        "measurable": "12 reports delivered on time",
        "achievable": "Template already exists",
        "relevant": "Client asked for better visibility",
        "time_bound": "By end of Q2",
        "is_custom": False,
    }
    entry.update(overrides)
    return entry


@pytest.fixture(scope="function")
def objectives_for():
    def _objectives_for(skills):
        return [_smart_objective(skill) for skill in skills]
    return _objectives_for


@pytest.fixture(scope="function")
def smart_entry():
    return _smart_objective
