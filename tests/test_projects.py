import pytest
from fastapi import status

from talentflow.models.notification import Notification
from talentflow.models.project import Project
from talentflow.models.user import UserRole


def _project_payload(**overrides):
    payload = {
        "client_name": "Acme Bank",
        "title": "Core banking migration",
        "start_date": "2025-01-06",
        "planned_end_date": "2025-06-30",
        "priority": "high",
        "goals": ["Migrate accounts"],
    }
    payload.update(overrides)
    return payload


def test_referent_creates_project_with_collaborators(client, referent_user, employee_user, auth_headers):
    payload = _project_payload(collaborators=[{"employee_id": employee_user.id, "project_role": "Analyst"}])
    response = client.post("/api/projects", json=payload, headers=auth_headers(referent_user))
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["status"] == "in_progress"
    assert data["referent_id"] == referent_user.id
    assert data["author_id"] == referent_user.id
    assert data["collaborations"][0]["employee_id"] == employee_user.id
    assert data["collaborations"][0]["allocation_pct"] == 100


def test_employee_cannot_create_project(client, employee_user, auth_headers):
    response = client.post("/api/projects", json=_project_payload(), headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_end_date_before_start_is_rejected(client, referent_user, auth_headers, db_session):
    payload = _project_payload(start_date="2025-06-01", planned_end_date="2025-01-01")
    response = client.post("/api/projects", json=payload, headers=auth_headers(referent_user))
    assert response.status_code == 400
    assert db_session.query(Project).count() == 0


def test_duplicate_collaborator_is_rejected(client, referent_user, employee_user, auth_headers, db_session):
    member = {"employee_id": employee_user.id, "project_role": "Analyst"}
    response = client.post("/api/projects", json=_project_payload(collaborators=[member, member]),
                           headers=auth_headers(referent_user))
    assert response.status_code == 400
    assert db_session.query(Project).count() == 0


def test_collaborator_lifecycle(client, referent_user, employee_user, auth_headers):
    project = client.post("/api/projects", json=_project_payload(), headers=auth_headers(referent_user)).json()
    member = {"employee_id": employee_user.id, "project_role": "Analyst", "allocation_pct": 50}

    added = client.post(f"/api/projects/{project['id']}/collaborators", json=member, headers=auth_headers(referent_user))
    assert added.status_code == 201
    assert added.json()["allocation_pct"] == 50

    again = client.post(f"/api/projects/{project['id']}/collaborators", json=member, headers=auth_headers(referent_user))
    assert again.status_code == status.HTTP_409_CONFLICT

    removed = client.delete(f"/api/projects/{project['id']}/collaborators/{added.json()['id']}",
                            headers=auth_headers(referent_user))
    assert removed.json()["is_active"] is False

    # Re-adding reactivates the same collaboration
    readded = client.post(f"/api/projects/{project['id']}/collaborators", json=member, headers=auth_headers(referent_user))
    assert readded.status_code == 201
    assert readded.json()["id"] == added.json()["id"]
    assert readded.json()["is_active"] is True


def test_only_managers_can_update(client, referent_user, employee_user, auth_headers):
    project = client.post("/api/projects", json=_project_payload(), headers=auth_headers(referent_user)).json()
    response = client.patch(f"/api/projects/{project['id']}", json={"progress": 40}, headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.patch(f"/api/projects/{project['id']}", json={"progress": 40, "status": "on_hold"},
                            headers=auth_headers(referent_user))
    assert response.status_code == 200
    assert response.json()["progress"] == 40
    assert response.json()["status"] == "on_hold"


def test_status_completed_requires_complete_endpoint(client, referent_user, auth_headers):
    project = client.post("/api/projects", json=_project_payload(), headers=auth_headers(referent_user)).json()
    response = client.patch(f"/api/projects/{project['id']}", json={"status": "completed"},
                            headers=auth_headers(referent_user))
    assert response.status_code == status.HTTP_409_CONFLICT


def test_complete_notifies_collaborators(client, referent_user, employee_user, auth_headers, db_session):
    payload = _project_payload(collaborators=[{"employee_id": employee_user.id, "project_role": "Analyst"}])
    project = client.post("/api/projects", json=payload, headers=auth_headers(referent_user)).json()

    response = client.post(f"/api/projects/{project['id']}/complete", headers=auth_headers(referent_user))
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert response.json()["progress"] == 100

    notes = db_session.query(Notification).filter(Notification.user_id == employee_user.id).all()
    assert any("self-evaluation" in n.title for n in notes)

    # Completed projects are frozen
    response = client.patch(f"/api/projects/{project['id']}", json={"notes": "late"}, headers=auth_headers(referent_user))
    assert response.status_code == status.HTTP_409_CONFLICT
    again = client.post(f"/api/projects/{project['id']}/complete", headers=auth_headers(referent_user))
    assert again.status_code == status.HTTP_409_CONFLICT


def test_project_visibility(client, referent_user, employee_user, make_user, auth_headers):
    outsider = make_user(UserRole.EMPLOYEE)
    payload = _project_payload(collaborators=[{"employee_id": employee_user.id, "project_role": "Analyst"}])
    project = client.post("/api/projects", json=payload, headers=auth_headers(referent_user)).json()

    mine = client.get("/api/projects", headers=auth_headers(employee_user)).json()
    assert [p["id"] for p in mine] == [project["id"]]
    assert client.get("/api/projects", headers=auth_headers(outsider)).json() == []

    response = client.get(f"/api/projects/{project['id']}", headers=auth_headers(outsider))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_referent_cannot_be_a_collaborator(client, referent_user, employee_user, auth_headers, db_session):
    member = {"employee_id": referent_user.id, "project_role": "Lead"}
    response = client.post("/api/projects", json=_project_payload(collaborators=[member]),
                           headers=auth_headers(referent_user))
    assert response.status_code == 400
    assert db_session.query(Project).count() == 0

    project = client.post("/api/projects", json=_project_payload(), headers=auth_headers(referent_user)).json()
    response = client.post(f"/api/projects/{project['id']}/collaborators", json=member,
                           headers=auth_headers(referent_user))
    assert response.status_code == 400

    client.post(f"/api/projects/{project['id']}/collaborators",
                json={"employee_id": employee_user.id, "project_role": "Analyst"}, headers=auth_headers(referent_user))
    response = client.patch(f"/api/projects/{project['id']}", json={"referent_id": employee_user.id},
                            headers=auth_headers(referent_user))
    assert response.status_code == 400
