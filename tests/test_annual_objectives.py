import pytest
from fastapi import status

from talentflow.models.objectives import AnnualObjective
from talentflow.models.user import UserRole


@pytest.fixture
def annual_payload(career, objectives_for):
    def _payload(year=2025, count=4):
        return {"year": year, "objectives": objectives_for(career["skills"][:count])}
    return _payload


def _create(client, user, auth_headers, payload):
    return client.post("/api/annual-objectives", json=payload, headers=auth_headers(user))


def test_employee_creates_draft(client, employee_user, auth_headers, annual_payload, career):
    response = _create(client, employee_user, auth_headers, annual_payload())
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["status"] == "draft"
    assert data["employee_id"] == employee_user.id
    assert data["career_level_id"] == career["level"].id
    assert len(data["objectives"]) == 4
    # Descriptions and themes come from the pathway skills
    assert data["objectives"][0]["theme_name"] == "Delivery"


def test_exactly_four_objectives(client, employee_user, auth_headers, annual_payload, db_session):
    response = _create(client, employee_user, auth_headers, annual_payload(count=3))
    assert response.status_code == 400
    assert response.json()["error"] == "Exactly 4 objectives are required, got 3"
    assert db_session.query(AnnualObjective).count() == 0


def test_skill_outside_pathway_is_rejected(client, employee_user, auth_headers, career, objectives_for):
    for skill in career["outside"]:
        payload = {"year": 2025, "objectives": objectives_for(career["skills"][:3] + [skill])}
        response = _create(client, employee_user, auth_headers, payload)
        assert response.status_code == 400
        assert response.json()["details"] == {"objective": 4, "field": "skill_id"}


def test_one_set_per_year(client, employee_user, auth_headers, annual_payload):
    assert _create(client, employee_user, auth_headers, annual_payload()).status_code == 201
    response = _create(client, employee_user, auth_headers, annual_payload())
    assert response.status_code == status.HTTP_409_CONFLICT
    assert _create(client, employee_user, auth_headers, annual_payload(year=2026)).status_code == 201


def test_employee_cannot_create_for_someone_else(client, employee_user, make_user, auth_headers, annual_payload):
    other = make_user(UserRole.EMPLOYEE)
    payload = {**annual_payload(), "employee_id": other.id}
    response = _create(client, employee_user, auth_headers, payload)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_submit_and_approve(client, employee_user, coach_user, auth_headers, annual_payload):
    record = _create(client, employee_user, auth_headers, annual_payload()).json()

    response = client.post(f"/api/annual-objectives/{record['id']}/submit", headers=auth_headers(employee_user))
    assert response.status_code == 200
    assert response.json()["status"] == "submitted"

    notifications = client.get("/api/notifications", headers=auth_headers(coach_user)).json()
    assert any(n["title"] == "Annual objectives submitted" for n in notifications)

    # Submitted sets are frozen
    edit = client.put(f"/api/annual-objectives/{record['id']}", json={"selected_themes": ["Delivery"]},
                      headers=auth_headers(employee_user))
    assert edit.status_code == status.HTTP_409_CONFLICT

    # The owner cannot approve their own objectives
    own = client.post(f"/api/annual-objectives/{record['id']}/approve", headers=auth_headers(employee_user))
    assert own.status_code == status.HTTP_403_FORBIDDEN

    response = client.post(f"/api/annual-objectives/{record['id']}/approve", json={"comment": "Well scoped"},
                           headers=auth_headers(coach_user))
    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["reviewer_id"] == coach_user.id

    again = client.post(f"/api/annual-objectives/{record['id']}/reject", headers=auth_headers(coach_user))
    assert again.status_code == status.HTTP_409_CONFLICT


def test_rejected_set_returns_to_draft_on_edit(client, employee_user, coach_user, auth_headers, annual_payload,
                                               career, objectives_for):
    record = _create(client, employee_user, auth_headers, annual_payload()).json()
    client.post(f"/api/annual-objectives/{record['id']}/submit", headers=auth_headers(employee_user))

    response = client.post(f"/api/annual-objectives/{record['id']}/reject", json={"comment": "Too vague"},
                           headers=auth_headers(coach_user))
    assert response.json()["status"] == "rejected"
    assert response.json()["review_comment"] == "Too vague"

    new_objectives = objectives_for(career["skills"][1:5])
    response = client.put(f"/api/annual-objectives/{record['id']}", json={"objectives": new_objectives},
                          headers=auth_headers(employee_user))
    assert response.status_code == 200
    assert response.json()["status"] == "draft"
    assert response.json()["review_comment"] is None
    assert response.json()["objectives"][0]["skill_id"] == career["skills"][1].id


def test_submit_requires_draft(client, employee_user, auth_headers, annual_payload):
    record = _create(client, employee_user, auth_headers, annual_payload()).json()
    client.post(f"/api/annual-objectives/{record['id']}/submit", headers=auth_headers(employee_user))
    response = client.post(f"/api/annual-objectives/{record['id']}/submit", headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_409_CONFLICT


def test_delete_only_in_draft(client, employee_user, auth_headers, annual_payload, db_session):
    first = _create(client, employee_user, auth_headers, annual_payload()).json()
    second = _create(client, employee_user, auth_headers, annual_payload(year=2026)).json()
    client.post(f"/api/annual-objectives/{second['id']}/submit", headers=auth_headers(employee_user))

    assert client.delete(f"/api/annual-objectives/{first['id']}", headers=auth_headers(employee_user)).status_code == 204
    response = client.delete(f"/api/annual-objectives/{second['id']}", headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_409_CONFLICT
    assert db_session.query(AnnualObjective).count() == 1


def test_employees_only_see_their_own_sets(client, employee_user, make_user, career, auth_headers,
                                           annual_payload, coach_user):
    colleague = make_user(UserRole.EMPLOYEE, career_pathway_id=career["area"].id,
                          career_level_id=career["level"].id)
    mine = _create(client, employee_user, auth_headers, annual_payload()).json()
    theirs = _create(client, colleague, auth_headers, annual_payload()).json()

    listed = client.get("/api/annual-objectives", headers=auth_headers(employee_user)).json()
    assert [item["id"] for item in listed] == [mine["id"]]

    response = client.get(f"/api/annual-objectives/{theirs['id']}", headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN

    staff_view = client.get("/api/annual-objectives", params={"year": 2025}, headers=auth_headers(coach_user)).json()
    assert {item["id"] for item in staff_view} == {mine["id"], theirs["id"]}


def test_changing_pathway_revalidates_stored_objectives(client, employee_user, auth_headers, annual_payload,
                                                       career, db_session):
    record = _create(client, employee_user, auth_headers, annual_payload()).json()

    response = client.put(f"/api/annual-objectives/{record['id']}",
                          json={"career_pathway_id": career["other_area"].id},
                          headers=auth_headers(employee_user))
    assert response.status_code == 400
    assert response.json()["details"]["field"] == "skill_id"

    db_session.expire_all()
    stored = db_session.get(AnnualObjective, record["id"])
    assert stored.career_pathway_id == career["area"].id


def test_submit_rechecks_vocabulary(client, employee_user, auth_headers, annual_payload, career, db_session):
    record = _create(client, employee_user, auth_headers, annual_payload()).json()
    stored = db_session.get(AnnualObjective, record["id"])
    stored.career_pathway_id = career["other_area"].id
    db_session.commit()

    response = client.post(f"/api/annual-objectives/{record['id']}/submit", headers=auth_headers(employee_user))
    assert response.status_code == 400
    db_session.expire_all()
    assert db_session.get(AnnualObjective, record["id"]).status.value == "draft"
