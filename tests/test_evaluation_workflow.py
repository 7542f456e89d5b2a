import pytest
from fastapi import status

from talentflow.core.exceptions import ValidationFailedError
from talentflow.models.evaluation import ObjectiveEvaluation
from talentflow.services.evaluation_workflow import (
    Stage,
    average_score,
    build_referent_evaluation,
    build_self_evaluation,
    final_score,
)

OBJECTIVES = [
    {"skill_id": "s1", "skill_description": "Plans work", "theme_name": "Delivery", "smart_objective": "Plan"},
    {"skill_id": "s2", "skill_description": "Coaches", "theme_name": "Leadership", "smart_objective": "Coach"},
]


def _self_entry(skill_id, score=4, **overrides):
    entry = {"skill_id": skill_id, "score": score, "comment": "Went well",
             "achievements": "Delivered the plan", "learnings": "Estimate earlier"}
    entry.update(overrides)
    return entry


def _referent_entry(skill_id, score=4, **overrides):
    entry = {"skill_id": skill_id, "score": score, "comment": "Solid",
             "observed_achievements": "Plan delivered", "overall_performance": "Meets expectations"}
    entry.update(overrides)
    return entry


# --- pure rules ---

def test_self_evaluation_copies_objective_context():
    payload = build_self_evaluation(OBJECTIVES, [_self_entry("s1"), _self_entry("s2", difficulties="Scope")])
    assert payload["status"] == "submitted"
    assert payload["evaluations"][0]["theme_name"] == "Delivery"
    assert payload["evaluations"][1]["difficulties"] == "Scope"
    assert payload["evaluations"][0]["next_steps"] is None


def test_self_evaluation_needs_every_objective():
    with pytest.raises(ValidationFailedError) as exc:
        build_self_evaluation(OBJECTIVES, [_self_entry("s1")])
    assert exc.value.details["skill_id"] == "s2"


@pytest.mark.parametrize("score", [0, 6, 3.5, None, True])
def test_scores_must_be_between_one_and_five(score):
    with pytest.raises(ValidationFailedError):
        build_self_evaluation(OBJECTIVES, [_self_entry("s1", score=score), _self_entry("s2")])


def test_unknown_or_duplicate_entries_are_rejected():
    with pytest.raises(ValidationFailedError):
        build_self_evaluation(OBJECTIVES, [_self_entry("s1"), _self_entry("s9")])
    with pytest.raises(ValidationFailedError):
        build_self_evaluation(OBJECTIVES, [_self_entry("s1"), _self_entry("s1")])
    with pytest.raises(ValidationFailedError):
        build_self_evaluation(OBJECTIVES, [])


def test_referent_entry_without_self_entry_is_rejected():
    self_evaluation = {"evaluations": [{"skill_id": "s1", "score": 4}]}
    with pytest.raises(ValidationFailedError) as exc:
        build_referent_evaluation(OBJECTIVES, self_evaluation, [_referent_entry("s1"), _referent_entry("s2")])
    assert exc.value.message == "Objective 2: no self-evaluation entry to review"

    payload = build_referent_evaluation(OBJECTIVES, self_evaluation, [_referent_entry("s1", score=5)])
    assert [e["skill_id"] for e in payload["evaluations"]] == ["s1"]
    assert payload["status"] == "referent_evaluated"


def test_referent_required_fields():
    self_evaluation = {"evaluations": [{"skill_id": "s1", "score": 4}]}
    with pytest.raises(ValidationFailedError) as exc:
        build_referent_evaluation(OBJECTIVES, self_evaluation, [_referent_entry("s1", overall_performance=" ")])
    assert exc.value.details["field"] == "overall_performance"


def test_scores():
    assert average_score({"evaluations": [{"score": 4}, {"score": 3}]}) == 3.5
    assert average_score({"evaluations": [{"score": 4}, {"score": 4}, {"score": 5}]}) == 4.33
    assert average_score(None) is None
    assert final_score(3.5, 4.5) == 4.0
    assert final_score(3.5, None) is None


# --- API flow ---

@pytest.fixture
def collaboration(client, referent_user, employee_user, auth_headers):
    payload = {
        "client_name": "Acme Bank",
        "title": "Core banking migration",
        "start_date": "2025-01-06",
        "collaborators": [{"employee_id": employee_user.id, "project_role": "Analyst"}],
    }
    project = client.post("/api/projects", json=payload, headers=auth_headers(referent_user)).json()
    return {"project_id": project["id"], "id": project["collaborations"][0]["id"]}


def _post(client, path, user, auth_headers, json=None):
    return client.post(path, json=json, headers=auth_headers(user))


def test_full_evaluation_flow(client, db_session, collaboration, employee_user, referent_user, coach_user,
                              auth_headers, career, objectives_for):
    base = f"/api/collaborations/{collaboration['id']}"
    skills = career["skills"][:2]
    self_entries = [_self_entry(skills[0].id, 4), _self_entry(skills[1].id, 3)]

    # No objectives yet
    response = _post(client, f"{base}/self-evaluation", employee_user, auth_headers, {"evaluations": self_entries})
    assert response.status_code == status.HTTP_409_CONFLICT
    assert db_session.query(ObjectiveEvaluation).count() == 0

    response = client.put(f"{base}/objectives", json={"objectives": objectives_for(skills)},
                          headers=auth_headers(employee_user))
    assert response.status_code == 200
    assert len(response.json()["objectives"]) == 2

    detail = client.get(base, headers=auth_headers(employee_user)).json()
    assert detail["stage"] == "objectives_defined"
    assert detail["permissions"]["can_self_evaluate"] is False

    # Project still running
    response = _post(client, f"{base}/self-evaluation", employee_user, auth_headers, {"evaluations": self_entries})
    assert response.status_code == status.HTTP_409_CONFLICT

    _post(client, f"/api/projects/{collaboration['project_id']}/complete", referent_user, auth_headers)

    response = _post(client, f"{base}/referent-evaluation", referent_user, auth_headers,
                     {"evaluations": [_referent_entry(skills[0].id)]})
    assert response.status_code == status.HTTP_409_CONFLICT

    # Only the collaborator can self-evaluate
    response = _post(client, f"{base}/self-evaluation", referent_user, auth_headers, {"evaluations": self_entries})
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = _post(client, f"{base}/self-evaluation", employee_user, auth_headers, {"evaluations": self_entries})
    assert response.status_code == 200
    assert response.json()["status"] == "submitted"

    # Objectives are locked once evaluation has started
    response = client.put(f"{base}/objectives", json={"objectives": objectives_for(skills)},
                          headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_409_CONFLICT

    response = _post(client, f"{base}/referent-evaluation", referent_user, auth_headers,
                     {"evaluations": [_referent_entry(skills[0].id), _referent_entry("unknown-skill")]})
    assert response.status_code == 400

    response = _post(client, f"{base}/referent-evaluation", referent_user, auth_headers,
                     {"evaluations": [_referent_entry(skills[0].id, 5), _referent_entry(skills[1].id, 4)]})
    assert response.status_code == 200
    assert response.json()["status"] == "referent_evaluated"

    response = _post(client, f"{base}/finalize", employee_user, auth_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = _post(client, f"{base}/finalize", referent_user, auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "finalized"
    assert data["self_score"] == 3.5
    assert data["referent_score"] == 4.5
    assert data["final_score"] == 4.0

    # Finalized evaluations are immutable
    for path, user, body in [
        (f"{base}/finalize", referent_user, None),
        (f"{base}/referent-evaluation", referent_user,
         {"evaluations": [_referent_entry(skills[0].id), _referent_entry(skills[1].id)]}),
        (f"{base}/self-evaluation", employee_user, {"evaluations": self_entries}),
    ]:
        assert _post(client, path, user, auth_headers, body).status_code == status.HTTP_409_CONFLICT

    detail = client.get(base, headers=auth_headers(employee_user)).json()
    assert detail["stage"] == "finalized"
    assert not any(detail["permissions"].values())

    coaching = client.get("/api/coaching/evaluations", headers=auth_headers(coach_user)).json()
    assert coaching["total"] == 1
    assert coaching["average_final_score"] == 4.0
    assert coaching["items"][0]["referent_name"] == referent_user.full_name


def test_objectives_outside_pathway_are_rejected(client, collaboration, employee_user, auth_headers,
                                                 career, objectives_for):
    response = client.put(f"/api/collaborations/{collaboration['id']}/objectives",
                          json={"objectives": objectives_for(career["outside"][:1])},
                          headers=auth_headers(employee_user))
    assert response.status_code == 400


def test_outsider_cannot_view_collaboration(client, collaboration, make_user, auth_headers):
    outsider = make_user()
    response = client.get(f"/api/collaborations/{collaboration['id']}", headers=auth_headers(outsider))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_collaboration_list_shows_stage(client, collaboration, employee_user, auth_headers):
    items = client.get("/api/collaborations", headers=auth_headers(employee_user)).json()
    assert len(items) == 1
    assert items[0]["stage"] == "no_objectives"
    assert items[0]["project"]["title"] == "Core banking migration"


def test_scores_must_be_real_integers_over_http(client, db_session, collaboration, employee_user, referent_user,
                                                 auth_headers, career, objectives_for):
    base = f"/api/collaborations/{collaboration['id']}"
    skills = career["skills"][:1]
    client.put(f"{base}/objectives", json={"objectives": objectives_for(skills)}, headers=auth_headers(employee_user))
    _post(client, f"/api/projects/{collaboration['project_id']}/complete", referent_user, auth_headers)

    for score in (True, "4", 4.0):
        response = _post(client, f"{base}/self-evaluation", employee_user, auth_headers,
                         {"evaluations": [_self_entry(skills[0].id, score)]})
        assert response.status_code == 422
    assert db_session.query(ObjectiveEvaluation).count() == 0


def test_collaborator_cannot_review_own_work(client, referent_user, make_user, auth_headers, career,
                                             objectives_for):
    from talentflow.models.user import UserRole

    # Admins may write referent evaluations, but never on their own collaboration
    admin = make_user(UserRole.ADMIN, career_pathway_id=career["area"].id, career_level_id=career["level"].id)
    payload = {
        "client_name": "Acme Bank",
        "title": "Internal audit",
        "start_date": "2025-01-06",
        "collaborators": [{"employee_id": admin.id, "project_role": "Auditor"}],
    }
    project = client.post("/api/projects", json=payload, headers=auth_headers(referent_user)).json()
    base = f"/api/collaborations/{project['collaborations'][0]['id']}"
    skill = career["skills"][0]

    client.put(f"{base}/objectives", json={"objectives": objectives_for([skill])}, headers=auth_headers(admin))
    _post(client, f"/api/projects/{project['id']}/complete", referent_user, auth_headers)
    assert _post(client, f"{base}/self-evaluation", admin, auth_headers,
                 {"evaluations": [_self_entry(skill.id, 5)]}).status_code == 200

    detail = client.get(base, headers=auth_headers(admin)).json()
    assert detail["permissions"]["can_referent_evaluate"] is False

    response = _post(client, f"{base}/referent-evaluation", admin, auth_headers,
                     {"evaluations": [_referent_entry(skill.id, 5)]})
    assert response.status_code == status.HTTP_403_FORBIDDEN

    assert _post(client, f"{base}/referent-evaluation", referent_user, auth_headers,
                 {"evaluations": [_referent_entry(skill.id, 3)]}).status_code == 200
    assert _post(client, f"{base}/finalize", admin, auth_headers).status_code == status.HTTP_403_FORBIDDEN
    assert _post(client, f"{base}/finalize", referent_user, auth_headers).status_code == 200
