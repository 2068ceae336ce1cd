import uuid
from datetime import timedelta
from unittest.mock import patch

import pytest

from app.models.enums import ActorRole

API = "/api/governance"
EMAIL_TARGET = "app.services.bulk_provisioning_service.send_faculty_credentials_email"
SINGLE_EMAIL_TARGET = "app.api.endpoints.faculty_users.send_faculty_credentials_email"


async def _setup(client, headers):
    res = await client.post(f"{API}/departments", json={"name": "Anatomy", "code": "anat"}, headers=headers)
    assert res.status_code == 201
    department = res.json()

    res = await client.post(f"{API}/permission-sets/initialize-defaults", headers=headers)
    assert res.status_code == 201
    sets = {ps["name"]: ps for ps in res.json()}
    return department, sets


async def _create_faculty(client, headers, department, permission_set, email="jane@college.edu"):
    with patch(SINGLE_EMAIL_TARGET, return_value=True) as send:
        res = await client.post(f"{API}/faculty-users", json={
            "email": email,
            "full_name": "Dr. Jane",
            "department_id": department["id"],
            "permission_set_id": permission_set["id"],
        }, headers=headers)
    assert res.status_code == 201
    send.assert_called_once()
    return res.json()


# ------------------------------------------------------------
# AUTH
# ------------------------------------------------------------
@pytest.mark.asyncio
async def test_requires_bearer_token(client):
    res = await client.get(f"{API}/departments")
    assert res.status_code in (401, 403)


@pytest.mark.asyncio
async def test_rejects_invalid_and_expired_tokens(client, college_id, issue_token):
    res = await client.get(f"{API}/departments", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401

    expired = issue_token(
        subject=uuid.uuid4(),
        expires_delta=timedelta(minutes=-5),
        data={"college_id": str(college_id), "role": "COLLEGE_ADMIN"},
    )
    res = await client.get(f"{API}/departments", headers={"Authorization": f"Bearer {expired}"})
    assert res.status_code == 401
    assert res.json()["detail"] == "Token has expired"


@pytest.mark.asyncio
async def test_rejects_token_without_tenant(client, issue_token):
    token = issue_token(subject=uuid.uuid4(), data={"role": "COLLEGE_ADMIN"})
    res = await client.get(f"{API}/departments", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_readers_cannot_mutate(client, auth_headers):
    dean = auth_headers(ActorRole.COLLEGE_DEAN)

    res = await client.get(f"{API}/departments", headers=dean)
    assert res.status_code == 200

    res = await client.post(f"{API}/departments", json={"name": "Anatomy", "code": "ANAT"}, headers=dean)
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_faculty_cannot_read_catalogue(client, auth_headers):
    res = await client.get(f"{API}/permission-sets", headers=auth_headers(ActorRole.FACULTY))
    assert res.status_code == 403


# ------------------------------------------------------------
# DEPARTMENTS
# ------------------------------------------------------------
@pytest.mark.asyncio
async def test_department_crud_and_error_shape(client, auth_headers):
    admin = auth_headers()
    department, _ = await _setup(client, admin)
    assert department["code"] == "ANAT"

    res = await client.post(f"{API}/departments", json={"name": "Again", "code": "ANAT"}, headers=admin)
    assert res.status_code == 409
    assert res.json() == {"detail": "Department code 'ANAT' is already in use in this college"}

    res = await client.put(f"{API}/departments/{department['id']}", json={"code": "XYZ"}, headers=admin)
    assert res.status_code == 400

    res = await client.put(f"{API}/departments/{department['id']}", json={"name": "Human Anatomy"}, headers=admin)
    assert res.status_code == 200
    assert res.json()["name"] == "Human Anatomy"

    res = await client.get(f"{API}/departments/{uuid.uuid4()}", headers=admin)
    assert res.status_code == 404
    assert res.json() == {"detail": "Department not found"}


@pytest.mark.asyncio
async def test_departments_are_tenant_isolated(client, auth_headers):
    department, _ = await _setup(client, auth_headers())
    other = auth_headers(tenant=uuid.uuid4())

    res = await client.get(f"{API}/departments", headers=other)
    assert res.json() == []

    res = await client.get(f"{API}/departments/{department['id']}", headers=other)
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_soft_delete_returns_warnings(client, auth_headers):
    admin = auth_headers()
    department, sets = await _setup(client, admin)
    await _create_faculty(client, admin, department, sets["View Only"])

    res = await client.delete(f"{API}/departments/{department['id']}", headers=admin)
    assert res.status_code == 200
    body = res.json()
    assert body["department"]["status"] == "INACTIVE"
    assert len(body["warnings"]) == 1

    res = await client.get(f"{API}/departments", headers=admin)
    [listed] = res.json()
    assert listed["status"] == "INACTIVE"
    assert listed["assignment_count"] == 1


@pytest.mark.asyncio
async def test_put_cannot_deactivate(client, auth_headers):
    admin = auth_headers()
    department, _ = await _setup(client, admin)

    res = await client.put(f"{API}/departments/{department['id']}", json={"status": "INACTIVE"}, headers=admin)
    assert res.status_code == 400
    assert "DELETE" in res.json()["detail"]

    res = await client.get(f"{API}/departments/{department['id']}", headers=admin)
    assert res.json()["status"] == "ACTIVE"


@pytest.mark.asyncio
async def test_hod_lists_own_departments(client, auth_headers):
    admin = auth_headers()
    department, sets = await _setup(client, admin)
    res = await client.post(f"{API}/departments", json={"name": "Physiology", "code": "PHYS"}, headers=admin)
    assert res.status_code == 201
    hod = (await _create_faculty(client, admin, department, sets["Full Access"]))["faculty"]
    other = (await _create_faculty(client, admin, department, sets["View Only"], email="other@college.edu"))["faculty"]

    res = await client.put(
        f"{API}/departments/{department['id']}/assign-hod", json={"faculty_id": hod["id"]}, headers=admin
    )
    assert res.status_code == 200

    res = await client.get(f"{API}/departments/my-departments", headers=auth_headers(ActorRole.COLLEGE_HOD, actor_id=hod["id"]))
    assert res.status_code == 200
    [headed] = res.json()
    assert headed["department"]["code"] == "ANAT"
    assert headed["department"]["assignment_count"] == 2
    assert {a["faculty_id"] for a in headed["assignments"]} == {hod["id"], other["id"]}

    # An HOD of nothing gets an empty list
    res = await client.get(f"{API}/departments/my-departments", headers=auth_headers(ActorRole.COLLEGE_HOD, actor_id=other["id"]))
    assert res.json() == []

    res = await client.get(f"{API}/departments/my-departments", headers=auth_headers(ActorRole.COLLEGE_DEAN))
    assert res.status_code == 403


# ------------------------------------------------------------
# PERMISSION SETS
# ------------------------------------------------------------
@pytest.mark.asyncio
async def test_permission_set_routes(client, auth_headers):
    admin = auth_headers()

    res = await client.post(f"{API}/permission-sets", json={"name": "Graders", "can_grade_students": True}, headers=admin)
    assert res.status_code == 201
    created = res.json()
    assert created["can_grade_students"] is True
    assert created["can_view_analytics"] is False

    res = await client.post(f"{API}/permission-sets/initialize-defaults", headers=admin)
    assert len(res.json()) == 4
    res = await client.post(f"{API}/permission-sets/initialize-defaults", headers=admin)
    assert res.json() == []

    res = await client.get(f"{API}/permission-sets", headers=auth_headers(ActorRole.COLLEGE_HOD))
    assert len(res.json()) == 5

    res = await client.put(f"{API}/permission-sets/{created['id']}", json={"can_view_analytics": True}, headers=admin)
    assert res.json()["can_view_analytics"] is True
    assert res.json()["can_grade_students"] is True

    res = await client.delete(f"{API}/permission-sets/{created['id']}", headers=admin)
    assert res.status_code == 200
    res = await client.get(f"{API}/permission-sets/{created['id']}", headers=admin)
    assert res.status_code == 404


# ------------------------------------------------------------
# FACULTY + ASSIGNMENTS
# ------------------------------------------------------------
@pytest.mark.asyncio
async def test_create_faculty_and_read_capabilities(client, auth_headers):
    admin = auth_headers()
    department, sets = await _setup(client, admin)

    created = await _create_faculty(client, admin, department, sets["Assessment Only"])
    faculty = created["faculty"]
    assert created["temp_password"]

    res = await client.get(
        f"{API}/faculty-assignments/capabilities",
        params={"faculty_id": faculty["id"], "department_id": department["id"]},
        headers=admin,
    )
    body = res.json()
    assert body["has_access"] is True
    assert body["capabilities"]["can_grade_students"] is True
    assert body["capabilities"]["can_create_course"] is False

    res = await client.get(f"{API}/faculty-assignments/by-department/{department['id']}", headers=admin)
    assert [a["faculty_id"] for a in res.json()] == [faculty["id"]]

    # Same faculty through the self-service routes
    me = auth_headers(ActorRole.FACULTY, actor_id=faculty["id"])
    res = await client.get(f"{API}/faculty-assignments/my-assignments", headers=me)
    assert len(res.json()) == 1
    res = await client.get(f"{API}/faculty-assignments/my-capabilities/{department['id']}", headers=me)
    assert res.json()["capabilities"]["can_grade_students"] is True


@pytest.mark.asyncio
async def test_duplicate_faculty_email_is_conflict(client, auth_headers):
    admin = auth_headers()
    department, sets = await _setup(client, admin)
    await _create_faculty(client, admin, department, sets["View Only"])

    res = await client.post(f"{API}/faculty-users", json={
        "email": "jane@college.edu",
        "full_name": "Other Jane",
        "department_id": department["id"],
        "permission_set_id": sets["View Only"]["id"],
    }, headers=admin)
    assert res.status_code == 409
    assert res.json() == {"detail": "Email already in use"}


@pytest.mark.asyncio
async def test_assignment_swap_and_scoped_removal(client, auth_headers):
    admin = auth_headers()
    department, sets = await _setup(client, admin)
    res = await client.post(f"{API}/departments", json={"name": "Physiology", "code": "PHYS"}, headers=admin)
    phys = res.json()
    faculty = (await _create_faculty(client, admin, department, sets["View Only"]))["faculty"]

    res = await client.post(f"{API}/faculty-assignments", json={
        "faculty_id": faculty["id"],
        "department_id": phys["id"],
        "permission_set_id": sets["Course Manager"]["id"],
        "subjects": ["Cardio"],
    }, headers=admin)
    assert res.status_code == 201
    phys_assignment = res.json()

    res = await client.post(f"{API}/faculty-assignments", json={
        "faculty_id": faculty["id"],
        "department_id": phys["id"],
        "permission_set_id": sets["View Only"]["id"],
    }, headers=admin)
    assert res.status_code == 409

    res = await client.put(
        f"{API}/faculty-assignments/{phys_assignment['id']}",
        json={"permission_set_id": sets["Full Access"]["id"]},
        headers=admin,
    )
    swapped = res.json()
    assert swapped["id"] == phys_assignment["id"]
    assert swapped["permission_set_id"] == sets["Full Access"]["id"]

    res = await client.delete(
        f"{API}/faculty-assignments",
        params={"faculty_id": faculty["id"], "department_id": department["id"]},
        headers=admin,
    )
    assert res.status_code == 200
    assert res.json()["warnings"] == []

    res = await client.get(f"{API}/faculty-assignments/by-faculty/{faculty['id']}", headers=admin)
    assert [a["department_id"] for a in res.json()] == [phys["id"]]


@pytest.mark.asyncio
async def test_delete_faculty_user(client, auth_headers):
    admin = auth_headers()
    department, sets = await _setup(client, admin)
    faculty = (await _create_faculty(client, admin, department, sets["View Only"]))["faculty"]

    res = await client.delete(f"{API}/faculty-users/{faculty['id']}", headers=admin)
    assert res.status_code == 200
    assert res.json()["deleted"]["email"] == "jane@college.edu"

    res = await client.get(f"{API}/faculty-users", headers=admin)
    assert res.json() == []

    res = await client.get(
        f"{API}/faculty-assignments/capabilities",
        params={"faculty_id": faculty["id"], "department_id": department["id"]},
        headers=admin,
    )
    assert res.json()["has_access"] is False


# ------------------------------------------------------------
# BULK UPLOAD
# ------------------------------------------------------------
@pytest.mark.asyncio
async def test_bulk_upload_route(client, auth_headers):
    admin = auth_headers()
    await _setup(client, admin)
    content = (
        "fullName,email,departmentCode,permissionSetName\n"
        "Dr. One,one@x.edu,ANAT,Full Access\n"
        "Dr. Two,two@x.edu,MISSING,Full Access\n"
    )

    with patch(EMAIL_TARGET, return_value=True):
        res = await client.post(
            f"{API}/faculty-users/bulk-upload",
            files={"file": ("faculty.csv", content.encode("utf-8"), "text/csv")},
            headers=admin,
        )

    assert res.status_code == 200
    body = res.json()
    assert body["success_count"] == 1
    assert body["failed_count"] == 1
    assert body["errors"][0]["row"] == 3
    assert body["emails_sent"] == 1


@pytest.mark.asyncio
async def test_bulk_upload_rejects_bad_header(client, auth_headers):
    res = await client.post(
        f"{API}/faculty-users/bulk-upload",
        files={"file": ("faculty.csv", b"name,email\nA,a@x.edu\n", "text/csv")},
        headers=auth_headers(),
    )
    assert res.status_code == 400
    assert res.json()["detail"].startswith("Missing required column")


@pytest.mark.asyncio
async def test_bulk_upload_rejects_non_csv(client, auth_headers):
    res = await client.post(
        f"{API}/faculty-users/bulk-upload",
        files={"file": ("faculty.pdf", b"%PDF", "application/pdf")},
        headers=auth_headers(),
    )
    assert res.status_code == 400


# ------------------------------------------------------------
# AUDIT
# ------------------------------------------------------------
@pytest.mark.asyncio
async def test_audit_logs_admin_only(client, auth_headers):
    admin = auth_headers()
    await _setup(client, admin)

    res = await client.get(f"{API}/audit-logs", params={"action": "DEPARTMENT_CREATED"}, headers=admin)
    assert res.status_code == 200
    [entry] = res.json()
    assert entry["entity_type"] == "department"
    assert entry["actor_role"] == "COLLEGE_ADMIN"

    res = await client.get(f"{API}/audit-logs", headers=auth_headers(ActorRole.COLLEGE_DEAN))
    assert res.status_code == 403
