"""Tests: role assignment administration endpoints (system_admin only)."""

from conftest import make_user

from nomination_portal.models.auth import UserRole


def test_non_admin_is_forbidden(client, auth_headers, cast):
    res = client.get("/api/v1/admin/role-assignments", headers=auth_headers(cast.head))
    assert res.status_code == 403


def test_anonymous_is_401(client):
    res = client.get("/api/v1/admin/role-assignments")
    assert res.status_code == 401


def test_admin_lists_assignments_for_a_user(client, auth_headers, org, cast):
    res = client.get(
        f"/api/v1/admin/role-assignments?user_id={cast.dean}", headers=auth_headers(cast.admin),
    )
    assert res.status_code == 200
    assert res.get_json() == [
        {
            "id": res.get_json()[0]["id"],
            "user_id": cast.dean,
            "role": "dean",
            "campus_id": None,
            "faculty_id": org.faculty_id,
            "department_id": None,
            "created_at": res.get_json()[0]["created_at"],
        }
    ]


def test_grant_then_revoke(client, auth_headers, org, cast):
    user = make_user("newhead@test.com")
    res = client.post(
        "/api/v1/admin/role-assignments",
        json={"user_id": user, "role": "department_head", "department_id": org.dept_b_id},
        headers=auth_headers(cast.admin),
    )
    assert res.status_code == 201
    assignment_id = res.get_json()["id"]

    roles = client.get("/api/v1/me/roles", headers=auth_headers(user)).get_json()
    assert roles["reviewer_roles"] == ["department_head"]

    res = client.delete(
        f"/api/v1/admin/role-assignments/{assignment_id}", headers=auth_headers(cast.admin),
    )
    assert res.status_code == 200
    assert UserRole.query.filter_by(user_id=user).count() == 0


def test_department_head_requires_department(client, auth_headers, cast):
    user = make_user("unscoped@test.com")
    res = client.post(
        "/api/v1/admin/role-assignments",
        json={"user_id": user, "role": "department_head"},
        headers=auth_headers(cast.admin),
    )
    assert res.status_code == 422
    assert "department_id" in res.get_json()["details"]


def test_dean_requires_faculty(client, auth_headers, cast):
    user = make_user("unscopeddean@test.com")
    res = client.post(
        "/api/v1/admin/role-assignments",
        json={"user_id": user, "role": "associate_dean"},
        headers=auth_headers(cast.admin),
    )
    assert res.status_code == 422
    assert "faculty_id" in res.get_json()["details"]


def test_system_admin_cannot_be_scoped(client, auth_headers, org, cast):
    user = make_user("scopedadmin@test.com")
    res = client.post(
        "/api/v1/admin/role-assignments",
        json={"user_id": user, "role": "system_admin", "campus_id": org.campus_id},
        headers=auth_headers(cast.admin),
    )
    assert res.status_code == 422


def test_unknown_role_and_scope(client, auth_headers, cast):
    user = make_user("x@test.com")
    res = client.post(
        "/api/v1/admin/role-assignments",
        json={"user_id": user, "role": "registrar"},
        headers=auth_headers(cast.admin),
    )
    assert res.status_code == 422

    res = client.post(
        "/api/v1/admin/role-assignments",
        json={"user_id": user, "role": "president", "campus_id": 9999},
        headers=auth_headers(cast.admin),
    )
    assert res.status_code == 422


def test_unknown_user_is_404(client, auth_headers, cast):
    res = client.post(
        "/api/v1/admin/role-assignments",
        json={"user_id": 9999, "role": "president"},
        headers=auth_headers(cast.admin),
    )
    assert res.status_code == 404


def test_duplicate_assignment_is_409(client, auth_headers, org, cast):
    res = client.post(
        "/api/v1/admin/role-assignments",
        json={"user_id": cast.dean, "role": "dean", "faculty_id": org.faculty_id},
        headers=auth_headers(cast.admin),
    )
    assert res.status_code == 409
    assert res.get_json()["code"] == "ERR_CONFLICT"


def test_missing_fields_is_400(client, auth_headers, cast):
    res = client.post(
        "/api/v1/admin/role-assignments", json={"role": "dean"}, headers=auth_headers(cast.admin),
    )
    assert res.status_code == 400


def test_non_string_role_is_400(client, auth_headers, cast):
    user = make_user("listrole@test.com")
    res = client.post(
        "/api/v1/admin/role-assignments",
        json={"user_id": user, "role": ["dean"]},
        headers=auth_headers(cast.admin),
    )
    assert res.status_code == 400
    assert res.get_json()["details"] == {"role": "must be a string"}
    assert UserRole.query.filter_by(user_id=user).count() == 0


def test_revoke_missing_is_404(client, auth_headers, cast):
    res = client.delete("/api/v1/admin/role-assignments/9999", headers=auth_headers(cast.admin))
    assert res.status_code == 404
