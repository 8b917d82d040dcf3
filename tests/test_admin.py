from datetime import datetime

import pytest

from conftest import register, run


def test_admin_routes_reject_students(client, student):
    for path in ("/api/admin/analytics", "/api/admin/course-stats", "/api/admin/users", "/api/admin/audit-logs"):
        response = client.get(path, headers=student)
        assert response.status_code == 403, path


def test_platform_analytics(client, db, admin, student):
    now = datetime.utcnow()
    run(db.submissions.insert_many([
        {"submission_id": "SUB_1", "user_id": "U1", "status": "accepted", "code": "x", "submitted_at": now},
        {"submission_id": "SUB_2", "user_id": "U1", "status": "partial", "code": "y", "submitted_at": now},
        {"submission_id": "SUB_3", "user_id": "U2", "status": "accepted", "code": "z", "submitted_at": now},
    ]))

    body = client.get("/api/admin/analytics", headers=admin).json()

    assert body["total_users"] == 2
    assert body["total_submissions"] == 3
    assert body["submissions_by_status"] == {"accepted": 2, "partial": 1}
    assert all("code" not in s for s in body["recent_submissions"])


def test_course_stats(client, db, admin):
    run(db.courses.insert_many([
        {"course_id": "C1", "title": "Python", "category": "programming"},
        {"course_id": "C2", "title": "Graphs", "category": "algorithms"},
        {"course_id": "C3", "title": "Django", "category": "programming"},
    ]))
    run(db.course_enrollments.insert_many([
        {"course_id": "C1", "user_id": "U1", "progress": 100.0, "enrolled_at": datetime.utcnow()},
        {"course_id": "C1", "user_id": "U2", "progress": 50.0, "enrolled_at": datetime.utcnow()},
    ]))

    body = client.get("/api/admin/course-stats", headers=admin).json()

    assert body["total_courses"] == 3
    assert body["total_enrollments"] == 2
    assert body["completion_rate"] == 75
    assert body["popular_categories"][0] == {"category": "programming", "count": 2}
    assert body["recent_activity"][0]["course"] == "Python"


def test_list_users_with_search(client, admin, student):
    body = client.get("/api/admin/users?search=stu", headers=admin).json()
    assert [u["email"] for u in body["users"]] == ["student@example.com"]
    assert body["pagination"]["total"] == 1

    admins = client.get("/api/admin/users?role=admin", headers=admin).json()
    assert [u["email"] for u in admins["users"]] == ["admin@example.com"]


def test_change_role(client, db, admin):
    headers, user = register(client, "future-admin@example.com")
    url = f"/api/admin/users/{user['user_id']}/role"

    invalid = client.patch(url, json={"role": "superuser"}, headers=admin)
    assert invalid.status_code == 400
    assert invalid.json()["message"] == "Invalid role"

    changed = client.patch(url, json={"role": "admin"}, headers=admin)
    assert changed.status_code == 200
    assert changed.json()["role"] == "admin"
    assert client.get(url, headers=admin).json() == {"user_id": user["user_id"], "role": "admin"}

    # Takes effect on the next request with the existing token
    assert client.get("/api/admin/analytics", headers=headers).status_code == 200

    entries = client.get(f"/api/admin/audit-logs?target_id={user['user_id']}", headers=admin).json()
    assert entries[0]["action"] == "change_role"
    assert entries[0]["metadata"] == {"from": "student", "to": "admin"}


def test_change_role_unknown_user(client, admin):
    response = client.patch("/api/admin/users/USR_NOPE/role", json={"role": "admin"}, headers=admin)
    assert response.status_code == 404


def test_group_lifecycle(client, db, admin):
    member_headers, member = register(client, "grouped@example.com")

    created = client.post("/api/admin/groups", json={"name": "Cohort 1", "members": [member["user_id"]]}, headers=admin)
    assert created.status_code == 201
    group_id = created.json()["group_id"]

    mine = client.get("/api/groups", headers=member_headers).json()
    assert [g["group_id"] for g in mine] == [group_id]

    renamed = client.put(f"/api/admin/groups/{group_id}", json={"name": "Cohort One"}, headers=admin)
    assert renamed.json()["name"] == "Cohort One"

    run(db.assignments.insert_one({"assignment_id": "ASG_1", "assigned_groups": [group_id]}))
    assert client.delete(f"/api/admin/groups/{group_id}", headers=admin).status_code == 204

    assignment = run(db.assignments.find_one({"assignment_id": "ASG_1"}))
    assert assignment["assigned_groups"] == []
    assert client.get("/api/groups", headers=member_headers).json() == []


def test_announcement_targeting(client, admin):
    alice_headers, alice = register(client, "alice@example.com")
    bob_headers, _ = register(client, "bob@example.com")
    group = client.post("/api/admin/groups", json={"name": "Alice only", "members": [alice["user_id"]]}, headers=admin).json()

    def announce(title, audience, **extra):
        response = client.post("/api/admin/announcements", json={
            "title": title,
            "content": "...",
            "target_audience": audience,
            **extra,
        }, headers=admin)
        assert response.status_code == 201, response.text
        return response.json()

    announce("Everyone", ["all"])
    announce("Students", ["student"])
    announce("Admins", ["admin"])
    announce("Direct", [alice["user_id"]])
    announce("Group", [group["group_id"]])
    announce("Draft", ["all"], is_visible=False)

    alice_titles = {a["title"] for a in client.get("/api/announcements", headers=alice_headers).json()}
    bob_titles = {a["title"] for a in client.get("/api/announcements", headers=bob_headers).json()}

    assert alice_titles == {"Everyone", "Students", "Direct", "Group"}
    assert bob_titles == {"Everyone", "Students"}

    assert len(client.get("/api/admin/announcements", headers=admin).json()) == 6


def test_delete_announcement(client, admin):
    created = client.post("/api/announcements", json={"title": "Bye", "content": "Soon"}, headers=admin).json()
    url = f"/api/admin/announcements/{created['announcement_id']}"

    assert client.delete(url, headers=admin).status_code == 204
    assert client.delete(url, headers=admin).status_code == 404


def test_admin_assignment_listing(client, db, admin):
    run(db.assignments.insert_one({"assignment_id": "ASG_9", "title": "Hidden", "is_visible": False, "created_at": datetime.utcnow()}))
    listed = client.get("/api/admin/assignments", headers=admin).json()
    assert [a["assignment_id"] for a in listed] == ["ASG_9"]


def test_group_update_cannot_null_members(client, admin):
    group = client.post("/api/admin/groups", json={"name": "Cohort 2"}, headers=admin).json()
    url = f"/api/admin/groups/{group['group_id']}"

    response = client.put(url, json={"members": None}, headers=admin)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid data"

    assert client.put(url, json={"name": "Cohort Two"}, headers=admin).json()["members"] == []


@pytest.mark.parametrize("search", ["c++", "(", "a.*"])
def test_user_search_is_literal(client, admin, student, search):
    response = client.get("/api/admin/users", params={"search": search}, headers=admin)
    assert response.status_code == 200
    assert response.json()["users"] == []
