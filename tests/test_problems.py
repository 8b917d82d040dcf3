from conftest import problem_payload, run


def test_problems_require_authentication(client):
    client.cookies.clear()
    assert client.get("/api/problems").status_code == 401


def test_student_cannot_create_problem(client, student):
    response = client.post("/api/problems", json=problem_payload(), headers=student)
    assert response.status_code == 403
    assert response.json()["message"] == "Admin access required"


def test_admin_creates_problem(client, admin):
    response = client.post("/api/problems", json=problem_payload(), headers=admin)

    assert response.status_code == 201
    problem = response.json()
    assert problem["problem_id"].startswith("PRB_")
    assert problem["time_limit"] == 1000
    assert problem["memory_limit"] == 256
    assert len(problem["test_cases"]) == 4


def test_problem_requires_examples_and_test_cases(client, admin):
    no_examples = client.post("/api/problems", json=problem_payload(examples=[]), headers=admin)
    assert no_examples.status_code == 400
    assert no_examples.json()["message"] == "Invalid data"

    no_cases = client.post("/api/problems", json=problem_payload(test_cases=[]), headers=admin)
    assert no_cases.status_code == 400


def test_unsupported_starter_language_is_rejected(client, admin):
    payload = problem_payload(starter_code={"brainfuck": "+"})
    assert client.post("/api/problems", json=payload, headers=admin).status_code == 400


def test_students_do_not_see_hidden_cases(client, student, create_problem):
    problem = create_problem(num_cases=4, hidden=2, solution_code="print(sum(map(int, input().split())))")

    response = client.get(f"/api/problems/{problem['problem_id']}", headers=student)

    assert response.status_code == 200
    body = response.json()
    assert len(body["test_cases"]) == 2
    assert all(not tc["is_hidden"] for tc in body["test_cases"])
    assert "solution_code" not in body


def test_admin_sees_all_cases(client, admin, create_problem):
    problem = create_problem(num_cases=3, hidden=2)
    body = client.get(f"/api/problems/{problem['problem_id']}", headers=admin).json()
    assert len(body["test_cases"]) == 3


def test_list_filters(client, student, create_problem):
    create_problem(difficulty="easy")
    create_problem(difficulty="hard", tags=["graphs"])

    easy = client.get("/api/problems?difficulty=easy", headers=student).json()
    assert [p["difficulty"] for p in easy] == ["easy"]

    graphs = client.get("/api/problems?tag=graphs", headers=student).json()
    assert len(graphs) == 1
    assert graphs[0]["difficulty"] == "hard"


def test_private_problem_hidden_from_students(client, student, admin, create_problem):
    problem = create_problem(is_public=False)

    assert client.get(f"/api/problems/{problem['problem_id']}", headers=student).status_code == 404
    assert client.get("/api/problems", headers=student).json() == []
    assert client.get(f"/api/problems/{problem['problem_id']}", headers=admin).status_code == 200


def test_update_and_delete(client, admin, create_problem):
    problem = create_problem()
    problem_id = problem["problem_id"]

    updated = client.put(
        f"/api/problems/{problem_id}",
        json=problem_payload(title="Sum of Three", difficulty="medium"),
        headers=admin,
    )
    assert updated.status_code == 200
    assert updated.json()["title"] == "Sum of Three"
    assert updated.json()["problem_id"] == problem_id

    assert client.delete(f"/api/problems/{problem_id}", headers=admin).status_code == 204
    assert client.get(f"/api/problems/{problem_id}", headers=admin).status_code == 404


def test_update_and_delete_unknown_problem(client, admin):
    assert client.put("/api/problems/PRB_NOPE", json=problem_payload(), headers=admin).status_code == 404
    assert client.delete("/api/problems/PRB_NOPE", headers=admin).status_code == 404


def test_problem_changes_are_audited(client, db, admin, create_problem):
    problem = create_problem()
    entries = run(db.audit_logs.find({"target_id": problem["problem_id"]}).to_list(length=None))
    assert [e["action"] for e in entries] == ["create_problem"]
