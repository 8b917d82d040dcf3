import asyncio
import uuid

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from codearena.database import get_db
from codearena.judge import mock_executor
from codearena.main import app


@pytest.fixture
def db():
    return AsyncMongoMockClient()[f"codearena_test_{uuid.uuid4().hex[:8]}"]


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def run(coro):
    """Drive a mongomock-motor coroutine from synchronous test code"""
    return asyncio.run(coro)


def register(client, email, first_name="Test", last_name="User", password="secret123"):
    response = client.post("/api/auth/register", json={
        "email": email,
        "password": password,
        "first_name": first_name,
        "last_name": last_name,
    })
    assert response.status_code == 201, response.text
    client.cookies.clear()
    body = response.json()
    return {"Authorization": f"Bearer {body['token']}"}, body["user"]


@pytest.fixture
def student(client):
    headers, _ = register(client, "student@example.com", "Stu", "Dent")
    return headers


@pytest.fixture
def admin(client, db):
    headers, _ = register(client, "admin@example.com", "Ada", "Min")
    run(db.users.update_one({"email": "admin@example.com"}, {"$set": {"role": "admin"}}))
    return headers


def scripted_executor(outcomes, calls=None):
    """Executor stand-in returning the given pass/fail outcomes in order"""
    results = iter(outcomes)

    def execute(code, language, input_data=None, expected_output=None, rng=None):
        if calls is not None:
            calls.append(input_data)
        passed = next(results)
        return mock_executor.ExecutionResult(
            status="passed" if passed else "failed",
            passed=passed,
            actual_output=expected_output if passed else "nope",
            error=None,
            runtime=40,
            memory=12,
        )

    return execute


def problem_payload(num_cases=4, hidden=1, difficulty="easy", **overrides):
    payload = {
        "title": "Sum of Two",
        "description": "Print a + b",
        "difficulty": difficulty,
        "tags": ["math"],
        "examples": [{"input": "1 2", "output": "3"}],
        "test_cases": [
            {"input": f"{i} {i}", "expected_output": str(2 * i), "is_hidden": i >= num_cases - hidden}
            for i in range(num_cases)
        ],
        "starter_code": {"python": "a, b = map(int, input().split())\n"},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_problem(client, admin):
    def _create(**kwargs):
        response = client.post("/api/problems", json=problem_payload(**kwargs), headers=admin)
        assert response.status_code == 201, response.text
        return response.json()
    return _create
