"""
Insert sample problems that are not already present (matched by title)

    python scripts/seed_problems.py
"""

from datetime import datetime

from pymongo import MongoClient

from codearena import config
from codearena.database import generate_id
from codearena.problems.problem_models import ProblemCreate

SAMPLE_PROBLEMS = [
    {
        "title": "Palindrome Number",
        "description": "Given an integer x, print true if x is a palindrome, and false otherwise.",
        "difficulty": "easy",
        "tags": ["math", "string"],
        "constraints": "-2^31 <= x <= 2^31 - 1",
        "input_format": "A single integer x",
        "output_format": "true if palindrome, false otherwise",
        "examples": [
            {"input": "121", "output": "true", "explanation": "121 reads the same in both directions."},
            {"input": "-121", "output": "false"},
        ],
        "test_cases": [
            {"input": "121", "expected_output": "true"},
            {"input": "-121", "expected_output": "false"},
            {"input": "10", "expected_output": "false"},
            {"input": "0", "expected_output": "true", "is_hidden": True},
            {"input": "12321", "expected_output": "true", "is_hidden": True},
        ],
        "starter_code": {
            "python": "def is_palindrome(x):\n    pass\n\nx = int(input())\nprint('true' if is_palindrome(x) else 'false')\n",
        },
    },
    {
        "title": "Maximum Subarray",
        "description": "Given an integer array, print the largest sum of any contiguous subarray.",
        "difficulty": "medium",
        "tags": ["array", "dynamic-programming"],
        "constraints": "1 <= n <= 10^5",
        "input_format": "First line n, second line n integers",
        "output_format": "The maximum subarray sum",
        "examples": [
            {"input": "9\n-2 1 -3 4 -1 2 1 -5 4", "output": "6", "explanation": "[4,-1,2,1] sums to 6."},
        ],
        "test_cases": [
            {"input": "9\n-2 1 -3 4 -1 2 1 -5 4", "expected_output": "6"},
            {"input": "1\n1", "expected_output": "1"},
            {"input": "5\n5 4 -1 7 8", "expected_output": "23", "is_hidden": True},
        ],
    },
    {
        "title": "Median of Two Sorted Arrays",
        "description": "Given two sorted arrays, print the median of the combined array.",
        "difficulty": "hard",
        "tags": ["array", "binary-search"],
        "examples": [
            {"input": "1 3\n2", "output": "2.0"},
        ],
        "test_cases": [
            {"input": "1 3\n2", "expected_output": "2.0"},
            {"input": "1 2\n3 4", "expected_output": "2.5", "is_hidden": True},
        ],
    },
]


def seed():
    client = MongoClient(config.MONGO_URL)
    problems = client[config.DATABASE_NAME]["problems"]

    count = 0
    for raw in SAMPLE_PROBLEMS:
        if problems.find_one({"title": raw["title"]}):
            continue

        doc = ProblemCreate(**raw).model_dump(mode="json")
        now = datetime.utcnow()
        doc.update({
            "problem_id": generate_id("PRB"),
            "created_by": "seed",
            "created_at": now,
            "updated_at": now,
        })
        problems.insert_one(doc)
        count += 1

    client.close()
    print(f"Inserted {count} sample problems")


if __name__ == "__main__":
    seed()
