"""
Submission evaluation: runs every test case through the executor and
aggregates the per-case results into a status, score and feedback line.
"""

from typing import Callable, List, Optional

from codearena.judge import mock_executor

# ==================== AGGREGATION ====================

def derive_status(passed: int, total: int) -> str:
    if total > 0 and passed == total:
        return "accepted"
    if passed == 0:
        return "wrong_answer"
    return "partial"


def calculate_score(passed: int, total: int) -> float:
    """Percentage of passed cases, two decimals"""
    if total <= 0:
        raise ValueError("Cannot score a submission without test cases")
    return round(passed / total * 100, 2)


def build_feedback(passed: int, total: int) -> str:
    if passed == total:
        return "All test cases passed!"
    return f"{passed}/{total} test cases passed"

# ==================== EVALUATION ====================

def evaluate_test_cases(
    code: str,
    language: str,
    test_cases: List[dict],
    executor: Optional[Callable] = None,
) -> dict:
    """
    Run each test case once and aggregate

    Args:
        code: Submitted source
        language: Language tag
        test_cases: Dicts with input / expected_output / is_hidden
        executor: Defaults to mock_executor.execute_code

    Returns:
        dict with status, score, passed_count, total_test_cases,
        runtime, memory, feedback and test_results
    """
    if not test_cases:
        raise ValueError("No test cases to evaluate")

    run = executor or mock_executor.execute_code

    test_results = []
    passed_count = 0
    max_runtime = 0
    max_memory = 0

    for index, case in enumerate(test_cases):
        result = run(
            code,
            language,
            input_data=case.get("input"),
            expected_output=case.get("expected_output"),
        )

        if result.passed:
            passed_count += 1
        max_runtime = max(max_runtime, result.runtime)
        max_memory = max(max_memory, result.memory)

        is_hidden = case.get("is_hidden", False)
        test_results.append({
            "test_case": index + 1,
            "passed": result.passed,
            "status": result.status,
            "is_hidden": is_hidden,
            "input": None if is_hidden else case.get("input"),
            "expected_output": None if is_hidden else case.get("expected_output"),
            "actual_output": None if is_hidden else result.actual_output,
            "error": result.error,
            "runtime": result.runtime,
            "memory": result.memory,
        })

    total = len(test_cases)

    return {
        "status": derive_status(passed_count, total),
        "score": calculate_score(passed_count, total),
        "passed_count": passed_count,
        "total_test_cases": total,
        "runtime": max_runtime,
        "memory": max_memory,
        "feedback": build_feedback(passed_count, total),
        "test_results": test_results,
    }
