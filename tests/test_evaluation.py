import random

import pytest

from codearena.judge import evaluation, mock_executor

from conftest import scripted_executor


def cases(n, hidden=()):
    return [
        {"input": str(i), "expected_output": str(i * 2), "is_hidden": i in hidden}
        for i in range(n)
    ]


@pytest.mark.parametrize("passed,total,expected", [
    (4, 4, "accepted"),
    (1, 1, "accepted"),
    (0, 3, "wrong_answer"),
    (1, 3, "partial"),
    (2, 3, "partial"),
])
def test_derive_status(passed, total, expected):
    assert evaluation.derive_status(passed, total) == expected


@pytest.mark.parametrize("passed,total,expected", [
    (3, 4, 75.0),
    (1, 1, 100.0),
    (0, 5, 0.0),
    (1, 3, 33.33),
    (2, 3, 66.67),
])
def test_calculate_score_rounds_to_two_decimals(passed, total, expected):
    assert evaluation.calculate_score(passed, total) == expected


def test_calculate_score_rejects_empty_case_set():
    with pytest.raises(ValueError):
        evaluation.calculate_score(0, 0)


def test_build_feedback():
    assert evaluation.build_feedback(2, 2) == "All test cases passed!"
    assert evaluation.build_feedback(1, 4) == "1/4 test cases passed"


def test_three_of_four_passing_is_partial():
    run = scripted_executor([True, True, False, True])
    result = evaluation.evaluate_test_cases("print(1)", "python", cases(4), executor=run)

    assert result["passed_count"] == 3
    assert result["total_test_cases"] == 4
    assert result["status"] == "partial"
    assert result["score"] == 75.0
    assert result["feedback"] == "3/4 test cases passed"


def test_runtime_and_memory_are_maxima_across_cases():
    outcomes = iter([(10, 5), (90, 30), (50, 55)])

    def run(code, language, input_data=None, expected_output=None):
        runtime, memory = next(outcomes)
        return mock_executor.ExecutionResult("passed", True, expected_output, None, runtime, memory)

    result = evaluation.evaluate_test_cases("x", "python", cases(3), executor=run)

    assert result["runtime"] == 90
    assert result["memory"] == 55
    assert result["status"] == "accepted"


def test_hidden_case_details_are_masked():
    run = scripted_executor([True, False])
    result = evaluation.evaluate_test_cases("x", "python", cases(2, hidden={1}), executor=run)

    visible, hidden = result["test_results"]
    assert visible["input"] == "0"
    assert visible["expected_output"] == "0"
    assert hidden["is_hidden"] is True
    assert hidden["input"] is None
    assert hidden["expected_output"] is None
    assert hidden["actual_output"] is None
    assert hidden["passed"] is False


def test_evaluate_requires_test_cases():
    with pytest.raises(ValueError):
        evaluation.evaluate_test_cases("x", "python", [])


@pytest.mark.parametrize("seed", range(5))
def test_passed_count_stays_within_bounds_for_random_runs(seed):
    rng = random.Random(seed)

    def run(code, language, input_data=None, expected_output=None):
        return mock_executor.execute_code(code, language, input_data, expected_output, rng=rng)

    for n in range(1, 12):
        result = evaluation.evaluate_test_cases("print(1)", "python", cases(n), executor=run)
        assert 0 <= result["passed_count"] <= n
        assert result["score"] == round(result["passed_count"] / n * 100, 2)
        assert (result["status"] == "accepted") == (result["passed_count"] == n)
        assert (result["status"] == "wrong_answer") == (result["passed_count"] == 0)
