"""
Mock code executor

Stands in for a sandboxed runner. The submitted code is never parsed,
compiled or run: pass/fail is a random draw and runtime/memory figures are
synthetic. Replacing this module with a real isolated executor only requires
keeping the ExecutionResult shape.
"""

import random
from dataclasses import asdict, dataclass
from typing import Optional

from codearena import config

RUNTIME_RANGE_MS = (10, 250)
MEMORY_RANGE_MB = (5, 55)


@dataclass
class ExecutionResult:
    status: str  # passed, failed, error
    passed: bool
    actual_output: str
    error: Optional[str]
    runtime: int  # ms
    memory: int  # MB

    def to_dict(self) -> dict:
        return asdict(self)


def execute_code(
    code: str,
    language: str,
    input_data: Optional[str] = None,
    expected_output: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> ExecutionResult:
    """
    Fabricate an execution result for one test case

    Args:
        code: Submitted source (only checked for being non-blank)
        language: Language tag, must be supported
        input_data: Test case input (unused)
        expected_output: Echoed back on a pass
        rng: Random source, for deterministic callers

    Returns:
        ExecutionResult
    """
    rng = rng or random

    if language not in config.SUPPORTED_LANGUAGES:
        return ExecutionResult(
            status="error",
            passed=False,
            actual_output="",
            error=f"Unsupported language: {language}",
            runtime=0,
            memory=0,
        )

    if not code or not code.strip():
        return ExecutionResult(
            status="error",
            passed=False,
            actual_output="",
            error="Empty source code",
            runtime=0,
            memory=0,
        )

    runtime = rng.randint(*RUNTIME_RANGE_MS)
    memory = rng.randint(*MEMORY_RANGE_MB)
    passed = rng.random() < config.MOCK_PASS_PROBABILITY

    if passed:
        actual_output = expected_output if expected_output is not None else ""
    else:
        actual_output = f"{expected_output or ''}_wrong".lstrip("_")

    return ExecutionResult(
        status="passed" if passed else "failed",
        passed=passed,
        actual_output=actual_output,
        error=None,
        runtime=runtime,
        memory=memory,
    )
