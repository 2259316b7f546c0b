"""
Bounded Retry
=============

Single retry policy shared by every outbound call of the pipeline.
"""

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed


def bounded_retry(
    max_attempts: int,
    delay_seconds: float,
    retry_on: type[BaseException] | tuple[type[BaseException], ...],
) -> Retrying:
    """
    Build a retry controller with a fixed delay between attempts.

    Args:
        max_attempts: Total attempts, including the first one
        delay_seconds: Pause between two attempts
        retry_on: Exception type(s) that trigger another attempt

    Returns:
        A ``tenacity.Retrying`` that re-raises the last failure once
        attempts are exhausted
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    return Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(delay_seconds),
        retry=retry_if_exception_type(retry_on),
        reraise=True,
    )
