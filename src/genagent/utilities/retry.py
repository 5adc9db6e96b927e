import logging
from typing import Any

from tenacity import RetryCallState

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER = 4


def outcome_exception(retry_state: RetryCallState) -> BaseException | None:
    """The exception behind an attempt: either raised, or carried on the result as ``.exception``."""
    if retry_state.outcome is None:
        return None
    if retry_state.outcome.failed:
        return retry_state.outcome.exception()
    result: Any = retry_state.outcome.result()
    return getattr(result, "exception", None)


def wait_retry_after(retry_state: RetryCallState) -> float:
    """Tenacity callback to wait out a 429 Too Many Requests backend response.

    Uses the Retry-After delay the backend asked for (plus a second of slack), or a default delay if it gave none.
    Any other outcome waits 0; combine with another wait strategy for general backoff.

    ```py
    for attempt in Retrying(
        wait=wait_retry_after + wait_exponential(max=8),
        stop=stop_after_attempt(3),
    ):
        with attempt:
            gateway.send(model, transcript)
    ```
    """
    ex = outcome_exception(retry_state)
    if getattr(ex, "status_code", None) == 429:
        retry_after = getattr(ex, "retry_after", None) or DEFAULT_RETRY_AFTER
        try:
            wait = float(retry_after) + 1
        except (TypeError, ValueError):
            return 0
        logger.info(f"Rate limited; waiting {wait:.0f} seconds before retrying")
        return wait
    return 0
