"""Caller-level helpers around Agent.run: retries, execution logging, and response formatting.

The agent loop itself never retries. ``run_agent`` repeats a whole run when it failed
for a transient reason (network failure, rate limit, or backend 5xx), and records the outcome in an execution log.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from tenacity import Retrying, retry_if_result, stop_after_attempt, wait_exponential

from .agent import Agent, AgentRun, RunStatus
from .base import ExecutionLogSink
from .exceptions import BackendError, NetworkError
from ..types_.core import ExecutionLogEntry
from ..utilities.retry import wait_retry_after

logger = logging.getLogger(__name__)


def is_transient_failure(run: AgentRun) -> bool:
    """Whether a run failed for a reason that may go away on retry."""
    if run.status != RunStatus.FAILED:
        return False
    ex = run.exception
    if isinstance(ex, NetworkError):
        return True
    if isinstance(ex, BackendError) and ex.status_code is not None:
        return ex.status_code == 429 or ex.status_code >= 500
    return False


def format_response(run: AgentRun) -> str:
    """Render a finished run as user-facing text.

    Successful runs that used tools get an execution summary appended;
    unsuccessful runs render as their error message.
    """
    if not run.success:
        return run.error or "Error occurred"

    response = run.result or ""
    if run.tool_executions:
        response += "\n\n---\n**Execution Summary:**\n"
        response += f"- Iterations: {run.iterations}\n"
        response += f"- Tools Used: {len(run.tool_executions)}\n"
        for i, record in enumerate(run.tool_executions, start=1):
            response += f"  {i}. {record.tool} (iteration {record.iteration})\n"
    return response


def log_entry(run: AgentRun) -> ExecutionLogEntry:
    return ExecutionLogEntry(
        agent_id=run.agent_id,
        agent_name=run.agent_name,
        input=run.input,
        output=format_response(run),
        params=run.params,
        model=run.model,
        status="success" if run.success else "error",
    )


def run_agent(
    agent: Agent,
    user_input: str,
    params: Mapping[str, Any] | None = None,
    *,
    sink: ExecutionLogSink | None = None,
    max_attempts: int = 1,
    wait=None,
) -> AgentRun:
    """Run an agent, retrying transient failures, and record the outcome.

    Parameters
    ----------
    agent : Agent
        The agent to run.
    user_input : str
        The user's request.
    params : Mapping[str, Any] | None
        Run-time custom parameter values.
    sink : ExecutionLogSink | None
        Receives one ExecutionLogEntry for the final attempt; write failures are logged and ignored.
    max_attempts : int
        Total number of attempts; 1 disables retries.
    wait : tenacity wait strategy, optional
        Delay between attempts; defaults to honoring Retry-After plus exponential backoff.

    Returns
    -------
    AgentRun
        The outcome of the last attempt.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def log_retry(retry_state):
        logger.warning(f"Attempt {retry_state.attempt_number}/{max_attempts} failed transiently; retrying")

    retrying = Retrying(
        retry=retry_if_result(is_transient_failure),
        stop=stop_after_attempt(max_attempts),
        wait=wait if wait is not None else wait_retry_after + wait_exponential(multiplier=1, max=30),
        before_sleep=log_retry,
        retry_error_callback=lambda retry_state: retry_state.outcome.result(),
    )
    run = retrying(agent.run, user_input, params)

    if sink is not None:
        try:
            sink.save(log_entry(run))
        except Exception:
            logger.exception("Failed to save execution log entry")

    return run


class InMemoryExecutionLog(ExecutionLogSink):
    """List-backed execution log sink."""

    def __init__(self):
        self.entries: list[ExecutionLogEntry] = []

    def __len__(self) -> int:
        return len(self.entries)

    def save(self, entry: ExecutionLogEntry) -> None:
        self.entries.append(entry)

    def for_agent(self, agent_id: str) -> list[ExecutionLogEntry]:
        """Entries for one agent, most recent first."""
        return sorted((e for e in self.entries if e.agent_id == agent_id), key=lambda e: e.run_at, reverse=True)
