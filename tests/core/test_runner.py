from unittest.mock import Mock, create_autospec

import pytest
from tenacity import wait_none

from genagent.core.agent import Agent, AgentRun, RunStatus
from genagent.core.base import ExecutionLogSink
from genagent.core.exceptions import BackendError, BlockedError, NetworkError
from genagent.core.runner import (
    InMemoryExecutionLog,
    format_response,
    is_transient_failure,
    log_entry,
    run_agent,
)
from genagent.types_.core import ExecutionLogEntry, ToolExecutionRecord


def make_run(status=RunStatus.DONE, **kwargs) -> AgentRun:
    fields = {"agent_id": "agent-1", "agent_name": "Helper", "model": "gemini", "input": "hi", "status": status}
    return AgentRun(**{**fields, **kwargs})


def failed(ex) -> AgentRun:
    return make_run(RunStatus.FAILED, error=str(ex), exception=ex)


@pytest.fixture
def agent():
    """Mock agent; tests set the run outcomes via side_effect"""
    return create_autospec(Agent, instance=True)


class TestIsTransientFailure:
    @pytest.mark.parametrize(
        "ex",
        [
            NetworkError("down"),
            BackendError("slow down", status_code=429),
            BackendError("unavailable", status_code=503),
            BackendError("internal", status_code=500),
        ],
    )
    def test_transient(self, ex):
        assert is_transient_failure(failed(ex))

    @pytest.mark.parametrize(
        "ex",
        [
            BackendError("bad key", status_code=400),
            BackendError("unknown"),
            BlockedError("SAFETY"),
            ValueError("bug"),
        ],
    )
    def test_permanent(self, ex):
        assert not is_transient_failure(failed(ex))

    def test_done_and_exhausted_are_not_retried(self):
        assert not is_transient_failure(make_run())
        assert not is_transient_failure(make_run(RunStatus.EXHAUSTED, error="Max iterations reached."))


class TestFormatResponse:
    def test_plain_success(self):
        assert format_response(make_run(result="The answer.")) == "The answer."

    def test_execution_summary(self):
        run = make_run(
            result="The answer.",
            iterations=3,
            tool_executions=[
                ToolExecutionRecord(iteration=1, tool="calculator", arguments={}, result={}),
                ToolExecutionRecord(iteration=2, tool="data_analyzer", arguments={}, result={}),
            ],
        )
        assert format_response(run) == (
            "The answer.\n\n---\n**Execution Summary:**\n"
            "- Iterations: 3\n"
            "- Tools Used: 2\n"
            "  1. calculator (iteration 1)\n"
            "  2. data_analyzer (iteration 2)\n"
        )

    def test_failure_renders_error(self):
        assert format_response(failed(NetworkError("down"))) == "down"

    def test_exhausted_renders_error(self):
        run = make_run(RunStatus.EXHAUSTED, result="partial", error="Max iterations reached. Task may be incomplete.")
        assert format_response(run) == "Max iterations reached. Task may be incomplete."


class TestLogEntry:
    def test_success(self):
        entry = log_entry(make_run(result="ok", params={"tone": "dry"}))
        assert entry.status == "success"
        assert entry.output == "ok"
        assert entry.params == {"tone": "dry"}
        assert entry.agent_id == "agent-1"
        assert entry.model == "gemini"

    def test_error(self):
        entry = log_entry(failed(NetworkError("down")))
        assert entry.status == "error"
        assert entry.output == "down"


class TestRunAgent:
    def test_single_attempt(self, agent):
        agent.run.side_effect = [make_run(result="ok")]
        run = run_agent(agent, "hi", {"tone": "dry"})
        assert run.result == "ok"
        agent.run.assert_called_once_with("hi", {"tone": "dry"})

    def test_retries_transient_failures(self, agent):
        agent.run.side_effect = [
            failed(NetworkError("down")),
            failed(BackendError("slow down", status_code=429)),
            make_run(result="ok"),
        ]
        run = run_agent(agent, "hi", max_attempts=3, wait=wait_none())
        assert run.success
        assert agent.run.call_count == 3

    def test_returns_last_failure_when_attempts_run_out(self, agent):
        agent.run.side_effect = [failed(NetworkError("down")), failed(NetworkError("still down"))]
        run = run_agent(agent, "hi", max_attempts=2, wait=wait_none())
        assert run.status == RunStatus.FAILED
        assert run.error == "still down"

    def test_permanent_failures_are_not_retried(self, agent):
        agent.run.side_effect = [failed(BackendError("bad key", status_code=400)), make_run()]
        run = run_agent(agent, "hi", max_attempts=3, wait=wait_none())
        assert run.status == RunStatus.FAILED
        agent.run.assert_called_once()

    def test_invalid_attempts(self, agent):
        with pytest.raises(ValueError):
            run_agent(agent, "hi", max_attempts=0)

    def test_sink_receives_one_entry(self, agent):
        agent.run.side_effect = [failed(NetworkError("down")), make_run(result="ok")]
        sink = InMemoryExecutionLog()
        run_agent(agent, "hi", sink=sink, max_attempts=2, wait=wait_none())
        assert len(sink) == 1
        assert sink.entries[0].status == "success"

    def test_sink_receives_errors(self, agent):
        agent.run.side_effect = [failed(BlockedError("SAFETY"))]
        sink = InMemoryExecutionLog()
        run_agent(agent, "hi", sink=sink)
        assert sink.entries[0].status == "error"
        assert sink.entries[0].output == "Content blocked: SAFETY"

    def test_sink_errors_are_logged_not_raised(self, agent, caplog):
        agent.run.side_effect = [make_run(result="ok")]
        sink = Mock(spec=ExecutionLogSink)
        sink.save.side_effect = OSError("disk full")
        run = run_agent(agent, "hi", sink=sink)
        assert run.success
        assert "Failed to save execution log entry" in caplog.text


class TestInMemoryExecutionLog:
    def test_for_agent(self):
        sink = InMemoryExecutionLog()
        entries = [
            ExecutionLogEntry(agent_id=a, agent_name=a, input="i", output="o", model="m", status="success")
            for a in ("a", "b", "a")
        ]
        for entry in entries:
            sink.save(entry)
        assert sink.for_agent("a") == sorted([entries[0], entries[2]], key=lambda e: e.run_at, reverse=True)
        assert isinstance(sink, ExecutionLogSink)
