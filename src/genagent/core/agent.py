"""The agent execution loop.

An Agent drives one conversation per ``run``: it seeds the transcript with the assembled prompt,
then alternates model calls and tool calls until the model answers without calling a tool,
the model gateway fails, or the iteration ceiling is reached.

    INIT -> ITERATING -> DONE | FAILED | EXHAUSTED

All run state (transcript, tool log, iteration counter) is local to a ``run`` call,
so one Agent may serve concurrent runs.
"""

from __future__ import annotations

from enum import Enum
import logging
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

from .base import KnowledgeRetriever, ToolStore
from .exceptions import AgentRunError, GatewayError
from .gateway import ModelGateway
from .invoker import ToolInvoker
from .parser import parse_function_calls
from .prompt import PromptAssembler, retrieve_knowledge
from .registry import ToolRegistry
from .tool import respond_as_tool
from ..types_.core import AgentConfig, GenerationParams, ToolExecutionRecord, Transcript

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 10
EXHAUSTED_MESSAGE = "Max iterations reached. Task may be incomplete."


class RunStatus(str, Enum):
    DONE = "done"
    FAILED = "failed"
    EXHAUSTED = "exhausted"


class AgentRun(BaseModel):
    """Outcome of one agent run, with the transcript and tool log for diagnostics."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    agent_id: str
    agent_name: str
    model: str
    input: str
    params: dict[str, Any] = Field(default_factory=dict)
    status: RunStatus
    result: str | None = Field(default=None, description="Final answer, or the last model text of an exhausted run.")
    error: str | None = None
    iterations: int = 0
    tool_executions: list[ToolExecutionRecord] = Field(default_factory=list)
    transcript: Transcript = Field(default_factory=Transcript)
    exception: BaseException | None = Field(default=None, exclude=True, repr=False)

    @property
    def success(self) -> bool:
        return self.status == RunStatus.DONE

    @property
    def tools_used(self) -> list[str]:
        """Names of the tools executed during the run, without repeats, in first-use order."""
        return list(dict.fromkeys(r.tool for r in self.tool_executions))

    def raise_for_status(self) -> AgentRun:
        """Raise AgentRunError if the run did not finish with a final answer."""
        if not self.success:
            raise AgentRunError(self.error or f"Run ended with status {self.status.value}") from self.exception
        return self


class Agent:
    """Run an agent's tool-calling conversation against a model.

    Parameters
    ----------
    config : AgentConfig
        The agent to run.
    gateway : ModelGateway
        Client for the model backend.
    store : ToolStore
        Where the agent's tool ids are resolved.
    invoker : ToolInvoker | None
        Executes tool calls; defaults to one with the built-in tools.
    retriever : KnowledgeRetriever | None
        Knowledge search, used when the agent has retrieval enabled.
    assembler : PromptAssembler | None
        Renders the first transcript turn.
    max_iterations : int
        Ceiling on model calls per run.

    Examples
    --------
    >>> agent = Agent(config, ModelGateway(api_key="..."), store)  # doctest: +SKIP
    >>> run = agent.run("What is 17 * 23?")  # doctest: +SKIP
    >>> run.status, run.result  # doctest: +SKIP
    (<RunStatus.DONE: 'done'>, '17 * 23 = 391')
    """

    def __init__(
        self,
        config: AgentConfig,
        gateway: ModelGateway,
        store: ToolStore,
        invoker: ToolInvoker | None = None,
        retriever: KnowledgeRetriever | None = None,
        assembler: PromptAssembler | None = None,
        max_iterations: int = MAX_ITERATIONS,
    ):
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")

        self.config = config
        self.gateway = gateway
        self.store = store
        self.invoker = invoker or ToolInvoker()
        self.retriever = retriever
        self.assembler = assembler or PromptAssembler()
        self.max_iterations = max_iterations

    @classmethod
    def from_settings(cls, config: AgentConfig, store: ToolStore, settings=None, **kwargs: Any) -> Agent:
        """Create an Agent with its gateway, iteration ceiling, and fallback model taken from GenAgentSettings."""
        from ..config import GenAgentSettings

        settings = settings or GenAgentSettings()
        if not config.model:
            config = config.model_copy(update={"model": settings.default_model})
        kwargs.setdefault("max_iterations", settings.max_iterations)
        return cls(config, ModelGateway.from_settings(settings), store, **kwargs)

    @property
    def name(self) -> str:
        return self.config.name or self.config.role

    def run(self, user_input: str, params: Mapping[str, Any] | None = None) -> AgentRun:
        """Run the conversation loop for one user request.

        Gateway failures end the run as FAILED; they are reported on the returned AgentRun, never raised.

        Parameters
        ----------
        user_input : str
            The user's request.
        params : Mapping[str, Any] | None
            Run-time values for the agent's custom parameters.
            Generation settings (temperature, maxTokens, topP, topK) tune the model;
            everything else is listed as context in the prompt.

        Returns
        -------
        AgentRun
            The outcome, transcript, and tool log.
        """
        values = self.config.parameter_values(params)
        generation = GenerationParams.from_custom_params(values)

        transcript = Transcript()
        tool_log: list[ToolExecutionRecord] = []
        iteration = 0

        def outcome(status: RunStatus, **kwargs: Any) -> AgentRun:
            return AgentRun(
                agent_id=self.config.id,
                agent_name=self.name,
                model=self.config.model,
                input=user_input,
                params=values,
                status=status,
                iterations=iteration,
                tool_executions=tool_log,
                transcript=transcript,
                **kwargs,
            )

        # INIT
        logger.info(f"Starting run of agent '{self.name}' on {self.config.model}")
        registry = ToolRegistry.resolve(self.store, self.config.tools)
        knowledge = retrieve_knowledge(self.retriever, self.config, user_input)
        transcript.append_user(
            self.assembler.assemble(self.config, user_input, tools=registry.tools, params=values, knowledge=knowledge)
        )

        # ITERATING
        while iteration < self.max_iterations:
            iteration += 1
            logger.info(f"Iteration {iteration}/{self.max_iterations}")

            try:
                reply = self.gateway.send(self.config.model, transcript, generation)
            except GatewayError as e:
                logger.error(f"Model call failed on iteration {iteration}: {e}")
                return outcome(RunStatus.FAILED, error=str(e), exception=e)
            except Exception as e:
                logger.exception(f"Unexpected error calling the model on iteration {iteration}")
                return outcome(RunStatus.FAILED, error=str(e) or e.__class__.__name__, exception=e)

            transcript.append_model(reply)

            calls = parse_function_calls(reply)
            if not calls:
                logger.info(f"Run complete after {iteration} iteration(s)")
                return outcome(RunStatus.DONE, result=reply)

            logger.info(f"Found {len(calls)} tool call(s)")
            for call in calls:
                tool = registry.find(call.name)
                if tool is None:
                    logger.warning(f"Skipping call to unknown tool '{call.name}'")
                    continue

                logger.debug(f"Calling tool '{call.name}'")
                result = self.invoker.invoke(tool, call.arguments)
                tool_log.append(
                    ToolExecutionRecord(iteration=iteration, tool=call.name, arguments=call.arguments, result=result)
                )
                transcript.append_user(respond_as_tool(call.name, result))

        # EXHAUSTED
        logger.warning(f"Max iterations ({self.max_iterations}) reached for agent '{self.name}'")
        return outcome(RunStatus.EXHAUSTED, result=transcript.last_model_text, error=EXHAUSTED_MESSAGE)
