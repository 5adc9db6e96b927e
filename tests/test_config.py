import logging

from genagent.config import GenAgentSettings
from genagent.core.agent import Agent
from genagent.core.registry import InMemoryToolStore
from genagent.types_.core import AgentConfig


class TestGenAgentSettings:
    def test_defaults(self, monkeypatch):
        for key in ("API_KEY", "API_BASE", "DEFAULT_MODEL", "MAX_ITERATIONS", "MAX_ATTEMPTS", "LOG_LEVEL"):
            monkeypatch.delenv(f"GENAGENT_{key}", raising=False)

        settings = GenAgentSettings()
        assert settings.api_base == "https://generativelanguage.googleapis.com/v1beta"
        assert settings.max_iterations == 10
        assert settings.max_attempts == 1
        assert settings.log_level == "INFO"

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("GENAGENT_API_KEY", "from-env")
        monkeypatch.setenv("GENAGENT_MAX_ITERATIONS", "4")
        settings = GenAgentSettings()
        assert settings.api_key.get_secret_value() == "from-env"
        assert settings.max_iterations == 4

    def test_api_key_is_hidden(self):
        assert "secret" not in repr(GenAgentSettings(api_key="secret"))

    def test_configure_logging(self, monkeypatch):
        calls = {}
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))
        GenAgentSettings(log_level="debug").configure_logging()
        assert calls["level"] == logging.DEBUG


def test_agent_from_settings():
    settings = GenAgentSettings(api_key="k", default_model="gemini-test", max_iterations=3)
    agent = Agent.from_settings(AgentConfig(role="r", goal="g", model=""), InMemoryToolStore(), settings)
    assert agent.max_iterations == 3
    assert agent.config.model == "gemini-test"
    assert agent.gateway.api_key == "k"
