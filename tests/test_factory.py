"""Tests for building the backend list from configuration."""
from clippy.assistant import ResponderChain
from clippy.config import apply_env_overrides, AppConfig
from clippy.llm import build_responders


class TestBuildResponders:
    """Tests for build_responders."""

    def test_order_is_by_priority(self):
        responders = build_responders(AppConfig())
        assert [r.name for r in responders] == ["GigaChat", "OpenAI", "Local"]

    def test_without_credentials_only_local_is_configured(self):
        responders = build_responders(AppConfig())
        assert [r.name for r in responders if r.is_configured] == ["Local"]

    def test_credentials_enable_remote_backends(self):
        config = apply_env_overrides(AppConfig(), {
            "GIGACHAT_API_KEY": "giga",
            "OPENAI_API_KEY": "sk",
            "USE_OPENAI": "yes",
        })
        responders = build_responders(config)
        assert all(r.is_configured for r in responders)

    def test_system_prompt_is_passed_to_remote_backends(self):
        config = AppConfig(system_prompt="Be brief")
        giga, openai, _ = build_responders(config)
        assert giga.system_prompt == "Be brief"
        assert openai.system_prompt == "Be brief"

    def test_chain_keeps_priority_order(self):
        chain = ResponderChain(list(reversed(build_responders(AppConfig()))))
        assert [r.name for r in chain.responders] == ["GigaChat", "OpenAI", "Local"]
