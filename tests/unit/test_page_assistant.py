"""Unit tests for the page assistant service.

Tests for accessimind/services/page_assistant.py - input validation,
error messages, agent step decoding and task history.

Run with:
    pytest tests/unit/test_page_assistant.py -v
"""

import pytest

from accessimind.config import StaticSettingsSource
from accessimind.prompts import TaskType
from accessimind.schemas.agent import AgentAction, AgentActionType
from accessimind.schemas.settings import AISettings
from accessimind.services.page_assistant import BUSY_MESSAGE, PageAssistant
from tests.utils.providers import ScriptedProvider, bad_request, forbidden, overloaded


@pytest.fixture
def make_assistant(settings_source, sleep_recorder):
    """Build a PageAssistant whose generator uses a scripted provider."""

    def _make(script, source=None, **kwargs):
        provider = script if isinstance(script, ScriptedProvider) else ScriptedProvider(script)
        keys = []

        def factory(api_key):
            keys.append(api_key)
            return provider

        assistant = PageAssistant(
            source or settings_source,
            provider_factory=factory,
            generator_options={"sleep": sleep_recorder, "jitter": lambda low, high: 0.0},
            **kwargs,
        )
        assistant.provider = provider
        assistant.factory_keys = keys
        return assistant

    return _make


@pytest.mark.fast
class TestValidation:
    """Input validation happens before any provider call."""

    @pytest.mark.asyncio
    async def test_missing_api_key(self, make_assistant):
        assistant = make_assistant(["unused"], source=StaticSettingsSource(AISettings()))

        result = await assistant.summarize("page text")

        assert result.failed
        assert result.error == "API key required"
        assert assistant.provider.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   \n"])
    async def test_summarize_empty_content(self, make_assistant, content):
        result = await make_assistant(["unused"]).summarize(content)
        assert result.error == "Page content could not be read"

    @pytest.mark.asyncio
    async def test_ask_requires_question(self, make_assistant):
        result = await make_assistant(["unused"]).ask("  ", "page text")
        assert result.error == "Question text required"

    @pytest.mark.asyncio
    async def test_ask_requires_content(self, make_assistant):
        result = await make_assistant(["unused"]).ask("Why?", "")
        assert result.error == "Page content could not be read"

    @pytest.mark.asyncio
    async def test_analyze_requires_content(self, make_assistant):
        result = await make_assistant(["unused"]).analyze("")
        assert result.error == "Page content could not be read"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "url,html,text",
        [
            ("https://example.com", "", ""),
            ("", "<p>hi</p>", "hi"),
        ],
    )
    async def test_wcag_requires_page_data(self, make_assistant, url, html, text):
        result = await make_assistant(["unused"]).analyze_wcag(url, html=html, text=text)
        assert result.error == "Page data for the analysis could not be read"

    @pytest.mark.asyncio
    async def test_agent_step_requires_goal(self, make_assistant):
        assistant = make_assistant(["unused"])

        result = await assistant.agent_step("", "https://example.com", "text")

        assert result.error == "Goal required"
        assert assistant.provider.calls == []


@pytest.mark.fast
class TestTextTasks:
    """Tests for summarize / ask / analyze / analyze_wcag."""

    @pytest.mark.asyncio
    async def test_summarize_success(self, make_assistant):
        assistant = make_assistant(["A short summary."])

        result = await assistant.summarize("Long page text", "https://example.com", "detailed")

        assert result.success
        assert result.content == "A short summary."
        assert result.model_used == "gemini-2.5-flash"
        assert result.metadata == {"attempts": 1}
        assert assistant.factory_keys == [assistant.settings_source.current().api_key]
        prompt = assistant.provider.calls[0][1]
        assert "Split into sections" in prompt
        assert "Long page text" in prompt

    @pytest.mark.asyncio
    async def test_ask_success(self, make_assistant):
        assistant = make_assistant(["It costs 10 EUR."])

        result = await assistant.ask("What does it cost?", "Price: 10 EUR")

        assert result.content == "It costs 10 EUR."
        assert "What does it cost?" in assistant.provider.calls[0][1]

    @pytest.mark.asyncio
    async def test_analyze_success(self, make_assistant):
        assistant = make_assistant(["Positive."])

        result = await assistant.analyze("Great product!", analysis_type="sentiment")

        assert result.content == "Positive."
        assert "positive/negative/neutral" in assistant.provider.calls[0][1]

    @pytest.mark.asyncio
    async def test_wcag_success(self, make_assistant):
        assistant = make_assistant(["WCAG Element Analysis"])

        result = await assistant.analyze_wcag(
            "https://example.com",
            html="<img src='a.png'>",
            snapshot={"role": "WebArea"},
            mode="improvements",
        )

        assert result.success
        prompt = assistant.provider.calls[0][1]
        assert "<img src='a.png'>" in prompt
        assert "improvement suggestions" in prompt
        assert '"role": "WebArea"' in prompt

    @pytest.mark.asyncio
    async def test_retry_attempts_reported(self, make_assistant):
        result = await make_assistant([overloaded(), "ok"]).summarize("text")
        assert result.metadata == {"attempts": 2}

    @pytest.mark.asyncio
    async def test_exhausted_reports_busy_message(self, make_assistant):
        assistant = make_assistant([overloaded()])

        result = await assistant.summarize("text")

        assert result.failed
        assert result.error == f"Summary failed: {BUSY_MESSAGE}"
        assert len(assistant.provider.calls) == 12

    @pytest.mark.asyncio
    async def test_all_models_unavailable_reports_busy_message(self, make_assistant):
        result = await make_assistant([forbidden()]).analyze("text")
        assert result.error == f"Analysis failed: {BUSY_MESSAGE}"

    @pytest.mark.asyncio
    async def test_fatal_error_message(self, make_assistant):
        result = await make_assistant([bad_request()]).ask("Why?", "text")

        assert result.failed
        assert result.error.startswith("Answer failed: ")
        assert "API key not valid" in result.error

    @pytest.mark.asyncio
    async def test_failures_not_recorded(self, make_assistant):
        assistant = make_assistant([bad_request()])
        await assistant.summarize("text")
        assert assistant.history() == []


@pytest.mark.fast
class TestAgentStep:
    """Tests for agent_step decoding."""

    @pytest.mark.asyncio
    async def test_valid_action(self, make_assistant):
        assistant = make_assistant(
            ['```json\n{"action":"CLICK_LINK_BY_TEXT","params":{"text":"Contact"},"explanation":"go"}\n```']
        )

        result = await assistant.agent_step(
            "find the contact page",
            "https://example.com",
            "Welcome",
            [{"text": "Contact", "href": "/contact"}],
        )

        assert result.success
        assert isinstance(result.content, AgentAction)
        assert result.content.action == AgentActionType.CLICK_LINK_BY_TEXT
        assert result.content.params == {"text": "Contact"}
        assert result.metadata == {"attempts": 1, "recovered": False}
        assert "- [1] Contact => /contact" in assistant.provider.calls[0][1]

    @pytest.mark.asyncio
    async def test_recovered_action_flagged(self, make_assistant):
        result = await make_assistant(['{"action": "SCROLL_DOWN", oops']).agent_step("goal")

        assert result.content.action == AgentActionType.SCROLL_DOWN
        assert result.metadata["recovered"] is True

    @pytest.mark.asyncio
    async def test_invalid_action(self, make_assistant):
        raw = '{"action":"DELETE_EVERYTHING"}'

        result = await make_assistant([raw]).agent_step("goal")

        assert result.failed
        assert result.error == "Invalid action"
        assert result.metadata == {"raw": raw, "action": "DELETE_EVERYTHING"}

    @pytest.mark.asyncio
    async def test_unparseable_response(self, make_assistant):
        result = await make_assistant(["I would click on Contact."]).agent_step("goal")

        assert result.error == "Agent response could not be parsed"
        assert result.metadata["raw"] == "I would click on Contact."

    @pytest.mark.asyncio
    async def test_generation_failure(self, make_assistant):
        result = await make_assistant([overloaded()]).agent_step("goal")
        assert result.error == f"Agent step failed: {BUSY_MESSAGE}"

    @pytest.mark.asyncio
    async def test_links_and_text_capped(self, make_assistant):
        assistant = make_assistant(['{"action": "DONE"}'])
        links = [{"text": f"L{i}", "href": f"/{i}"} for i in range(50)]

        await assistant.agent_step("goal", "https://example.com", "x" * 9000, links)

        prompt = assistant.provider.calls[0][1]
        assert "[30]" in prompt
        assert "[31]" not in prompt
        assert assistant.history()[0].input_length == 5000


@pytest.mark.fast
class TestHistoryAndStatus:
    """Tests for history() / clear_history() / status()."""

    @pytest.mark.asyncio
    async def test_history_records_success(self, make_assistant):
        assistant = make_assistant(["ok"])

        await assistant.summarize("page text", "https://example.com", "key-points")

        [entry] = assistant.history()
        assert entry.task == TaskType.SUMMARIZE
        assert entry.url == "https://example.com"
        assert entry.input_length == len("page text")
        assert entry.model_used == "gemini-2.5-flash"
        assert entry.detail == "key-points"

    @pytest.mark.asyncio
    async def test_history_bounded(self, make_assistant):
        assistant = make_assistant(["ok"], history_size=3)

        for i in range(5):
            await assistant.ask(f"question {i}", "text")

        assert [entry.detail for entry in assistant.history()] == [
            "question 2",
            "question 3",
            "question 4",
        ]

    @pytest.mark.asyncio
    async def test_clear_history(self, make_assistant):
        assistant = make_assistant(["ok"])
        await assistant.summarize("text")

        assistant.clear_history()

        assert assistant.history() == []

    @pytest.mark.asyncio
    async def test_status(self, make_assistant):
        assistant = make_assistant(["ok"])
        await assistant.summarize("text")

        assert assistant.status() == {
            "has_api_key": True,
            "key_looks_valid": True,
            "model": "gemini-2.5-flash",
            "history_count": 1,
        }

    def test_status_without_key(self, make_assistant):
        assistant = make_assistant(["ok"], source=StaticSettingsSource(AISettings(model="gemini-1.5-pro")))
        assert assistant.status()["has_api_key"] is False
        assert assistant.status()["key_looks_valid"] is False
        assert assistant.status()["model"] == "gemini-1.5-pro"

    @pytest.mark.asyncio
    async def test_settings_read_per_call(self, make_assistant):
        class MutableSource:
            def __init__(self):
                self.settings = AISettings(api_key="key-one", model="gemini-2.0-pro")

            def current(self):
                return self.settings

        source = MutableSource()
        assistant = make_assistant(["ok"], source=source)

        await assistant.summarize("text")
        source.settings = AISettings(api_key="key-two", model="gemini-1.5-flash")
        await assistant.summarize("text")

        assert assistant.factory_keys == ["key-one", "key-two"]
        assert assistant.provider.models_called == ["gemini-2.0-pro", "gemini-1.5-flash"]

    def test_status_flags_malformed_key(self, make_assistant):
        assistant = make_assistant(["ok"], source=StaticSettingsSource(AISettings(api_key="not-a-google-key")))
        status = assistant.status()
        assert status["has_api_key"] is True
        assert status["key_looks_valid"] is False


@pytest.mark.fast
class TestExecuteAction:
    """Tests for execute_action."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["", "   "])
    async def test_requires_action(self, make_assistant, action):
        assistant = make_assistant(["unused"])

        result = await assistant.execute_action("page text", action)

        assert result.error == "Action description required"
        assert assistant.provider.calls == []

    @pytest.mark.asyncio
    async def test_requires_content(self, make_assistant):
        result = await make_assistant(["unused"]).execute_action("", "List prices")
        assert result.error == "Page content could not be read"

    @pytest.mark.asyncio
    async def test_success_recorded_as_action(self, make_assistant):
        assistant = make_assistant(["10 EUR, 12 EUR"])

        result = await assistant.execute_action("Prices: 10 EUR, 12 EUR", "List every price", "https://shop.example")

        assert result.success
        assert result.content == "10 EUR, 12 EUR"
        assert "Requested Operation: List every price" in assistant.provider.calls[0][1]
        [entry] = assistant.history()
        assert entry.task == TaskType.ACTION
        assert entry.detail == "List every price"
        assert entry.url == "https://shop.example"

    @pytest.mark.asyncio
    async def test_failure_message(self, make_assistant):
        result = await make_assistant([overloaded()]).execute_action("text", "Count words")
        assert result.error == f"Action failed: {BUSY_MESSAGE}"


@pytest.mark.fast
class TestAgentStepLinks:
    """Link entries of any shape reach the prompt without raising."""

    @pytest.mark.asyncio
    async def test_bare_href_links(self, make_assistant):
        assistant = make_assistant(['{"action": "DONE"}'])

        result = await assistant.agent_step("goal", links=["https://a", "https://b"])

        assert result.success
        assert "- [2]  => https://b" in assistant.provider.calls[0][1]


@pytest.mark.fast
class TestProviderLifecycle:
    """The provider is reused per API key and closed when replaced."""

    @pytest.mark.asyncio
    async def test_provider_reused_for_same_key(self, settings_source):
        built = []

        def factory(api_key):
            built.append(ScriptedProvider(["ok"], api_key=api_key))
            return built[-1]

        assistant = PageAssistant(settings_source, provider_factory=factory)

        await assistant.summarize("one")
        await assistant.ask("why?", "two")

        assert len(built) == 1
        assert len(built[0].calls) == 2

    @pytest.mark.asyncio
    async def test_key_change_closes_old_provider(self):
        class MutableSource:
            def __init__(self):
                self.settings = AISettings(api_key="key-one")

            def current(self):
                return self.settings

        built = []

        def factory(api_key):
            built.append(ScriptedProvider(["ok"], api_key=api_key))
            return built[-1]

        source = MutableSource()
        assistant = PageAssistant(source, provider_factory=factory)

        await assistant.summarize("text")
        source.settings = AISettings(api_key="key-two")
        await assistant.summarize("text")

        assert [p.api_key for p in built] == ["key-one", "key-two"]
        assert built[0].closed is True
        assert built[1].closed is False

    @pytest.mark.asyncio
    async def test_aclose(self, make_assistant):
        assistant = make_assistant(["ok"])
        await assistant.summarize("text")

        await assistant.aclose()

        assert assistant.provider.closed is True

    @pytest.mark.asyncio
    async def test_aclose_without_provider(self, make_assistant):
        assistant = make_assistant(["ok"])
        await assistant.aclose()
        assert assistant.provider.closed is False
