import asyncio

from yovo_server.core import prompts
from yovo_server.core.gateway import APOLOGY_TEXT, LLMGateway
from yovo_server.core.orchestrator import (
    NO_SESSION_MESSAGE,
    SPEECH_ERROR_MESSAGE,
    SessionOrchestrator,
)
from yovo_server.core.prompts import PromptSection
from yovo_server.core.topics import Topic
from yovo_server.providers.chat_completions import ProviderError
from yovo_server.runtime_state import SessionRegistry

from tests.fakes import FakeGateway, RecordingTransport, make_settings

CONN = "conn-1"


def _orchestrator(gateway, clock=None) -> SessionOrchestrator:
    registry = SessionRegistry(clock=clock) if clock is not None else SessionRegistry()
    orchestrator = SessionOrchestrator(gateway=gateway, registry=registry)
    orchestrator.on_connect(CONN)
    return orchestrator


async def _wait_for_calls(gateway: FakeGateway, count: int) -> None:
    for _ in range(1000):
        if len(gateway.calls) >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"gateway saw {len(gateway.calls)} calls, expected {count}")


def test_connect_seeds_system_prompt_and_initial_topic() -> None:
    orchestrator = _orchestrator(FakeGateway())
    state = orchestrator.registry.get(CONN)

    assert [m.role for m in state.conversation.messages] == ["system"]
    assert state.conversation.system_message.content == prompts.compiled_prompt()
    assert state.progress.current_topic is Topic.INTEREST_DISCOVERY
    assert state.progress.rounds_in_topic == 0


def test_speech_exchange(sink, clock) -> None:
    gateway = FakeGateway(replies=["What subjects do you enjoy?"])
    orchestrator = _orchestrator(gateway, clock)
    clock.advance(12)

    asyncio.run(orchestrator.handle_speech(CONN, "Hi, I'm not sure what to study", sink))

    assert sink.names == ["processingStart", "llmResponse"]
    assert sink.last("llmResponse") == {
        "text": "What subjects do you enjoy?",
        "sessionState": {"currentTopic": "interest-discovery", "sessionDuration": 12},
    }
    assert gateway.calls[0]["section"] is None

    state = orchestrator.registry.get(CONN)
    roles = [(m.role, m.content) for m in state.conversation.messages[1:]]
    assert roles == [
        ("user", "Hi, I'm not sure what to study"),
        ("assistant", "What subjects do you enjoy?"),
    ]
    assert state.progress.rounds_in_topic == 1


def test_five_exchanges_advance_to_major_exploration(sink) -> None:
    orchestrator = _orchestrator(FakeGateway())
    state = orchestrator.registry.get(CONN)

    async def scenario() -> None:
        for i in range(1, 6):
            await orchestrator.handle_speech(CONN, f"I enjoy subject number {i}", sink)
            if i < 5:
                assert state.progress.current_topic is Topic.INTEREST_DISCOVERY
                assert state.progress.rounds_in_topic == i

    asyncio.run(scenario())

    assert state.progress.current_topic is Topic.MAJOR_EXPLORATION
    assert state.progress.rounds_in_topic == 0
    assert sink.last("llmResponse")["sessionState"]["currentTopic"] == "major-exploration"


def test_move_on_phrase_advances_immediately(sink) -> None:
    orchestrator = _orchestrator(FakeGateway())

    asyncio.run(orchestrator.handle_speech(CONN, "Can we MOVE ON please", sink))

    state = orchestrator.registry.get(CONN)
    assert state.progress.current_topic is Topic.MAJOR_EXPLORATION


def test_jump_then_one_exchange_counts_one_round(sink) -> None:
    orchestrator = _orchestrator(FakeGateway())
    state = orchestrator.registry.get(CONN)

    async def scenario() -> None:
        await orchestrator.handle_change_topic(CONN, "college-recommendations", sink)
        assert state.progress.rounds_in_topic == 0
        await orchestrator.handle_speech(CONN, "Which schools are good for design?", sink)

    asyncio.run(scenario())

    assert state.progress.current_topic is Topic.COLLEGE_RECOMMENDATIONS
    assert state.progress.rounds_in_topic == 1


def test_change_topic_uses_section_and_announces_transition(sink) -> None:
    transport = RecordingTransport(reply="Let's talk careers.")
    orchestrator = _orchestrator(LLMGateway(make_settings(), transport))

    asyncio.run(orchestrator.handle_change_topic(CONN, "career-path", sink))

    sent = transport.calls[0]["messages"]
    assert sent[0]["content"] == prompts.GUIDANCE_PROMPT
    assert sent[-1] == {"role": "user", "content": "Let's move on to discuss career path"}

    state = orchestrator.registry.get(CONN)
    assert state.conversation.system_message.content == prompts.compiled_prompt()
    assert state.conversation.messages[-1].content == "Let's talk careers."
    assert state.progress.current_topic is Topic.CAREER_PATH
    assert sink.names == ["llmResponse"]
    assert sink.last("llmResponse")["sessionState"]["currentTopic"] == "career-path"


def test_change_topic_to_closure_uses_closure_section(sink) -> None:
    gateway = FakeGateway()
    orchestrator = _orchestrator(gateway)

    asyncio.run(orchestrator.handle_change_topic(CONN, "session-closure", sink))

    assert gateway.calls[0]["section"] is PromptSection.CLOSURE


def test_unknown_topic_is_stored_and_resets_rounds(sink) -> None:
    gateway = FakeGateway()
    orchestrator = _orchestrator(gateway)
    state = orchestrator.registry.get(CONN)

    async def scenario() -> None:
        for text in ("I like animals", "and drawing", "maybe music too"):
            await orchestrator.handle_speech(CONN, text, sink)
        assert state.progress.rounds_in_topic == 3
        await orchestrator.handle_change_topic(CONN, "small-talk", sink)

    asyncio.run(scenario())

    assert gateway.calls[-1]["section"] is None
    assert state.progress.current_topic == "small-talk"
    assert state.progress.rounds_in_topic == 0
    assert state.conversation.messages[-2].content == "Let's move on to discuss small talk"
    assert sink.last("llmResponse")["sessionState"]["currentTopic"] == "small-talk"


def test_unknown_topic_uses_default_budget_and_never_advances(sink) -> None:
    orchestrator = _orchestrator(FakeGateway())
    state = orchestrator.registry.get(CONN)

    async def scenario() -> None:
        await orchestrator.handle_change_topic(CONN, "small-talk", sink)
        for i in range(4):
            await orchestrator.handle_speech(CONN, f"thought {i}", sink)

    asyncio.run(scenario())

    assert state.progress.current_topic == "small-talk"
    assert state.progress.rounds_in_topic == 4


def test_provider_error_is_a_normal_assistant_turn(sink) -> None:
    transport = RecordingTransport(exc=ProviderError("HTTP 500", status=500, payload="oops"))
    orchestrator = _orchestrator(LLMGateway(make_settings(), transport))

    asyncio.run(orchestrator.handle_speech(CONN, "Tell me about nursing", sink))

    state = orchestrator.registry.get(CONN)
    assert state.conversation.messages[-1].role == "assistant"
    assert state.conversation.messages[-1].content == APOLOGY_TEXT
    assert sink.names == ["processingStart", "llmResponse"]
    assert sink.last("llmResponse")["text"] == APOLOGY_TEXT


def test_missing_key_fallback_is_appended(sink) -> None:
    settings = make_settings(llm_provider="openai", openai_api_key=None)
    transport = RecordingTransport()
    orchestrator = _orchestrator(LLMGateway(settings, transport))

    asyncio.run(orchestrator.handle_speech(CONN, "hello", sink))

    state = orchestrator.registry.get(CONN)
    assert state.conversation.messages[-1].content == "Configuration Error: API key not set."
    assert transport.calls == []


def test_unexpected_failure_emits_error_without_touching_history(sink) -> None:
    orchestrator = _orchestrator(FakeGateway(exc=RuntimeError("kaboom")))

    asyncio.run(orchestrator.handle_speech(CONN, "hello", sink))

    assert sink.names == ["processingStart", "error"]
    assert sink.last("error") == {"message": SPEECH_ERROR_MESSAGE}
    state = orchestrator.registry.get(CONN)
    assert [m.role for m in state.conversation.messages] == ["system", "user"]
    assert state.progress.rounds_in_topic == 0


def test_event_for_unknown_connection(sink) -> None:
    orchestrator = _orchestrator(FakeGateway())

    asyncio.run(orchestrator.handle_speech("nobody", "hello", sink))

    assert sink.events == [("error", {"message": NO_SESSION_MESSAGE})]


def test_disconnect_during_llm_call_discards_result(sink) -> None:
    async def scenario() -> SessionOrchestrator:
        gateway = FakeGateway(gate=asyncio.Event())
        orchestrator = _orchestrator(gateway)
        state = orchestrator.registry.get(CONN)

        task = asyncio.create_task(orchestrator.handle_speech(CONN, "hello", sink))
        await _wait_for_calls(gateway, 1)
        orchestrator.on_disconnect(CONN)
        gateway.gate.set()
        await task

        assert [m.role for m in state.conversation.messages] == ["system", "user"]
        return orchestrator

    orchestrator = asyncio.run(scenario())

    assert sink.names == ["processingStart"]
    assert CONN not in orchestrator.registry


def test_events_for_one_connection_are_serialized(sink) -> None:
    async def scenario() -> None:
        gateway = FakeGateway(replies=["first answer", "second answer"], gate=asyncio.Event())
        orchestrator = _orchestrator(gateway)
        state = orchestrator.registry.get(CONN)

        first = asyncio.create_task(orchestrator.handle_speech(CONN, "first question", sink))
        second = asyncio.create_task(orchestrator.handle_speech(CONN, "second question", sink))
        await _wait_for_calls(gateway, 1)
        for _ in range(10):
            await asyncio.sleep(0)

        # The second exchange waits for the first one to finish.
        assert len(gateway.calls) == 1
        assert [m.content for m in state.conversation.messages[1:]] == ["first question"]

        gateway.gate.set()
        await asyncio.gather(first, second)

        assert [m.content for m in state.conversation.messages[1:]] == [
            "first question",
            "first answer",
            "second question",
            "second answer",
        ]

    asyncio.run(scenario())


def test_connections_do_not_block_each_other(sink) -> None:
    async def scenario() -> None:
        blocked = FakeGateway(gate=asyncio.Event())
        orchestrator = _orchestrator(blocked)
        orchestrator.on_connect("conn-2")

        slow = asyncio.create_task(orchestrator.handle_speech(CONN, "slow", sink))
        await _wait_for_calls(blocked, 1)

        # Same gateway, but conn-2 still gets its call in while conn-1 waits.
        fast = asyncio.create_task(orchestrator.handle_speech("conn-2", "fast", sink))
        await _wait_for_calls(blocked, 2)

        blocked.gate.set()
        await asyncio.gather(slow, fast)

        other = orchestrator.registry.get("conn-2")
        assert [m.content for m in other.conversation.messages[1:]] == ["fast", "reply 2"]

    asyncio.run(scenario())
