from yovo_server.core import prompts
from yovo_server.core.prompts import PromptSection


def test_compiled_prompt_is_stable_and_embeds_greeting_and_closure() -> None:
    first = prompts.compiled_prompt()
    second = prompts.compiled_prompt()

    assert first == second
    assert prompts.GREETING_PROMPT in first
    assert prompts.CLOSURE_PROMPT in first
    assert f'Start with this greeting: "{prompts.GREETING_PROMPT}"' in first
    assert f'End the session with this format: "{prompts.CLOSURE_PROMPT}"' in first


def test_compiled_prompt_orders_core_sections() -> None:
    text = prompts.compiled_prompt()
    positions = [
        text.index(prompts.IDENTITY_PROMPT),
        text.index(prompts.PROTOCOL_PROMPT),
        text.index(prompts.APPROACH_PROMPT),
        text.index(prompts.GUIDANCE_PROMPT),
        text.index(prompts.GREETING_PROMPT),
        text.index(prompts.CLOSURE_PROMPT),
    ]
    assert positions == sorted(positions)


def test_section_lookup_by_name_and_enum() -> None:
    assert prompts.section("guidance") == prompts.GUIDANCE_PROMPT
    assert prompts.section(PromptSection.CLOSURE) == prompts.CLOSURE_PROMPT
    for name in ("identity", "protocol", "approach", "guidance", "greeting", "closure"):
        assert prompts.section(name)


def test_unknown_section_means_no_override() -> None:
    assert prompts.section("summary") is None
    assert prompts.section("") is None
    assert prompts.section(None) is None


def test_identity_prompt() -> None:
    assert prompts.identity_prompt().startswith("You are Yovo")
