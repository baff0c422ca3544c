from __future__ import annotations

from types import SimpleNamespace

import httpx
import pytest
from openai import APIError

from ventry import llm
from ventry.config import Settings
from ventry.schemas import AssistantMode, ConsultRequest, GeneratePlanRequest, PlanType


def _request(**overrides) -> GeneratePlanRequest:
    data = {
        "business_type": "Coffee Shop",
        "goals": "Grow weekday morning sales by {20%}",
        "location": "Austin",
    }
    data.update(overrides)
    return GeneratePlanRequest(**data)


class _FakeCompletions:
    def __init__(self, content: str | None = None, error: Exception | None = None) -> None:
        self.content = content
        self.error = error
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _fake_client(completions: _FakeCompletions) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_strategic_prompt_contents() -> None:
    spec = llm.build_plan_prompt(_request(), Settings())

    assert spec.system_prompt == llm.STRATEGIC_SYSTEM_PROMPT
    assert "# COFFEE SHOP BUSINESS: STRATEGIC PLAN" in spec.user_prompt
    assert "monthly strategic business plan" in spec.user_prompt
    assert " located in Austin" in spec.user_prompt
    assert "Regional Market Considerations for Austin" in spec.user_prompt
    assert "### Week 4: [Theme/Focus]" in spec.user_prompt
    assert "{20%}" in spec.user_prompt
    assert '"dailyTasks"' in spec.user_prompt
    assert spec.model == "gpt-4o"
    assert spec.max_tokens == 4000


def test_daily_prompt_contents() -> None:
    request = _request(plan_type=PlanType.DAILY, timeframe="quarterly", location=None)
    spec = llm.build_plan_prompt(request, Settings(openai_model="gpt-4o-mini", temperature=0.3))

    assert spec.system_prompt == llm.DAILY_SYSTEM_PROMPT
    assert "# COFFEE SHOP BUSINESS: DAILY ACTION PLAN" in spec.user_prompt
    assert "## DAY-BY-DAY IMPLEMENTATION PLAN" in spec.user_prompt
    assert "for a quarterly period" in spec.user_prompt
    assert "located in" not in spec.user_prompt
    assert spec.model == "gpt-4o-mini"
    assert spec.temperature == pytest.approx(0.3)


def test_generate_plan_text_without_key_skips_llm() -> None:
    assert llm.generate_plan_text(_request(), Settings(openai_api_key=None)) is None


def test_generate_plan_text_returns_message(monkeypatch: pytest.MonkeyPatch) -> None:
    completions = _FakeCompletions(content="# COFFEE SHOP BUSINESS: STRATEGIC PLAN")
    monkeypatch.setattr(llm, "_get_client", lambda settings: _fake_client(completions))

    text = llm.generate_plan_text(_request(), Settings(openai_api_key="sk-test"))

    assert text == "# COFFEE SHOP BUSINESS: STRATEGIC PLAN"
    call = completions.calls[0]
    assert call["model"] == "gpt-4o"
    assert [message["role"] for message in call["messages"]] == ["system", "user"]


def test_generate_plan_text_absorbs_api_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    error = APIError(
        "upstream failure",
        httpx.Request("POST", "https://api.openai.com/v1/chat/completions"),
        body=None,
    )
    monkeypatch.setattr(llm, "_get_client", lambda settings: _fake_client(_FakeCompletions(error=error)))

    assert llm.generate_plan_text(_request(), Settings(openai_api_key="sk-test")) is None


def test_generate_plan_text_treats_blank_reply_as_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(llm, "_get_client", lambda settings: _fake_client(_FakeCompletions(content="   ")))

    assert llm.generate_plan_text(_request(), Settings(openai_api_key="sk-test")) is None


def _consult(**overrides) -> ConsultRequest:
    data = {"prompt": "How should I price {seasonal} cakes?", "type": AssistantMode.CONSULTING}
    data.update(overrides)
    return ConsultRequest(**data)


def test_consult_prompt_contents() -> None:
    spec = llm.build_consult_prompt(_consult(business_context="Bakery", business_location="Leeds"), Settings())

    assert spec.system_prompt.startswith("You are an expert business consultant.")
    assert spec.user_prompt == (
        "How should I price {seasonal} cakes?\n\nBusiness context: Bakery\n\nBusiness location: Leeds"
    )
    assert spec.max_tokens == 1000
    assert spec.model == "gpt-4o"


def test_business_plan_mode_uses_plan_writer_prompt() -> None:
    spec = llm.build_consult_prompt(_consult(type="business-plan"), Settings(max_tokens=8000))

    assert spec.system_prompt.startswith("You are an expert business plan generator.")
    assert spec.user_prompt == "How should I price {seasonal} cakes?"
    assert spec.max_tokens == 1000


def test_generate_consult_reply_without_key_skips_llm() -> None:
    assert llm.generate_consult_reply(_consult(), Settings(openai_api_key=None)) is None


def test_generate_consult_reply_returns_message(monkeypatch: pytest.MonkeyPatch) -> None:
    completions = _FakeCompletions(content="Raise prices in December.")
    monkeypatch.setattr(llm, "_get_client", lambda settings: _fake_client(completions))

    reply = llm.generate_consult_reply(_consult(), Settings(openai_api_key="sk-test"))

    assert reply == "Raise prices in December."
    call = completions.calls[0]
    assert call["max_tokens"] == 1000
    assert call["messages"][0]["content"] == llm.ASSISTANT_SYSTEM_PROMPTS[AssistantMode.CONSULTING]


def test_generate_consult_reply_absorbs_api_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    error = APIError(
        "upstream failure",
        httpx.Request("POST", "https://api.openai.com/v1/chat/completions"),
        body=None,
    )
    monkeypatch.setattr(llm, "_get_client", lambda settings: _fake_client(_FakeCompletions(error=error)))

    assert llm.generate_consult_reply(_consult(), Settings(openai_api_key="sk-test")) is None
