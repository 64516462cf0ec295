import json
from dataclasses import replace
from types import SimpleNamespace

import openai
import pytest

from scam_detector.advisory import (
    AdvisoryAnalyzer,
    build_prompt,
    extract_patterns,
    parse_advisory_text,
)

from factories import trade


class FakeCompletions:
    def __init__(self, content=None, error=None, response=None):
        self.content = content
        self.error = error
        self.response = response
        self.requests = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(**kwargs):
    completions = FakeCompletions(**kwargs)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


@pytest.mark.parametrize(
    "text, expected",
    [
        ("This wallet is HIGH RISK.", "high"),
        ("Overall medium risk with some churn", "medium"),
        ("Nothing notable here", "low"),
    ],
)
def test_parse_advisory_text_levels(text, expected):
    result = parse_advisory_text(text, 0.8)
    assert result.risk_assessment == expected
    assert result.confidence == 0.8


def test_extract_patterns_keeps_keyword_order():
    text = "Signs of Phishing and a possible rug pull; also front running."
    assert extract_patterns(text) == ["rug pull", "front running", "phishing"]


def test_build_prompt_embeds_trade_data():
    prompt = build_prompt([trade(amount_in="42", timestamp=7)])
    payload = prompt.split("\n\nConsider:")[0].split("\n", 1)[1]
    data = json.loads(payload)
    assert data[0]["timestamp"] == 7
    assert data[0]["value"] == "42"
    assert data[0]["tokenIn"]["symbol"] == "USDC"
    assert "Front-running patterns" in prompt


def test_disabled_advisory_is_neutral(settings):
    client, completions = fake_client(content="high risk")
    analyzer = AdvisoryAnalyzer(replace(settings, advisory_enabled=False), client=client)
    result = analyzer.analyze([trade()])
    assert result.risk_assessment == "unknown"
    assert result.confidence == 0.0
    assert completions.requests == []


def test_missing_key_is_unavailable(settings):
    analyzer = AdvisoryAnalyzer(settings)
    assert analyzer.available is False
    assert analyzer.analyze([trade()]).confidence == 0.0


def test_empty_trades_skip_the_model(settings):
    client, completions = fake_client(content="high risk")
    result = AdvisoryAnalyzer(settings, client=client).analyze([])
    assert result.detected_patterns == []
    assert completions.requests == []


def test_reply_is_parsed_with_configured_confidence(settings):
    client, completions = fake_client(content="High risk: looks like a honeypot.")
    analyzer = AdvisoryAnalyzer(replace(settings, advisory_confidence=0.6), client=client)
    result = analyzer.analyze([trade()])
    assert result.risk_assessment == "high"
    assert result.confidence == 0.6
    assert result.detected_patterns == ["honeypot"]
    request = completions.requests[0]
    assert request["model"] == settings.openai_model
    assert request["temperature"] == settings.advisory_temperature
    assert request["messages"][0]["role"] == "system"


def test_service_failure_degrades_to_neutral(settings):
    client, _ = fake_client(error=openai.OpenAIError("boom"))
    result = AdvisoryAnalyzer(settings, client=client).analyze([trade()])
    assert result.risk_assessment == "unknown"
    assert result.confidence == 0.0


@pytest.mark.parametrize(
    "response",
    [
        SimpleNamespace(choices=[]),
        SimpleNamespace(),
        SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=None))]),
    ],
)
def test_malformed_reply_degrades_to_neutral(settings, response):
    client, _ = fake_client(response=response)
    assert AdvisoryAnalyzer(settings, client=client).analyze([trade()]).confidence == 0.0
