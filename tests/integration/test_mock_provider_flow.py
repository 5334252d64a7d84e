"""End-to-end runs against the offline mock provider.

The real ``ModelGateway`` talks to ``promptlab.testing.mock_llm`` over an
in-process ASGI transport, so the full path (prompt builder, wire shape,
response normalisation, parsing, sandbox) is exercised without a network.
"""

from __future__ import annotations

import httpx
import pytest

from promptlab.llm.gateway import ModelGateway
from promptlab.sandbox.evaluator import SandboxedEvaluator
from promptlab.techniques.dispatcher import TechniqueDispatcher, TechniqueId
from promptlab.testing import mock_llm


@pytest.fixture
def mock_settings(fake_settings):
    return fake_settings.model_copy(
        update={
            "llm_provider": "google",
            "llm_api_url": "http://mock/v1beta/models/mock-model:generateContent",
        }
    )


@pytest.fixture
def dispatcher(mock_settings) -> TechniqueDispatcher:
    gateway = ModelGateway(mock_settings, transport=httpx.ASGITransport(app=mock_llm.app))
    return TechniqueDispatcher(gateway, evaluator=SandboxedEvaluator(timeout_ms=5000))


@pytest.mark.integration
@pytest.mark.asyncio
async def test_zero_shot_sentiment(dispatcher):
    result = await dispatcher.dispatch(
        "I love this product!",
        TechniqueId.ZERO_SHOT,
        {"allowedLabels": ["Positive", "Neutral", "Negative"]},
    )

    assert result.output.final_answer == "Positive"
    assert result.output.usage["totalTokenCount"] > 0
    assert result.model == "test-model"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_pal_runs_generated_program(dispatcher):
    result = await dispatcher.dispatch("What is 7 * 6?", TechniqueId.PAL)

    assert "def solution" in result.output.code
    assert result.output.final_answer == "42"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_react_calculates_then_finishes(dispatcher):
    result = await dispatcher.dispatch("What is 7 * 6?", TechniqueId.REACT)

    assert [s.action for s in result.output.steps] == ["calculate", "finish"]
    assert result.output.completed is True
    assert result.output.final_answer == "42"


@pytest.mark.integration
@pytest.mark.parametrize(
    "technique",
    [
        TechniqueId.CHAIN_OF_THOUGHT,
        TechniqueId.SELF_CONSISTENCY,
        TechniqueId.DIRECTIONAL_STIMULUS,
        TechniqueId.REFLEXION,
    ],
)
@pytest.mark.asyncio
async def test_reasoning_techniques_reach_the_answer(dispatcher, technique):
    result = await dispatcher.dispatch("What is 7 * 6?", technique)
    assert result.output.final_answer == "42"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_choices_shape_is_normalised():
    transport = httpx.ASGITransport(app=mock_llm.app)
    async with httpx.AsyncClient(transport=transport, base_url="http://mock") as client:
        resp = await client.post(
            "/chat/completions",
            json={"model": "mock-model", "messages": [{"role": "user", "content": 'Text:\n"awful"'}]},
        )

    assert resp.status_code == 200
    assert resp.json()["choices"][0]["message"]["content"] == "Negative"
