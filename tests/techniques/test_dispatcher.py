"""Tests for the technique dispatcher and parameter coercion."""

from __future__ import annotations

from unittest.mock import AsyncMock, Mock

import pytest
import structlog

from promptlab.llm.types import GenerationResult
from promptlab.sandbox.evaluator import SandboxedEvaluator, SandboxResult
from promptlab.techniques.dispatcher import (
    TechniqueDispatcher,
    TechniqueId,
    UnsupportedTechniqueError,
    parse_technique_id,
)
from promptlab.techniques.executors import PalExecutor, ZeroShotExecutor
from promptlab.techniques.params import TechniqueParams


@pytest.fixture
def evaluator() -> Mock:
    evaluator = Mock(spec=SandboxedEvaluator)
    evaluator.evaluate = AsyncMock(return_value=SandboxResult(value="42"))
    return evaluator


class TestTechniqueIds:
    def test_nine_techniques(self):
        assert len(TechniqueId) == 9

    def test_parse_trims_whitespace(self):
        assert parse_technique_id(" react ") is TechniqueId.REACT

    @pytest.mark.parametrize("bad", ["tree_of_thought", "", "ZERO_SHOT"])
    def test_unknown_identifier_is_rejected(self, bad):
        with pytest.raises(UnsupportedTechniqueError) as excinfo:
            parse_technique_id(bad)
        assert excinfo.value.technique == bad


class TestDispatcher:
    def test_table_has_one_executor_per_technique(self, make_gateway, evaluator):
        dispatcher = TechniqueDispatcher(make_gateway(), evaluator=evaluator)

        assert dispatcher.techniques == list(TechniqueId)
        assert isinstance(dispatcher.executor_for("zero_shot"), ZeroShotExecutor)
        assert isinstance(dispatcher.executor_for(TechniqueId.PAL), PalExecutor)

    @pytest.mark.asyncio
    async def test_unknown_technique_makes_no_model_call(self, make_gateway, evaluator):
        gateway = make_gateway("unused")
        dispatcher = TechniqueDispatcher(gateway, evaluator=evaluator)

        with pytest.raises(UnsupportedTechniqueError):
            await dispatcher.dispatch("hello", "tree_of_thought")
        gateway.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_attaches_model_name(self, make_gateway, evaluator):
        dispatcher = TechniqueDispatcher(make_gateway("Positive"), evaluator=evaluator)
        result = await dispatcher.dispatch(
            "I love this product!",
            "zero_shot",
            {"allowedLabels": ["Positive", "Neutral", "Negative"]},
        )

        assert result.model == "test-model"
        assert result.output.final_answer == "Positive"

    @pytest.mark.asyncio
    async def test_model_name_override(self, make_gateway, evaluator):
        dispatcher = TechniqueDispatcher(
            make_gateway("x"), evaluator=evaluator, model_name="custom-model"
        )
        result = await dispatcher.dispatch("q", TechniqueId.FEW_SHOT)
        assert result.model == "custom-model"

    @pytest.mark.asyncio
    async def test_technique_context_is_unbound_afterwards(self, make_gateway, evaluator):
        dispatcher = TechniqueDispatcher(make_gateway("x"), evaluator=evaluator)
        await dispatcher.dispatch("q", "chain_of_thought")

        assert "technique" not in structlog.contextvars.get_contextvars()

    @pytest.mark.parametrize("technique", list(TechniqueId))
    @pytest.mark.asyncio
    async def test_every_technique_survives_gateway_failure(self, make_gateway, evaluator, technique):
        gateway = make_gateway()
        failure = AsyncMock(return_value=GenerationResult(text="LLM_ERROR: backend down", raw="down"))
        gateway.generate = failure
        gateway.generate_with_files = failure
        dispatcher = TechniqueDispatcher(gateway, evaluator=evaluator)

        result = await dispatcher.dispatch("x" * 5000, technique)

        assert result.technique == technique.value
        assert len(result.outputs) == 1
        assert result.output.final_answer
        assert result.output.error is None


class TestTechniqueParams:
    def test_accepts_camel_and_snake_case(self):
        camel = TechniqueParams.coerce({"allowedLabels": ["A"], "maxIterations": 2})
        snake = TechniqueParams.coerce({"allowed_labels": ["A"], "max_iterations": 2})
        assert camel == snake
        assert camel.allowed_labels == ["A"]

    def test_defaults(self):
        params = TechniqueParams.coerce(None)

        assert params.max_iterations == 5
        assert params.max_documents == 5
        assert params.max_reflections == 3
        assert params.temperature is None
        assert params.temperature_or(0.7) == 0.7

    def test_invalid_values_are_dropped(self):
        params = TechniqueParams.coerce({"maxIterations": 0, "temperature": 0.2})

        assert params.max_iterations == 5
        assert params.temperature == 0.2

    def test_unknown_keys_are_ignored(self):
        assert TechniqueParams.coerce({"colour": "blue"}) == TechniqueParams()

    def test_instance_passes_through(self):
        params = TechniqueParams(max_documents=2)
        assert TechniqueParams.coerce(params) is params
