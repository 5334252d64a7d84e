"""Technique execution endpoints.

POST /prompt/run         - Run exactly one technique on the input text
GET  /prompt/techniques  - List the supported technique identifiers
GET  /prompt/presets     - Demonstration inputs
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from promptlab.api.dependencies import get_dispatcher
from promptlab.techniques.dispatcher import (
    TechniqueDispatcher,
    TechniqueId,
    UnsupportedTechniqueError,
)
from promptlab.techniques.presets import PRESETS

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/prompt", tags=["prompt"])


class RunRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    input_text: str = Field(min_length=1)
    techniques: list[str]
    params: dict[str, Any] = Field(default_factory=dict)


class TechniquesResponse(BaseModel):
    techniques: list[str]


@router.post("/run", summary="Run one prompting technique")
async def run_technique(
    body: RunRequest,
    dispatcher: TechniqueDispatcher = Depends(get_dispatcher),
) -> dict[str, Any]:
    """Run the single selected technique and return its result."""
    allowed = [t.value for t in TechniqueId]
    if len(body.techniques) != 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Exactly one technique must be selected", "allowed": allowed},
        )

    try:
        result = await dispatcher.dispatch(body.input_text, body.techniques[0], body.params)
    except UnsupportedTechniqueError as exc:
        log.info("prompt.unsupported_technique", technique=exc.technique)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Technique not supported", "allowed": allowed},
        ) from exc

    return result.to_dict()


@router.get("/techniques", response_model=TechniquesResponse)
async def list_techniques() -> TechniquesResponse:
    return TechniquesResponse(techniques=[t.value for t in TechniqueId])


@router.get("/presets")
async def list_presets() -> dict[str, str]:
    return dict(PRESETS)
