"""Multi-model comparison: one prompt, several chat models, side by side."""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .constants import COMPARE_ERROR_RESPONSE, MAX_COMPARE_MODELS, MIN_COMPARE_MODELS
from .contracts import Comparison
from .persistence import ComparisonStore
from .registry import Tool

logger = logging.getLogger(__name__)


class ComparisonRequest(BaseModel):
    prompt: str = Field(min_length=1)
    models: List[str] = Field(min_length=MIN_COMPARE_MODELS, max_length=MAX_COMPARE_MODELS)

    @field_validator("models")
    @classmethod
    def _distinct(cls, models: List[str]) -> List[str]:
        if len(set(models)) != len(models):
            raise ValueError("models must be distinct")
        return models


async def compare_models(
    chat_tool: Tool,
    prompt: str,
    models: List[str],
    store: Optional[ComparisonStore] = None,
    user_id: Optional[str] = None,
) -> Comparison:
    """Ask every model the same prompt through ``chat_tool``.

    Models are queried one after another. A model that errors is recorded
    with a placeholder response and the comparison carries on, unlike a
    workflow run which stops at its first failing step.

    When ``store`` is given the finished comparison is saved for ``user_id``
    and the stored record, with its id, is returned.
    """
    request = ComparisonRequest(prompt=prompt, models=models)
    if store is not None and not user_id:
        raise ValueError("user_id is required to save a comparison")
    comparison = Comparison(user_id=user_id, prompt=request.prompt, models=request.models)

    for model in request.models:
        try:
            output = await chat_tool.invoke({"prompt": request.prompt, "model": model})
            reply = output.get("reply") if isinstance(output, dict) else None
            comparison.responses[model] = reply if isinstance(reply, str) else ""
        except Exception as e:
            logger.warning(f"Comparison: model {model} failed: {e}")
            comparison.responses[model] = COMPARE_ERROR_RESPONSE
            comparison.failed.append(model)

    if store is not None:
        comparison = await store.create_comparison(comparison)
        logger.info(f"Comparison {comparison.id} saved for user {user_id}")
    return comparison
