import pytest
from pydantic import ValidationError

from toolflow.compare import compare_models
from toolflow.constants import COMPARE_ERROR_RESPONSE
from toolflow.persistence import InMemoryRepository
from toolflow.registry import FunctionTool


async def _chat(payload):
    if payload["model"] == "broken":
        raise RuntimeError("rate limited")
    return {"reply": f"{payload['model']} says {payload['prompt']}"}


@pytest.mark.asyncio
async def test_failures_are_recorded_and_comparison_continues():
    comparison = await compare_models(FunctionTool("chat", _chat), "hi", ["a", "broken", "c"])

    assert comparison.responses == {
        "a": "a says hi",
        "broken": COMPARE_ERROR_RESPONSE,
        "c": "c says hi",
    }
    assert comparison.failed == ["broken"]


@pytest.mark.asyncio
@pytest.mark.parametrize("models", [["a"], ["a", "b", "c", "d", "e"], ["a", "a"]])
async def test_model_count_and_uniqueness(models):
    with pytest.raises(ValidationError):
        await compare_models(FunctionTool("chat", _chat), "hi", models)


@pytest.mark.asyncio
async def test_comparison_is_saved_for_user():
    store = InMemoryRepository()

    saved = await compare_models(
        FunctionTool("chat", _chat), "hi", ["a", "broken"], store=store, user_id="alice"
    )

    assert saved.id
    assert saved.user_id == "alice"
    (listed,) = await store.list_comparisons("alice")
    assert listed.id == saved.id
    assert listed.responses == {"a": "a says hi", "broken": COMPARE_ERROR_RESPONSE}
    assert listed.failed == ["broken"]
    assert await store.list_comparisons("bob") == []


@pytest.mark.asyncio
async def test_saving_requires_a_user():
    with pytest.raises(ValueError, match="user_id"):
        await compare_models(FunctionTool("chat", _chat), "hi", ["a", "b"], store=InMemoryRepository())
