"""Example: chain the chat and speech tools and print the recorded execution."""

import asyncio
import sys

from toolflow import Step, WorkflowEngine, WorkflowService, get_repository
from toolflow.config import load_config
from toolflow.tools import build_default_registry


async def main():
    message = sys.argv[1] if len(sys.argv) > 1 else "Describe a lighthouse at dusk in one sentence."

    config = load_config()
    repository = get_repository(config=config)
    engine = WorkflowEngine(
        build_default_registry(config), repository, timeout=config.tool_timeout
    )
    service = WorkflowService(repository, engine)

    workflow = await service.create_workflow(
        owner_id="guide-user",
        name="describe-and-speak",
        steps=[
            Step(tool_id="chat"),
            # tts picks up the chat tool's "reply"
            Step(tool_id="tts", config={"voice": "alloy"}),
        ],
    )
    summary = await service.execute("guide-user", workflow.id, {"message": message})

    print(f"Execution {summary.execution_id}: {summary.status.value}")
    if summary.error:
        print(summary.error)
    for key, value in (summary.output or {}).items():
        print(f"  {key}: {value}")


if __name__ == "__main__":
    asyncio.run(main())
