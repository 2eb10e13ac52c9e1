"""Tools backed by a pydantic-ai agent: chat, research and code review."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple, Union

from pydantic_ai import Agent
from pydantic_ai.models import Model

from ..constants import CHAT_TOOL, CODE_TOOL, RESEARCH_TOOL
from ..registry import ParamDescriptor, ToolDescriptor
from ._inputs import first_present

logger = logging.getLogger(__name__)

ModelRef = Union[str, Model]


class AgentTool:
    """Base class for tools that run a single prompt through an agent."""

    name: str = ""
    descriptor: ToolDescriptor
    prompt_keys: Tuple[str, ...] = ("prompt",)
    output_key: str = "output"
    system_prompt: Optional[str] = None

    def __init__(
        self,
        model: ModelRef,
        system_prompt: Optional[str] = None,
        agent: Optional[Agent] = None,
    ) -> None:
        self._model = model
        if system_prompt is not None:
            self.system_prompt = system_prompt
        self._agent = agent

    @property
    def agent(self) -> Agent:
        # Built on first use so a missing provider key only fails the step using it.
        if self._agent is None:
            if self.system_prompt:
                self._agent = Agent(self._model, system_prompt=self.system_prompt)
            else:
                self._agent = Agent(self._model)
        return self._agent

    def build_prompt(self, payload: Dict[str, Any]) -> str:
        return str(first_present(payload, self.prompt_keys, tool=self.name))

    async def invoke(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        prompt = self.build_prompt(payload)
        model_override = payload.get("model")
        logger.debug(f"{self.name}: running agent (model override={model_override})")
        if isinstance(model_override, str) and model_override:
            result = await self.agent.run(prompt, model=model_override)
        else:
            result = await self.agent.run(prompt)
        output = result.output
        return {self.output_key: output if isinstance(output, str) else str(output)}


class ChatTool(AgentTool):
    name = CHAT_TOOL
    prompt_keys = ("message", "prompt")
    output_key = "reply"
    descriptor = ToolDescriptor(
        name=CHAT_TOOL,
        description="Single-turn chat completion",
        inputs=[
            ParamDescriptor(name="message", type_ref="string", required=False),
            ParamDescriptor(name="prompt", type_ref="string", required=False),
            ParamDescriptor(name="model", type_ref="string", required=False),
        ],
        outputs=[ParamDescriptor(name="reply", type_ref="string")],
    )


class ResearchTool(AgentTool):
    name = RESEARCH_TOOL
    prompt_keys = ("query", "prompt")
    output_key = "findings"
    descriptor = ToolDescriptor(
        name=RESEARCH_TOOL,
        description="Research a topic and summarise findings with sources",
        inputs=[
            ParamDescriptor(name="query", type_ref="string", required=False),
            ParamDescriptor(name="prompt", type_ref="string", required=False),
        ],
        outputs=[ParamDescriptor(name="findings", type_ref="string")],
    )

    def build_prompt(self, payload: Dict[str, Any]) -> str:
        query = super().build_prompt(payload)
        return f"Research the following topic and provide detailed findings: {query}"


class CodeTool(AgentTool):
    name = CODE_TOOL
    prompt_keys = ("code",)
    output_key = "suggestions"
    descriptor = ToolDescriptor(
        name=CODE_TOOL,
        description="Review code and suggest improvements",
        inputs=[
            ParamDescriptor(name="code", type_ref="string"),
            ParamDescriptor(
                name="language", type_ref="string", required=False, default_json="plaintext"
            ),
        ],
        outputs=[ParamDescriptor(name="suggestions", type_ref="string")],
    )

    def build_prompt(self, payload: Dict[str, Any]) -> str:
        code = super().build_prompt(payload)
        language = payload.get("language") or "plaintext"
        return f"Review this {language} code and provide suggestions:\n\n{code}"
