"""Feature tools and the default registry."""

from __future__ import annotations

from typing import Optional

import httpx

from ..config import ToolflowConfig, load_config
from ..registry import ToolRegistry
from .llm import AgentTool, ChatTool, CodeTool, ResearchTool
from .media import HttpGenerationTool, ImageTool, SpeechTool, VideoTool


def build_default_registry(
    config: Optional[ToolflowConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> ToolRegistry:
    """Build the registry holding every built-in tool."""

    config = config or load_config()
    providers = config.providers
    return ToolRegistry(
        [
            ChatTool(config.llm.model),
            ImageTool(providers.image_path, providers, client=client),
            ResearchTool(config.llm.model, system_prompt=config.llm.research_system_prompt),
            CodeTool(config.llm.model, system_prompt=config.llm.code_system_prompt),
            SpeechTool(providers.tts_path, providers, client=client),
            VideoTool(providers.video_path, providers, client=client),
        ]
    )


__all__ = [
    "AgentTool",
    "ChatTool",
    "CodeTool",
    "HttpGenerationTool",
    "ImageTool",
    "ResearchTool",
    "SpeechTool",
    "VideoTool",
    "build_default_registry",
]
