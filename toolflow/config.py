from __future__ import annotations

import os
from typing import Optional

import yaml
from pydantic import BaseModel, ValidationError

from .constants import (
    DEFAULT_IMAGE_MODEL,
    DEFAULT_LLM_MODEL,
    DEFAULT_TOOL_TIMEOUT,
    DEFAULT_VIDEO_MODEL,
    DEFAULT_VOICE,
)
from .errors import ConfigurationError


class LLMConfig(BaseModel):
    """Settings for the chat, research and code tools."""

    model: str = DEFAULT_LLM_MODEL
    research_system_prompt: str = (
        "You are a research assistant. "
        "Provide comprehensive research findings with sources."
    )
    code_system_prompt: str = (
        "You are an expert code assistant. "
        "Provide helpful suggestions and improvements for the provided code."
    )


class ProviderConfig(BaseModel):
    """HTTP endpoints for the image, speech and video tools."""

    base_url: str = "http://localhost:8080"
    api_key: Optional[str] = None
    image_path: str = "/v1/images/generations"
    tts_path: str = "/v1/audio/speech"
    video_path: str = "/v1/videos/generations"
    request_timeout: float = 60.0
    image_model: str = DEFAULT_IMAGE_MODEL
    video_model: str = DEFAULT_VIDEO_MODEL
    voice: str = DEFAULT_VOICE


class ToolflowConfig(BaseModel):
    """Top-level configuration model."""

    database_url: Optional[str] = None
    tool_timeout: Optional[float] = DEFAULT_TOOL_TIMEOUT
    log_level: str = "INFO"
    llm: LLMConfig = LLMConfig()
    providers: ProviderConfig = ProviderConfig()


def load_config(path: Optional[str] = None) -> ToolflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to TOOLFLOW_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("TOOLFLOW_CONFIG", "config.yaml")
    try:
        if os.path.exists(config_path):
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
            config = ToolflowConfig(**data)
        else:
            config = ToolflowConfig()
    except (yaml.YAMLError, ValidationError, TypeError) as e:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e

    env_db_url = os.getenv("TOOLFLOW_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url

    env_timeout = os.getenv("TOOLFLOW_TOOL_TIMEOUT")
    if env_timeout:
        try:
            config.tool_timeout = float(env_timeout) or None
        except ValueError as e:
            raise ConfigurationError(f"TOOLFLOW_TOOL_TIMEOUT must be a number: {env_timeout}") from e

    if model := os.getenv("TOOLFLOW_LLM_MODEL"):
        config.llm.model = model
    if base_url := os.getenv("TOOLFLOW_PROVIDER_URL"):
        config.providers.base_url = base_url
    if api_key := os.getenv("TOOLFLOW_PROVIDER_API_KEY"):
        config.providers.api_key = api_key
    if level := os.getenv("TOOLFLOW_LOG_LEVEL"):
        config.log_level = level
    return config
