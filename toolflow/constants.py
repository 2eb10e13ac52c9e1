"""Shared defaults for toolflow."""

DEFAULT_TOOL_TIMEOUT = 120.0
DEFAULT_LLM_MODEL = "openai:gpt-4o"

DEFAULT_IMAGE_MODEL = "flux"
DEFAULT_VIDEO_MODEL = "sora"
DEFAULT_VOICE = "alloy"

MIN_COMPARE_MODELS = 2
MAX_COMPARE_MODELS = 4
COMPARE_ERROR_RESPONSE = "Error generating response"

CHAT_TOOL = "chat"
IMAGE_TOOL = "image"
RESEARCH_TOOL = "research"
CODE_TOOL = "code"
TTS_TOOL = "tts"
VIDEO_TOOL = "video"
