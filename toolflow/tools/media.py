"""Tools that call an HTTP generation provider: image, speech and video."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from ..config import ProviderConfig
from ..constants import IMAGE_TOOL, TTS_TOOL, VIDEO_TOOL
from ..registry import ParamDescriptor, ToolDescriptor
from ._inputs import first_present

logger = logging.getLogger(__name__)


def _extract_url(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    if isinstance(body.get("url"), str):
        return body["url"]
    data = body.get("data")
    if isinstance(data, list) and data and isinstance(data[0], dict):
        url = data[0].get("url")
        return url if isinstance(url, str) else None
    return None


class HttpGenerationTool:
    """POST a JSON request to a provider endpoint and return the asset URL."""

    name: str = ""
    descriptor: ToolDescriptor
    input_keys: Tuple[str, ...] = ("prompt",)
    request_field: str = "prompt"
    output_key: str = "url"

    def __init__(
        self,
        path: str,
        config: Optional[ProviderConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config or ProviderConfig()
        self._path = path
        self._client = client

    def build_request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {self.request_field: first_present(payload, self.input_keys, tool=self.name)}

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._config.api_key:
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        return headers

    async def _post(self, client: httpx.AsyncClient, body: Dict[str, Any]) -> httpx.Response:
        return await client.post(self._path, json=body, headers=self._headers())

    async def invoke(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = self.build_request(payload)
        if self._client is not None:
            response = await self._post(self._client, body)
        else:
            async with httpx.AsyncClient(
                base_url=self._config.base_url, timeout=self._config.request_timeout
            ) as client:
                response = await self._post(client, body)
        response.raise_for_status()

        url = _extract_url(response.json())
        if url is None:
            raise ValueError(f"{self.name}: provider response carried no URL")
        logger.debug(f"{self.name}: provider returned {url}")
        return {self.output_key: url}


class ImageTool(HttpGenerationTool):
    name = IMAGE_TOOL
    output_key = "imageUrl"
    descriptor = ToolDescriptor(
        name=IMAGE_TOOL,
        description="Generate an image from a prompt",
        inputs=[
            ParamDescriptor(name="prompt", type_ref="string"),
            ParamDescriptor(name="model", type_ref="string", required=False),
        ],
        outputs=[ParamDescriptor(name="imageUrl", type_ref="string")],
        side_effects=["provider call"],
    )

    def build_request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = super().build_request(payload)
        body["model"] = payload.get("model") or self._config.image_model
        return body


class SpeechTool(HttpGenerationTool):
    name = TTS_TOOL
    input_keys = ("text", "reply")
    request_field = "input"
    output_key = "audioUrl"
    descriptor = ToolDescriptor(
        name=TTS_TOOL,
        description="Synthesize speech from text",
        inputs=[
            ParamDescriptor(name="text", type_ref="string", required=False),
            ParamDescriptor(name="reply", type_ref="string", required=False),
            ParamDescriptor(name="voice", type_ref="string", required=False),
        ],
        outputs=[ParamDescriptor(name="audioUrl", type_ref="string")],
        side_effects=["provider call"],
    )

    def build_request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = super().build_request(payload)
        body["voice"] = payload.get("voice") or self._config.voice
        return body


class VideoTool(HttpGenerationTool):
    name = VIDEO_TOOL
    output_key = "videoUrl"
    descriptor = ToolDescriptor(
        name=VIDEO_TOOL,
        description="Generate a video from a prompt",
        inputs=[
            ParamDescriptor(name="prompt", type_ref="string"),
            ParamDescriptor(name="model", type_ref="string", required=False),
        ],
        outputs=[ParamDescriptor(name="videoUrl", type_ref="string")],
        side_effects=["provider call"],
    )

    def build_request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = super().build_request(payload)
        body["model"] = payload.get("model") or self._config.video_model
        return body
