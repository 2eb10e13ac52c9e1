"""Pydantic models describing registered tools."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


class ParamDescriptor(BaseModel):
    """Describes a single input or output key of a tool."""

    name: str
    type_ref: str = Field(..., description="JSON type of the value")
    required: bool = True
    description: Optional[str] = None
    default_json: Optional[Any] = None


class ToolDescriptor(BaseModel):
    """Metadata describing a tool in the registry."""

    name: str
    description: Optional[str] = None
    inputs: List[ParamDescriptor] = Field(default_factory=list)
    outputs: List[ParamDescriptor] = Field(default_factory=list)
    side_effects: List[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _ensure_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("name must be a non-empty string")
        return v
