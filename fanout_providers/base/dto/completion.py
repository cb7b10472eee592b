"""
Pydantic DTOs and validators for inbound completion requests.

Purpose
-------
Validate the JSON body accepted by the service boundary
(``{prompt, attachments?, options?, providerIds[]}``) before it is turned into
the frozen :class:`~fanout_providers.base.models.CompletionRequest`. Field
names follow the camelCase wire format; snake_case names are accepted too.

Failure semantics
-----------------
Validation either succeeds or raises ``pydantic.ValidationError``. The HTTP
layer maps that to a 400 response.
"""

from __future__ import annotations

import base64
import binascii
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models import Attachment, CompletionRequest, GenerationOptions


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class AttachmentDTO(_CamelModel):
    """Attachment encoded as base64 text plus its media type."""

    data: str = Field(min_length=1)
    media_type: str = Field(alias="mediaType", min_length=3)
    name: Optional[str] = None

    @field_validator("data")
    @classmethod
    def _check_base64(cls, value: str) -> str:
        """Reject payloads that are not valid base64."""
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("attachment data must be base64 encoded") from exc
        return value

    def to_domain(self) -> Attachment:
        return Attachment(data=base64.b64decode(self.data), media_type=self.media_type, name=self.name)


class OptionsDTO(_CamelModel):
    """Generation options with numeric bounds checked at the edge."""

    max_tokens: Optional[int] = Field(default=None, alias="maxTokens", gt=0)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    top_p: Optional[float] = Field(default=None, alias="topP", ge=0.0, le=1.0)
    presence_penalty: Optional[float] = Field(default=None, alias="presencePenalty", ge=-2.0, le=2.0)
    frequency_penalty: Optional[float] = Field(default=None, alias="frequencyPenalty", ge=-2.0, le=2.0)
    stop_sequences: List[str] = Field(default_factory=list, alias="stopSequences")
    preferred_model_id: Optional[str] = Field(default=None, alias="preferredModelId")
    stream: bool = True

    def to_domain(self) -> GenerationOptions:
        return GenerationOptions(
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            top_p=self.top_p,
            presence_penalty=self.presence_penalty,
            frequency_penalty=self.frequency_penalty,
            stop_sequences=tuple(self.stop_sequences),
            preferred_model_id=self.preferred_model_id,
            streaming_enabled=self.stream,
        )


class CompletionRequestDTO(_CamelModel):
    """Inbound fan-out request body.

    ``providerIds`` may be empty here; the orchestrator owns that rule so the
    same error is raised for HTTP, CLI, and library callers.
    """

    prompt: str
    attachments: List[AttachmentDTO] = Field(default_factory=list)
    options: OptionsDTO = Field(default_factory=OptionsDTO)
    provider_ids: List[str] = Field(default_factory=list, alias="providerIds")

    def to_domain(self) -> CompletionRequest:
        return CompletionRequest(
            prompt=self.prompt,
            attachments=tuple(a.to_domain() for a in self.attachments),
            options=self.options.to_domain(),
        )


class KeyValidationDTO(_CamelModel):
    """Body for credential checks."""

    provider_id: str = Field(alias="providerId", min_length=1)
    api_key: str = Field(alias="apiKey")


__all__ = [
    "AttachmentDTO",
    "OptionsDTO",
    "CompletionRequestDTO",
    "KeyValidationDTO",
]
