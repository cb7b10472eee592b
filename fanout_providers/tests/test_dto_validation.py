"""Inbound DTO validation and conversion to domain models."""
from __future__ import annotations

import base64

import pytest
from pydantic import ValidationError

from fanout_providers.base.dto import CompletionRequestDTO, KeyValidationDTO


def test_camel_case_body_converts_to_domain_request():
    body = {
        "prompt": "Describe this",
        "providerIds": ["openai", "gemini"],
        "attachments": [
            {"data": base64.b64encode(b"\x89PNG").decode(), "mediaType": "image/png", "name": "a.png"}
        ],
        "options": {"maxTokens": 256, "temperature": 0.2, "stopSequences": ["END"], "stream": False},
    }
    dto = CompletionRequestDTO.model_validate(body)
    request = dto.to_domain()

    assert dto.provider_ids == ["openai", "gemini"]  # nosec B101
    assert request.attachments[0].data == b"\x89PNG"  # nosec B101
    assert request.attachments[0].is_image  # nosec B101
    assert request.options.max_tokens == 256  # nosec B101
    assert request.options.stop_sequences == ("END",)  # nosec B101
    assert request.options.streaming_enabled is False  # nosec B101


def test_snake_case_names_are_accepted():
    dto = CompletionRequestDTO.model_validate({"prompt": "p", "provider_ids": ["mock"]})
    assert dto.provider_ids == ["mock"]  # nosec B101
    assert dto.to_domain().options.streaming_enabled is True  # nosec B101


@pytest.mark.parametrize(
    "options",
    [{"temperature": 2.5}, {"topP": -0.1}, {"maxTokens": 0}, {"presencePenalty": 3}],
)
def test_option_bounds(options):
    with pytest.raises(ValidationError):
        CompletionRequestDTO.model_validate({"prompt": "p", "options": options})


def test_attachment_data_must_be_base64():
    with pytest.raises(ValidationError):
        CompletionRequestDTO.model_validate(
            {"prompt": "p", "attachments": [{"data": "not base64!!", "mediaType": "text/plain"}]}
        )


def test_key_validation_body():
    dto = KeyValidationDTO.model_validate({"providerId": "openai", "apiKey": "sk-1"})
    assert (dto.provider_id, dto.api_key) == ("openai", "sk-1")  # nosec B101
    with pytest.raises(ValidationError):
        KeyValidationDTO.model_validate({"providerId": "", "apiKey": "x"})
