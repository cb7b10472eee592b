"""DTO validation package for the service boundary."""

from .completion import AttachmentDTO, CompletionRequestDTO, KeyValidationDTO, OptionsDTO

__all__ = [
    "AttachmentDTO",
    "OptionsDTO",
    "CompletionRequestDTO",
    "KeyValidationDTO",
]
