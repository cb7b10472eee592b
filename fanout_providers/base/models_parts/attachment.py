"""Attachment value object sent alongside a prompt."""
from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Attachment:
    """Binary payload with a media type (e.g. ``image/png``, ``text/plain``).

    Attributes:
        data: Raw bytes of the attachment.
        media_type: IANA media type used to pick the provider encoding.
        name: Optional file name, used only for labeling text attachments.
    """

    data: bytes
    media_type: str
    name: Optional[str] = None

    @property
    def is_image(self) -> bool:
        return self.media_type.lower().startswith("image/")

    @property
    def is_text(self) -> bool:
        return self.media_type.lower().startswith("text/")

    def b64(self) -> str:
        """Return the payload as standard base64 text."""
        return base64.b64encode(self.data).decode("ascii")

    def data_uri(self) -> str:
        return f"data:{self.media_type};base64,{self.b64()}"

    def as_text(self) -> str:
        """Decode a text attachment as UTF-8, replacing undecodable bytes."""
        return self.data.decode("utf-8", errors="replace")


__all__ = ["Attachment"]
