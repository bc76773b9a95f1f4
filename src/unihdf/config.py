"""Options controlling how data is read and presented."""
from __future__ import annotations

import codecs
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator
from typing_extensions import Final, Literal


class ReadOptions(BaseModel):
    """Options shared by a file and every object opened from it."""

    model_config = ConfigDict(frozen=True)

    string_encoding: str = "ascii"
    """Encoding used to turn string attribute bytes into text."""

    string_errors: Literal["strict", "replace", "ignore"] = "replace"
    """How undecodable bytes in string attributes are handled."""

    @field_validator("string_encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError:
            raise ValueError(f"Unknown encoding: {value}") from None
        return value

    def decode(self, raw: bytes, encoding: Optional[str] = None) -> str:
        """Decode string attribute bytes (stored encoding overrides the default)."""
        return raw.decode(encoding or self.string_encoding, self.string_errors)


DEFAULT_OPTIONS: Final[ReadOptions] = ReadOptions()
