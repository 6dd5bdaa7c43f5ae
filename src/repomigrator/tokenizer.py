"""Token counting used for context budgeting."""

from __future__ import annotations

from typing import Protocol

import tiktoken

DEFAULT_ENCODING = "cl100k_base"


class Tokenizer(Protocol):
    def count(self, text: str) -> int: ...


class TiktokenTokenizer:
    """tiktoken-backed counter; the encoding loads on first use and is safe to share."""

    def __init__(self, encoding_name: str = DEFAULT_ENCODING) -> None:
        self.encoding_name = encoding_name
        self._encoding: tiktoken.Encoding | None = None

    def _get_encoding(self) -> tiktoken.Encoding:
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding(self.encoding_name)
        return self._encoding

    def count(self, text: str) -> int:
        if not text:
            return 0
        # Source files may contain literal special-token strings.
        return len(self._get_encoding().encode(text, disallowed_special=()))
