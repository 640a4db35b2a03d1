"""
Token counting for prompt budgeting.

Exact counts use tiktoken's ``p50k_base`` encoding; the estimate assumes
roughly four characters per token and needs no encoder.
"""

from __future__ import annotations

import functools
import math

import tiktoken

DEFAULT_ENCODING = "p50k_base"


@functools.lru_cache(maxsize=4)
def _encoding(name: str) -> tiktoken.Encoding:
    return tiktoken.get_encoding(name)


def token_count(text: str, encoding: str = DEFAULT_ENCODING) -> int:
    """Exact number of tokens in ``text``, special tokens included."""
    return len(_encoding(encoding).encode(text, allowed_special="all"))


def estimated_token_count(text: str) -> int:
    """Cheap estimate: one token per four characters, rounded up."""
    return math.ceil(len(text) / 4)
