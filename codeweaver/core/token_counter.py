# codeweaver/core/token_counter.py
from functools import lru_cache
from typing import Any, Optional

import tiktoken
from loguru import logger

DEFAULT_ENCODING = "cl100k_base"
FALLBACK_ENCODING = "gpt2"
CHARS_PER_TOKEN_ESTIMATE = 4


@lru_cache(maxsize=4) # Cache a few loaded encoder objects
def _get_cached_encoder(encoding_name: str) -> Optional[Any]:
    """Loads an encoder, trying the fallback encoding once. None if neither loads (e.g. offline)."""
    try:
        logger.debug(f"Attempting to load tiktoken encoder: {encoding_name}")
        return tiktoken.get_encoding(encoding_name)
    except Exception as e:
        # tiktoken downloads encodings on first use; any failure there means we estimate
        logger.warning(f"Failed to get tiktoken encoder '{encoding_name}': {e}.")
        if encoding_name == FALLBACK_ENCODING:
            logger.error(f"Fallback encoder '{FALLBACK_ENCODING}' also failed. Token counts will be estimated.")
            return None
        return _get_cached_encoder(FALLBACK_ENCODING)


def count_tokens(text: str, encoding_name: str = DEFAULT_ENCODING) -> int:
    """
    Counts tokens in a string using the specified tiktoken encoding.
    Falls back to character estimation if no encoder can be loaded.
    """
    if not text:
        return 0
    encoder = _get_cached_encoder(encoding_name)
    if encoder is None:
        return len(text) // CHARS_PER_TOKEN_ESTIMATE
    return len(encoder.encode(text))


def truncate_to_tokens(text: str, max_tokens: int, encoding_name: str = DEFAULT_ENCODING) -> str:
    """Returns the longest prefix of `text` that fits in `max_tokens`."""
    if not text or max_tokens <= 0:
        return ""
    encoder = _get_cached_encoder(encoding_name)
    if encoder is None:
        return text[:max_tokens * CHARS_PER_TOKEN_ESTIMATE]
    tokens = encoder.encode(text)
    if len(tokens) <= max_tokens:
        return text
    # A cut can land inside a multibyte character; drop the partial bytes
    return encoder.decode_bytes(tokens[:max_tokens]).decode("utf-8", errors="ignore")
