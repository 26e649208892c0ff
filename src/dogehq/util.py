"""
Message Token Helpers

Chat messages travel as a list of tokens rather than a plain string:

    [{"t": "text", "v": "hello"}, {"t": "mention", "v": "alice"}]

Token types: text, mention, link, emote, block.
"""

import re
from typing import Dict, List

MessageToken = Dict[str, str]

_LINK = re.compile(r"^https?://\S+$")
_EMOTE = re.compile(r"^:([A-Za-z0-9_]+):$")
_BLOCK = re.compile(r"`([^`]+)`")


def _word_token(word: str) -> MessageToken:
    """Classify one whitespace-delimited word."""
    if word.startswith("@") and len(word) > 1:
        return {"t": "mention", "v": word[1:]}
    if _LINK.match(word):
        return {"t": "link", "v": word}
    emote = _EMOTE.match(word)
    if emote:
        return {"t": "emote", "v": emote.group(1)}
    return {"t": "text", "v": word}


def tokenize(text: str) -> List[MessageToken]:
    """
    Convert plain text into message tokens.

    Backtick-quoted spans become a single block token; every other word
    is classified as a mention (@name), link (http/https URL), emote
    (:name:) or text.

    Args:
        text: The message text

    Returns:
        List of tokens, in the order they appear
    """
    tokens: List[MessageToken] = []
    position = 0
    for block in _BLOCK.finditer(text):
        tokens.extend(_word_token(w) for w in text[position:block.start()].split())
        tokens.append({"t": "block", "v": block.group(1)})
        position = block.end()
    tokens.extend(_word_token(w) for w in text[position:].split())
    return tokens


def tokens_to_string(tokens: List[MessageToken]) -> str:
    """Render message tokens back into a readable string."""
    parts = []
    for token in tokens:
        kind, value = token.get("t"), token.get("v", "")
        if kind == "mention":
            parts.append(f"@{value}")
        elif kind == "emote":
            parts.append(f":{value}:")
        elif kind == "block":
            parts.append(f"`{value}`")
        else:
            parts.append(value)
    return " ".join(parts)
