from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

_DATA_URL = re.compile(r"^data:(?P<media_type>[\w/+.-]+);base64,(?P<data>.*)$", re.DOTALL)


def convert_image_part(part: Dict[str, Any]) -> Dict[str, Any]:
    """OpenAI ``image_url`` part to an Anthropic ``image`` block."""
    url = part.get("image_url", {}).get("url", "")
    match = _DATA_URL.match(url)
    if match:
        source = {
            "type": "base64",
            "media_type": match.group("media_type"),
            "data": match.group("data"),
        }
    else:
        source = {"type": "url", "url": url}
    return {"type": "image", "source": source}


def convert_content(content: Any) -> Any:
    if isinstance(content, str):
        return content

    blocks = []
    for part in content:
        if part.get("type") == "image_url":
            blocks.append(convert_image_part(part))
        else:
            blocks.append({"type": "text", "text": part.get("text", "")})
    return blocks


def convert_messages(messages: List[Dict[str, Any]]) -> Tuple[Optional[str], List[Dict[str, Any]]]:
    """
    Split OpenAI-style messages into an Anthropic system prompt and turns.

    System messages are joined into the top-level ``system`` parameter.
    Function results have no Anthropic role of their own and are sent as
    user turns.
    """
    system_parts: List[str] = []
    converted: List[Dict[str, Any]] = []

    for msg in messages:
        role = msg.get("role")
        content = msg.get("content", "")
        if role == "system":
            if isinstance(content, str):
                text = content
            else:
                text = "".join(p.get("text", "") for p in content if p.get("type") == "text")
            if text:
                system_parts.append(text)
            continue

        if role not in ("user", "assistant"):
            role = "user"
        converted.append({"role": role, "content": convert_content(content)})

    system_prompt = "\n\n".join(system_parts) if system_parts else None
    return system_prompt, converted
