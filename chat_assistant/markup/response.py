from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

# (snake_case, camelCase) spellings accepted for each interactive element.
ELEMENT_KEYS = {
    "interactive_list": ("interactive_list", "interactiveList"),
    "suggested_questions": ("suggested_questions", "suggestedQuestions"),
    "outline": ("outline", "outline"),
    "youtube_resources": ("youtube_resources", "youtubeResources"),
}


@dataclass
class AssistantResponse:
    content: str
    interactive_list: Optional[List[Any]] = None
    suggested_questions: Optional[List[str]] = None
    outline: Optional[List[Any]] = None
    youtube_resources: Optional[List[Any]] = None

    def elements(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in ELEMENT_KEYS}

    def has_elements(self) -> bool:
        return any(value for value in self.elements().values())


def _first(mapping: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = mapping.get(key)
        if value:
            return value
    return None


def _from_elements(content: str, elements: Mapping[str, Any]) -> AssistantResponse:
    return AssistantResponse(
        content=content,
        **{name: _first(elements, *keys) for name, keys in ELEMENT_KEYS.items()},
    )


def _from_json_payload(parsed: Dict[str, Any]) -> AssistantResponse:
    raw_content = parsed.get("content")
    if isinstance(raw_content, dict) and raw_content.get("data"):
        content = raw_content["data"]
    else:
        content = raw_content
    nested = parsed.get("interactiveElements")
    if not isinstance(nested, dict):
        nested = {}

    fields = {}
    for name, (snake, camel) in ELEMENT_KEYS.items():
        value = _first(parsed, snake, camel)
        if value is None:
            value = _first(nested, camel, snake)
        fields[name] = value
    return AssistantResponse(content=content if isinstance(content, str) else "", **fields)


def parse_assistant_response(
    response_content: str,
    interactive_elements: Optional[Mapping[str, Any]] = None,
) -> AssistantResponse:
    """
    Normalize an assistant reply into plain content plus interactive elements.

    Structured elements delivered next to the reply win. Without them the
    reply itself may be a JSON envelope (older FAQ answers); anything that is
    not such an envelope is plain text.
    """
    if interactive_elements:
        return _from_elements(response_content, interactive_elements)

    # Only a JSON object can be an envelope.
    if not isinstance(response_content, str) or not response_content.lstrip().startswith("{"):
        return AssistantResponse(content=response_content)
    try:
        parsed = json.loads(response_content)
    except (ValueError, RecursionError):
        return AssistantResponse(content=response_content)

    if isinstance(parsed, dict) and (
        parsed.get("content") or parsed.get("interactiveElements") or parsed.get("interactive_list")
    ):
        logger.debug("Reply carries a JSON envelope; unpacking interactive elements")
        return _from_json_payload(parsed)
    return AssistantResponse(content=response_content)
