"""Prompt construction for component generation."""

import logging
from collections.abc import Sequence
from typing import Any

from app.schemas.generation import (
    ContextTurn,
    CurrentComponent,
    GenerationRequest,
    HistoryTurn,
    PromptPayload,
)
from models.chat_message import MessageRole, MessageStatus

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert React component generator. You build production-ready,
accessible and modern components that work out of the box.

**Principles:**
1. Generate complete, functional React function components using hooks
2. Make every component accessible: semantic HTML, ARIA labels, keyboard navigation,
   visible focus states and WCAG AA color contrast
3. Make every component responsive and mobile-first
4. Handle loading, empty and error states where they apply
5. Keep the code clean, readable and easy to customize

**Styling:**
- Use Tailwind CSS utility classes first
- Only add custom CSS when Tailwind cannot express the style
- Support dark mode with `dark:` variants and use responsive breakpoints (sm, md, lg, xl)
- Prefer smooth transitions over abrupt state changes

**Response Format (ALWAYS a single valid JSON object):**
```json
{
    "componentName": "PascalCaseComponentName",
    "explanation": "What the component does, its features and how to use it",
    "jsx": "Complete component source with imports and a default export",
    "css": "Custom CSS, or an empty string",
    "props": {
        "propName": {
            "type": "string|number|boolean|object|array|function",
            "description": "What the prop controls",
            "required": false,
            "default": "defaultValue"
        }
    },
    "dependencies": ["react"],
    "category": "ui|layout|form|data|animation|navigation|feedback|utility",
    "complexity": "simple|medium|complex",
    "features": ["responsive", "accessible", "interactive"],
    "usage": "<ComponentName propName='value' />"
}
```

Do not wrap the JSON in prose. Escape newlines and quotes inside string values."""

NO_CONTENT = "No content"


def build_system_prompt() -> str:
    """Static system prompt describing the output contract and quality bar."""
    return SYSTEM_PROMPT


def build_user_prompt(
    message: str,
    current_component: CurrentComponent | dict[str, Any] | None,
    history: Sequence[HistoryTurn] | None = None,
) -> str:
    """Build the final user turn.

    When the session already has component code it is embedded so the model
    edits it instead of starting over.
    """
    if isinstance(current_component, dict):
        current_component = CurrentComponent(**current_component)

    request_text = message.strip() or "Use the attached images as the reference."
    prompt = f"User Request: {request_text}\n\n"

    if current_component and current_component.jsx:
        prompt += f"Current Component:\n```jsx\n{current_component.jsx}\n```\n\n"
        if current_component.css:
            prompt += f"Current CSS:\n```css\n{current_component.css}\n```\n\n"
        if current_component.props:
            prompt += f"Current Props: {', '.join(sorted(current_component.props))}\n\n"
        prompt += "Please modify the existing component based on the user request.\n\n"
    else:
        prompt += "Please create a new React component based on the user request.\n\n"

    if history and any(turn.status == MessageStatus.COMPLETED.value for turn in history):
        prompt += "Take the earlier conversation into account.\n\n"

    prompt += "Remember to respond with a valid JSON object as specified in the system prompt."
    return prompt


def _turn_content(turn: HistoryTurn) -> str:
    if turn.role == MessageRole.ASSISTANT.value and turn.jsx:
        return f"Generated component:\n```jsx\n{turn.jsx}\n```"
    return turn.text or NO_CONTENT


def format_context(history: Sequence[HistoryTurn], window_size: int) -> list[ContextTurn]:
    """Chronological role/content pairs for the most recent completed turns.

    ``history`` is ordered most recent first. Turns that are not completed
    never reach the model.
    """
    if window_size <= 0:
        return []
    completed = [turn for turn in history if turn.status == MessageStatus.COMPLETED.value]
    window = completed[:window_size]
    return [ContextTurn(role=turn.role, content=_turn_content(turn)) for turn in reversed(window)]


def build_prompt_payload(
    request: GenerationRequest,
    *,
    window_size: int,
    max_tokens: int,
    default_temperature: float,
) -> PromptPayload:
    """Assemble the provider-neutral prompt for one generation attempt."""
    temperature = request.temperature if request.temperature is not None else default_temperature
    return PromptPayload(
        system_prompt=build_system_prompt(),
        user_prompt=build_user_prompt(request.message, request.current_component, request.history),
        context=format_context(request.history, window_size),
        images=list(request.images),
        temperature=temperature,
        max_tokens=max_tokens,
    )


def render_chat_messages(payload: PromptPayload) -> list[dict[str, Any]]:
    """Role-tagged message list for chat-completion providers.

    Images ride on the final user turn only.
    """
    messages: list[dict[str, Any]] = [{"role": "system", "content": payload.system_prompt}]
    messages.extend({"role": turn.role, "content": turn.content} for turn in payload.context)

    if payload.images:
        user_content: Any = [
            {"type": "text", "text": payload.user_prompt},
            *({"type": "image_url", "image_url": {"url": image.url}} for image in payload.images),
        ]
    else:
        user_content = payload.user_prompt
    messages.append({"role": "user", "content": user_content})
    return messages


def render_prompt_text(payload: PromptPayload) -> str:
    """Single concatenated prompt for prompt-completion providers."""
    if payload.images:
        logger.debug("Dropping %d image(s) for a text-only prompt", len(payload.images))
    context = "\n".join(f"{turn.role}: {turn.content}" for turn in payload.context)
    return f"{payload.system_prompt}\n\nContext: {context}\n\nUser Request: {payload.user_prompt}"
