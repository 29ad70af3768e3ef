"""Turn free-form model output into a ``ComponentResult``.

Parsing never raises. Structured JSON wins when it can be found, otherwise
code fences are salvaged, and as a last resort the raw text becomes the
explanation of an empty component.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from app.schemas.component import ComponentCodeCheck
from app.schemas.generation import ComponentResult, ParseProvenance, RawModelResponse, TokenUsage

logger = logging.getLogger(__name__)

JSON_FENCE_RE = re.compile(r"```json[ \t]*\r?\n(.*?)\r?\n?```", re.DOTALL | re.IGNORECASE)
CODE_FENCE_RE = re.compile(r"```([\w+#-]*)[^\n]*\r?\n(.*?)\r?\n?```", re.DOTALL)

JSX_FENCE_TAGS = {"jsx", "tsx", "javascript", "js", "typescript", "ts", "react", "html"}
CSS_FENCE_TAGS = {"css", "scss"}

COMPLEXITY_LEVELS = {"simple", "medium", "complex"}
DEFAULT_DEPENDENCIES = ["react"]
DEFAULT_CATEGORY = "other"
DEFAULT_COMPLEXITY = "simple"
DEFAULT_EXPLANATION = "Component generated successfully"
DEGRADED_EXPLANATION = "Component generated successfully (with parsing fallback)"


@dataclass(frozen=True)
class Structured:
    result: ComponentResult


@dataclass(frozen=True)
class Degraded:
    result: ComponentResult


@dataclass(frozen=True)
class Unparseable:
    raw_text: str
    reason: str


ParseOutcome = Structured | Degraded | Unparseable


def find_balanced_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` span, ignoring braces inside strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        start = text.find("{", start + 1)
    return None


def _load_object(candidate: str | None) -> dict[str, Any] | None:
    if not candidate:
        return None
    try:
        loaded = json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        return None
    return loaded if isinstance(loaded, dict) else None


def _extract_json_object(text: str) -> dict[str, Any] | None:
    fence = JSON_FENCE_RE.search(text)
    if fence:
        loaded = _load_object(fence.group(1).strip())
        if loaded is not None:
            return loaded

    loaded = _load_object(find_balanced_object(text))
    if loaded is not None:
        return loaded

    return _load_object(text.strip())


def _text(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _coerce_result(data: dict[str, Any]) -> ComponentResult:
    props = data.get("props")
    dependencies = data.get("dependencies")
    if isinstance(dependencies, list):
        dependencies = [dep for dep in dependencies if isinstance(dep, str)]
    features = data.get("features")
    complexity = _text(data.get("complexity")).lower()

    return ComponentResult(
        component_name=_text(data.get("componentName") or data.get("component_name"), "GeneratedComponent"),
        explanation=_text(data.get("explanation"), DEFAULT_EXPLANATION) or DEFAULT_EXPLANATION,
        jsx=_text(data.get("jsx")),
        css=_text(data.get("css")),
        props=props if isinstance(props, dict) else {},
        dependencies=dependencies or list(DEFAULT_DEPENDENCIES),
        category=_text(data.get("category"), DEFAULT_CATEGORY) or DEFAULT_CATEGORY,
        complexity=complexity if complexity in COMPLEXITY_LEVELS else DEFAULT_COMPLEXITY,
        features=[f for f in features if isinstance(f, str)] if isinstance(features, list) else [],
        usage=data.get("usage") if isinstance(data.get("usage"), str) else None,
        provenance=ParseProvenance.STRUCTURED,
    )


def _extract_fences(text: str) -> ComponentResult | None:
    jsx: str | None = None
    untagged: str | None = None
    css: str | None = None

    for match in CODE_FENCE_RE.finditer(text):
        tag = match.group(1).lower()
        body = match.group(2)
        if tag in JSX_FENCE_TAGS and jsx is None:
            jsx = body
        elif tag in CSS_FENCE_TAGS and css is None:
            css = body
        elif not tag and untagged is None:
            untagged = body

    if jsx is None:
        jsx = untagged
    if jsx is None and css is None:
        return None

    return ComponentResult(
        explanation=DEGRADED_EXPLANATION,
        jsx=jsx or "",
        css=css or "",
        provenance=ParseProvenance.DEGRADED,
    )


def classify_response(text: str) -> ParseOutcome:
    """Decide how much structure can be recovered from ``text``."""
    data = _extract_json_object(text)
    if data is not None:
        if data.get("jsx") or data.get("componentName"):
            return Structured(_coerce_result(data))
        reason = "JSON object has neither jsx nor componentName"
    else:
        reason = "no JSON object found"

    salvaged = _extract_fences(text)
    if salvaged is not None:
        return Degraded(salvaged)
    return Unparseable(raw_text=text, reason=reason)


def resolve_outcome(outcome: ParseOutcome) -> ComponentResult:
    """Collapse a parse outcome into a well-formed result."""
    if isinstance(outcome, (Structured, Degraded)):
        return outcome.result
    return ComponentResult(
        explanation=outcome.raw_text.strip() or DEGRADED_EXPLANATION,
        provenance=ParseProvenance.UNPARSEABLE,
    )


def parse_response(raw: RawModelResponse | str, provider: str | None = None) -> ComponentResult:
    """Parse a provider response into a ``ComponentResult``. Never raises."""
    if isinstance(raw, RawModelResponse):
        text = raw.text or ""
        usage: TokenUsage | None = raw.usage
        provider = provider or raw.provider
    else:
        text = raw or ""
        usage = None

    try:
        outcome = classify_response(text)
    except Exception as e:
        logger.exception(f"Unexpected error while parsing {provider} response: {str(e)}")
        outcome = Unparseable(raw_text=text, reason=str(e))

    if isinstance(outcome, Degraded):
        logger.warning(f"Structured parse of {provider} response failed, salvaged code fences")
    elif isinstance(outcome, Unparseable):
        logger.warning(f"Could not parse {provider} response ({outcome.reason}): {text[:200]!r}")

    result = resolve_outcome(outcome)
    return result.model_copy(update={"tokens": usage})


def validate_component_code(jsx: str) -> ComponentCodeCheck:
    """Cheap structural checks on generated JSX."""
    checks = {
        "has_export": "export" in jsx,
        "has_function": "function" in jsx or "const" in jsx or "=>" in jsx,
        "has_return": "return" in jsx,
        "has_jsx": "<" in jsx and ">" in jsx,
        "is_valid": True,
        "error": None,
    }

    if jsx.count("{") != jsx.count("}") or jsx.count("(") != jsx.count(")"):
        checks["is_valid"] = False
        checks["error"] = "Mismatched braces or parentheses"

    return ComponentCodeCheck(**checks)
