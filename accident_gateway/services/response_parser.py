"""Pull a JSON report out of the model's free-form reply."""
import json
import logging
from collections.abc import Iterator

from accident_gateway.schemas.analysis import INDETERMINATE_SEVERITY, VALID_SEVERITIES

logger = logging.getLogger(__name__)

FALLBACK_DESCRIPTION = "Analysis unclear"
FALLBACK_RECOMMENDATIONS = "Recommend inspection by an expert"


def fallback_report(raw_response: str | None = None, error: str | None = None) -> dict:
    report = {
        "severity": INDETERMINATE_SEVERITY,
        "description": FALLBACK_DESCRIPTION,
        "recommendations": FALLBACK_RECOMMENDATIONS,
    }
    if error is not None:
        report["error"] = error
    else:
        report["raw_response"] = raw_response or ""
    return report


def _strip_code_fences(text: str) -> str:
    if text.startswith("```"):
        lines = text.split("\n")
        lines = [l for l in lines if not l.strip().startswith("```")]
        text = "\n".join(lines)
    return text


def iter_brace_spans(text: str) -> Iterator[str]:
    """Yield each top-level balanced ``{...}`` substring, in order.

    Braces inside double-quoted strings do not count towards the depth.
    """
    depth = 0
    start = -1
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"' and depth > 0:
            in_string = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                yield text[start:i + 1]


def extract_report(raw_text: str | None) -> dict:
    """Return the first JSON object found in ``raw_text`` or a fallback report."""
    text = _strip_code_fences((raw_text or "").strip())

    try:
        parsed = json.loads(text)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict):
        _check_severity(parsed)
        return parsed

    last_error: str | None = None
    for span in iter_brace_spans(text):
        try:
            parsed = json.loads(span)
        except ValueError as e:
            last_error = str(e)
            continue
        if isinstance(parsed, dict):
            _check_severity(parsed)
            return parsed

    if last_error is not None:
        logger.warning("Model reply contained no valid JSON object: %s", last_error)
        return fallback_report(error=last_error)

    logger.warning("Model reply contained no JSON object (%d chars)", len(raw_text or ""))
    return fallback_report(raw_response=raw_text)


def _check_severity(report: dict) -> None:
    severity = report.get("severity")
    if not isinstance(severity, str) or severity not in VALID_SEVERITIES:
        logger.warning("Model returned unexpected severity %r", severity)
