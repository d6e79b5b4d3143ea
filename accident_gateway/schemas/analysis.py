from enum import Enum

from pydantic import BaseModel


class Severity(str, Enum):
    LIGHT = "light"
    MODERATE = "moderate"
    SEVERE = "severe"


INDETERMINATE_SEVERITY = "cannot be determined"

VALID_SEVERITIES = {s.value for s in Severity} | {INDETERMINATE_SEVERITY}


class RepairStatus(str, Enum):
    NEEDS_REPAIR = "needs repair"
    NEEDS_REPLACEMENT = "needs replacement"
    NEEDS_INSPECTION = "needs further inspection"


class FixingItem(BaseModel):
    tool: str | None = None
    detail: str | None = None
    status: str | None = None

    model_config = {"extra": "allow"}


class AccidentReport(BaseModel):
    """Shape of a successful analysis.

    The model's JSON is relayed untouched, so every field except ``severity``
    is optional and unknown keys are kept.
    """

    severity: str
    models: str | None = None
    description: str | None = None
    recommendations: str | None = None
    price: str | int | float | None = None
    fixinglist: list[FixingItem] | None = None
    raw_response: str | None = None
    error: str | None = None

    model_config = {"extra": "allow"}


class ErrorReport(BaseModel):
    error: str
    filename: str | None = None


class HealthResponse(BaseModel):
    status: str
    message: str
