"""
DAR document schema (Ontario PSW documentation standard).

The models mirror the JSON structure the LLM is prompted to emit. Validation
is strict (no coercion: ``"5"`` is not a number, ``1`` is not a string) and
permissive about unknown keys, so a document the model decorated with extra
fields still validates as long as the required structure is intact.

Optional properties may be left out, but when present they must have the
declared type; an explicit ``null`` is an error. Defaults are not validated,
so ``= None`` only marks a property as absent.

Error messages use the JSON Schema wording the report viewers already know
(``"/DAR/Data must be string"``, ``"(root) must have required property 'adls'"``).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError, field_validator


class _DARModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class DARCore(_DARModel):
    """Data / Action / Response narrative."""

    Data: StrictStr
    Action: StrictStr
    Response: StrictStr


class Nutrition(_DARModel):
    meal: StrictStr
    intake: StrictStr
    items: list[StrictStr] = None


class ADLs(_DARModel):
    """Activities of daily living."""

    personal_care: StrictStr = None
    mobility: StrictStr = None
    nutrition: Nutrition = None
    continence: StrictStr = None
    mood: StrictStr = None
    social: StrictStr = None
    safety_environment: StrictStr = None


class VitalSigns(_DARModel):
    bp: StrictStr = None
    hr: StrictStr = None
    temp: StrictStr = None
    spo2: StrictStr = None


class Medication(_DARModel):
    name: StrictStr
    dose: StrictStr = None
    time: StrictStr = None
    source: StrictStr = None


class Pain(_DARModel):
    scale_0_10: Any = None
    location: StrictStr = None

    @field_validator("scale_0_10")
    @classmethod
    def _number_or_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        raise ValueError("must be number,string")


class Observations(_DARModel):
    vital_signs: VitalSigns = None
    medications: list[Medication] = None
    pain: Pain = None


class FollowUp(_DARModel):
    notify_supervisor_RN: Any = None
    reason: StrictStr = None

    @field_validator("notify_supervisor_RN")
    @classmethod
    def _boolean_or_string(cls, value: Any) -> Any:
        if isinstance(value, (bool, str)):
            return value
        raise ValueError("must be boolean,string")


class DARDocument(_DARModel):
    """Full DAR JSON summary for one shift."""

    client_name: StrictStr
    date_time: StrictStr
    language: StrictStr
    DAR: DARCore
    adls: ADLs
    observations: Observations
    follow_up: FollowUp
    psw_id: StrictStr = None
    errors_or_gaps: list[StrictStr] = None


# pydantic error type -> JSON Schema message
_TYPE_MESSAGES = {
    "string_type": "must be string",
    "list_type": "must be array",
    "model_type": "must be object",
    "model_attributes_type": "must be object",
    "dict_type": "must be object",
}


def _format_location(loc: tuple[Any, ...]) -> str:
    if not loc:
        return "(root)"
    return "/" + "/".join(str(part) for part in loc)


def _format_error(err: dict[str, Any]) -> str:
    loc = tuple(err["loc"])
    kind = err["type"]
    if kind == "missing":
        return f"{_format_location(loc[:-1])} must have required property '{loc[-1]}'"
    if kind == "value_error":
        return f"{_format_location(loc)} {err['ctx']['error']}"
    return f"{_format_location(loc)} {_TYPE_MESSAGES.get(kind, err['msg'])}"


def validate_dar(document: Any) -> list[str]:
    """Validate a DAR document and report every problem found.

    Args:
        document: Parsed JSON (normally a dict) to check.

    Returns:
        list[str]: ``"<path> <message>"`` entries, empty when valid. Missing
        properties are reported against the object that should hold them.
        The document itself is never modified.
    """
    try:
        DARDocument.model_validate(document)
    except ValidationError as exc:
        return [_format_error(err) for err in exc.errors()]
    return []


def is_valid_dar(document: Any) -> bool:
    """Return True when ``document`` satisfies the DAR schema."""
    return not validate_dar(document)
