"""Parse-and-validate step for submitted readings."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import ValidationError

from sensor_ingest_service.core.exceptions import InvalidPayloadError
from sensor_ingest_service.domain.dto import ReadingSubmissionDTO

REQUIRED_FIELDS = ("device_id", "sensor", "temperature", "humidity")
_NUMERIC_FIELDS = frozenset({"temperature", "humidity"})
# Labels are missing when absent, null or empty. Numeric fields are missing only
# when absent, so a null or zero value goes on to type validation.
_LABEL_FIELDS = frozenset({"device_id", "sensor"})


@dataclass(frozen=True)
class PhysicalRange:
    min_value: float
    max_value: float

    def violates(self, value: float) -> bool:
        return value < self.min_value or value > self.max_value


TEMPERATURE_RANGE = PhysicalRange(-50.0, 100.0)
HUMIDITY_RANGE = PhysicalRange(0.0, 100.0)


def _is_missing(body: Mapping[str, Any], name: str) -> bool:
    if name not in body:
        return True
    value = body[name]
    return name in _LABEL_FIELDS and (value is None or value == "")


def parse_submission(payload: Mapping[str, Any] | None) -> ReadingSubmissionDTO:
    """Validate a raw request body.

    Raises :class:`InvalidPayloadError` for missing fields first, then for
    values that cannot be coerced.
    """
    body: Mapping[str, Any] = payload if payload is not None else {}
    missing = [name for name in REQUIRED_FIELDS if _is_missing(body, name)]
    if missing:
        raise InvalidPayloadError(
            "Missing required fields",
            "Please provide all required fields",
            details={
                "required": list(REQUIRED_FIELDS),
                "missing": missing,
                "received": {name: body.get(name) for name in REQUIRED_FIELDS},
            },
        )

    try:
        return ReadingSubmissionDTO.model_validate(dict(body))
    except ValidationError as exc:
        invalid = {str(err["loc"][0]) for err in exc.errors() if err["loc"]}
        if invalid & _NUMERIC_FIELDS:
            raise InvalidPayloadError(
                "Invalid data types",
                "Temperature and humidity must be valid numbers",
                details={
                    "received": {
                        "temperature": body.get("temperature"),
                        "humidity": body.get("humidity"),
                    }
                },
            ) from exc
        raise InvalidPayloadError(
            "Invalid field values",
            f"Invalid value for: {', '.join(sorted(invalid))}",
            details={"errors": json.loads(exc.json(include_url=False))},
        ) from exc


def out_of_range(submission: ReadingSubmissionDTO) -> bool:
    return TEMPERATURE_RANGE.violates(submission.temperature) or HUMIDITY_RANGE.violates(
        submission.humidity
    )
