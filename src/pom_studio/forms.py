from __future__ import annotations
from typing import Dict, List

from pydantic import AnyUrl, BaseModel, Field, ValidationError, field_validator

from pom_studio.models import LocatorType


class LocatorForm(BaseModel):
    name: str = Field(min_length=1)
    type: LocatorType = "id"
    value: str = Field(min_length=1)


class TestDataForm(BaseModel):
    __test__ = False

    key: str = Field(min_length=1)
    value: str = Field(min_length=1)
    scope: str = Field(default="global", min_length=1)


class TestCaseForm(BaseModel):
    __test__ = False

    name: str = Field(min_length=1)
    steps: List[str] = Field(min_length=1)  # catalog keys, one per step

    @field_validator("steps")
    @classmethod
    def _steps_selected(cls, steps: List[str]) -> List[str]:
        if any(not s for s in steps):
            raise ValueError("Please select a method.")
        return steps


class LocatorSuggestionForm(BaseModel):
    url: AnyUrl
    html: str = Field(min_length=10)
    page_source: str = Field(min_length=1)


def field_errors(exc: ValidationError) -> Dict[str, str]:
    """First message per field, keyed by dotted field path."""
    out: Dict[str, str] = {}
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "__root__"
        msg = err.get("msg", "Invalid value")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        out.setdefault(loc, msg)
    return out
