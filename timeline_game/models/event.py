"""
Event model: an undated historical event card.

Built from API/dataset dicts via Event.model_validate(d). The backend speaks
camelCase (``dateOccurred``); the model accepts both spellings.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 4


class Event(BaseModel):
    """
    Card payload used across timeline, hand and pool.

    Immutable once fetched. Uniquely identified by id; numeric backend ids are
    normalized to strings.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    id: str
    title: str
    date_occurred: date = Field(
        validation_alias=AliasChoices("date_occurred", "dateOccurred"),
    )
    category: str = ""
    difficulty: int = Field(default=MIN_DIFFICULTY, ge=MIN_DIFFICULTY, le=MAX_DIFFICULTY)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("date_occurred", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        # Accept full ISO timestamps ("1969-07-20T20:17:00Z") as well as dates.
        if isinstance(value, str) and "T" in value:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        return value

    @property
    def year(self) -> int:
        return self.date_occurred.year

    @property
    def decade(self) -> int:
        return (self.date_occurred.year // 10) * 10


def ensure_events(events: List[Union[Dict[str, Any], "Event"]]) -> List["Event"]:
    """Convert list of dicts or Events to list of Event models."""
    return [
        Event.model_validate(e) if isinstance(e, dict) else e
        for e in events
    ]
