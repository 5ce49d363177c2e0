"""
src/tools/arguments.py - argument models for the data tools

The model sends camelCase keys (startDate, sortBy, ...). We validate them with
pydantic so a missing or malformed field raises a ValidationError that the
registry feeds back to the model as a tool error.

Usage:
    from tools.arguments import DateRangeArgs
    args = DateRangeArgs.model_validate({"startDate": "2026-01-30", "endDate": "2026-02-05"})
"""


from datetime import date
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field, model_validator


class DateRangeArgs(BaseModel):

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")

    @model_validator(mode="after")
    def _check_order(self) -> "DateRangeArgs":

        if self.start_date > self.end_date:
            raise ValueError(f"startDate {self.start_date} is after endDate {self.end_date}")

        return self

    @property
    def start(self) -> str:

        return self.start_date.isoformat()

    @property
    def end(self) -> str:

        return self.end_date.isoformat()

    def period(self) -> dict:

        return {"start": self.start, "end": self.end}


class TopItemsArgs(DateRangeArgs):

    limit: int = Field(default=5, ge=1)
    sort_by: Literal["revenue", "qty"] = Field(default="revenue", alias="sortBy")
