"""Prometheus instant-query response shape."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Sample(BaseModel):
    """One series of an instant vector: labels plus [epoch, "value"]."""

    metric: dict[str, str] = Field(default_factory=dict)
    value: list[Any] = Field(default_factory=list)


class QueryData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    result_type: str = Field(default="", alias="resultType")
    result: list[Sample] = Field(default_factory=list)


class QueryResult(BaseModel):
    status: str
    data: QueryData = Field(default_factory=QueryData)
    error_type: str | None = Field(default=None, alias="errorType")
    error: str | None = None

    model_config = ConfigDict(populate_by_name=True)
