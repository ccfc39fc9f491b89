from datetime import datetime
from typing import Any, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator

from isoseg.services.label_selector import LabelSelectorRequirement, parse_label_selector

ORDERABLE_FIELDS = ("created_at", "updated_at", "name")
LIST_FIELDS = ("guids", "names", "organization_guids", "created_ats", "updated_ats")


class TimestampRange(BaseModel):
    """Relational bounds on a timestamp column; unset bounds do not restrict."""
    lt: Optional[datetime] = None
    lte: Optional[datetime] = None
    gt: Optional[datetime] = None
    gte: Optional[datetime] = None

    class Config:
        frozen = True
        extra = "forbid"


TimestampFilter = Union[TimestampRange, Tuple[datetime, ...]]


class IsolationSegmentsListMessage(BaseModel):
    """Validated filter, sort and page options for listing isolation segments."""
    guids: Optional[Tuple[str, ...]] = None
    names: Optional[Tuple[str, ...]] = None
    organization_guids: Optional[Tuple[str, ...]] = None
    label_selector: Optional[str] = None
    created_ats: Optional[TimestampFilter] = None
    updated_ats: Optional[TimestampFilter] = None

    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=50, ge=1, le=5000)
    order_by: str = "created_at"

    class Config:
        frozen = True
        extra = "forbid"

    @field_validator("label_selector")
    @classmethod
    def validate_label_selector(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            parse_label_selector(value)
        return value

    @field_validator("order_by")
    @classmethod
    def validate_order_by(cls, value: str) -> str:
        if value.lstrip("-") not in ORDERABLE_FIELDS:
            raise ValueError(f"order_by must be one of: {', '.join(ORDERABLE_FIELDS)}")
        return value

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "IsolationSegmentsListMessage":
        """Build a message from raw query parameters (comma-separated strings allowed)."""
        values = {}
        for key, value in params.items():
            key = str(key)
            if key in LIST_FIELDS and isinstance(value, str):
                value = [v for v in value.split(",") if v]
            values[key] = value
        return cls(**values)

    def requested(self, field: str) -> bool:
        return field in self.model_fields_set

    @property
    def requirements(self) -> List[LabelSelectorRequirement]:
        if self.label_selector is None:
            return []
        return parse_label_selector(self.label_selector)
