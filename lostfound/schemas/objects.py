"""Object Schemas - Pydantic models with field-level validation for API boundaries.

Invariants:
    - ObjectCreate/SearchRequest require >= 1 field, names and values stripped, non-empty
    - ObjectUpdate requires at least one changed attribute
    - ObjectResponse never carries score unless it came from a search

Design Decisions:
    - field_validator for side-effect-free transforms (strip): keeps models pure
"""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from lostfound.core.found_object import FoundObject, ObjectField, SearchFilter


class FieldIn(BaseModel):
    """One {name, value} characteristic."""
    name: str = Field(min_length=1, max_length=100)
    value: str = Field(min_length=1, max_length=500)

    @field_validator("name", "value")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v

    def to_domain(self) -> ObjectField:
        return ObjectField(name=self.name, value=self.value)


class ObjectCreate(BaseModel):
    """Object registration payload (institutions only)."""
    category: str = Field(min_length=1, max_length=100)
    type: str = Field(min_length=1, max_length=100)
    found_date: date
    fields: list[FieldIn] = Field(min_length=1)

    @field_validator("category", "type")
    @classmethod
    def strip_classification(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v


class SearchRequest(ObjectCreate):
    """Applicant search: same shape as a registration, found_date is a lower bound."""

    def to_filter(self) -> SearchFilter:
        return SearchFilter(
            category=self.category,
            type=self.type,
            found_date=self.found_date,
            probes=tuple(f.to_domain() for f in self.fields),
        )


class ObjectUpdate(BaseModel):
    """Partial update of classification, found date or fields."""
    category: str | None = Field(None, min_length=1, max_length=100)
    type: str | None = Field(None, min_length=1, max_length=100)
    found_date: date | None = None
    fields: list[FieldIn] | None = Field(None, min_length=1)

    @field_validator("category", "type")
    @classmethod
    def strip_classification(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v

    @model_validator(mode="after")
    def require_change(self):
        if not self.model_fields_set:
            raise ValueError("update requires at least one field")
        return self

    def to_patch(self) -> dict:
        patch = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None:
                continue
            if name == "fields":
                value = [f.to_domain() for f in value]
            patch[name] = value
        return patch


class DevolutionCodeBody(BaseModel):
    """Body for devolve and cancel."""
    devolution_code: str = Field(min_length=1, max_length=16)

    @field_validator("devolution_code")
    @classmethod
    def strip_code(cls, v: str) -> str:
        return v.strip()


class FieldOut(BaseModel):
    name: str
    value: str


class ObjectResponse(BaseModel):
    """Public representation of a found object."""
    id: str
    category: str
    type: str
    found_date: date
    fields: list[FieldOut]
    institution: str | None = None
    applicant: str | None = None
    devolution_code: str | None = None
    solicited_at: datetime | None = None
    devolved_at: datetime | None = None
    status: int
    score: float | None = None

    @classmethod
    def from_domain(cls, obj: FoundObject) -> "ObjectResponse":
        return cls(
            id=obj.id,
            category=obj.category,
            type=obj.type,
            found_date=obj.found_date,
            fields=[FieldOut(name=f.name, value=f.value) for f in obj.fields],
            institution=obj.institution,
            applicant=obj.applicant,
            devolution_code=obj.devolution_code,
            solicited_at=obj.solicited_at,
            devolved_at=obj.devolved_at,
            status=int(obj.status),
            score=obj.score,
        )


class SolicitResponse(BaseModel):
    devolution_code: str


class MessageResponse(BaseModel):
    message: str
