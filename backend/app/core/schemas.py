"""Shared pydantic base schemas."""

from typing import ClassVar

from pydantic import BaseModel, model_validator


class PartialUpdate(BaseModel):
    """Base for update bodies where omitted fields are left untouched.

    Fields named in ``non_nullable`` back NOT NULL columns: they may be left
    out of the body but not sent as ``null``.
    """

    non_nullable: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "PartialUpdate":
        nulls = sorted(
            name
            for name in self.model_fields_set & self.non_nullable
            if getattr(self, name) is None
        )
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return self
