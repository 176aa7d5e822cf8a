"""
dreamer_watch.orchestrator.schemas

Structured outputs requested from the model at each workflow step.

Field names follow the UI contract (camelCase for the inquiry form).
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class NextAction(BaseModel):
    """Decide whether to research now or ask the user a clarifying question."""

    next: Literal["inquire", "proceed"] = Field(description="The next action to take")


class InquiryOption(BaseModel):
    value: str
    label: str


class Inquiry(BaseModel):
    """A clarifying question presented to the user as a form."""

    question: str = Field(description="The inquiry question")
    options: list[InquiryOption] = Field(description="The inquiry options")
    allowsInput: bool = Field(description="Whether the inquiry allows for input")
    inputLabel: str | None = Field(default=None, description="The label for the input field")
    inputPlaceholder: str | None = Field(
        default=None, description="The placeholder for the input field"
    )


class RelatedItem(BaseModel):
    query: str = Field(description="The query string for the related item")


class Related(BaseModel):
    """Three follow-up queries that explore the subject further."""

    items: list[RelatedItem] = Field(
        min_length=3,
        max_length=3,
        description="An array of 3 related items, each with a query string",
    )
