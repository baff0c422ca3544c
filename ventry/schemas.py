"""Pydantic models and enums for the Ventry plan timeline API."""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class PlanType(str, Enum):
    """Enumerate the supported plan flavours."""

    STRATEGIC = "strategic"
    DAILY = "daily"


class TaskCategory(str, Enum):
    """Canonical task categories. Categories form an open set; these are the known labels."""

    MARKETING = "Marketing"
    FINANCE = "Finance"
    PRODUCT = "Product"
    OPERATIONS = "Operations"
    GENERAL = "General"


class TaskPriority(str, Enum):
    """Enumerate task priorities."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


# Matches the six-digit cap on "Day N" lines in the parser.
MAX_DAY = 999_999


def coerce_number(value: Any) -> int | float | None:
    """Return a finite number from numeric or numeric-string input, else None."""

    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if isinstance(number, float):
        if not math.isfinite(number):
            return None
        if number.is_integer():
            return int(number)
    return number


def coerce_day(value: Any) -> int | None:
    """Return a day in [1, MAX_DAY], or None when the value cannot be one."""

    number = coerce_number(value)
    if not isinstance(number, int) or not 1 <= number <= MAX_DAY:
        return None
    return number


# ---------------------------------------------------------------------------
# Parser output records
# ---------------------------------------------------------------------------


class Task(CamelModel):
    """A single day-indexed action extracted from a plan."""

    id: str
    title: str
    description: str = ""
    day: int = Field(..., ge=1)
    week: int = Field(..., ge=1)
    category: str = TaskCategory.GENERAL.value
    priority: Optional[str] = None
    completed: bool = False


class GoalSummary(CamelModel):
    """Structured restatement of the business goal plus difficulty/timeline metadata."""

    rephrased: Optional[str] = None
    difficulty: Optional[Union[int, float]] = None
    time_estimate: Optional[Union[int, float]] = None
    time_unit: Optional[str] = None

    @field_validator("difficulty", "time_estimate", mode="before")
    @classmethod
    def _numeric_or_none(cls, value: Any) -> int | float | None:
        return coerce_number(value)

    @field_validator("rephrased", "time_unit", mode="before")
    @classmethod
    def _text_or_none(cls, value: Any) -> str | None:
        if value is None or isinstance(value, (dict, list)):
            return None
        text = str(value).strip()
        return text or None

    @property
    def display_difficulty(self) -> int | float:
        """Difficulty clamped to [1, 10] for display, 5 when unknown."""

        if self.difficulty is None:
            return 5
        return max(1, min(10, self.difficulty))

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.rephrased, self.difficulty, self.time_estimate, self.time_unit)
        )


class ParsedPlan(CamelModel):
    """Result of parsing one plan text."""

    tasks: List[Task] = Field(default_factory=list)
    goal_summary: Optional[GoalSummary] = None


# ---------------------------------------------------------------------------
# Validated intermediate for the embedded JSON block
# ---------------------------------------------------------------------------


class DailyTaskEntry(BaseModel):
    """One ``dailyTasks`` element after validation.

    Entries without a usable ``day`` or ``title`` fail validation and are
    skipped individually by the parser.
    """

    model_config = ConfigDict(extra="ignore")

    day: int
    title: str
    description: str = ""
    category: Optional[str] = None
    priority: Optional[str] = None

    @field_validator("day", mode="before")
    @classmethod
    def _coerce_day(cls, value: Any) -> int:
        day = coerce_day(value)
        if day is None:
            raise ValueError(f"day must be an integer from 1 to {MAX_DAY}, got {value!r}")
        return day

    @field_validator("title", mode="before")
    @classmethod
    def _require_title(cls, value: Any) -> str:
        if value is None or isinstance(value, (dict, list, bool)):
            raise ValueError("title is required")
        title = str(value).strip()
        if not title:
            raise ValueError("title is required")
        return title

    @field_validator("description", mode="before")
    @classmethod
    def _text_description(cls, value: Any) -> str:
        if value is None or isinstance(value, (dict, list)):
            return ""
        return str(value).strip()

    @field_validator("category", "priority", mode="before")
    @classmethod
    def _optional_label(cls, value: Any) -> str | None:
        if value is None or isinstance(value, (dict, list, bool)):
            return None
        label = str(value).strip()
        return label or None


# ---------------------------------------------------------------------------
# API payloads
# ---------------------------------------------------------------------------


class ParsePlanRequest(CamelModel):
    """Payload for parsing an existing plan text."""

    plan_text: str = Field(..., description="Raw plan text returned by the LLM.")
    business_type: Optional[str] = Field(
        default=None,
        description="Optional business type label used to derive a plan title.",
    )


class ParsePlanResponse(CamelModel):
    """Parsed timeline for a plan text."""

    title: Optional[str] = None
    tasks: List[Task]
    goal_summary: Optional[GoalSummary] = None


class GeneratePlanRequest(CamelModel):
    """Payload for generating a new business plan."""

    business_type: str = Field(..., min_length=2, description="Kind of business, e.g. 'Coffee Shop'.")
    goals: str = Field(..., min_length=3, description="Business goals the plan should address.")
    timeframe: Optional[str] = Field(
        default=None,
        description="Planning horizon such as 'monthly' or 'quarterly'.",
    )
    location: Optional[str] = Field(default=None, description="Optional business location.")
    plan_type: PlanType = Field(default=PlanType.STRATEGIC)
    session_id: Optional[str] = Field(
        default=None,
        description="Optional session identifier used to store plans and count generations.",
    )


class PlanSource(str, Enum):
    """Where the plan text came from."""

    LLM = "llm"
    DRAFT = "draft"


class PlanRecord(CamelModel):
    """A generated plan together with its parsed timeline."""

    id: str
    title: str
    business_type: str
    plan_type: PlanType
    plan: str
    source: PlanSource
    tasks: List[Task]
    goal_summary: Optional[GoalSummary] = None


class GeneratePlanResponse(PlanRecord):
    """Generated plan plus the remaining generation allowance."""

    remaining_generations: Optional[int] = None


class TimelineProgress(CamelModel):
    """Completion statistics for a task list."""

    total: int
    completed: int
    percent: int


class SessionPlanResponse(CamelModel):
    """Current plan, history and progress for a session."""

    session_id: str
    current: PlanRecord
    history: List[PlanRecord]
    progress: TimelineProgress


class TaskUpdateRequest(CamelModel):
    """Payload for toggling task completion."""

    completed: bool


class AssistantMode(str, Enum):
    """Persona the assistant answers with."""

    BUSINESS_PLAN = "business-plan"
    CONSULTING = "consulting"


class ConsultRequest(CamelModel):
    """Payload for a one-shot question to the business assistant."""

    prompt: str = Field(..., min_length=1, description="Question or instructions for the assistant.")
    type: AssistantMode = Field(..., description="'business-plan' or 'consulting'.")
    business_context: Optional[str] = Field(
        default=None,
        description="Optional description of the business the question is about.",
    )
    business_location: Optional[str] = Field(default=None, description="Optional business location.")

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("prompt must not be blank")
        return value


class ConsultResponse(CamelModel):
    """Assistant reply and where it came from."""

    response: str
    source: PlanSource
