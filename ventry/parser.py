"""Extract a day-indexed task timeline from LLM plan text.

The parser tries an ordered chain of strategies and keeps the first one that
yields at least one task:

1. the fenced ``json`` block carrying ``goalSummary``/``dailyTasks``;
2. ``Day N: title`` lines inside the timeline section of the markdown;
3. ``Week N: theme`` blocks expanded into one task per day.

Nothing here raises for malformed text. An input without any recognisable
markers simply produces an empty task list.
"""

from __future__ import annotations

import itertools
import json
import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from .schemas import DailyTaskEntry, GoalSummary, ParsedPlan, Task, TaskCategory, TaskPriority

logger = logging.getLogger(__name__)


JSON_BLOCK_RE = re.compile(r"```json\s*([\s\S]*?)```", re.IGNORECASE)
# URLs ("https://...") keep their double slash.
LINE_COMMENT_RE = re.compile(r"(?<!:)//.*$", re.MULTILINE)
TRAILING_COMMA_RE = re.compile(r",(\s*[\]}])")

HEADING_RE = re.compile(r"^\s*(?:#{1,6}\s+\S.*|\*\*[^*]+\*\*:?)\s*$")
# Only markdown "#" headings open or close the timeline section.
SECTION_HEADING_RE = re.compile(r"^\s*#{1,6}\s+\S")
DAY_LINE_RE = re.compile(
    r"^[\s#>*+-]*(?:\*\*)?\s*day\s+(\d{1,6})\s*(?:\*\*)?\s*[:\-–—]\s*(?:\*\*)?\s*(.+?)\s*$",
    re.IGNORECASE,
)
WEEK_LINE_RE = re.compile(
    r"^[\s#>*+-]*(?:\*\*)?\s*week\s+(\d{1,6})\s*(?:\*\*)?\s*[:\-–—]\s*(?:\*\*)?\s*(.+?)\s*$",
    re.IGNORECASE,
)
WEEK_MARKER_RE = re.compile(r"^[\s#>*+-]*(?:\*\*)?\s*week\s+(\d{1,6})\b", re.IGNORECASE)
BULLET_RE = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+")

TIMELINE_HEADING_KEYWORDS = ("roadmap", "timeline", "detailed action plan", "day-by-day", "30-day")

CATEGORY_KEYWORDS: Tuple[Tuple[TaskCategory, Tuple[str, ...]], ...] = (
    (TaskCategory.MARKETING, ("market", "promotion")),
    (TaskCategory.FINANCE, ("financ", "budget", "cost")),
    (TaskCategory.PRODUCT, ("product", "develop", "design")),
    (TaskCategory.OPERATIONS, ("operat", "process")),
)

WEEK_BLOCK_HORIZON_DAYS = 30
DAYS_PER_WEEK = 7
TASK_ID_PREFIX = "task"


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def week_for_day(day: int) -> int:
    """Return the 1-based week that contains *day*."""

    return -(-day // DAYS_PER_WEEK)


def infer_category(title: str) -> Optional[TaskCategory]:
    """Return the category whose keywords appear in *title*, if any."""

    lowered = title.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return None


def _normalize_category(label: Optional[str], title: str) -> str:
    """Explicit labels win; otherwise infer from the title, falling back to General."""

    if label:
        for category in TaskCategory:
            if category.value.lower() == label.lower():
                return category.value
        return label
    inferred = infer_category(title)
    return inferred.value if inferred else TaskCategory.GENERAL.value


def _normalize_priority(label: Optional[str]) -> str:
    if label:
        for priority in TaskPriority:
            if priority.value.lower() == label.lower():
                return priority.value
    return TaskPriority.MEDIUM.value


def _strip_markup(text: str) -> str:
    """Drop bold markers and surrounding whitespace from a captured title."""

    return text.replace("**", "").strip()


def _is_heading(line: str) -> bool:
    return bool(HEADING_RE.match(line))


def _is_section_heading(line: str) -> bool:
    return bool(SECTION_HEADING_RE.match(line))


@dataclass
class ParseContext:
    """Per-call state: the id counter and the goal summary captured by the JSON stage."""

    counter: Iterator[int] = field(default_factory=itertools.count)
    goal_summary: Optional[GoalSummary] = None

    def next_id(self, day: int) -> str:
        return f"{TASK_ID_PREFIX}-{day}-{next(self.counter)}-{uuid.uuid4().hex[:6]}"

    def make_task(
        self,
        *,
        day: int,
        title: str,
        description: str,
        category: str,
        priority: Optional[str] = None,
    ) -> Task:
        return Task(
            id=self.next_id(day),
            title=title,
            description=description,
            day=day,
            week=week_for_day(day),
            category=category,
            priority=priority,
            completed=False,
        )


StrategyFn = Callable[[str, ParseContext], Optional[List[Task]]]


@dataclass(frozen=True)
class ParseStrategy:
    """A named step of the fallback chain."""

    name: str
    run: StrategyFn


# ---------------------------------------------------------------------------
# Stage 1: embedded JSON block
# ---------------------------------------------------------------------------


def extract_json_block(plan_text: str) -> Optional[str]:
    """Return the body of the first fenced ``json`` block, if present."""

    match = JSON_BLOCK_RE.search(plan_text)
    return match.group(1) if match else None


def clean_json_text(raw: str) -> str:
    """Remove ``//`` comments and trailing commas that LLMs tend to emit."""

    without_comments = LINE_COMMENT_RE.sub("", raw)
    return TRAILING_COMMA_RE.sub(r"\1", without_comments)


def _parse_goal_summary(raw: Any) -> Optional[GoalSummary]:
    if not isinstance(raw, dict):
        return None
    try:
        summary = GoalSummary.model_validate(raw)
    except ValidationError:
        logger.debug("Ignoring malformed goalSummary: %r", raw)
        return None
    return None if summary.is_empty else summary


def _tasks_from_json(plan_text: str, context: ParseContext) -> Optional[List[Task]]:
    block = extract_json_block(plan_text)
    if block is None:
        return None

    try:
        payload = json.loads(clean_json_text(block))
    except ValueError as exc:
        logger.warning("Failed to parse JSON task block: %s", exc)
        return None
    if not isinstance(payload, dict):
        logger.debug("JSON task block is a %s, expected an object", type(payload).__name__)
        return None

    if "goalSummary" in payload:
        context.goal_summary = _parse_goal_summary(payload["goalSummary"])

    entries = payload.get("dailyTasks")
    if not isinstance(entries, list):
        return None

    tasks: List[Task] = []
    for index, raw_entry in enumerate(entries):
        if not isinstance(raw_entry, dict):
            logger.debug("Skipping dailyTasks[%d]: not an object", index)
            continue
        try:
            entry = DailyTaskEntry.model_validate(raw_entry)
        except ValidationError as exc:
            logger.debug("Skipping dailyTasks[%d]: %s", index, exc.errors()[0]["msg"])
            continue
        tasks.append(
            context.make_task(
                day=entry.day,
                title=entry.title,
                description=entry.description,
                category=_normalize_category(entry.category, entry.title),
                priority=_normalize_priority(entry.priority),
            )
        )
    return tasks


# ---------------------------------------------------------------------------
# Stage 2: "Day N: title" lines
# ---------------------------------------------------------------------------


def _is_timeline_heading(line: str) -> bool:
    lowered = line.lower()
    return any(keyword in lowered for keyword in TIMELINE_HEADING_KEYWORDS)


def _description_after(lines: Sequence[str], index: int) -> str:
    """Return the line following *index* unless it starts something new."""

    if index + 1 >= len(lines):
        return ""
    candidate = lines[index + 1]
    if DAY_LINE_RE.match(candidate) or WEEK_MARKER_RE.match(candidate) or _is_heading(candidate):
        return ""
    return BULLET_RE.sub("", candidate).strip()


def _tasks_from_day_lines(plan_text: str, context: ParseContext) -> Optional[List[Task]]:
    lines = plan_text.splitlines()
    has_timeline_heading = any(_is_section_heading(line) and _is_timeline_heading(line) for line in lines)
    in_section = not has_timeline_heading

    tasks: List[Task] = []
    current_week = 0
    category = TaskCategory.GENERAL.value

    for index, line in enumerate(lines):
        day_match = DAY_LINE_RE.match(line)
        week_match = None if day_match else WEEK_MARKER_RE.match(line)

        if has_timeline_heading and not day_match and not week_match and _is_section_heading(line):
            in_section = _is_timeline_heading(line)
            continue
        if not in_section:
            continue

        if week_match:
            current_week = int(week_match.group(1))
            continue
        if not day_match:
            continue

        day = int(day_match.group(1))
        title = _strip_markup(day_match.group(2))
        if day < 1 or not title:
            continue
        if current_week and week_for_day(day) != current_week:
            logger.debug("Day %d listed under a week %d heading", day, current_week)

        inferred = infer_category(title)
        if inferred is not None:
            category = inferred.value

        tasks.append(
            context.make_task(
                day=day,
                title=title,
                description=_description_after(lines, index),
                category=category,
            )
        )
    return tasks


# ---------------------------------------------------------------------------
# Stage 3: "Week N: theme" blocks
# ---------------------------------------------------------------------------


@dataclass
class _WeekBlock:
    number: int
    title: str
    lines: List[str] = field(default_factory=list)

    @property
    def description(self) -> str:
        return " ".join(self.lines)


def _week_blocks(plan_text: str) -> List[_WeekBlock]:
    blocks: List[_WeekBlock] = []
    current: Optional[_WeekBlock] = None
    for line in plan_text.splitlines():
        match = WEEK_LINE_RE.match(line)
        if match:
            current = _WeekBlock(number=int(match.group(1)), title=_strip_markup(match.group(2)))
            blocks.append(current)
            continue
        if current is None:
            continue
        if _is_heading(line) or WEEK_MARKER_RE.match(line):
            current = None
            continue
        text = BULLET_RE.sub("", line).strip()
        if text:
            current.lines.append(text)
    return blocks


def _tasks_from_week_blocks(plan_text: str, context: ParseContext) -> Optional[List[Task]]:
    tasks: List[Task] = []
    for block in _week_blocks(plan_text):
        inferred = infer_category(block.title)
        category = inferred.value if inferred else TaskCategory.GENERAL.value
        for offset in range(1, DAYS_PER_WEEK + 1):
            actual_day = (block.number - 1) * DAYS_PER_WEEK + offset
            if actual_day < 1 or actual_day > WEEK_BLOCK_HORIZON_DAYS:
                continue
            tasks.append(
                context.make_task(
                    day=actual_day,
                    title=f"{block.title} - Day {offset}",
                    description=block.description,
                    category=category,
                )
            )
    return tasks


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


STRATEGIES: Tuple[ParseStrategy, ...] = (
    ParseStrategy(name="json", run=_tasks_from_json),
    ParseStrategy(name="day-lines", run=_tasks_from_day_lines),
    ParseStrategy(name="week-blocks", run=_tasks_from_week_blocks),
)


def parse_plan(plan_text: str) -> ParsedPlan:
    """Parse LLM plan text into tasks sorted by day plus an optional goal summary."""

    if not isinstance(plan_text, str):
        raise TypeError(f"plan_text must be a string, got {type(plan_text).__name__}")

    context = ParseContext()
    for strategy in STRATEGIES:
        tasks = strategy.run(plan_text, context)
        if tasks:
            logger.debug("Parsed %d tasks using the %s strategy", len(tasks), strategy.name)
            return ParsedPlan(
                tasks=sorted(tasks, key=lambda task: task.day),
                goal_summary=context.goal_summary,
            )

    logger.debug("No timeline markers found in plan text")
    return ParsedPlan(tasks=[], goal_summary=None)
