"""Plan generation and assistant replies: LLM text when available, heuristic drafts otherwise."""

from __future__ import annotations

import json
import logging
import math
import re
import uuid
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .config import Settings, get_settings
from .llm import DEFAULT_TIMEFRAME, generate_consult_reply, generate_plan_text
from .parser import infer_category, parse_plan, week_for_day
from .schemas import (
    AssistantMode,
    ConsultRequest,
    ConsultResponse,
    GeneratePlanRequest,
    PlanRecord,
    PlanSource,
    PlanType,
    TaskCategory,
    TaskPriority,
)
from .titles import derive_title

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Draft building blocks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WeekTheme:
    """A weekly focus area and the task templates drafted under it."""

    title: str
    category: TaskCategory
    objectives: Tuple[str, ...]
    tasks: Tuple[Tuple[str, str], ...]


WEEK_THEMES: Tuple[WeekTheme, ...] = (
    WeekTheme(
        title="Foundation & Product Design",
        category=TaskCategory.PRODUCT,
        objectives=(
            "Lock the core {focus} offer and pricing.",
            "Map the first customer journey end to end.",
        ),
        tasks=(
            ("Define the core {focus} offer", "Write a one-page brief for the {business} offer covering audience, price point and the single problem it solves."),
            ("Interview five target customers", "Book five short calls with likely {business} customers and record their top frustrations around {focus}."),
            ("Design the first customer journey", "Sketch every touchpoint from discovery to repeat purchase and mark the two weakest steps."),
            ("Develop a minimum viable product", "Build the smallest version of the {focus} offer that a paying customer could use this week."),
            ("Review competitor product lines", "List three nearby competitors, their prices and what customers praise or criticise in reviews."),
            ("Refine the product based on feedback", "Apply the interview notes to the offer and cut any feature nobody asked for."),
            ("Plan next week's priorities", "Review progress against the goals, note blockers and pick the three most important tasks for next week."),
        ),
    ),
    WeekTheme(
        title="Marketing Launch & Promotion",
        category=TaskCategory.MARKETING,
        objectives=(
            "Reach the first hundred prospects.",
            "Measure which channel brings the cheapest leads.",
        ),
        tasks=(
            ("Set up marketing channels", "Create or tidy the {business} website, social profiles and listing pages so they all point to one offer."),
            ("Write launch promotion copy", "Draft a launch message that leads with the {focus} benefit and a clear call to action."),
            ("Launch a small ad campaign", "Run a capped test budget on one paid channel aimed at the local {business} audience."),
            ("Start an email marketing list", "Add a sign-up incentive on every channel and send a welcome note to the first subscribers."),
            ("Partner with a local business for promotion", "Offer a cross-promotion to one complementary business that serves the same customers."),
            ("Collect and publish testimonials", "Ask the first customers for a short quote and feature the best two on the website."),
            ("Review marketing results", "Compare cost per lead by channel and move next week's budget to the best performer."),
        ),
    ),
    WeekTheme(
        title="Budget & Cost Control",
        category=TaskCategory.FINANCE,
        objectives=(
            "Know the monthly break-even point.",
            "Cut at least one unnecessary recurring cost.",
        ),
        tasks=(
            ("Build a monthly budget", "List every fixed and variable cost for the {business} and set a spending cap per category."),
            ("Calculate the break-even point", "Work out how many {focus} sales per month cover all costs at the current price."),
            ("Audit supplier costs", "Request updated quotes from current suppliers and one alternative for the two largest expenses."),
            ("Set up simple financial tracking", "Connect the bank account to bookkeeping software and categorise the last 30 days of transactions."),
            ("Review pricing against costs", "Check the margin on each offer and adjust any price that sits below target margin."),
            ("Plan a cash reserve", "Decide on a reserve target and schedule a weekly transfer toward it."),
            ("Review the financial week", "Compare actual spend to budget and note any variance above ten percent."),
        ),
    ),
    WeekTheme(
        title="Operations & Process Tuning",
        category=TaskCategory.OPERATIONS,
        objectives=(
            "Document the repeatable daily workflow.",
            "Remove the biggest bottleneck in fulfilment.",
        ),
        tasks=(
            ("Document the daily operating process", "Write a checklist for opening, serving customers and closing so anyone can follow it."),
            ("Streamline order fulfilment", "Time each step of delivering the {focus} offer and remove or merge the slowest one."),
            ("Set up customer support routines", "Create saved replies for the five most common questions and a same-day response rule."),
            ("Automate a repetitive operation", "Pick one manual task such as invoicing or scheduling and automate it with an existing tool."),
            ("Train help on the new processes", "Walk a staff member or contractor through the checklists and collect their suggestions."),
            ("Measure operational performance", "Track orders handled, average handling time and complaints for the week."),
            ("Plan the next growth cycle", "Summarise the month's results against the goals and choose the focus for the next cycle."),
        ),
    ),
)

STOP_WORDS = {
    "and",
    "the",
    "for",
    "with",
    "that",
    "this",
    "from",
    "into",
    "our",
    "your",
    "their",
    "about",
    "want",
    "more",
    "business",
    "increase",
    "grow",
    "growth",
    "month",
    "months",
    "year",
    "customers",
}

HORIZON_DAYS: Dict[str, int] = {
    "weekly": 7,
    "monthly": 30,
    "quarterly": 90,
}


def _extract_keywords(*texts: str, max_terms: int = 3) -> List[str]:
    """Extract the top keywords from the provided text fragments."""

    joined = " ".join(part for part in texts if part)
    words = re.findall(r"[a-zA-Z][a-zA-Z0-9-]+", joined.lower())
    counts: Counter[str] = Counter(word for word in words if word not in STOP_WORDS and len(word) > 2)
    most_common = [word for word, _ in counts.most_common(max_terms)]
    return most_common or ["customer"]


def _titleize(word: str) -> str:
    """Return a simple title-case transformation."""

    return word.replace("-", " ").title()


def _horizon_days(timeframe: str | None) -> int:
    return HORIZON_DAYS.get((timeframe or DEFAULT_TIMEFRAME).strip().lower(), HORIZON_DAYS[DEFAULT_TIMEFRAME])


def _difficulty(goals: str) -> int:
    """Scale difficulty with how much the goals ask for."""

    word_count = len(re.findall(r"[a-zA-Z]+", goals))
    return min(9, max(3, int(math.ceil(word_count / 6)) + 3))


def _priority_for(day: int) -> str:
    offset = (day - 1) % 7
    if offset == 0:
        return TaskPriority.HIGH.value
    if offset == 6:
        return TaskPriority.LOW.value
    return TaskPriority.MEDIUM.value


def _draft_daily_tasks(business: str, focus: str, days: int) -> List[Dict[str, object]]:
    entries: List[Dict[str, object]] = []
    for day in range(1, days + 1):
        theme = WEEK_THEMES[(week_for_day(day) - 1) % len(WEEK_THEMES)]
        title, description = theme.tasks[(day - 1) % len(theme.tasks)]
        entries.append(
            {
                "day": day,
                "title": title.format(focus=focus, business=business),
                "description": description.format(focus=focus, business=business),
                "category": theme.category.value,
                "priority": _priority_for(day),
            }
        )
    return entries


def _bullet_list(items: List[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def draft_plan_text(request: GeneratePlanRequest) -> str:
    """Compose a plan in the same markdown+JSON shape the LLM is asked for."""

    business = request.business_type.strip()
    goals = request.goals.strip()
    keywords = _extract_keywords(goals, business)
    focus = _titleize(keywords[0])
    days = _horizon_days(request.timeframe)
    difficulty = _difficulty(goals)
    months = max(1, math.ceil(difficulty / 2))
    location = f" in {request.location.strip()}" if request.location and request.location.strip() else ""

    heading = "DAILY ACTION PLAN" if request.plan_type is PlanType.DAILY else "STRATEGIC PLAN"
    rephrased = f"Grow the {business}{location} by focusing on {focus.lower()}: {goals.rstrip('.')}."

    week_sections = []
    for week in range(1, min(week_for_day(days), len(WEEK_THEMES)) + 1):
        theme = WEEK_THEMES[week - 1]
        objectives = [objective.format(focus=focus.lower()) for objective in theme.objectives]
        week_sections.append(f"### Week {week}: {theme.title}\n{_bullet_list(objectives)}")

    payload = {
        "goalSummary": {
            "rephrased": rephrased,
            "difficulty": difficulty,
            "timeEstimate": months,
            "timeUnit": "months",
        },
        "dailyTasks": _draft_daily_tasks(business, focus.lower(), days),
    }

    sections = [
        f"# {business.upper()} BUSINESS: {heading}",
        "## EXECUTIVE SUMMARY\n"
        + _bullet_list(
            [
                f"A {days}-day plan for a {business}{location} built around {', '.join(_titleize(k) for k in keywords)}.",
                f"Core goal: {goals}",
            ]
        ),
        "## GOAL ANALYSIS\n"
        + _bullet_list(
            [
                f"Rephrased Goal: {rephrased}",
                f"Difficulty Rating: {difficulty}",
                f"Estimated Timeline: {months} months",
                "Success Factors: consistent weekly reviews, a clear offer, tight cost control",
            ]
        ),
        "## ACTION PLAN (WEEK BY WEEK)\n\n" + "\n\n".join(week_sections),
        "## DAY-BY-DAY IMPLEMENTATION PLAN\n\n```json\n" + json.dumps(payload, indent=2) + "\n```",
    ]
    return "\n\n".join(sections) + "\n"


def draft_consult_reply(request: ConsultRequest) -> str:
    """Answer with the week theme that best matches the question."""

    context = (request.business_context or "").strip()
    location = (request.business_location or "").strip() or "your location"
    category = infer_category(request.prompt) or infer_category(context)
    theme = next((theme for theme in WEEK_THEMES if theme.category is category), WEEK_THEMES[0])
    focus = _extract_keywords(context)[0].replace("-", " ")
    business = context or "business"

    opening = f"I've analyzed your business in {location} and have some recommendations based on our conversation."
    if request.type is AssistantMode.BUSINESS_PLAN:
        opening += " Generate a full plan to turn them into a day-by-day timeline."
    steps = [title.format(focus=focus, business=business) for title, _ in theme.tasks[:3]]
    return "\n\n".join([opening, f"Focus area: {theme.title}", _bullet_list(steps)])


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def generate_plan(request: GeneratePlanRequest, settings: Settings | None = None) -> PlanRecord:
    """Produce plan text, parse its timeline and derive a title."""

    settings = settings or get_settings()
    plan_text = generate_plan_text(request, settings)
    source = PlanSource.LLM
    if plan_text is None:
        logger.info("Drafting %s plan for %r without the LLM", request.plan_type.value, request.business_type)
        plan_text = draft_plan_text(request)
        source = PlanSource.DRAFT

    parsed = parse_plan(plan_text)
    if not parsed.tasks:
        logger.info("Plan for %r produced no timeline tasks", request.business_type)

    return PlanRecord(
        id=uuid.uuid4().hex,
        title=derive_title(plan_text, request.business_type),
        business_type=request.business_type.strip(),
        plan_type=request.plan_type,
        plan=plan_text,
        source=source,
        tasks=parsed.tasks,
        goal_summary=parsed.goal_summary,
    )


def consult(request: ConsultRequest, settings: Settings | None = None) -> ConsultResponse:
    """Answer a business question with the LLM, or with a drafted reply offline."""

    settings = settings or get_settings()
    reply = generate_consult_reply(request, settings)
    if reply is not None:
        return ConsultResponse(response=reply, source=PlanSource.LLM)

    logger.info("Drafting %s reply without the LLM", request.type.value)
    return ConsultResponse(response=draft_consult_reply(request), source=PlanSource.DRAFT)
