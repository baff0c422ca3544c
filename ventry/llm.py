"""OpenAI-powered plan generation and consultant replies."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from string import Template
from textwrap import dedent
from typing import List

from openai import APIError, OpenAI

from .config import Settings, get_settings
from .schemas import AssistantMode, ConsultRequest, GeneratePlanRequest, PlanType

logger = logging.getLogger(__name__)

DEFAULT_TIMEFRAME = "monthly"

STRATEGIC_SYSTEM_PROMPT = (
    "You are an expert business strategist. Create focused, concise strategic plans that provide "
    "clear direction without overwhelming detail. Task descriptions should be personalized to the "
    "business, highly detailed (1-2 sentences), and include concrete actions that someone could "
    "implement immediately. Use professional formatting with proper spacing between sections, clear "
    "font hierarchy, and minimal jargon. Make honest assessments of goal difficulty and realistic timelines."
)

DAILY_SYSTEM_PROMPT = (
    "You are an expert business operations manager and implementation specialist. Create concise daily "
    "action plans that are practical and immediately actionable. Focus on clear, specific tasks with "
    "measurable outcomes. Task descriptions should be personalized to the business, highly detailed "
    "(1-2 sentences), and include concrete actions that someone could implement immediately. Use simple "
    "language and formatting that is easy to read. Make honest assessments of goal difficulty and "
    "realistic timelines."
)

ASSISTANT_SYSTEM_PROMPTS = {
    AssistantMode.BUSINESS_PLAN: (
        "You are an expert business plan generator. Create detailed, actionable business plans based on user input."
    ),
    AssistantMode.CONSULTING: (
        "You are an expert business consultant. Provide strategic advice and insights based on user input."
    ),
}

# Assistant replies are capped separately from Settings.max_tokens, which sizes plans.
CONSULT_MAX_TOKENS = 1000


@dataclass(frozen=True)
class PromptSpec:
    """Container describing how to call the LLM for a plan."""

    system_prompt: str
    user_prompt: str
    model: str = "gpt-4o"
    temperature: float = 0.7
    max_tokens: int = 4000


ClientCache = tuple[str, OpenAI]
_client_cache: ClientCache | None = None


def _get_client(settings: Settings) -> OpenAI | None:
    """Return a cached OpenAI client when an API key is configured."""

    global _client_cache
    api_key = settings.openai_api_key
    if not api_key:
        return None
    if _client_cache and _client_cache[0] == api_key:
        return _client_cache[1]
    client = OpenAI(api_key=api_key)
    _client_cache = (api_key, client)
    return client


def _task_json_example(business_type: str, titles: List[str]) -> str:
    """Render the fenced JSON block the model is asked to embed in its plan."""

    description = (
        "Detailed 1-2 sentence description with specific, personalized actions relevant to this specific "
        f"{business_type} business. Make this highly detailed, practical and immediately actionable."
    )
    example = {
        "goalSummary": {
            "rephrased": "The concise rephrased business goal",
            "difficulty": 7,
            "timeEstimate": 6,
            "timeUnit": "months",
        },
        "dailyTasks": [
            {
                "day": day,
                "title": title,
                "description": description,
                "category": "Category (Marketing/Finance/Operations/Product)",
                "priority": "High/Medium/Low",
            }
            for day, title in enumerate(titles, start=1)
        ],
    }
    return f"```json\n{json.dumps(example, indent=2)}\n```"


GOAL_ANALYSIS_SECTION = dedent(
    """\
    ## GOAL ANALYSIS
    - Rephrased Goal: [Provide a concise 1-2 sentence rephrasing of the business's core goal]
    - Difficulty Rating: [Rate the difficulty of achieving the goal on a scale of 1-10, where 1 is very easy and 10 is extremely challenging]
    - Estimated Timeline: [Provide an estimate in months of how long it will take to achieve the stated goals]
    - Success Factors: [2-3 key factors that will determine success]"""
)

DAILY_PROMPT_TEMPLATE = Template(
    dedent(
        """\
        Generate a detailed day-by-day action plan for a $business_type business$location_context with the following goals: $goals.

        Format the plan with a clear focus on daily implementation tasks for a $timeframe period:

        # $heading BUSINESS: DAILY ACTION PLAN

        ## EXECUTIVE SUMMARY
        (Keep this to 3-4 sentences maximum)
        - Brief Overview
        - Core Goals

        $goal_analysis

        ## DAY-BY-DAY IMPLEMENTATION PLAN
        Present a comprehensive, detailed day-by-day implementation plan in the following structured JSON format embedded in markdown code blocks:

        $task_json

        Make sure to include tasks for EVERY DAY in the $timeframe period (30 days for monthly, 90 days for quarterly, etc.).

        ## WEEKLY THEMES
        ### Week 1: [Theme/Focus]
        - Weekly Objectives (2-3 bullet points)

        ### Week 2: [Theme/Focus]
        - Weekly Objectives (2-3 bullet points)

        ## RESOURCE REQUIREMENTS
        - Financial Resources (2-3 bullet points)
        - Human Resources (2-3 bullet points)

        ## METRICS & TRACKING
        - Key Performance Indicators (3-4 bullet points)

        The plan should be highly specific, actionable, and practical, with a clear emphasis on day-to-day tasks and implementation steps. EVERY day must have at least one task assigned.

        CRITICAL: You MUST include the DAY-BY-DAY IMPLEMENTATION PLAN section with properly formatted JSON containing tasks for every single day of the $timeframe period, and include the goalSummary object with the rephrase, difficulty rating, and time estimate.
        """
    )
)

STRATEGIC_PROMPT_TEMPLATE = Template(
    dedent(
        """\
        Generate a concise, professional-grade $timeframe strategic business plan for a $business_type business$location_context with the following goals: $goals.

        Format the plan as a clear professional document with the following structure:

        # $heading BUSINESS: STRATEGIC PLAN

        ## EXECUTIVE SUMMARY
        - Brief Organization Overview (1-2 sentences)
        - Mission Statement (1 sentence)
        - Key Strategic Goals (3-4 bullet points)

        $goal_analysis

        ## MARKET ANALYSIS
        - Target Market (2-3 bullet points)
        - Competitive Analysis (2-3 bullet points)
        - SWOT Summary (2 points each)
        $regional

        ## STRATEGIC OBJECTIVES
        - Short-term Objectives (3-4 bullet points)
        - Key Performance Indicators (3-4 bullet points)

        ## ACTION PLAN (WEEK BY WEEK)
        $weeks

        ## RESOURCE ALLOCATION
        - Financial Resources (2-3 bullet points)
        - Human Resources (2-3 bullet points)

        ## RISK MANAGEMENT
        - Identified Risks (2-3 bullet points)
        - Mitigation Strategies (2-3 bullet points)

        Format the entire plan in clean, professional markdown with appropriate headings, subheadings, and bullet points.

        For the timeline functionality, also include daily tasks in a hidden JSON format:

        $task_json

        Include the goalSummary object with the rephrased goal, difficulty rating, and time estimate.
        """
    )
)


def _daily_prompt(request: GeneratePlanRequest, timeframe: str, location_context: str) -> str:
    business_type = request.business_type.strip()
    return DAILY_PROMPT_TEMPLATE.substitute(
        business_type=business_type,
        heading=business_type.upper(),
        location_context=location_context,
        goals=request.goals.strip(),
        timeframe=timeframe,
        goal_analysis=GOAL_ANALYSIS_SECTION,
        task_json=_task_json_example(business_type, ["Specific task title", "Specific task title"]),
    )


def _strategic_prompt(request: GeneratePlanRequest, timeframe: str, location_context: str) -> str:
    business_type = request.business_type.strip()
    location = (request.location or "").strip()
    weeks = "\n\n".join(
        f"### Week {week}: [Theme/Focus]\n- Priority Tasks (3-4 bullet points)" for week in range(1, 5)
    )
    return STRATEGIC_PROMPT_TEMPLATE.substitute(
        business_type=business_type,
        heading=business_type.upper(),
        location_context=location_context,
        goals=request.goals.strip(),
        timeframe=timeframe,
        goal_analysis=GOAL_ANALYSIS_SECTION,
        regional=f"- Regional Market Considerations for {location} (2-3 bullet points)" if location else "",
        weeks=weeks,
        task_json=_task_json_example(business_type, ["Strategic task for day 1"]),
    )


def build_plan_prompt(request: GeneratePlanRequest, settings: Settings | None = None) -> PromptSpec:
    """Return the prompt spec for the requested plan type."""

    settings = settings or get_settings()
    timeframe = (request.timeframe or "").strip() or DEFAULT_TIMEFRAME
    location_context = f" located in {request.location.strip()}" if request.location and request.location.strip() else ""

    if request.plan_type is PlanType.DAILY:
        system_prompt = DAILY_SYSTEM_PROMPT
        user_prompt = _daily_prompt(request, timeframe, location_context)
    else:
        system_prompt = STRATEGIC_SYSTEM_PROMPT
        user_prompt = _strategic_prompt(request, timeframe, location_context)

    return PromptSpec(
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        model=settings.openai_model,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
    )


def build_consult_prompt(request: ConsultRequest, settings: Settings | None = None) -> PromptSpec:
    """Return the prompt spec for a one-shot assistant question."""

    settings = settings or get_settings()
    parts = [request.prompt.strip()]
    if request.business_context and request.business_context.strip():
        parts.append(f"Business context: {request.business_context.strip()}")
    if request.business_location and request.business_location.strip():
        parts.append(f"Business location: {request.business_location.strip()}")

    return PromptSpec(
        system_prompt=ASSISTANT_SYSTEM_PROMPTS[request.type],
        user_prompt="\n\n".join(parts),
        model=settings.openai_model,
        temperature=settings.temperature,
        max_tokens=CONSULT_MAX_TOKENS,
    )


def _invoke(client: OpenAI, spec: PromptSpec) -> str | None:
    try:
        response = client.chat.completions.create(
            model=spec.model,
            messages=[
                {"role": "system", "content": spec.system_prompt.strip()},
                {"role": "user", "content": spec.user_prompt.strip()},
            ],
            temperature=spec.temperature,
            max_tokens=spec.max_tokens,
        )
    except APIError as exc:
        logger.warning("OpenAI request failed: %s", type(exc).__name__)
        return None

    message = response.choices[0].message.content if response.choices else None
    if not message or not message.strip():
        logger.warning("OpenAI returned an empty reply")
        return None
    return message


def generate_plan_text(request: GeneratePlanRequest, settings: Settings | None = None) -> str | None:
    """Ask the LLM for a plan; None when no key is configured or the call fails."""

    settings = settings or get_settings()
    client = _get_client(settings)
    if client is None:
        return None
    return _invoke(client, build_plan_prompt(request, settings))


def generate_consult_reply(request: ConsultRequest, settings: Settings | None = None) -> str | None:
    """Ask the LLM to answer as a consultant; None when no key is configured or the call fails."""

    settings = settings or get_settings()
    client = _get_client(settings)
    if client is None:
        return None
    return _invoke(client, build_consult_prompt(request, settings))
