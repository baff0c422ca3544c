"""Plan generation and timeline endpoints for the Ventry FastAPI backend."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from ..config import Settings
from ..memory import PlanNotFoundError, PlanStore, TaskNotFoundError
from ..parser import parse_plan
from ..planner import consult, generate_plan
from ..schemas import (
    ConsultRequest,
    ConsultResponse,
    GeneratePlanRequest,
    GeneratePlanResponse,
    ParsePlanRequest,
    ParsePlanResponse,
    SessionPlanResponse,
    Task,
    TaskUpdateRequest,
)
from ..timeline import progress, tasks_by_week, tasks_for_day
from ..titles import derive_title


router = APIRouter(prefix="/plans", tags=["plans"])


def get_plan_store(request: Request) -> PlanStore:
    return request.app.state.plan_store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.get("/health")
async def healthcheck() -> dict[str, str]:
    """Simple health check endpoint."""

    return {"status": "ok"}


@router.post("/parse", response_model=ParsePlanResponse)
async def parse_plan_text(payload: ParsePlanRequest) -> ParsePlanResponse:
    """Extract the task timeline from an existing plan text."""

    parsed = parse_plan(payload.plan_text)
    title = derive_title(payload.plan_text, payload.business_type) if payload.business_type else None
    return ParsePlanResponse(title=title, tasks=parsed.tasks, goal_summary=parsed.goal_summary)


@router.post("/generate", response_model=GeneratePlanResponse)
async def generate_plan_endpoint(
    payload: GeneratePlanRequest,
    store: PlanStore = Depends(get_plan_store),
    settings: Settings = Depends(get_app_settings),
) -> GeneratePlanResponse:
    """Generate a plan, parse its timeline and remember it for the session."""

    remaining = None
    if payload.session_id:
        allowance = store.consume_generation(payload.session_id, settings.max_generations)
        if not allowance.allowed:
            raise HTTPException(
                status_code=403,
                detail={"error": allowance.message, "remainingGenerations": 0, "limitReached": True},
            )
        remaining = allowance.remaining

    record = generate_plan(payload, settings)
    if payload.session_id:
        store.save_plan(payload.session_id, record)

    return GeneratePlanResponse(**record.model_dump(), remaining_generations=remaining)


@router.post("/consult", response_model=ConsultResponse)
async def consult_endpoint(
    payload: ConsultRequest,
    settings: Settings = Depends(get_app_settings),
) -> ConsultResponse:
    """Answer a one-off business question as a plan writer or consultant."""

    return consult(payload, settings)


@router.get("/session/{session_id}", response_model=SessionPlanResponse)
async def fetch_session(session_id: str, store: PlanStore = Depends(get_plan_store)) -> SessionPlanResponse:
    """Return the current plan, earlier plans and progress for the session."""

    try:
        current = store.current_plan(session_id)
    except PlanNotFoundError:
        raise HTTPException(status_code=404, detail=f"No plan found for session '{session_id}'.")

    return SessionPlanResponse(
        session_id=session_id,
        current=current,
        history=store.history(session_id),
        progress=progress(current.tasks),
    )


@router.patch("/session/{session_id}/tasks/{task_id}", response_model=Task)
async def update_task(
    session_id: str,
    task_id: str,
    payload: TaskUpdateRequest,
    store: PlanStore = Depends(get_plan_store),
) -> Task:
    """Mark a task of the current plan as completed or not."""

    try:
        return store.set_task_completed(session_id, task_id, payload.completed)
    except PlanNotFoundError:
        raise HTTPException(status_code=404, detail=f"No plan found for session '{session_id}'.")
    except TaskNotFoundError:
        raise HTTPException(status_code=404, detail=f"Task '{task_id}' not found.")


@router.get("/session/{session_id}/days/{day}", response_model=list[Task])
async def list_day_tasks(session_id: str, day: int, store: PlanStore = Depends(get_plan_store)) -> list[Task]:
    """Return the tasks scheduled on a given plan day."""

    try:
        current = store.current_plan(session_id)
    except PlanNotFoundError:
        raise HTTPException(status_code=404, detail=f"No plan found for session '{session_id}'.")
    return tasks_for_day(current.tasks, day)


@router.delete("/session/{session_id}/history/{plan_id}", status_code=204)
async def delete_history_entry(session_id: str, plan_id: str, store: PlanStore = Depends(get_plan_store)) -> None:
    """Remove a stored plan from the session."""

    try:
        store.delete_plan(session_id, plan_id)
    except PlanNotFoundError:
        raise HTTPException(status_code=404, detail=f"Plan '{plan_id}' not found.")


@router.get("/session/{session_id}/weeks", response_model=dict[int, list[Task]])
async def list_week_tasks(session_id: str, store: PlanStore = Depends(get_plan_store)) -> dict[int, list[Task]]:
    """Return the current plan's tasks grouped by week."""

    try:
        current = store.current_plan(session_id)
    except PlanNotFoundError:
        raise HTTPException(status_code=404, detail=f"No plan found for session '{session_id}'.")
    return tasks_by_week(current.tasks)
