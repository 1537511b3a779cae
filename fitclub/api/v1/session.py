from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from fitclub.core.dependencies import get_current_member, get_session_service
from fitclub.models.member import Member
from fitclub.schemas.session import (
    NavigateInput,
    NotesInput,
    RestAdjustInput,
    RestSoundInput,
    RPEInput,
    RPEOption,
    SessionPhase,
    SessionStateResponse,
    SessionSummary,
    VoiceToggleInput,
    WeightAdjustInput,
)
from fitclub.services.session_registry import ActiveSession
from fitclub.services.session_summary import build_summary, rpe_scale
from fitclub.services.workout_session_service import (
    NoAssignedWorkoutError,
    SessionAlreadyActiveError,
    WorkoutSessionService,
)

router = APIRouter()


# ==========================
# ВСПОМОГАТЕЛЬНЫЕ ФУНКЦИИ
# ==========================

def require_session(service: WorkoutSessionService, member: Member) -> ActiveSession:
    active = service.get_active(member.id)
    if active is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Активная тренировка не найдена")
    return active


# ==========================
# ENDPOINTS
# ==========================

@router.get("/rpe-scale", response_model=List[RPEOption])
async def get_rpe_scale():
    return rpe_scale()


@router.post("/start", response_model=SessionStateResponse)
async def start_session(
    current_member: Member = Depends(get_current_member),
    service: WorkoutSessionService = Depends(get_session_service),
):
    try:
        active = await service.start(current_member)
    except SessionAlreadyActiveError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Тренировка уже идёт")
    except NoAssignedWorkoutError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Нет назначенной тренировки")
    return service.describe(active)


@router.get("", response_model=SessionStateResponse)
async def get_session(
    current_member: Member = Depends(get_current_member),
    service: WorkoutSessionService = Depends(get_session_service),
):
    active = require_session(service, current_member)
    return service.describe(active)


@router.post("/sets/complete", response_model=SessionStateResponse)
async def request_set_completion(
    current_member: Member = Depends(get_current_member),
    service: WorkoutSessionService = Depends(get_session_service),
):
    active = require_session(service, current_member)
    accepted = active.controller.request_set_completion()
    return service.describe(active, accepted)


@router.post("/sets/rpe", response_model=SessionStateResponse)
async def confirm_set_rpe(
    payload: RPEInput,
    current_member: Member = Depends(get_current_member),
    service: WorkoutSessionService = Depends(get_session_service),
):
    active = require_session(service, current_member)
    accepted = active.controller.confirm_set_rpe(payload.rpe)
    await service.flush(active)
    return service.describe(active, accepted)


@router.post("/rest/skip", response_model=SessionStateResponse)
async def skip_rest(
    current_member: Member = Depends(get_current_member),
    service: WorkoutSessionService = Depends(get_session_service),
):
    active = require_session(service, current_member)
    accepted = active.controller.skip_rest()
    return service.describe(active, accepted)


@router.post("/rest/adjust", response_model=SessionStateResponse)
async def adjust_rest(
    payload: RestAdjustInput,
    current_member: Member = Depends(get_current_member),
    service: WorkoutSessionService = Depends(get_session_service),
):
    active = require_session(service, current_member)
    accepted = active.controller.adjust_rest(payload.seconds)
    return service.describe(active, accepted)


@router.post("/rest/sound", response_model=SessionStateResponse)
async def set_rest_sound(
    payload: RestSoundInput,
    current_member: Member = Depends(get_current_member),
    service: WorkoutSessionService = Depends(get_session_service),
):
    active = require_session(service, current_member)
    accepted = active.controller.set_rest_sound(payload.enabled)
    return service.describe(active, accepted)


@router.post("/weight", response_model=SessionStateResponse)
async def adjust_weight(
    payload: WeightAdjustInput,
    current_member: Member = Depends(get_current_member),
    service: WorkoutSessionService = Depends(get_session_service),
):
    active = require_session(service, current_member)
    accepted = active.controller.adjust_weight(payload.delta)
    return service.describe(active, accepted)


@router.post("/navigate", response_model=SessionStateResponse)
async def navigate_exercise(
    payload: NavigateInput,
    current_member: Member = Depends(get_current_member),
    service: WorkoutSessionService = Depends(get_session_service),
):
    active = require_session(service, current_member)
    accepted = active.controller.navigate_exercise(payload.direction)
    return service.describe(active, accepted)


@router.post("/exercises/{index}/select", response_model=SessionStateResponse)
async def select_exercise(
    index: int,
    current_member: Member = Depends(get_current_member),
    service: WorkoutSessionService = Depends(get_session_service),
):
    active = require_session(service, current_member)
    accepted = active.controller.select_exercise(index)
    return service.describe(active, accepted)


@router.put("/notes", response_model=SessionStateResponse)
async def set_notes(
    payload: NotesInput,
    current_member: Member = Depends(get_current_member),
    service: WorkoutSessionService = Depends(get_session_service),
):
    active = require_session(service, current_member)
    accepted = active.controller.set_notes(payload.notes)
    return service.describe(active, accepted)


@router.post("/voice", response_model=SessionStateResponse)
async def set_voice(
    payload: VoiceToggleInput,
    current_member: Member = Depends(get_current_member),
    service: WorkoutSessionService = Depends(get_session_service),
):
    active = require_session(service, current_member)
    active.controller.voice.set_enabled(payload.enabled)
    return service.describe(active)


@router.get("/summary", response_model=SessionSummary)
async def get_summary(
    current_member: Member = Depends(get_current_member),
    service: WorkoutSessionService = Depends(get_session_service),
):
    active = require_session(service, current_member)
    if active.controller.phase != SessionPhase.completed:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Тренировка ещё не завершена")
    return build_summary(active.controller, active.last_performance)


@router.post("/finish")
async def finish_session(
    current_member: Member = Depends(get_current_member),
    service: WorkoutSessionService = Depends(get_session_service),
):
    require_session(service, current_member)
    if not service.finish(current_member.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Тренировка ещё не завершена")
    return {"finished": True}


@router.delete("")
async def abandon_session(
    current_member: Member = Depends(get_current_member),
    service: WorkoutSessionService = Depends(get_session_service),
):
    if not service.abandon(current_member.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Активная тренировка не найдена")
    return {"abandoned": True}
