"""
Интеграционные тесты эндпоинтов /api/v1/session/*.

Покрываемые сценарии:
- Аутентификация: 401/403 без токена или с чужим токеном
- POST /session/start: 404 без назначения, 409 при уже идущей или параллельной тренировке
- RPE-окно через HTTP: /sets/complete → /sets/rpe, валидация оценки (422)
- Отклонённые переходы возвращают 200 и accepted=false
- Отдых, вес, навигация, заметки, голос
- /summary и /finish доступны только после завершения
- DELETE /session закрывает сессию
"""

import asyncio

import pytest

from tests.conftest import make_auth_headers
from tests.factories import make_plan

pytestmark = pytest.mark.integration

BASE = "/api/v1/session"


async def start(member_client):
    response = await member_client.post(f"{BASE}/start")
    assert response.status_code == 200
    return response.json()


async def complete_set(member_client, rpe: int) -> dict:
    response = await member_client.post(f"{BASE}/sets/complete")
    assert response.json()["accepted"] is True
    response = await member_client.post(f"{BASE}/sets/rpe", json={"rpe": rpe})
    assert response.status_code == 200
    return response.json()


# ---------------------------------------------------------------------------
# Аутентификация
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_start_unauthenticated_is_rejected(client):
    response = await client.post(f"{BASE}/start")
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_invalid_token_returns_401(client):
    response = await client.get(BASE, headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_unknown_member_returns_401(client, mock_member_repo, member_fixture):
    mock_member_repo.get_by_auth_id.return_value = None

    response = await client.post(f"{BASE}/start", headers=make_auth_headers(member_fixture))

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_valid_token_starts_session(client, mock_member_repo, member_fixture):
    mock_member_repo.get_by_auth_id.return_value = member_fixture

    response = await client.post(f"{BASE}/start", headers=make_auth_headers(member_fixture))

    assert response.status_code == 200
    mock_member_repo.get_by_auth_id.assert_awaited_once_with(member_fixture.auth_id)


# ---------------------------------------------------------------------------
# POST /session/start
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_start_returns_first_set(member_client):
    data = await start(member_client)

    assert data["phase"] == "in_progress"
    assert data["workout_name"] == "Test Workout"
    assert data["cursor"] == {"exercise_index": 0, "set_number": 1}
    assert [e["name"] for e in data["exercises"]] == ["Exercise A", "Exercise B"]
    assert data["announcements"][0]["text"] == "Workout started. Let's crush it!"


@pytest.mark.asyncio
async def test_start_without_assignment_returns_404(member_client, mock_workout_repo):
    mock_workout_repo.fetch_assigned_workout.return_value = None

    response = await member_client.post(f"{BASE}/start")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_second_start_returns_409(member_client):
    await start(member_client)

    response = await member_client.post(f"{BASE}/start")

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_overlapping_starts_one_returns_409(member_client, mock_workout_repo):
    async def slow_plan(member_id):
        await asyncio.sleep(0.01)
        return make_plan()

    mock_workout_repo.fetch_assigned_workout.side_effect = slow_plan

    responses = await asyncio.gather(
        member_client.post(f"{BASE}/start"),
        member_client.post(f"{BASE}/start"),
    )

    assert sorted(r.status_code for r in responses) == [200, 409]


@pytest.mark.asyncio
async def test_get_session_without_start_returns_404(member_client):
    response = await member_client.get(BASE)
    assert response.status_code == 404


# ---------------------------------------------------------------------------
# RPE-окно
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_request_completion_opens_rpe_gate(member_client):
    await start(member_client)

    response = await member_client.post(f"{BASE}/sets/complete")

    data = response.json()
    assert data["phase"] == "awaiting_rpe"
    assert data["pending_set_index"] == 0
    assert data["exercises"][0]["sets"][0]["completed"] is False


@pytest.mark.asyncio
async def test_confirm_rpe_logs_set_and_starts_rest(member_client, mock_workout_repo, member_fixture):
    await start(member_client)

    data = await complete_set(member_client, 7)

    assert data["phase"] == "resting"
    assert data["rest"]["remaining_seconds"] == 30
    assert data["exercises"][0]["sets"][0] == {
        "set_number": 1, "reps": 10, "weight": 20.0, "rpe": 7, "completed": True,
    }
    assert data["total_volume"] == 200
    mock_workout_repo.log_completed_set.assert_awaited_once()
    kwargs = mock_workout_repo.log_completed_set.await_args.kwargs
    assert kwargs["member_id"] == member_fixture.id
    assert kwargs["exercise_id"] == 101
    assert kwargs["rpe"] == 7


@pytest.mark.asyncio
@pytest.mark.parametrize("rpe", [0, 11])
async def test_confirm_rpe_out_of_range_returns_422(member_client, rpe):
    await start(member_client)
    await member_client.post(f"{BASE}/sets/complete")

    response = await member_client.post(f"{BASE}/sets/rpe", json={"rpe": rpe})

    assert response.status_code == 422
    state = await member_client.get(BASE)
    assert state.json()["phase"] == "awaiting_rpe"


@pytest.mark.asyncio
async def test_navigation_blocked_while_rpe_pending(member_client):
    await start(member_client)
    await member_client.post(f"{BASE}/sets/complete")

    response = await member_client.post(f"{BASE}/navigate", json={"direction": 1})

    assert response.status_code == 200
    data = response.json()
    assert data["accepted"] is False
    assert data["cursor"]["exercise_index"] == 0


@pytest.mark.asyncio
async def test_log_failure_surfaces_notice(member_client, mock_workout_repo):
    mock_workout_repo.log_completed_set.side_effect = RuntimeError("db down")
    await start(member_client)

    data = await complete_set(member_client, 7)

    assert data["phase"] == "resting"
    assert len(data["notices"]) == 1
    follow_up = await member_client.get(BASE)
    assert follow_up.json()["notices"] == []


# ---------------------------------------------------------------------------
# Отдых, вес, навигация
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_rest_adjust_and_skip(member_client):
    await start(member_client)
    await complete_set(member_client, 7)

    adjusted = await member_client.post(f"{BASE}/rest/adjust", json={"seconds": 15})
    assert adjusted.json()["rest"]["remaining_seconds"] == 45

    skipped = await member_client.post(f"{BASE}/rest/skip")
    assert skipped.json()["phase"] == "in_progress"

    again = await member_client.post(f"{BASE}/rest/skip")
    assert again.json()["accepted"] is False


@pytest.mark.asyncio
async def test_default_steps_for_rest_and_weight(member_client):
    await start(member_client)
    await complete_set(member_client, 7)

    rest = await member_client.post(f"{BASE}/rest/adjust", json={})
    assert rest.json()["rest"]["remaining_seconds"] == 45

    weight = await member_client.post(f"{BASE}/weight", json={})
    assert weight.json()["exercises"][0]["weight"] == 22.5


@pytest.mark.asyncio
async def test_rest_sound_toggle(member_client):
    await start(member_client)

    response = await member_client.post(f"{BASE}/rest/sound", json={"enabled": False})

    assert response.json()["rest"]["sound_enabled"] is False


@pytest.mark.asyncio
async def test_weight_adjust_is_forward_only(member_client):
    await start(member_client)
    await complete_set(member_client, 7)

    response = await member_client.post(f"{BASE}/weight", json={"delta": 2.5})

    sets = response.json()["exercises"][0]["sets"]
    assert sets[0]["weight"] == 20
    assert sets[1]["weight"] == 22.5


@pytest.mark.asyncio
async def test_navigate_and_select(member_client):
    await start(member_client)

    forward = await member_client.post(f"{BASE}/navigate", json={"direction": 1})
    assert forward.json()["cursor"] == {"exercise_index": 1, "set_number": 1}

    past_end = await member_client.post(f"{BASE}/navigate", json={"direction": 1})
    assert past_end.json()["accepted"] is False

    selected = await member_client.post(f"{BASE}/exercises/0/select")
    assert selected.json()["cursor"]["exercise_index"] == 0


@pytest.mark.asyncio
async def test_navigate_invalid_direction_returns_422(member_client):
    await start(member_client)
    response = await member_client.post(f"{BASE}/navigate", json={"direction": 3})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_notes_and_voice(member_client):
    await start(member_client)

    notes = await member_client.put(f"{BASE}/notes", json={"notes": "Left shoulder tight"})
    assert notes.json()["notes"] == "Left shoulder tight"

    voice = await member_client.post(f"{BASE}/voice", json={"enabled": False})
    assert voice.json()["voice_enabled"] is False


@pytest.mark.asyncio
async def test_rpe_scale(member_client):
    response = await member_client.get(f"{BASE}/rpe-scale")

    assert response.status_code == 200
    assert len(response.json()) == 10
    assert response.json()[6] == {"value": 7, "label": "Very Hard"}


# ---------------------------------------------------------------------------
# Итоги и завершение
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_summary_before_completion_returns_409(member_client):
    await start(member_client)

    assert (await member_client.get(f"{BASE}/summary")).status_code == 409
    assert (await member_client.post(f"{BASE}/finish")).status_code == 409


@pytest.mark.asyncio
async def test_abandon_session(member_client, registry, member_fixture):
    await start(member_client)

    response = await member_client.delete(BASE)

    assert response.status_code == 200
    assert registry.get(member_fixture.id) is None
    assert (await member_client.delete(BASE)).status_code == 404
