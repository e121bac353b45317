"""Test the FastAPI endpoints."""
import pytest
from httpx import ASGITransport, AsyncClient
from api.app import app


def client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


async def start(ac: AsyncClient, **body) -> str:
    response = await ac.post("/matches", json=body)
    assert response.status_code == 200
    return response.json()["match_id"]


@pytest.mark.asyncio
async def test_root_and_unit_types():
    async with client() as ac:
        root = await ac.get("/")
        types = await ac.get("/unit-types")
    assert root.status_code == 200
    assert types.status_code == 200
    data = types.json()
    assert set(data) == {"warrior", "archer", "mage", "tank", "knight"}
    assert data["tank"]["defense"] == 30
    assert data["archer"]["attack_range"] == 4


@pytest.mark.asyncio
async def test_create_match_and_get_state():
    """Default match is the two-row layout on a 10x8 board."""
    async with client() as ac:
        match_id = await start(ac)
        response = await ac.get(f"/matches/{match_id}/state")

    assert response.status_code == 200
    data = response.json()
    assert data["match_id"] == match_id
    assert data["phase"] == "selecting"
    assert data["current_player_id"] == 1
    assert len(data["units"]) == 10


@pytest.mark.asyncio
async def test_click_and_end_turn():
    async with client() as ac:
        match_id = await start(ac)
        selected = await ac.post(f"/matches/{match_id}/click", json={"x": 0, "y": 0})
        moved = await ac.post(f"/matches/{match_id}/click", json={"x": 0, "y": 3})
        ended = await ac.post(f"/matches/{match_id}/end-turn")

    assert selected.status_code == 200
    body = selected.json()
    assert [e["kind"] for e in body["events"]] == ["UnitSelected"]
    assert body["state"]["phase"] == "unit_selected_for_move"
    assert body["state"]["selected_unit_id"] == "P1-WARRIOR-1"

    assert [e["kind"] for e in moved.json()["events"]] == ["UnitMoved", "SelectionCleared"]

    state = ended.json()["state"]
    assert state["current_player_id"] == 2
    assert state["turn_number"] == 2


@pytest.mark.asyncio
async def test_noop_click_returns_no_events():
    async with client() as ac:
        match_id = await start(ac)
        response = await ac.post(f"/matches/{match_id}/click", json={"x": 99, "y": 99})
    assert response.status_code == 200
    assert response.json()["events"] == []


@pytest.mark.asyncio
async def test_full_match_to_game_over():
    """A mage needs three hits on a lone archer; player 1 wins on the third."""
    layout = [
        {"type_id": "mage", "owner_id": 1, "x": 0, "y": 0},
        {"type_id": "archer", "owner_id": 2, "x": 1, "y": 1},
    ]
    async with client() as ac:
        match_id = await start(ac, layout=layout)
        for _ in range(2):
            await ac.post(f"/matches/{match_id}/click", json={"x": 0, "y": 0})
            await ac.post(f"/matches/{match_id}/click", json={"x": 1, "y": 1})
            await ac.post(f"/matches/{match_id}/end-turn")
            await ac.post(f"/matches/{match_id}/end-turn")
        await ac.post(f"/matches/{match_id}/click", json={"x": 0, "y": 0})
        final = await ac.post(f"/matches/{match_id}/click", json={"x": 1, "y": 1})
        after = await ac.post(f"/matches/{match_id}/end-turn")
        log = await ac.get(f"/matches/{match_id}/events", params={"since": 0, "kind": "AttackResolved"})

    body = final.json()
    assert [e["kind"] for e in body["events"]] == ["AttackResolved", "UnitDestroyed", "GameOver"]
    assert body["state"]["phase"] == "game_over"
    assert body["state"]["winner_id"] == 1
    assert after.json()["events"] == []

    hits = log.json()["events"]
    assert [e["data"]["hp"] for e in hits] == [60, 30, 0]


@pytest.mark.asyncio
async def test_get_events():
    """Test retrieving events."""
    async with client() as ac:
        match_id = await start(ac)
        await ac.post(f"/matches/{match_id}/click", json={"x": 0, "y": 0})
        response = await ac.get(f"/matches/{match_id}/events?since=0")
        tail = await ac.get(f"/matches/{match_id}/events?since=2")

    assert response.status_code == 200
    data = response.json()
    assert data["next_offset"] == 2
    assert [e["kind"] for e in data["events"]] == ["MatchStarted", "UnitSelected"]
    assert tail.json() == {"next_offset": 2, "events": []}


@pytest.mark.asyncio
async def test_reset_and_delete():
    async with client() as ac:
        match_id = await start(ac)
        await ac.post(f"/matches/{match_id}/click", json={"x": 0, "y": 0})
        await ac.post(f"/matches/{match_id}/click", json={"x": 0, "y": 3})
        reset = await ac.post(f"/matches/{match_id}/reset")
        deleted = await ac.delete(f"/matches/{match_id}")
        gone = await ac.get(f"/matches/{match_id}/state")

    units = {u["id"]: u for u in reset.json()["state"]["units"]}
    assert units["P1-WARRIOR-1"]["pos"] == [0, 0]
    assert deleted.status_code == 200
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_unknown_match_is_404():
    async with client() as ac:
        state = await ac.get("/matches/missing/state")
        click = await ac.post("/matches/missing/click", json={"x": 0, "y": 0})
        delete = await ac.delete("/matches/missing")
    assert state.status_code == 404
    assert click.status_code == 404
    assert delete.status_code == 404


@pytest.mark.asyncio
async def test_bad_requests():
    one_sided = [{"type_id": "warrior", "owner_id": 1, "x": 0, "y": 0}]
    async with client() as ac:
        layout = await ac.post("/matches", json={"layout": one_sided})
        small = await ac.post("/matches", json={"width": 3, "height": 3})
        owner = await ac.post("/matches", json={"layout": [
            {"type_id": "warrior", "owner_id": 3, "x": 0, "y": 0},
        ]})
        match_id = await start(ac)
        body = await ac.post(f"/matches/{match_id}/click", json={"x": "left"})
        taken = await ac.post("/matches", json={"match_id": match_id})

    assert layout.status_code == 400
    assert small.status_code == 400  # default layout does not fit
    assert owner.status_code == 422
    assert body.status_code == 422
    assert taken.status_code == 409
