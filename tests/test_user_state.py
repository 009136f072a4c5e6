from sqlalchemy import func, select

from db.models import User, UserPreference


async def _preference_rows(session_maker, uid):
    async with session_maker() as session:
        return (
            await session.execute(
                select(func.count()).select_from(UserPreference).where(UserPreference.user_id == uid)
            )
        ).scalar_one()


async def test_default_state_is_not_persisted(client, auth, session_maker):
    res = await client.get("/api/me/state", headers=auth("new-user"))
    assert res.status_code == 200
    assert res.json() == {
        "activeOrganizationId": None,
        "activeSectionId": None,
        "language": "ja",
        "lastViewState": {"view": "dashboard"},
    }
    assert await _preference_rows(session_maker, "new-user") == 0


async def test_save_then_load_round_trips(client, auth):
    headers = auth("user-u")
    state = {
        "language": "en",
        "activeOrganizationId": "org-1",
        "activeSectionId": "sec-1",
        "lastViewState": {"view": "inventory", "filter": "red"},
    }
    res = await client.post("/api/me/state", json=state, headers=headers)
    assert res.status_code == 200
    assert res.json() == {"success": True}

    res = await client.get("/api/me/state", headers=headers)
    assert res.json() == state


async def test_save_twice_keeps_one_row_with_latest_values(client, auth, session_maker):
    headers = auth("user-u")
    first = {"language": "ja", "activeOrganizationId": "org-1", "activeSectionId": None, "lastViewState": {"view": "dashboard"}}
    second = {"language": "en", "activeOrganizationId": "org-2", "activeSectionId": "sec-2", "lastViewState": {"view": "settings"}}

    assert (await client.post("/api/me/state", json=first, headers=headers)).status_code == 200
    assert (await client.post("/api/me/state", json=second, headers=headers)).status_code == 200

    assert await _preference_rows(session_maker, "user-u") == 1
    assert (await client.get("/api/me/state", headers=headers)).json() == second


async def test_save_creates_stub_user_once(client, auth, session_maker):
    headers = auth("user-u", "u@example.com")
    body = {"language": "ja", "activeOrganizationId": None, "activeSectionId": None, "lastViewState": {"view": "dashboard"}}

    await client.post("/api/me/state", json=body, headers=headers)
    await client.put("/api/users/me", json={"displayName": "Yuki"}, headers=headers)
    await client.post("/api/me/state", json=body, headers=headers)

    async with session_maker() as session:
        users = (await session.execute(select(User).where(User.id == "user-u"))).scalars().all()
    assert len(users) == 1
    assert users[0].email == "u@example.com"
    # the second write must not reset the profile
    assert users[0].display_name == "Yuki"
