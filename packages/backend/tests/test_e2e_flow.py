"""Full-flow E2E test — the account lifecycle through the API alone.

Learn: signup → signin → bad signin → forgot password (one email) →
reset with the mailed token → signin with the new password → profile
photo upload and removal → signout.
"""

import pytest
from sqlalchemy import select

from inkpress.db.models import Profile


@pytest.mark.asyncio
async def test_account_lifecycle(client, mailer, db_session):
    r = await client.post(
        "/api/auth/signup",
        json={"name": "Ann", "email": "ann@x.com", "password": "password1"},
    )
    assert r.status_code == 201

    r = await client.post(
        "/api/auth/signin", json={"email": "ann@x.com", "password": "password1"}
    )
    assert r.status_code == 200
    assert "token" in r.cookies

    r = await client.post(
        "/api/auth/signin", json={"email": "ann@x.com", "password": "wrong"}
    )
    assert r.status_code == 400

    r = await client.post("/api/auth/forgetpassword", json={"email": "ann@x.com"})
    assert r.status_code == 200
    assert len(mailer.sent) == 1

    r = await client.put(
        f"/api/auth/resetpassword/{mailer.last_token}",
        json={"password": "newpassword1"},
    )
    assert r.status_code == 200

    r = await client.post(
        "/api/auth/signin", json={"email": "ann@x.com", "password": "newpassword1"}
    )
    assert r.status_code == 200

    r = await client.post(
        "/api/auth/profile/upload",
        files={"image": ("ann.jpg", b"\xff\xd8\xff\xe0jpeg", "image/jpeg")},
    )
    assert r.status_code == 200
    assert len((await db_session.execute(select(Profile))).scalars().all()) == 1

    r = await client.delete("/api/auth/profile/remove")
    assert r.status_code == 200
    assert (await db_session.execute(select(Profile))).scalars().all() == []

    r = await client.delete("/api/auth/profile/remove")
    assert r.status_code == 404

    r = await client.post("/api/auth/signout")
    assert r.status_code == 200

    r = await client.post("/api/auth/signout")
    assert r.status_code == 401
