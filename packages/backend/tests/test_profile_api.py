"""Profile photo upload / removal tests."""

import pytest
import pytest_asyncio
from sqlalchemy import select

from conftest import register, sign_in
from inkpress.db.models import Profile, User

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


async def profiles_of(db_session, email):
    user = (
        await db_session.execute(select(User).where(User.email == email))
    ).scalars().one()
    result = await db_session.execute(select(Profile).where(Profile.user_id == user.id))
    return result.scalars().all()


async def upload(client, data=PNG, filename="me.png", content_type="image/png"):
    return await client.post(
        "/api/auth/profile/upload",
        files={"image": (filename, data, content_type)},
    )


@pytest_asyncio.fixture()
async def signed_in(client):
    await register(client)
    r = await sign_in(client)
    assert r.status_code == 200
    return client


@pytest.mark.asyncio
async def test_upload_creates_profile(signed_in, db_session):
    r = await upload(signed_in)
    assert r.status_code == 200
    assert r.json() == {"message": "Profile Image Uploaded Successfully"}

    profiles = await profiles_of(db_session, "ann@x.com")
    assert len(profiles) == 1
    assert profiles[0].image == PNG
    assert profiles[0].content_type == "image/png"
    assert profiles[0].filename == "me.png"


@pytest.mark.asyncio
async def test_upload_without_image_creates_empty_profile(signed_in, db_session):
    r = await signed_in.post("/api/auth/profile/upload")
    assert r.status_code == 200
    profiles = await profiles_of(db_session, "ann@x.com")
    assert len(profiles) == 1
    assert profiles[0].image is None


@pytest.mark.asyncio
async def test_second_upload_replaces_image(signed_in, db_session):
    await upload(signed_in)
    r = await upload(signed_in, data=b"GIF89a-new", filename="new.gif", content_type="image/gif")
    assert r.status_code == 200

    db_session.expire_all()
    profiles = await profiles_of(db_session, "ann@x.com")
    assert len(profiles) == 1
    assert profiles[0].image == b"GIF89a-new"
    assert profiles[0].filename == "new.gif"


@pytest.mark.asyncio
async def test_remove_deletes_profile(signed_in, db_session):
    await upload(signed_in)

    r = await signed_in.delete("/api/auth/profile/remove")
    assert r.status_code == 200
    assert r.json() == {"message": "Profile Image Removed Successfully"}
    assert await profiles_of(db_session, "ann@x.com") == []


@pytest.mark.asyncio
async def test_remove_without_profile(signed_in):
    r = await signed_in.delete("/api/auth/profile/remove")
    assert r.status_code == 404
    assert r.json() == {"error": "Profile not found"}


@pytest.mark.asyncio
async def test_remove_twice(signed_in):
    await upload(signed_in)
    assert (await signed_in.delete("/api/auth/profile/remove")).status_code == 200
    assert (await signed_in.delete("/api/auth/profile/remove")).status_code == 404


@pytest.mark.asyncio
async def test_profile_routes_require_session(client):
    assert (await upload(client)).status_code == 401
    assert (await client.delete("/api/auth/profile/remove")).status_code == 401


@pytest.mark.asyncio
async def test_profile_for_user_that_no_longer_exists(client, settings):
    """A valid session for an email with no account is a 404, not a crash."""
    from inkpress.auth.jwt import create_session_token

    client.cookies.set("token", create_session_token(settings, "Ghost", "ghost@x.com"))
    r = await upload(client)
    assert r.status_code == 404
    assert r.json() == {"error": "User not found"}

    r = await client.delete("/api/auth/profile/remove")
    assert r.status_code == 404
    assert r.json() == {"error": "User not found"}
