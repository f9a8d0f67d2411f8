"""Blog feed tests."""

import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from conftest import RecordingMailer, make_settings
from inkpress.main import create_app


@pytest.mark.asyncio
async def test_packaged_feed(client):
    r = await client.get("/api/blog")
    assert r.status_code == 200
    posts = r.json()
    assert isinstance(posts, list)
    assert posts
    assert {"id", "title", "author"} <= set(posts[0])


@pytest.mark.asyncio
async def test_feed_is_public(client):
    """No session cookie needed to read the blog."""
    assert "token" not in client.cookies
    assert (await client.get("/api/blog")).status_code == 200


@pytest_asyncio.fixture()
async def feed_client(tmp_path):
    feed = tmp_path / "feed.json"
    feed.write_text(json.dumps([{"id": 7, "title": "Seven"}]))
    app = create_app(make_settings(blog_feed_path=feed), mailer=RecordingMailer())
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac, feed
    await app.state.engine.dispose()


@pytest.mark.asyncio
async def test_configured_feed(feed_client):
    client, _ = feed_client
    assert (await client.get("/api/blog")).json() == [{"id": 7, "title": "Seven"}]
    assert (await client.get("/api/blog/7")).json()["title"] == "Seven"
    assert (await client.get("/api/blog/8")).status_code == 404


@pytest.mark.asyncio
async def test_broken_feed(feed_client):
    client, feed = feed_client
    feed.write_text("{not json")
    assert (await client.get("/api/blog")).status_code == 503
    feed.unlink()
    assert (await client.get("/api/blog")).status_code == 503
