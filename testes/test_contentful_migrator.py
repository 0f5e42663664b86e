import pytest
import requests

from conftest import FakeResponse, FakeSession

from wp2contentful.migrators.contentful_migrator import (
    CMA_CONTENT_TYPE,
    ContentfulClient,
    RateLimiter,
    contentful_headers,
    with_retries,
)
from wp2contentful.utils.errors import AssetProcessingError

ENV_URL = "https://api.contentful.com/spaces/space-1/environments/master"


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def time(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)


def _client(handler, **kwargs):
    session = FakeSession(handler)
    clock = FakeClock()
    client = ContentfulClient(
        "CFPAT-abc",
        "space-1",
        "master",
        session=session,
        limiter=RateLimiter(6000, time_fn=clock.time, sleep_fn=clock.sleep),
        sleep_fn=clock.sleep,
        **kwargs,
    )
    return client, session, clock


def test_rate_limiter_spaces_requests():
    clock = FakeClock()
    limiter = RateLimiter(60, time_fn=clock.time, sleep_fn=clock.sleep)
    for _ in range(3):
        limiter.wait()
    assert clock.sleeps == [1.0, 2.0]


def test_rate_limiter_does_not_wait_after_idle_period():
    clock = FakeClock()
    limiter = RateLimiter(60, time_fn=clock.time, sleep_fn=clock.sleep)
    limiter.wait()
    clock.now = 5.0
    limiter.wait()
    assert clock.sleeps == []


def test_headers():
    headers = contentful_headers("CFPAT-abc", {"X-Contentful-Version": "3"})
    assert headers == {
        "Authorization": "Bearer CFPAT-abc",
        "Content-Type": CMA_CONTENT_TYPE,
        "X-Contentful-Version": "3",
    }


def test_with_retries_honors_retry_after():
    responses = iter([FakeResponse(429, {}, headers={"Retry-After": "3"}), FakeResponse(200, {"ok": True})])
    sleeps = []
    resp = with_retries(lambda: next(responses), sleep_fn=sleeps.append)
    assert resp.json() == {"ok": True}
    assert sleeps == [3.0]


def test_with_retries_honors_contentful_reset_header():
    responses = iter([FakeResponse(429, {}, headers={"X-Contentful-RateLimit-Reset": "2"}), FakeResponse(200, {})])
    sleeps = []
    with_retries(lambda: next(responses), sleep_fn=sleeps.append)
    assert sleeps == [2.0]


def test_with_retries_does_not_retry_client_errors():
    calls = []

    def fn():
        calls.append(1)
        return FakeResponse(422, {"message": "invalid"})

    with pytest.raises(requests.HTTPError):
        with_retries(fn, sleep_fn=lambda s: None)
    assert len(calls) == 1


def test_with_retries_gives_up_after_max_attempts():
    calls = []

    def fn():
        calls.append(1)
        return FakeResponse(503, {})

    sleeps = []
    with pytest.raises(requests.HTTPError):
        with_retries(fn, max_attempts=3, base_delay=1.0, sleep_fn=sleeps.append)
    assert len(calls) == 3
    assert sleeps == [1.0, 2.0]


def test_create_entry_sends_content_type_header():
    def handler(method, url, params, **kwargs):
        return FakeResponse(201, {"sys": {"id": "e1", "version": 1}})

    client, session, _ = _client(handler)
    entry = client.create_entry("blogPost", {"slug": {"en-US": "hello"}})

    assert entry["sys"]["id"] == "e1"
    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == f"{ENV_URL}/entries"
    assert call["headers"]["X-Contentful-Content-Type"] == "blogPost"
    assert call["headers"]["Authorization"] == "Bearer CFPAT-abc"
    assert call["json"] == {"fields": {"slug": {"en-US": "hello"}}}
    assert call["timeout"] == 60


def test_publish_sends_version():
    client, session, _ = _client(lambda *a, **k: FakeResponse(200, {"sys": {"id": "e1", "version": 2}}))
    client.publish_entry({"sys": {"id": "e1", "version": 1}})
    call = session.calls[0]
    assert call["method"] == "PUT"
    assert call["url"] == f"{ENV_URL}/entries/e1/published"
    assert call["headers"]["X-Contentful-Version"] == "1"


def test_process_asset_polls_until_url_is_available():
    polls = iter([
        {"sys": {"id": "a1", "version": 2}, "fields": {"file": {"en-US": {"fileName": "a.jpg"}}}},
        {"sys": {"id": "a1", "version": 3}, "fields": {"file": {"en-US": {"fileName": "a.jpg", "url": "//cdn/a.jpg"}}}},
    ])

    def handler(method, url, params, **kwargs):
        if method == "PUT":
            return FakeResponse(204, None)
        return FakeResponse(200, next(polls))

    client, session, clock = _client(handler, poll_interval=0.5)
    asset = {"sys": {"id": "a1", "version": 1}, "fields": {"file": {"en-US": {"fileName": "a.jpg"}}}}

    processed = client.process_asset(asset)

    assert processed["sys"]["version"] == 3
    assert session.calls[0]["url"] == f"{ENV_URL}/assets/a1/files/en-US/process"
    assert session.calls[0]["headers"]["X-Contentful-Version"] == "1"
    assert 0.5 in clock.sleeps


def test_process_asset_gives_up():
    def handler(method, url, params, **kwargs):
        if method == "PUT":
            return FakeResponse(204, None)
        return FakeResponse(200, {"sys": {"id": "a1", "version": 2}, "fields": {"file": {"en-US": {}}}})

    client, _, _ = _client(handler, max_polls=3)
    with pytest.raises(AssetProcessingError):
        client.process_asset({"sys": {"id": "a1", "version": 1}, "fields": {"file": {"en-US": {}}}})


def test_list_published_assets_follows_pages():
    assets = [{"sys": {"id": f"a{i}"}} for i in range(3)]

    def handler(method, url, params, **kwargs):
        skip, limit = params["skip"], params["limit"]
        return FakeResponse(200, {"items": assets[skip:skip + limit], "total": len(assets)})

    client, session, _ = _client(handler)
    listed = client.list_published_assets(page_size=2)

    assert [a["sys"]["id"] for a in listed] == ["a0", "a1", "a2"]
    assert [c["params"] for c in session.calls] == [{"skip": 0, "limit": 2}, {"skip": 2, "limit": 2}]
    assert session.calls[0]["url"] == f"{ENV_URL}/public/assets"
