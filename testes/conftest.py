import itertools
import json
import math
import os
import sys
import threading

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
import requests

from wp2contentful.utils import errors


@pytest.fixture(autouse=True)
def isolated_workdir(tmp_path, monkeypatch):
    """Run every test in its own directory so reports never leak between tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(errors, "_REPORT_DIR", os.path.join("reports", "migration"))
    for var in ("WORDPRESS_ENDPOINT", "CONTENTFUL_ACCESS_TOKEN", "CONTENTFUL_SPACE_ID",
                "CONTENTFUL_ENVIRONMENT", "CONTENTFUL_CONTENT_TYPE"):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


def read_jsonl(path):
    if not os.path.exists(path):
        return []
    with open(path, "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, headers=None, text=None):
        self.status_code = status_code
        self._json = json_data
        self.headers = headers or {}
        if text is None:
            text = json.dumps(json_data) if json_data is not None else ""
        self.text = text
        self.content = text.encode("utf-8")

    def json(self):
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """
    Stand-in for ``requests.Session``.  ``handler(method, url, params, **kwargs)``
    returns a FakeResponse or raises; every call is recorded.
    """

    def __init__(self, handler):
        self.handler = handler
        self.calls = []
        self._lock = threading.Lock()

    def request(self, method, url, params=None, **kwargs):
        with self._lock:
            self.calls.append({"method": method, "url": url, "params": dict(params or {}), **kwargs})
        return self.handler(method, url, params or {}, **kwargs)

    def get(self, url, params=None, **kwargs):
        return self.request("GET", url, params=params, **kwargs)


def wordpress_collection(records):
    """Handler serving ``records`` the way the WordPress REST API paginates."""

    def handler(method, url, params, **kwargs):
        per_page = int(params.get("per_page", 10))
        page = int(params.get("page", 1))
        offset = int(params.get("offset", (page - 1) * per_page))
        headers = {
            "X-WP-Total": str(len(records)),
            "X-WP-TotalPages": str(max(1, math.ceil(len(records) / per_page))),
        }
        return FakeResponse(200, records[offset:offset + per_page], headers=headers)

    return handler


def wordpress_site(collections):
    """Handler routing ``.../posts``, ``.../tags`` etc. to per-kind collections."""
    handlers = {kind: wordpress_collection(records) for kind, records in collections.items()}

    def handler(method, url, params, **kwargs):
        kind = url.rstrip("/").rsplit("/", 1)[-1]
        if kind not in handlers:
            return FakeResponse(404, {"code": "rest_no_route"})
        return handlers[kind](method, url, params, **kwargs)

    return handler


def http_error(status, body=None):
    body = body if body is not None else {"message": f"error {status}"}
    return requests.HTTPError(f"{status} Error", response=FakeResponse(status, body))


class FakeContentfulClient:
    """In-memory Contentful environment with programmable failures."""

    def __init__(
        self,
        *,
        content_types=None,
        fail_assets=(),
        fail_entries=(),
        space_error=None,
        listing_error=None,
        locale="en-US",
    ):
        self.space_id = "space-1"
        self.environment = "master"
        self.locale = locale
        self.content_types = content_types if content_types is not None else [blog_post_content_type()]
        self.fail_assets = set(fail_assets)
        self.fail_entries = set(fail_entries)
        self.space_error = space_error
        self.listing_error = listing_error
        self.created_assets = []
        self.published_assets = []
        self.created_entries = []
        self.published_entries = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def _next_id(self, prefix):
        with self._lock:
            return f"{prefix}-{next(self._ids)}"

    def get_space(self):
        if self.space_error is not None:
            raise self.space_error
        return {"name": "Test space", "sys": {"id": self.space_id}}

    def get_environment(self):
        return {"sys": {"id": self.environment}}

    def get_content_types(self):
        return self.content_types

    def create_asset(self, fields):
        file_name = fields["file"][self.locale]["fileName"]
        if file_name in self.fail_assets:
            raise http_error(422, {"message": f"cannot create {file_name}"})
        asset = {"sys": {"id": self._next_id("asset"), "version": 1}, "fields": fields}
        with self._lock:
            self.created_assets.append(asset)
        return asset

    def process_asset(self, asset):
        file_field = dict(asset["fields"]["file"][self.locale])
        file_field["url"] = f"//images.ctfassets.net/{self.space_id}/{asset['sys']['id']}/{file_field['fileName']}"
        fields = dict(asset["fields"], file={self.locale: file_field})
        return {"sys": dict(asset["sys"], version=2), "fields": fields}

    def publish_asset(self, asset):
        published = {"sys": dict(asset["sys"], version=3), "fields": asset["fields"]}
        with self._lock:
            self.published_assets.append(published)
        return published

    def list_published_assets(self):
        if self.listing_error is not None:
            raise self.listing_error
        return list(self.published_assets)

    def create_entry(self, content_type, fields):
        slug = fields["slug"][self.locale]
        if slug in self.fail_entries:
            raise http_error(422, {"message": f"cannot create {slug}"})
        entry = {"sys": {"id": self._next_id("entry"), "version": 1, "contentType": content_type}, "fields": fields}
        with self._lock:
            self.created_entries.append(entry)
        return entry

    def publish_entry(self, entry):
        with self._lock:
            self.published_entries.append(entry)
        return {"sys": dict(entry["sys"], version=2), "fields": entry["fields"]}

    def entry_fields(self, slug):
        for entry in self.created_entries:
            if entry["fields"]["slug"][self.locale] == slug:
                return entry["fields"]
        raise KeyError(slug)


def blog_post_content_type(content_format="richtext"):
    return {
        "sys": {"id": "blogPost"},
        "name": "Blog Post",
        "fields": [
            {"id": "postTitle", "type": "Symbol"},
            {"id": "slug", "type": "Symbol"},
            {"id": "content", "type": "RichText" if content_format == "richtext" else "Text"},
            {"id": "publishDate", "type": "Date"},
            {"id": "featuredImage", "type": "Link", "linkType": "Asset"},
            {"id": "tags", "type": "Symbol"},
            {"id": "categories", "type": "Symbol"},
        ],
    }


def raw_config(**migration):
    return {
        "wordpress": {"endpoint": "https://blog.example.com/wp-json/wp/v2", "import_post_count": 10},
        "contentful": {"access_token": "CFPAT-test-token", "space_id": "space-1"},
        "migration": {"max_workers": 3, **migration},
    }
