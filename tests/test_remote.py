"""Tests for the HTTP collaborators, using httpx.MockTransport."""

import json

import httpx
import pytest

from splittrack.core.exceptions import RemoteError
from splittrack.remote import SERVER_ERRORS
from splittrack.remote.analytics import AnalyticsClient
from splittrack.remote.client import TestTrackClient
from splittrack.services.visitor import Visitor

BASE_URL = "http://testtrack.test"

SPLITS = {
    "blue_button": {"false": 50, "true": 50},
    "time": {"hammertime": 100, "clobberin_time": 0},
}


class Recorder:
    """MockTransport handler that routes by path and records requests."""

    def __init__(self, routes):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"detail": "not found"})
        if isinstance(route, Exception):
            raise route
        return route

    def paths(self):
        return [(r.method, r.url.path) for r in self.requests]


def make_client(routes, **kwargs):
    recorder = Recorder(routes)
    client = TestTrackClient(base_url=BASE_URL, transport=httpx.MockTransport(recorder), **kwargs)
    return client, recorder


# ======================================================================
# Split registry
# ======================================================================


class TestSplitRegistry:
    def test_parses_the_registry(self):
        client, _ = make_client({("GET", "/api/v1/split_registry"): httpx.Response(200, json={"splits": SPLITS})})
        assert client.fetch_split_registry() == SPLITS

    def test_cached_within_ttl(self):
        client, recorder = make_client(
            {("GET", "/api/v1/split_registry"): httpx.Response(200, json={"splits": SPLITS})},
            split_registry_ttl=60,
        )
        client.fetch_split_registry()
        client.fetch_split_registry()
        assert recorder.paths() == [("GET", "/api/v1/split_registry")]

    def test_ttl_zero_disables_the_cache(self):
        client, recorder = make_client(
            {("GET", "/api/v1/split_registry"): httpx.Response(200, json={"splits": SPLITS})},
            split_registry_ttl=0,
        )
        client.fetch_split_registry()
        client.fetch_split_registry()
        assert len(recorder.requests) == 2

    def test_shared_across_visitors(self):
        client, recorder = make_client(
            {("GET", "/api/v1/split_registry"): httpx.Response(200, json={"splits": SPLITS})},
            split_registry_ttl=60,
        )
        Visitor(client=client).ab("blue_button")
        Visitor(client=client).ab("blue_button")
        assert len(recorder.requests) == 1

    def test_rejects_unusable_weights(self):
        bad = {"splits": {"broken": {"a": 0, "b": 0}}}
        client, _ = make_client({("GET", "/api/v1/split_registry"): httpx.Response(200, json=bad)})
        with pytest.raises(SERVER_ERRORS):
            client.fetch_split_registry()

    def test_server_error_raises(self):
        client, _ = make_client({("GET", "/api/v1/split_registry"): httpx.Response(503)})
        with pytest.raises(httpx.HTTPStatusError):
            client.fetch_split_registry()

    def test_malformed_body_is_a_transport_failure(self):
        client, _ = make_client({("GET", "/api/v1/split_registry"): httpx.Response(200, text="<html>oops</html>")})
        with pytest.raises(httpx.DecodingError):
            client.fetch_split_registry()


# ======================================================================
# Visitors, identifiers, assignments
# ======================================================================


class TestVisitorEndpoints:
    def test_fetch_assignment_registry(self):
        body = {"id": "abc", "assignment_registry": {"blue_button": "true"}}
        client, recorder = make_client({("GET", "/api/v1/visitors/abc"): httpx.Response(200, json=body)})
        assert client.fetch_assignment_registry("abc") == {"blue_button": "true"}
        assert recorder.paths() == [("GET", "/api/v1/visitors/abc")]

    def test_create_identifier(self):
        body = {"visitor": {"id": "server_id", "assignment_registry": {"foo": "definitely"}}}
        client, recorder = make_client({("POST", "/api/v1/identifier"): httpx.Response(200, json=body)})

        remote = client.create_identifier("myapp_user_id", "abc", "444")

        assert remote.id == "server_id"
        assert remote.assignment_registry == {"foo": "definitely"}
        assert json.loads(recorder.requests[0].content) == {
            "identifier_type": "myapp_user_id",
            "visitor_id": "abc",
            "value": "444",
        }

    def test_create_assignment(self):
        client, recorder = make_client({("POST", "/api/v1/assignment"): httpx.Response(204)})
        client.create_assignment("abc", "blue_button", "true")
        assert json.loads(recorder.requests[0].content) == {
            "visitor_id": "abc",
            "split_name": "blue_button",
            "variant": "true",
        }


class TestVisitorWithHttpClient:
    def test_unreachable_service_puts_visitor_offline(self):
        client, _ = make_client(
            {
                ("GET", "/api/v1/split_registry"): httpx.Response(200, json={"splits": SPLITS}),
                ("GET", "/api/v1/visitors/abc"): httpx.ConnectTimeout("timed out"),
            }
        )
        visitor = Visitor(id="abc", client=client)

        assert visitor.ab("blue_button") in (True, False)
        assert visitor.offline
        assert visitor.new_assignments == {}

    def test_server_error_puts_visitor_offline(self):
        client, _ = make_client({("GET", "/api/v1/split_registry"): httpx.Response(500)})
        visitor = Visitor(client=client)

        assert visitor.ab("blue_button") is False
        assert visitor.offline

    def test_malformed_body_puts_visitor_offline(self):
        client, _ = make_client({("GET", "/api/v1/split_registry"): httpx.Response(200, text="<html>oops</html>")})
        visitor = Visitor(client=client)

        def declare(v):
            v.when("true", lambda: ".blue")
            v.default("false", lambda: ".red")

        assert visitor.vary("blue_button", declare) == ".red"
        assert visitor.vary("blue_button", declare) == ".red"
        assert visitor.offline
        assert visitor.new_assignments == {}


# ======================================================================
# Analytics
# ======================================================================


class TestAnalyticsClient:
    def test_alias_posts_event(self):
        recorder = Recorder({("POST", "/track"): httpx.Response(200, text="1")})
        analytics = AnalyticsClient(
            url="https://analytics.test/track", token="tok", transport=httpx.MockTransport(recorder)
        )

        analytics.alias("fake_visitor_id", "fake_existing_id")

        payload = json.loads(recorder.requests[0].content)
        assert payload["event"] == "$create_alias"
        assert payload["properties"] == {
            "distinct_id": "fake_existing_id",
            "alias": "fake_visitor_id",
            "token": "tok",
        }

    def test_alias_failure_raises(self):
        recorder = Recorder({("POST", "/track"): httpx.Response(500)})
        analytics = AnalyticsClient(url="https://analytics.test/track", transport=httpx.MockTransport(recorder))

        with pytest.raises(
            RemoteError,
            match="analytics alias failed for existing_id: fake_existing_id, alias_id: fake_visitor_id",
        ):
            analytics.alias("fake_visitor_id", "fake_existing_id")

    def test_alias_transport_error_raises(self):
        recorder = Recorder({("POST", "/track"): httpx.ConnectError("down")})
        analytics = AnalyticsClient(url="https://analytics.test/track", transport=httpx.MockTransport(recorder))

        with pytest.raises(RemoteError):
            analytics.alias("a", "b")
