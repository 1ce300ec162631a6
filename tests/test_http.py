"""Tests for warble.http — Headers, Request, and Response."""

from warble.http.headers import Headers
from warble.http.request import Request
from warble.http.response import Response


class TestHeaders:
    def test_case_insensitive(self) -> None:
        headers = Headers([("Content-Type", "text/html")])
        assert headers["content-type"] == "text/html"
        assert "CONTENT-TYPE" in headers
        assert 5 not in headers

    def test_repeated_values(self) -> None:
        headers = Headers([("Accept", "a"), ("accept", "b")])
        assert headers["accept"] == "a"
        assert headers.get_list("ACCEPT") == ["a", "b"]
        assert len(headers) == 1

    def test_from_raw(self) -> None:
        headers = Headers.from_raw([(b"x-token", b"abc")])
        assert headers["X-Token"] == "abc"
        assert headers.raw == ((b"x-token", b"abc"),)


class TestRequest:
    def test_url_and_query(self) -> None:
        request = Request(method="GET", path="/shop", query_string="page=2&q=")
        assert request.url == "/shop?page=2&q="
        assert request.query == {"page": "2", "q": ""}

    def test_context_shared_with_copies(self) -> None:
        request = Request(method="GET", path="/shop")
        copy = request.with_path_params({"id": "1"})
        copy.set_context("dispatchingId", "abc")
        assert request.get_context("dispatchingId") == "abc"
        assert copy.path_params == {"id": "1"}
        assert request.path_params == {}

    def test_from_asgi(self) -> None:
        scope = {
            "type": "http",
            "method": "POST",
            "path": "/shop/items",
            "query_string": b"a=1",
            "headers": [(b"content-type", b"application/json")],
            "client": ("127.0.0.1", 5000),
        }

        async def receive():
            return {"type": "http.request", "body": b"", "more_body": False}

        request = Request.from_asgi(scope, receive)
        assert request.method == "POST"
        assert request.query == {"a": "1"}
        assert request.content_type == "application/json"
        assert request.client == ("127.0.0.1", 5000)

    async def test_body_streamed_and_cached(self) -> None:
        chunks = [
            {"type": "http.request", "body": b'{"a": ', "more_body": True},
            {"type": "http.request", "body": b"1}", "more_body": False},
        ]

        async def receive():
            return chunks.pop(0)

        request = Request(method="POST", path="/", _receive=receive)
        assert await request.json() == {"a": 1}
        assert await request.text() == '{"a": 1}'


class TestResponse:
    def test_defaults(self) -> None:
        response = Response("hi")
        assert response.status == 200
        assert response.content_type == "text/plain; charset=utf-8"
        assert response.body_bytes == b"hi"

    def test_chaining_returns_new_instances(self) -> None:
        original = Response("hi")
        changed = original.with_status(201).with_header("X-Id", "7")
        assert original.status == 200
        assert changed.status == 201
        assert changed.header("x-id") == "7"
        assert original.header("x-id") is None

    def test_content_type_header_routed_to_field(self) -> None:
        response = Response("{}").with_headers({"Content-Type": "application/json"})
        assert response.content_type == "application/json"
        assert response.headers == ()

    def test_json(self) -> None:
        response = Response.json({"a": [1, 2]}, status=202)
        assert response.status == 202
        assert response.header("content-type") == "application/json"
        assert response.json_body() == {"a": [1, 2]}
