"""Shared fixtures: httpx clients backed by an in-memory route table."""

import httpx
import pytest


def _route_handler(routes: dict):
    """Map a request path to a canned response.

    Values: dict/list -> JSON 200, str -> text 200, bytes -> raw 200,
    int -> that status with an empty body, exception -> raised.
    The dict is looked up on every request, so tests can change a
    route after the client was created.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path not in routes:
            return httpx.Response(404)
        route = routes[request.url.path]
        if isinstance(route, Exception):
            raise route
        if isinstance(route, bool) or route is None:
            return httpx.Response(200, content=b"null" if route is None else b"true")
        if isinstance(route, int):
            return httpx.Response(route)
        if isinstance(route, str):
            return httpx.Response(200, text=route)
        if isinstance(route, bytes):
            return httpx.Response(200, content=route)
        return httpx.Response(200, json=route)

    return handler


@pytest.fixture
def make_http_client():
    created = []

    def factory(routes: dict) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(_route_handler(routes)))
        created.append(client)
        return client

    yield factory

    for client in created:
        client.close()
