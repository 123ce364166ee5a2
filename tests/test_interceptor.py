"""
Tests for the session-affinity cookie interceptor.

Covers:
- Cookie minting when the request has no session cookie
- No-op when the cookie is already present
- Strict vs. substring cookie matching
- Type-narrowing fallbacks and the no-op after_handshake
"""

import logging
import re

import pytest

from helloworld.modules.handshake import (
    HEADERS_ATTRIBUTE,
    HttpHandshakeResponse,
    ServerHandshakeRequest,
    ServerHandshakeResponse,
    SessionCookieInterceptor,
    current_time_millis,
    has_cookie,
)

COOKIE_PATTERN = re.compile(r"^awsappcookie=(\d+)$")


@pytest.fixture
def interceptor():
    return SessionCookieInterceptor()


def test_no_cookie_header_adds_set_cookie(interceptor, make_request, handshake_response):
    """Request without Cookie gets exactly one Set-Cookie with a current timestamp."""
    attributes = {}

    before = current_time_millis()
    proceed = interceptor.before_handshake(make_request(), handshake_response, None, attributes)
    after = current_time_millis()

    assert proceed is True
    set_cookies = handshake_response.headers.getlist("set-cookie")
    assert len(set_cookies) == 1
    match = COOKIE_PATTERN.match(set_cookies[0])
    assert match is not None
    assert before <= int(match.group(1)) <= after


def test_no_cookie_stores_response_headers_in_attributes(interceptor, make_request, handshake_response):
    attributes = {}

    interceptor.before_handshake(make_request(), handshake_response, None, attributes)

    assert attributes[HEADERS_ATTRIBUTE] is handshake_response.headers


def test_existing_cookie_leaves_response_untouched(interceptor, make_request, handshake_response):
    request = make_request(headers=[("Cookie", "awsappcookie=1690000000000")])
    attributes = {}

    proceed = interceptor.before_handshake(request, handshake_response, None, attributes)

    assert proceed is True
    assert handshake_response.headers.raw == []
    assert attributes == {}


def test_other_cookie_is_treated_as_missing(interceptor, make_request, handshake_response):
    request = make_request(headers=[("Cookie", "other=value")])

    proceed = interceptor.before_handshake(request, handshake_response, None, {})

    assert proceed is True
    assert len(handshake_response.headers.getlist("set-cookie")) == 1


def test_cookie_among_several_pairs_is_found(interceptor, make_request, handshake_response):
    request = make_request(headers=[("Cookie", "theme=dark; awsappcookie=42; lang=en")])

    interceptor.before_handshake(request, handshake_response, None, {})

    assert handshake_response.headers.getlist("set-cookie") == []


def test_cookie_in_second_cookie_header_is_found(interceptor, make_request, handshake_response):
    request = make_request(headers=[("Cookie", "theme=dark"), ("Cookie", "awsappcookie=42")])

    interceptor.before_handshake(request, handshake_response, None, {})

    assert handshake_response.headers.getlist("set-cookie") == []


def test_repeated_check_with_cookie_adds_nothing(interceptor, make_request, handshake_response):
    request = make_request(headers=[("Cookie", "awsappcookie=1690000000000")])

    assert interceptor.before_handshake(request, handshake_response, None, {}) is True
    assert interceptor.before_handshake(request, handshake_response, None, {}) is True

    assert handshake_response.headers.raw == []


def test_custom_clock_and_cookie_name(make_request, handshake_response):
    interceptor = SessionCookieInterceptor(cookie_name="lbsession", clock=lambda: 1234)

    interceptor.before_handshake(make_request(), handshake_response, None, {})

    assert handshake_response.headers.getlist("set-cookie") == ["lbsession=1234"]


def test_strict_mode_rejects_prefixed_cookie_name(make_request, handshake_response):
    """A cookie whose name merely ends with the session cookie name does not count."""
    interceptor = SessionCookieInterceptor(strict=True)
    request = make_request(headers=[("Cookie", "fooawsappcookie=1")])

    interceptor.before_handshake(request, handshake_response, None, {})

    assert len(handshake_response.headers.getlist("set-cookie")) == 1


def test_substring_mode_accepts_prefixed_cookie_name(make_request, handshake_response):
    interceptor = SessionCookieInterceptor(strict=False)
    request = make_request(headers=[("Cookie", "fooawsappcookie=1")])

    interceptor.before_handshake(request, handshake_response, None, {})

    assert handshake_response.headers.getlist("set-cookie") == []


def test_non_http_request_is_skipped(interceptor, handshake_response):
    attributes = {}

    proceed = interceptor.before_handshake(ServerHandshakeRequest(), handshake_response, None, attributes)

    assert proceed is True
    assert handshake_response.headers.raw == []
    assert attributes == {}


def test_non_http_response_is_skipped(interceptor, make_request):
    response = ServerHandshakeResponse()
    attributes = {}

    proceed = interceptor.before_handshake(make_request(), response, None, attributes)

    assert proceed is True
    assert attributes == {}


@pytest.mark.parametrize(
    "request_value,response_value,handler,exc",
    [
        (None, None, None, None),
        (ServerHandshakeRequest(), ServerHandshakeResponse(), object(), RuntimeError("upgrade failed")),
        ("request", "response", "handler", ValueError()),
    ],
)
def test_after_handshake_is_noop(interceptor, request_value, response_value, handler, exc):
    assert interceptor.after_handshake(request_value, response_value, handler, exc) is None


def test_after_handshake_does_not_mutate_response(interceptor, make_request):
    response = HttpHandshakeResponse()

    interceptor.after_handshake(make_request(), response, None, None)

    assert response.headers.raw == []


def test_logs_path_for_both_branches(interceptor, make_request, caplog):
    with caplog.at_level(logging.INFO, logger="helloworld.modules.handshake.interceptor"):
        interceptor.before_handshake(make_request(path="/helloworld"), HttpHandshakeResponse(), None, {})
        interceptor.before_handshake(
            make_request(path="/helloworld", headers=[("Cookie", "awsappcookie=1")]),
            HttpHandshakeResponse(),
            None,
            {},
        )

    messages = [record.getMessage() for record in caplog.records]
    assert "Cookie header is added to response, path - /helloworld" in messages
    assert "Request already contains cookie header, path - /helloworld" in messages


@pytest.mark.parametrize(
    "values,strict,expected",
    [
        ([], True, False),
        (["awsappcookie=1"], True, True),
        (["a=1;awsappcookie"], True, True),
        ([" awsappcookie = 1 "], True, True),
        (["awsappcookie2=1"], True, False),
        (["x=awsappcookie"], True, False),
        (["x=awsappcookie"], False, True),
        (["other=value"], False, False),
    ],
)
def test_has_cookie(values, strict, expected):
    assert has_cookie(values, "awsappcookie", strict=strict) is expected
