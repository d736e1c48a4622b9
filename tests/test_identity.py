"""Tests for visitor identity resolution and identity cookie issuance."""

from datetime import datetime, timedelta, timezone

from starlette.responses import Response

from app.services.identity import (
    EXPIRY_COOKIE_NAME,
    IDENTITY_TOKEN_LENGTH,
    USER_ID_COOKIE_NAME,
    RequestIdentityResolver,
    format_cookie_expiry,
    generate_identity_token,
    issue_identity_cookies,
    parse_cookie_expiry,
)

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def _resolver(token: str = "generated-token-0001") -> RequestIdentityResolver:
    return RequestIdentityResolver(token_factory=lambda: token, clock=lambda: NOW)


class TestResolveFromHeaders:
    def test_ip_and_user_agent_form_the_identity(self, make_request) -> None:
        request = make_request({"X-Forwarded-For": "1.2.3.4", "User-Agent": "AgentX"})

        assert _resolver().resolve(request) == "1.2.3.4-AgentX"

    def test_headers_win_over_cookies(self, make_request) -> None:
        request = make_request(
            {"X-Forwarded-For": "1.2.3.4", "User-Agent": "AgentX"},
            cookies={
                USER_ID_COOKIE_NAME: "cookie-identity",
                EXPIRY_COOKIE_NAME: format_cookie_expiry(NOW + timedelta(hours=1)),
            },
        )

        assert _resolver().resolve(request) == "1.2.3.4-AgentX"

    def test_resolution_is_deterministic(self, make_request) -> None:
        resolver = RequestIdentityResolver()
        headers = {"X-Forwarded-For": "10.0.0.1", "User-Agent": "Mozilla/5.0"}

        assert resolver.resolve(make_request(headers)) == resolver.resolve(make_request(headers))

    def test_ip_without_user_agent_is_not_enough(self, make_request) -> None:
        request = make_request({"X-Forwarded-For": "1.2.3.4"})

        assert _resolver("fallback").resolve(request) == "fallback"


class TestResolveFromCookies:
    def test_valid_cookie_pair_is_honoured(self, make_request) -> None:
        request = make_request(
            cookies={
                USER_ID_COOKIE_NAME: "cookie-identity",
                EXPIRY_COOKIE_NAME: format_cookie_expiry(NOW + timedelta(hours=3)),
            }
        )

        assert _resolver().resolve(request) == "cookie-identity"

    def test_expired_cookie_falls_back_to_random(self, make_request) -> None:
        request = make_request(
            cookies={
                USER_ID_COOKIE_NAME: "cookie-identity",
                EXPIRY_COOKIE_NAME: format_cookie_expiry(NOW - timedelta(seconds=1)),
            }
        )

        assert _resolver("fresh").resolve(request) == "fresh"

    def test_expiry_equal_to_now_is_not_honoured(self, make_request) -> None:
        request = make_request(
            cookies={
                USER_ID_COOKIE_NAME: "cookie-identity",
                EXPIRY_COOKIE_NAME: format_cookie_expiry(NOW),
            }
        )

        assert _resolver("fresh").resolve(request) == "fresh"

    def test_unparseable_expiry_falls_back_to_random(self, make_request) -> None:
        request = make_request(
            cookies={USER_ID_COOKIE_NAME: "cookie-identity", EXPIRY_COOKIE_NAME: "not-a-date"}
        )

        assert _resolver("fresh").resolve(request) == "fresh"

    def test_identity_cookie_without_expiry_falls_back_to_random(self, make_request) -> None:
        request = make_request(cookies={USER_ID_COOKIE_NAME: "cookie-identity"})

        assert _resolver("fresh").resolve(request) == "fresh"


class TestRandomFallback:
    def test_random_identities_differ(self, make_request) -> None:
        resolver = RequestIdentityResolver()

        first = resolver.resolve(make_request())
        second = resolver.resolve(make_request())

        assert first != second
        assert len(first) == IDENTITY_TOKEN_LENGTH

    def test_generated_token_is_url_safe(self) -> None:
        token = generate_identity_token()

        assert len(token) == 20
        assert all(ch.isalnum() or ch in "_-" for ch in token)


def test_parse_cookie_expiry_rejects_garbage() -> None:
    assert parse_cookie_expiry("yesterday-ish") is None


def test_parse_cookie_expiry_rejects_iso_8601() -> None:
    assert parse_cookie_expiry("2026-10-20T10:00:00Z") is None


def test_parse_cookie_expiry_reads_http_date() -> None:
    assert parse_cookie_expiry("Tue, 20 Oct 2026 10:00:00 GMT") == datetime(
        2026, 10, 20, 10, 0, 0, tzinfo=timezone.utc
    )


class TestIssueIdentityCookies:
    def _set_cookie_headers(self, response: Response) -> list[str]:
        return [
            value.decode("latin-1")
            for key, value in response.raw_headers
            if key == b"set-cookie"
        ]

    def test_sets_both_cookies_with_strict_same_site_and_max_age(self) -> None:
        response = issue_identity_cookies(
            Response(), token_factory=lambda: "abcdefghijklmnopqrst", now=NOW
        )

        headers = self._set_cookie_headers(response)
        assert len(headers) == 2

        user_cookie = next(h for h in headers if h.startswith(f"{USER_ID_COOKIE_NAME}="))
        expiry_cookie = next(h for h in headers if h.startswith(f"{EXPIRY_COOKIE_NAME}="))

        assert "userUuid=abcdefghijklmnopqrst" in user_cookie
        for header in (user_cookie, expiry_cookie):
            assert "Max-Age=86400" in header
            assert "samesite=strict" in header.lower()

        assert format_cookie_expiry(NOW + timedelta(hours=24)) in expiry_cookie

    def test_each_issue_mints_a_new_token(self) -> None:
        first = self._set_cookie_headers(issue_identity_cookies(Response()))
        second = self._set_cookie_headers(issue_identity_cookies(Response()))

        assert first[0] != second[0]
