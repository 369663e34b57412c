"""Tests for the cookie probe."""

import pytest
import respx
from httpx import Response

from siteprobe.modules.scan import Status, Target
from siteprobe.modules.scan.probes.cookies import Cookie, CookieProbe, evaluate_cookies


class TestCookieParse:
    """Test Set-Cookie parsing."""

    def test_flags(self):
        cookie = Cookie.parse("sessionid=abc; Path=/; Secure; HttpOnly; SameSite=Strict")

        assert cookie.name == "sessionid"
        assert cookie.secure and cookie.http_only
        assert cookie.same_site == "Strict"
        assert cookie.session_like

    def test_bare_samesite_defaults_to_lax(self):
        assert Cookie.parse("theme=dark; SameSite").same_site == "Lax"

    def test_plain_cookie(self):
        cookie = Cookie.parse("theme=dark")

        assert not (cookie.secure or cookie.http_only or cookie.session_like)
        assert cookie.same_site is None


class TestEvaluateCookies:
    """Test cookie scoring."""

    def test_no_cookies(self):
        result = evaluate_cookies([], https=True)

        assert (result.score, result.max_score) == (1.0, 1.0)
        assert result.findings[0].status == Status.INFO

    def test_hardened_session_cookie(self):
        result = evaluate_cookies([Cookie("sid", secure=True, http_only=True, same_site="Lax")], https=True)

        assert result.score == result.max_score == 5.0

    def test_bare_session_cookie_gets_nothing(self):
        result = evaluate_cookies([Cookie("auth_token")], https=True)

        assert result.score == 0.0
        assert result.max_score == 5.0
        statuses = {f.name: f.status for f in result.findings}
        assert statuses["auth_token: Secure"] == Status.FAIL
        assert statuses["auth_token: HttpOnly"] == Status.FAIL
        assert statuses["auth_token: SameSite"] == Status.WARN

    def test_bare_regular_cookie_partial_credit(self):
        result = evaluate_cookies([Cookie("theme", same_site="None")], https=True)

        assert result.score == pytest.approx(0.5 + 0.25 + 0.25)
        assert result.max_score == 2.5

    def test_secure_not_judged_on_plain_http(self):
        result = evaluate_cookies([Cookie("theme", http_only=True, same_site="Strict")], https=False)

        assert not any(f.name == "theme: Secure" for f in result.findings)
        assert result.score == 1.5
        assert result.max_score == 2.5


class TestCookieProbe:
    """Test the probe against mocked responses."""

    @respx.mock
    async def test_cookies_from_final_response(self, target, options):
        respx.get("https://example.com/").mock(
            return_value=Response(302, headers={"Location": "https://example.com/home"})
        )
        respx.get("https://example.com/home").mock(
            return_value=Response(
                200,
                headers=[
                    ("Set-Cookie", "sessionid=1; Secure; HttpOnly; SameSite=Lax"),
                    ("Set-Cookie", "theme=dark"),
                ],
            )
        )

        result = await CookieProbe().run(target, options)

        assert result.findings[0].value == "2"
        assert result.max_score == 7.5

    @respx.mock
    async def test_redirect_loop_means_no_cookies(self, options):
        target = Target.from_url("https://example.com")
        respx.get("https://example.com/").mock(
            return_value=Response(302, headers={"Location": "https://example.com/"})
        )

        result = await CookieProbe().run(target, options)

        assert (result.score, result.max_score) == (1.0, 1.0)
