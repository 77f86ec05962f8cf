import anyio
import httpx
import pytest

from fakes import body_of, envelope
from tigermood import ApiClient, AuthenticationError, MemoryTokenStore

pytestmark = pytest.mark.anyio


def bearer(request):
    return request.headers.get("Authorization")


def accept_only(token, data):
    """Handler that serves `data` to requests bearing `token` and 401s everything else."""
    def handler(request):
        if bearer(request) == f"Bearer {token}":
            return httpx.Response(200, json=envelope(data))
        return httpx.Response(401, json={"success": False, "message": "Token expired"})
    return handler


async def test_refreshes_once_and_retries_with_new_token(api, recorder, tokens):
    tokens.set_tokens("expired", "refresh-1")
    recorder.on("GET", "/auth/me", accept_only("fresh", {"id": "1"}))
    recorder.reply("POST", "/auth/refresh", body=envelope({"accessToken": "fresh", "refreshToken": "refresh-2"}))

    result = await api.get_current_user()

    assert result == {"id": "1"}
    refresh_calls = recorder.requests_to("POST", "/auth/refresh")
    assert len(refresh_calls) == 1
    assert body_of(refresh_calls[0]) == {"refreshToken": "refresh-1"}
    me_calls = recorder.requests_to("GET", "/auth/me")
    assert [bearer(r) for r in me_calls] == ["Bearer expired", "Bearer fresh"]
    assert tokens.access_token == "fresh"
    assert tokens.refresh_token == "refresh-2"


async def test_refresh_call_skips_authorization_header(api, recorder, tokens):
    tokens.set_tokens("expired", "refresh-1")
    recorder.on("GET", "/auth/me", accept_only("fresh", {"id": "1"}))
    recorder.reply("POST", "/auth/refresh", body=envelope({"accessToken": "fresh", "refreshToken": "refresh-2"}))

    await api.get_current_user()

    assert bearer(recorder.requests_to("POST", "/auth/refresh")[0]) is None


async def test_bare_refresh_response_without_rotation(api, recorder, tokens):
    tokens.set_tokens("expired", "refresh-1")
    recorder.on("GET", "/redeems", accept_only("fresh", []))
    recorder.reply("POST", "/auth/refresh", body={"accessToken": "fresh"})

    assert await api.get_redeem_history() == []
    assert tokens.access_token == "fresh"
    assert tokens.refresh_token == "refresh-1"


async def test_missing_refresh_token_clears_session(recorder):
    failures = []
    store = MemoryTokenStore(access_token="expired")
    recorder.reply("GET", "/auth/me", 401, {"success": False, "message": "Token expired"})

    async with ApiClient("http://test/api", token_store=store, transport=httpx.MockTransport(recorder),
                         on_auth_failure=failures.append) as api:
        with pytest.raises(AuthenticationError):
            await api.get_current_user()

    assert recorder.requests_to("POST", "/auth/refresh") == []
    assert len(recorder.requests_to("GET", "/auth/me")) == 1
    assert store.access_token is None
    assert store.refresh_token is None
    assert len(failures) == 1 and isinstance(failures[0], AuthenticationError)


async def test_failed_refresh_clears_session_without_retry(api, recorder, tokens):
    tokens.set_tokens("expired", "revoked")
    recorder.reply("GET", "/auth/me", 401, {"success": False, "message": "Token expired"})
    recorder.reply("POST", "/auth/refresh", 401, {"success": False, "message": "Invalid refresh token"})

    with pytest.raises(AuthenticationError) as exc:
        await api.get_current_user()

    assert exc.value.__cause__ is not None
    assert len(recorder.requests_to("POST", "/auth/refresh")) == 1
    assert len(recorder.requests_to("GET", "/auth/me")) == 1
    assert tokens.access_token is None
    assert tokens.refresh_token is None


async def test_refresh_network_failure_is_an_auth_failure(api, recorder, tokens):
    tokens.set_tokens("expired", "refresh-1")
    recorder.reply("GET", "/auth/me", 401, {"success": False, "message": "Token expired"})

    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    recorder.on("POST", "/auth/refresh", boom)

    with pytest.raises(AuthenticationError):
        await api.get_current_user()

    assert tokens.refresh_token is None


async def test_second_401_after_refresh_is_final(api, recorder, tokens):
    tokens.set_tokens("expired", "refresh-1")
    recorder.reply("GET", "/admin/stats", 401, {"success": False, "message": "Token expired"})
    recorder.reply("POST", "/auth/refresh", body=envelope({"accessToken": "fresh", "refreshToken": "refresh-2"}))

    with pytest.raises(AuthenticationError):
        await api.get_admin_stats()

    assert len(recorder.requests_to("POST", "/auth/refresh")) == 1
    assert len(recorder.requests_to("GET", "/admin/stats")) == 2


async def test_concurrent_401s_share_one_refresh(api, recorder, tokens):
    tokens.set_tokens("expired", "refresh-1")
    recorder.on("GET", "/posts", accept_only("fresh", {"items": []}))
    recorder.on("GET", "/rewards", accept_only("fresh", {"items": []}))
    recorder.on("GET", "/redeems", accept_only("fresh", []))

    async def slow_refresh(request):
        await anyio.sleep(0.05)
        return httpx.Response(200, json=envelope({"accessToken": "fresh", "refreshToken": "refresh-2"}))

    recorder.on("POST", "/auth/refresh", slow_refresh)

    results = {}

    async def run(name, call):
        results[name] = await call()

    async with anyio.create_task_group() as tg:
        tg.start_soon(run, "posts", api.get_posts)
        tg.start_soon(run, "rewards", api.get_rewards)
        tg.start_soon(run, "redeems", api.get_redeem_history)

    assert len(recorder.requests_to("POST", "/auth/refresh")) == 1
    assert results == {"posts": {"items": []}, "rewards": {"items": []}, "redeems": []}
    assert tokens.refresh_token == "refresh-2"


async def test_concurrent_401s_share_a_failed_refresh(recorder):
    failures = []
    store = MemoryTokenStore("expired", "revoked")
    recorder.reply("GET", "/auth/me", 401, {"success": False, "message": "Token expired"})
    recorder.reply("GET", "/redeems", 401, {"success": False, "message": "Token expired"})

    async def slow_rejection(request):
        await anyio.sleep(0.05)
        return httpx.Response(401, json={"success": False, "message": "Invalid refresh token"})

    recorder.on("POST", "/auth/refresh", slow_rejection)

    errors = {}

    async def run(name, call):
        try:
            await call()
        except AuthenticationError as exc:
            errors[name] = exc

    async with ApiClient("http://test/api", token_store=store, transport=httpx.MockTransport(recorder),
                         on_auth_failure=failures.append) as api:
        async with anyio.create_task_group() as tg:
            tg.start_soon(run, "me", api.get_current_user)
            tg.start_soon(run, "redeems", api.get_redeem_history)

    assert len(recorder.requests_to("POST", "/auth/refresh")) == 1
    assert len(failures) == 1
    assert set(errors) == {"me", "redeems"}
    for exc in errors.values():
        assert exc.message == "Token refresh failed"
        assert isinstance(exc.__cause__, AuthenticationError)
        assert exc.__cause__.message == "Invalid refresh token"
    assert store.access_token is None


async def test_async_auth_failure_callback_is_awaited(recorder):
    seen = []

    async def redirect_to_login(error):
        await anyio.sleep(0)
        seen.append(error)

    recorder.reply("GET", "/auth/me", 401, {"success": False, "message": "Token expired"})

    async with ApiClient("http://test/api", token_store=MemoryTokenStore("expired"),
                         transport=httpx.MockTransport(recorder), on_auth_failure=redirect_to_login) as api:
        with pytest.raises(AuthenticationError):
            await api.get_current_user()

    assert len(seen) == 1 and isinstance(seen[0], AuthenticationError)


async def test_new_session_after_failed_refresh_refreshes_again(api, recorder, tokens):
    tokens.set_tokens("expired", "revoked")
    recorder.reply("GET", "/auth/me", 401, {"success": False, "message": "Token expired"})
    recorder.reply("POST", "/auth/refresh", 401, {"success": False, "message": "Invalid refresh token"})
    with pytest.raises(AuthenticationError):
        await api.get_current_user()

    api.set_session("expired", "refresh-2")
    recorder.on("GET", "/auth/me", accept_only("fresh", {"id": "1"}))
    recorder.reply("POST", "/auth/refresh", body=envelope({"accessToken": "fresh", "refreshToken": "refresh-3"}))

    assert await api.get_current_user() == {"id": "1"}
    assert len(recorder.requests_to("POST", "/auth/refresh")) == 2


async def test_request_after_refresh_reuses_new_token(api, recorder, tokens):
    tokens.set_tokens("expired", "refresh-1")
    recorder.on("GET", "/auth/me", accept_only("fresh", {"id": "1"}))
    recorder.reply("POST", "/auth/refresh", body=envelope({"accessToken": "fresh", "refreshToken": "refresh-2"}))

    await api.get_current_user()
    await api.get_current_user()

    assert len(recorder.requests_to("POST", "/auth/refresh")) == 1
    assert bearer(recorder.calls[-1]) == "Bearer fresh"


async def test_logout_does_not_trigger_refresh(recorder):
    store = MemoryTokenStore("expired", "refresh-1")
    recorder.reply("POST", "/auth/logout", 401, {"success": False, "message": "Token expired"})

    async with ApiClient("http://test/api", token_store=store,
                         transport=httpx.MockTransport(recorder)) as api:
        await api.logout()

    assert recorder.requests_to("POST", "/auth/refresh") == []
    assert store.access_token is None