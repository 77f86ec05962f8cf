import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Tuple

import httpx

from .config import Settings, settings as default_settings
from .errors import ApiError, AuthenticationError, error_from_response
from .query_cache import QueryCache
from .schemas import REDEEM_STATUSES, dump
from .storage import FileTokenStore, MemoryTokenStore, TokenStore

logger = logging.getLogger(__name__)

REFRESH_PATH = "/auth/refresh"


class ApiClient:
    """Async client for the Tiger Mood Corner REST API.

    Every request carries the stored access token as a bearer header. A 401
    triggers one refresh through ``/auth/refresh`` followed by one retry of
    the original request; concurrent 401s share a single refresh call and
    its outcome.

    ``on_auth_failure`` may be a plain function or a coroutine function. It
    runs once each time the session is lost.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        token_store: TokenStore | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        cache: QueryCache | None = None,
        on_auth_failure: Callable[[AuthenticationError], Any] | None = None,
        settings: Settings | None = None,
    ):
        cfg = settings or default_settings
        self.base_url = (base_url or cfg.api_base_url).rstrip("/")
        if token_store is None:
            token_store = FileTokenStore(cfg.token_file) if cfg.token_file else MemoryTokenStore()
        self.tokens = token_store
        if cache is None and cfg.cache_ttl > 0:
            cache = QueryCache(cfg.cache_ttl)
        self.cache = cache
        self.on_auth_failure = on_auth_failure
        self._refresh_lock = asyncio.Lock()
        # (access token the refresh tried to replace, resulting error)
        self._failed_refresh: Tuple[str | None, AuthenticationError] | None = None
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=cfg.request_timeout if timeout is None else timeout,
            transport=transport,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._http.aclose()

    # ---------------- session ----------------
    @property
    def is_authenticated(self) -> bool:
        return bool(self.tokens.access_token)

    def set_session(self, access_token: str, refresh_token: str):
        self._failed_refresh = None
        self.tokens.set_tokens(access_token, refresh_token)

    def clear_session(self):
        self.tokens.clear()
        if self.cache is not None:
            self.cache.clear()

    def headers(self, token: str | None = None) -> Dict[str, str]:
        token = token if token is not None else self.tokens.access_token
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    def _store_session(self, data: Any):
        if isinstance(data, Mapping) and data.get("accessToken") and data.get("refreshToken"):
            self.tokens.set_tokens(data["accessToken"], data["refreshToken"])
            self._failed_refresh = None
        if self.cache is not None:
            self.cache.clear()

    async def _fail_auth(self, message: str, stale_token: str | None,
                         response: httpx.Response | None = None) -> AuthenticationError:
        logger.warning("Authentication lost: %s", message)
        self.clear_session()
        error = AuthenticationError(message, 401, response)
        self._failed_refresh = (stale_token, error)
        if self.on_auth_failure is not None:
            result = self.on_auth_failure(error)
            if inspect.isawaitable(result):
                await result
        return error

    # ---------------- transport ----------------
    async def _send(self, method: str, path: str, *, json: Any = None,
                    params: Mapping[str, Any] | None = None, refresh: bool = True) -> httpx.Response:
        sent_token = self.tokens.access_token
        response = await self._http.request(method, path, json=json, params=params,
                                            headers=self.headers(sent_token))
        logger.debug("%s %s -> %s", method, path, response.status_code)

        if response.status_code == 401 and refresh:
            new_token = await self._refresh_access_token(sent_token, response)
            response = await self._http.request(method, path, json=json, params=params,
                                                headers=self.headers(new_token))
            logger.debug("%s %s (retry) -> %s", method, path, response.status_code)
            if response.status_code == 401:
                raise error_from_response(response)

        if response.is_error:
            raise error_from_response(response)
        return response

    async def _refresh_access_token(self, stale_token: str | None, failed: httpx.Response) -> str:
        async with self._refresh_lock:
            current = self.tokens.access_token
            if current and current != stale_token:
                # another request already refreshed while we waited
                return current

            if self._failed_refresh is not None and self._failed_refresh[0] == stale_token:
                # the refresh for this same token already failed; share that outcome
                shared = self._failed_refresh[1]
                raise AuthenticationError(shared.message, 401, failed) from shared.__cause__

            refresh_token = self.tokens.refresh_token
            if not refresh_token:
                raise await self._fail_auth("No refresh token available", stale_token, failed)

            logger.info("Access token rejected; refreshing")
            try:
                response = await self._http.post(REFRESH_PATH, json={"refreshToken": refresh_token})
                if response.is_error:
                    raise error_from_response(response)
                payload = self._data(response)
                access_token = payload["accessToken"]
            except (httpx.HTTPError, ApiError, KeyError, TypeError, ValueError) as exc:
                raise await self._fail_auth("Token refresh failed", stale_token, failed) from exc

            self._failed_refresh = None
            self.tokens.set_tokens(access_token, payload.get("refreshToken") or refresh_token)
            return access_token

    @staticmethod
    def _envelope(response: httpx.Response) -> Any:
        if not response.content:
            return None
        body = response.json()
        if isinstance(body, Mapping) and body.get("success") is False:
            raise ApiError(body.get("message") or "Request failed", response.status_code, response)
        return body

    @classmethod
    def _data(cls, response: httpx.Response) -> Any:
        body = cls._envelope(response)
        if isinstance(body, Mapping) and "data" in body:
            return body["data"]
        return body

    async def _call(self, method: str, path: str, **kwargs) -> Any:
        return self._data(await self._send(method, path, **kwargs))

    async def _cached(self, key: tuple, fetch):
        if self.cache is None:
            return await fetch()
        return await self.cache.get_or_fetch(key, fetch)

    def _invalidate(self, *resources: str):
        if self.cache is not None:
            self.cache.invalidate(*resources)

    @staticmethod
    def _page_params(page: int, limit: int, **filters) -> Dict[str, Any]:
        if page < 1 or limit < 1:
            raise ValueError("page and limit must be positive")
        params: Dict[str, Any] = {"page": page, "limit": limit}
        params.update({k: v for k, v in filters.items() if v is not None})
        return params

    async def request(self, method: str, path: str, *, json: Any = None,
                      params: Mapping[str, Any] | None = None) -> httpx.Response:
        return await self._send(method.upper(), path, json=dump(json), params=params)

    # ---------------- auth ----------------
    async def login(self, email: str, password: str):
        data = await self._call("POST", "/auth/login",
                                json={"email": email, "password": password}, refresh=False)
        self._store_session(data)
        return data

    async def register(self, email: str, password: str, name: str):
        data = await self._call("POST", "/auth/register",
                                json={"email": email, "password": password, "name": name}, refresh=False)
        self._store_session(data)
        return data

    async def logout(self) -> None:
        try:
            await self._send("POST", "/auth/logout", refresh=False)
        except (httpx.HTTPError, ApiError) as exc:
            logger.warning("Logout call failed, clearing local session anyway: %s", exc)
        finally:
            self.clear_session()

    async def get_current_user(self):
        return await self._call("GET", "/auth/me")

    async def update_profile(self, data):
        return await self._call("PUT", "/auth/profile", json=dump(data))

    async def change_password(self, data):
        return await self._call("POST", "/auth/change-password", json=dump(data))

    # ---------------- posts ----------------
    async def get_posts(self, page: int = 1, limit: int = 10):
        params = self._page_params(page, limit)
        return await self._cached(("posts", page, limit), lambda: self._call("GET", "/posts", params=params))

    async def get_highlighted_posts(self, limit: int = 10):
        return await self._cached(("posts", "highlighted", limit),
                                  lambda: self._call("GET", "/posts/highlighted", params={"limit": limit}))

    async def get_post(self, post_id: str):
        return await self._call("GET", f"/posts/{post_id}")

    async def create_post(self, data):
        result = await self._call("POST", "/posts", json=dump(data))
        self._invalidate("posts")
        return result

    async def like_post(self, post_id: str):
        # the like endpoint hands back the whole envelope, not just data
        response = await self._send("POST", f"/posts/{post_id}/like")
        self._invalidate("posts")
        return self._envelope(response)

    async def unlike_post(self, post_id: str):
        result = await self._call("DELETE", f"/posts/{post_id}/like")
        self._invalidate("posts")
        return result

    async def share_post(self, post_id: str):
        result = await self._call("POST", f"/posts/{post_id}/share")
        self._invalidate("posts")
        return result

    # ---------------- mood cards ----------------
    async def create_mood_card(self, data):
        return await self._call("POST", "/mood-cards", json=dump(data))

    async def share_mood_card(self, card_id: str, share_data=None):
        return await self._call("POST", f"/mood-cards/{card_id}/share", json=dump(share_data) or {})

    # ---------------- rewards & redeems ----------------
    async def get_rewards(self, page: int = 1, limit: int = 10):
        params = self._page_params(page, limit)
        return await self._cached(("rewards", page, limit), lambda: self._call("GET", "/rewards", params=params))

    async def create_redeem_request(self, data):
        result = await self._call("POST", "/redeems", json=dump(data))
        self._invalidate("rewards", "redeems")
        return result

    async def get_redeem_history(self):
        return await self._cached(("redeems",), lambda: self._call("GET", "/redeems"))

    # ---------------- wishes ----------------
    async def get_highlighted_wishes(self, limit: int = 10, cursor: str | None = None):
        params = {"limit": limit}
        if cursor:
            params["cursor"] = cursor

        async def fetch():
            return self._envelope(await self._send("GET", "/wishes/highlighted", params=params))

        return await self._cached(("wishes", "highlighted", limit, cursor), fetch)

    async def create_wish(self, content: str):
        result = await self._call("POST", "/wishes", json={"content": content})
        self._invalidate("wishes")
        return result

    async def share_wish(self, wish_id: str, platform: str | None = None):
        body = {"platform": platform} if platform else {}
        return await self._call("POST", f"/wishes/{wish_id}/share", json=body)

    # ---------------- uploads & analytics ----------------
    async def get_signed_upload_url(self, filename: str, content_type: str):
        return await self._call("POST", "/uploads/sign",
                                json={"filename": filename, "contentType": content_type})

    async def track_corner_analytics(self, events: Iterable) -> None:
        await self._send("POST", "/analytics/corners", json={"events": [dump(e) for e in events]})

    # ---------------- admin ----------------
    async def get_admin_stats(self):
        return await self._call("GET", "/admin/stats")

    async def get_users(self, page: int = 1, limit: int = 10):
        return await self._call("GET", "/admin/users", params=self._page_params(page, limit))

    async def pin_post(self, post_id: str):
        result = await self._call("POST", f"/admin/posts/{post_id}/pin")
        self._invalidate("posts")
        return result

    async def highlight_post(self, post_id: str):
        result = await self._call("POST", f"/admin/posts/{post_id}/highlight")
        self._invalidate("posts")
        return result

    async def unhighlight_post(self, post_id: str):
        result = await self._call("DELETE", f"/admin/posts/{post_id}/highlight")
        self._invalidate("posts")
        return result

    async def get_redeem_logs(self, page: int = 1, limit: int = 10, status: str | None = None):
        return await self._call("GET", "/admin/redeems", params=self._page_params(page, limit, status=status))

    async def update_redeem_status(self, redeem_id: str, status: str):
        if status not in REDEEM_STATUSES:
            raise ValueError(f"Unknown redeem status: {status!r}")
        result = await self._call("PATCH", f"/admin/redeems/{redeem_id}", json={"status": status})
        self._invalidate("redeems", "rewards")
        return result

    async def create_reward(self, data):
        result = await self._call("POST", "/admin/rewards", json=dump(data))
        self._invalidate("rewards")
        return result

    async def update_reward(self, reward_id: str, data):
        result = await self._call("PUT", f"/admin/rewards/{reward_id}", json=dump(data))
        self._invalidate("rewards")
        return result

    async def delete_reward(self, reward_id: str):
        result = await self._call("DELETE", f"/admin/rewards/{reward_id}")
        self._invalidate("rewards")
        return result

    async def get_all_wishes(self, page: int = 1, limit: int = 10, highlighted: bool | None = None):
        filters = {} if highlighted is None else {"highlighted": str(highlighted).lower()}
        return await self._call("GET", "/admin/wishes", params=self._page_params(page, limit, **filters))

    async def toggle_wish_highlight(self, wish_id: str):
        result = await self._call("POST", f"/admin/wishes/{wish_id}/highlight")
        self._invalidate("wishes")
        return result

    async def delete_wish(self, wish_id: str):
        result = await self._call("DELETE", f"/admin/wishes/{wish_id}")
        self._invalidate("wishes")
        return result
