"""Async client for the journey API, mirroring the calls the web frontend makes."""

import httpx

DEFAULT_BASE_URL = "http://localhost:3001"


class ClientError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class JourneyClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30,
    ):
        self.token = token
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def _request(self, method: str, path: str, **kwargs):
        resp = await self._client.request(method, path, headers=self._headers(), **kwargs)
        if resp.is_success:
            return resp.json()
        try:
            message = resp.json().get("error", resp.text)
        except ValueError:
            message = resp.text
        raise ClientError(resp.status_code, message)

    # --- Gates ---

    async def verify_password(self, password: str) -> str:
        """Exchange the site password for a token and keep it for later calls."""
        data = await self._request("POST", "/api/verify-password", json={"password": password})
        self.token = data["token"]
        return self.token

    async def admin_login(self, password: str) -> str:
        data = await self._request("POST", "/api/admin/login", json={"password": password})
        self.token = data["token"]
        return self.token

    def logout(self) -> None:
        self.token = None

    # --- Reads ---

    async def get_journey(self) -> list[dict]:
        return await self._request("GET", "/api/journey")

    async def admin_list_steps(self) -> list[dict]:
        return await self._request("GET", "/api/admin/journey")

    # --- Admin writes ---

    async def upload_image(self, image_data: str, public_id: str | None = None) -> dict:
        body = {"image_data": image_data}
        if public_id:
            body["public_id"] = public_id
        return await self._request("POST", "/api/admin/upload-image", json=body)

    async def create_step(self, step: dict) -> dict:
        data = await self._request("POST", "/api/admin/journey", json=step)
        return data["data"]

    async def update_step(self, step_id: int, step: dict) -> dict:
        data = await self._request("PUT", f"/api/admin/journey/{step_id}", json=step)
        return data["data"]

    async def delete_step(self, step_id: int) -> None:
        await self._request("DELETE", f"/api/admin/journey/{step_id}")
