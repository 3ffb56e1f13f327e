"""
Admin channel client.

Usage:
    async with AdminClient("/var/run/syndication/admin") as client:
        user_id = await client.new_user("bob", "hunter22")
"""

import asyncio
from pathlib import Path
from typing import Any

from .protocol import AdminRequest, AdminResponse, UserInfo, read_frame, send_message


class AdminError(Exception):
    """The admin server answered with ok=false."""

    def __init__(self, message: str | None):
        super().__init__(message or "Admin request failed")
        self.message = message or ""


class AdminClient:
    """Speaks the admin protocol over one connection."""

    def __init__(self, socket_path: str | Path):
        self.socket_path = str(socket_path)
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    async def connect(self):
        self._reader, self._writer = await asyncio.open_unix_connection(self.socket_path)

    async def close(self):
        if self._writer is not None:
            self._writer.close()
            try:
                await self._writer.wait_closed()
            except ConnectionError:
                pass
            self._writer = None
            self._reader = None

    async def __aenter__(self) -> "AdminClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def request(self, method: str, arg: Any = None) -> AdminResponse:
        """Send one request and wait for its response."""
        if self._writer is None:
            await self.connect()
        await send_message(self._writer, AdminRequest(method=method, arg=arg))
        return await self.receive()

    async def receive(self) -> AdminResponse:
        payload = await read_frame(self._reader)
        if payload is None:
            raise ConnectionError("Admin server closed the connection")
        return AdminResponse.model_validate_json(payload)

    async def call(self, method: str, arg: Any = None) -> Any:
        """Send a request and return its result, raising AdminError on failure."""
        response = await self.request(method, arg)
        if not response.ok:
            raise AdminError(response.message)
        return response.result

    # ─────────────────────────────────────────────────────────────
    # Methods
    # ─────────────────────────────────────────────────────────────

    async def new_user(self, username: str, password: str) -> str:
        return await self.call("NewUser", {"username": username, "password": password})

    async def delete_user(self, user_id: str) -> None:
        await self.call("DeleteUser", user_id)

    async def get_user_id(self, username: str) -> str:
        return await self.call("GetUserID", username)

    async def get_users(self, limit: int = 100) -> list[UserInfo]:
        return [UserInfo.model_validate(item) for item in await self.call("GetUsers", limit)]

    async def change_user_name(self, user_id: str, new_name: str) -> None:
        await self.call("ChangeUserName", {"user_id": user_id, "new_name": new_name})

    async def change_user_password(self, user_id: str, new_password: str) -> None:
        await self.call("ChangeUserPassword", {"user_id": user_id, "new_password": new_password})
