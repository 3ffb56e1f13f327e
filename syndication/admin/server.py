"""
Admin channel server.

Listens on a local Unix socket, readable only by the owning OS user, and
exposes user management. It never listens on the network.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Callable

from pydantic import TypeAdapter, ValidationError

from ..database import Database
from ..exceptions import SyndicationError, require_user
from ..services.user_service import UserService
from .protocol import (
    AdminRequest,
    AdminResponse,
    ChangeUserNameArgs,
    ChangeUserPasswordArgs,
    FrameError,
    NewUserArgs,
    UserInfo,
    read_frame,
    send_message,
)

logger = logging.getLogger(__name__)

SOCKET_MODE = 0o600
SOCKET_DIR_MODE = 0o700

_user_id = TypeAdapter(str)
_limit = TypeAdapter(int)


class AdminService:
    """
    Request/response server for account administration.

    Each accepted connection may send any number of requests. Connections
    beyond max_connections are refused with a "Too many connections" reply.
    """

    def __init__(
        self,
        db: Database,
        socket_path: str | Path,
        max_connections: int = 5,
        shutdown_timeout: float = 30.0,
    ):
        self.users = UserService(db)
        self.socket_path = Path(socket_path)
        self.max_connections = max_connections
        self.shutdown_timeout = shutdown_timeout
        self._server: asyncio.AbstractServer | None = None
        self._connections: set[asyncio.Task] = set()
        self._methods: dict[str, Callable[[Any], Any]] = {
            "NewUser": self.new_user,
            "DeleteUser": self.delete_user,
            "GetUserID": self.get_user_id,
            "GetUsers": self.get_users,
            "ChangeUserName": self.change_user_name,
            "ChangeUserPassword": self.change_user_password,
        }

    @property
    def is_running(self) -> bool:
        return self._server is not None

    # ─────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────

    async def start(self):
        """
        Bind the socket and start accepting connections.

        A stale socket file left by an unclean exit is removed first. The
        socket is bound under a umask that leaves it owner-only from the
        start; a missing parent directory is created owner-only too.

        Raises:
            OSError: If the socket cannot be bound
        """
        if self._server is not None:
            return
        self.socket_path.parent.mkdir(mode=SOCKET_DIR_MODE, parents=True, exist_ok=True)
        if self.socket_path.exists() or self.socket_path.is_symlink():
            logger.info(f"Removing stale admin socket {self.socket_path}")
            self.socket_path.unlink()

        previous_umask = os.umask(0o777 & ~SOCKET_MODE)
        try:
            self._server = await asyncio.start_unix_server(self._handle, path=str(self.socket_path))
        finally:
            os.umask(previous_umask)
        os.chmod(self.socket_path, SOCKET_MODE)
        logger.info(f"Admin channel listening on {self.socket_path}")

    async def stop(self):
        """Close the listener, drain open connections and remove the socket file."""
        if self._server is None:
            return
        self._server.close()

        # Requests are handled synchronously, so a connection task is only
        # ever suspended between requests or while replying.
        connections = set(self._connections)
        for task in connections:
            task.cancel()
        if connections:
            await asyncio.wait(connections, timeout=self.shutdown_timeout)

        await self._server.wait_closed()
        self._server = None
        try:
            self.socket_path.unlink()
        except FileNotFoundError:
            pass
        logger.info("Admin channel stopped")

    # ─────────────────────────────────────────────────────────────
    # Connections
    # ─────────────────────────────────────────────────────────────

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        if len(self._connections) >= self.max_connections:
            logger.warning("Admin connection refused: too many connections")
            try:
                await send_message(writer, AdminResponse.failure("Too many connections"))
            finally:
                await self._close(writer)
            return

        task = asyncio.current_task()
        self._connections.add(task)
        try:
            await self._serve(reader, writer)
        except (ConnectionError, asyncio.IncompleteReadError) as e:
            logger.debug(f"Admin connection dropped: {e}")
        finally:
            self._connections.discard(task)
            await self._close(writer)

    async def _serve(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        while self._server is not None and self._server.is_serving():
            try:
                payload = await read_frame(reader)
            except FrameError as e:
                await send_message(writer, AdminResponse.failure(str(e)))
                return
            if payload is None:
                return

            response = self.dispatch_raw(payload)
            await send_message(writer, response)

    async def _close(self, writer: asyncio.StreamWriter):
        writer.close()
        try:
            await writer.wait_closed()
        except ConnectionError:
            pass

    # ─────────────────────────────────────────────────────────────
    # Dispatch
    # ─────────────────────────────────────────────────────────────

    def dispatch_raw(self, payload: bytes) -> AdminResponse:
        """Decode one request frame and dispatch it."""
        try:
            request = AdminRequest.model_validate_json(payload)
        except ValidationError as e:
            return AdminResponse.failure(f"Malformed request: {e.errors()[0]['msg']}")
        return self.dispatch(request)

    def dispatch(self, request: AdminRequest) -> AdminResponse:
        handler = self._methods.get(request.method)
        if handler is None:
            return AdminResponse.failure(f"Unknown method: {request.method}")

        try:
            result = handler(request.arg)
        except ValidationError as e:
            return AdminResponse.failure(f"Invalid argument for {request.method}: {e.errors()[0]['msg']}")
        except SyndicationError as e:
            return AdminResponse.failure(e.message)
        except Exception as e:
            logger.exception(f"Admin method {request.method} failed: {e}")
            return AdminResponse.failure("Internal error")
        return AdminResponse.success(result)

    # ─────────────────────────────────────────────────────────────
    # Methods
    # ─────────────────────────────────────────────────────────────

    def new_user(self, arg: Any) -> str:
        args = NewUserArgs.model_validate(arg)
        return self.users.create_user(args.username, args.password).id

    def delete_user(self, arg: Any) -> None:
        self.users.delete_user(_user_id.validate_python(arg))

    def get_user_id(self, arg: Any) -> str:
        return require_user(self.users.user_with_name(_user_id.validate_python(arg))).id

    def get_users(self, arg: Any) -> list[dict]:
        limit = _limit.validate_python(arg if arg is not None else 100)
        return [
            UserInfo(name=user.username, id=user.id).model_dump()
            for user in self.users.list_users(limit)
        ]

    def change_user_name(self, arg: Any) -> None:
        args = ChangeUserNameArgs.model_validate(arg)
        self.users.rename_user(args.user_id, args.new_name)

    def change_user_password(self, arg: Any) -> None:
        args = ChangeUserPasswordArgs.model_validate(arg)
        self.users.change_password(args.user_id, args.new_password)
