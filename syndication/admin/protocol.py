"""
Admin channel wire protocol.

Every message is a frame: a 4-byte big-endian payload length followed by a
UTF-8 JSON document. Requests name one method and carry a single argument;
responses carry a success flag, an optional message and an optional result.
"""

import asyncio
import struct
from typing import Any

from pydantic import BaseModel

HEADER = struct.Struct(">I")
MAX_FRAME_SIZE = 1024 * 1024


class FrameError(ValueError):
    """A frame header announced an unacceptable payload size."""


# ─────────────────────────────────────────────────────────────
# Messages
# ─────────────────────────────────────────────────────────────

class AdminRequest(BaseModel):
    method: str
    arg: Any = None


class AdminResponse(BaseModel):
    ok: bool
    message: str | None = None
    result: Any = None

    @classmethod
    def success(cls, result: Any = None, message: str | None = None) -> "AdminResponse":
        return cls(ok=True, message=message, result=result)

    @classmethod
    def failure(cls, message: str) -> "AdminResponse":
        return cls(ok=False, message=message)


class NewUserArgs(BaseModel):
    username: str
    password: str


class ChangeUserNameArgs(BaseModel):
    user_id: str
    new_name: str


class ChangeUserPasswordArgs(BaseModel):
    user_id: str
    new_password: str


class UserInfo(BaseModel):
    name: str
    id: str


# ─────────────────────────────────────────────────────────────
# Framing
# ─────────────────────────────────────────────────────────────

async def read_frame(reader: asyncio.StreamReader) -> bytes | None:
    """
    Read one frame payload. Returns None when the peer closed between frames.

    Raises:
        FrameError: If the announced size exceeds MAX_FRAME_SIZE
        asyncio.IncompleteReadError: If the peer closed mid-frame
    """
    try:
        header = await reader.readexactly(HEADER.size)
    except asyncio.IncompleteReadError as e:
        if not e.partial:
            return None
        raise
    (length,) = HEADER.unpack(header)
    if length > MAX_FRAME_SIZE:
        raise FrameError(f"Frame of {length} bytes exceeds limit of {MAX_FRAME_SIZE}")
    return await reader.readexactly(length)


async def write_frame(writer: asyncio.StreamWriter, payload: bytes) -> None:
    if len(payload) > MAX_FRAME_SIZE:
        raise FrameError(f"Frame of {len(payload)} bytes exceeds limit of {MAX_FRAME_SIZE}")
    writer.write(HEADER.pack(len(payload)) + payload)
    await writer.drain()


async def send_message(writer: asyncio.StreamWriter, message: BaseModel) -> None:
    await write_frame(writer, message.model_dump_json().encode("utf-8"))
