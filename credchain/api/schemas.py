"""Request/response fields shared by the ledger routers."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, BeforeValidator


def _hex_to_bytes(value: object) -> object:
    # Byte strings travel as hex; an empty string is a valid (empty) value
    # and is rejected by the store, not here.
    if isinstance(value, str):
        try:
            return bytes.fromhex(value.removeprefix("0x"))
        except ValueError:
            raise ValueError("must be a hex string") from None
    return value


HexBytes = Annotated[bytes, BeforeValidator(_hex_to_bytes)]


class IdOut(BaseModel):
    id: int


class IdListOut(BaseModel):
    ids: list[int]


class FlagOut(BaseModel):
    value: bool


class PrincipalIn(BaseModel):
    principal: str
