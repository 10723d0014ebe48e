from __future__ import annotations

from pydantic import BaseModel


class OperatorLoginRequest(BaseModel):
    username: str
    password: str
