from __future__ import annotations

from enum import IntEnum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class KnotCode(IntEnum):
    SUCCESS = 0


class RequestResults(BaseModel, Generic[T]):
    """Response envelope: ``data`` is only present when ``code`` is SUCCESS."""

    model_config = ConfigDict(extra="allow")

    code: int
    message: str = ""
    data: Optional[T] = None

    @property
    def success(self) -> bool:
        return self.code == KnotCode.SUCCESS
