from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CompileMethod(str, Enum):
    LOCAL = "local"
    ONLINE = "online"


class CompilationStatus(BaseModel):
    """Snapshot of the compile state; serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    is_compiling: bool = False
    last_compiled: Optional[datetime] = None
    error: Optional[str] = None
    method: Optional[CompileMethod] = None


class CompileResponse(CompilationStatus):
    success: bool


class CompileEvent(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    timestamp: datetime
    message: str
    method: Optional[CompileMethod] = None
    success: bool


class SourceContent(BaseModel):
    content: str


class ErrorBody(BaseModel):
    error: str


class CompileHistory(BaseModel):
    events: List[CompileEvent]
