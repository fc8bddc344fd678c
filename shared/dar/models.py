"""Request payload models shared by the documentation routes."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ConversationMessage(BaseModel):
    """One chat turn as sent by the client."""

    model_config = ConfigDict(extra="allow")

    role: str = "user"
    content: str = ""


class ShiftData(BaseModel):
    """Information gathered about a shift so far."""

    model_config = ConfigDict(extra="allow")

    client_name: Optional[str] = None
    psw_name: Optional[str] = None
    observations: List[str] = Field(default_factory=list)
    care_activities: List[str] = Field(default_factory=list)
    client_responses: List[str] = Field(default_factory=list)
    communications: List[str] = Field(default_factory=list)
    languages_used: List[str] = Field(default_factory=list)

    @classmethod
    def default(cls) -> "ShiftData":
        """Placeholder used when a report is requested without shift data."""
        return cls(client_name="Unknown Client", psw_name="PSW")

    def as_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class GenerateReportRequest(BaseModel):
    shiftData: Optional[ShiftData] = None
    conversation: List[ConversationMessage] = Field(default_factory=list)


class ConversationRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    input: Optional[str] = None
    context: Any = None
    shiftData: ShiftData = Field(default_factory=ShiftData)
    conversation: List[ConversationMessage] = Field(default_factory=list)
    language: str = "en"


class FinalizeReportRequest(BaseModel):
    noteText: Optional[str] = None
    dar: Optional[dict[str, Any]] = None
    sessionId: Optional[str] = None


class TranslateReportRequest(BaseModel):
    report: str = ""
    sourceLang: str = "en"
