from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict, Any, Union


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ChatMessage(CamelModel):
    role: str
    content: Union[str, List[Dict[str, Any]]] = ""
    images: Optional[List[str]] = None
    file_contents: Optional[List[str]] = Field(default=None, alias="fileContents")


class ChatRequest(CamelModel):
    messages: List[ChatMessage]
    persona_id: Optional[str] = Field(default=None, alias="personaId")
    # Preformatted string or a list of pinned items
    pinned_context: Optional[Union[str, List[Any]]] = Field(default=None, alias="pinnedContext")
    model_id: Optional[str] = Field(default=None, alias="modelId")
    use_web_search: bool = Field(default=False, alias="useWebSearch")


class EnhancePromptRequest(BaseModel):
    prompt: Any = None


class GitHubRequest(BaseModel):
    url: Optional[str] = None
    action: str = "analyze"
    question: Optional[str] = None


class YouTubeRequest(BaseModel):
    url: Optional[str] = None
    action: str = "summarize"
    language: str = "id"


class EventTime(CamelModel):
    date_time: Optional[str] = Field(default=None, alias="dateTime")
    date: Optional[str] = None
    time_zone: Optional[str] = Field(default=None, alias="timeZone")


class CalendarEventCreate(CamelModel):
    summary: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    start: Optional[EventTime] = None
    end: Optional[EventTime] = None
    start_time: Optional[str] = Field(default=None, alias="startTime")
    end_time: Optional[str] = Field(default=None, alias="endTime")
    attendees: Optional[List[str]] = None


class CalendarEventUpdate(CamelModel):
    event_id: Optional[str] = Field(default=None, alias="eventId")
    summary: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    start: Optional[EventTime] = None
    end: Optional[EventTime] = None


class ScheduleParseRequest(BaseModel):
    text: str = ""


class EventListPayload(CamelModel):
    events: List[Dict[str, Any]] = []
    week_start: Optional[str] = Field(default=None, alias="weekStart")


class ConversationCreate(CamelModel):
    title: str = ""
    messages: List[Dict[str, Any]] = []
    persona_id: Optional[str] = Field(default=None, alias="personaId")


class ConversationUpdate(BaseModel):
    messages: List[Dict[str, Any]]
    title: Optional[str] = None


class ConversationRename(BaseModel):
    title: str


class PinnedContextCreate(BaseModel):
    content: str


class ActivatePlanRequest(BaseModel):
    code: str = ""


class RegisterRequest(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class ProfileUpdate(BaseModel):
    username: Optional[str] = None
    avatar: Optional[str] = None


class FileUpload(BaseModel):
    name: str
    type: Optional[str] = None
    data: str  # base64 or data URL


class FileProcessRequest(BaseModel):
    files: List[FileUpload]
