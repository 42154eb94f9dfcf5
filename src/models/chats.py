"""Chat thread models shared by the store and the realtime hub."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    # Clients attach arbitrary fields (original text, shortened result, ...);
    # they are kept and broadcast back untouched.
    model_config = ConfigDict(extra="allow")

    id: str
    timestamp: str
    type: Optional[str] = None
    role: Optional[str] = None
    content: Optional[str] = None
    result: Optional[str] = None


class Chat(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    created_at: str = Field(alias="createdAt")
    messages: List[ChatMessage] = Field(default_factory=list)

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
