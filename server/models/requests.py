from pydantic import BaseModel, Field

from shared.models.chat import ChatTurn


class IngestRequest(BaseModel):
    owner_id: str


class AskRequest(BaseModel):
    owner_id: str
    question: str
    history: list[ChatTurn] = Field(default_factory=list)
