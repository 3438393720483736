from pydantic import BaseModel


class IngestResponse(BaseModel):
    completed: bool
    reused: bool = False


class AskResponse(BaseModel):
    success: bool
    answer: str | None = None
    context: str | None = None
    error_message: str | None = None


class DeleteResponse(BaseModel):
    deleted: bool


class HealthResponse(BaseModel):
    status: str
    backends: dict[str, str]
