"""Document router: ingestion, questions and removal for uploaded PDFs."""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from server.models.requests import AskRequest, IngestRequest
from server.models.responses import DeleteResponse
from shared.dependencies.auth import verify_api_key
from shared.exceptions.pipeline_errors import PipelineError

document_router = APIRouter()

ERROR_STATUS_MAP: dict[str, int] = {
    "invalid_input": 400,
    "not_found": 404,
    "no_content": 422,
    "malformed": 502,
    "unavailable": 503,
}


def _to_http_exception(exc: PipelineError) -> HTTPException:
    return HTTPException(
        status_code=ERROR_STATUS_MAP.get(exc.reason, 500),
        detail={"error": {"stage": exc.stage, "reason": exc.reason, "doc_id": exc.doc_id, "message": exc.message}},
    )


@document_router.post(
    "/documents/{doc_id}/ingest",
    dependencies=[Depends(verify_api_key)],
    tags=["Documents"],
)
async def handle_ingest(request: Request, doc_id: str, body: IngestRequest) -> JSONResponse:
    """Build (or reuse) the vector index namespace of a stored document.

    Called once the upload is durably stored. Failures are returned as HTTP
    errors so the frontend does not mark the document ready to chat.

    Args:
        request (Request): The incoming FastAPI request (carries app state).
        doc_id (str): The document id.
        body (IngestRequest): The owner of the document.

    Returns:
        JSONResponse: {"completed": true, "reused": bool}
    """
    request.app.state.logging.info("Ingest received: doc_id=%s owner_id=%s", doc_id, body.owner_id)
    try:
        result = await request.app.state.chat_service.ingest(doc_id=doc_id, owner_id=body.owner_id)
    except PipelineError as exc:
        raise _to_http_exception(exc)
    return JSONResponse(content=result.model_dump())


@document_router.post(
    "/documents/{doc_id}/ask",
    dependencies=[Depends(verify_api_key)],
    tags=["Documents"],
)
async def handle_ask(request: Request, doc_id: str, body: AskRequest) -> JSONResponse:
    """Answer a question about a document.

    Always answers 200; pipeline failures come back as success=false with an error_message.

    Args:
        request (Request): The incoming FastAPI request (carries app state).
        doc_id (str): The document id.
        body (AskRequest): Owner, question and optional chat history.

    Returns:
        JSONResponse: {"success", "answer", "context", "error_message"}
    """
    result = await request.app.state.chat_service.ask(
        doc_id=doc_id,
        owner_id=body.owner_id,
        question=body.question,
        history=body.history,
    )
    return JSONResponse(content=result.model_dump())


@document_router.delete(
    "/documents/{doc_id}",
    dependencies=[Depends(verify_api_key)],
    tags=["Documents"],
)
async def handle_delete(request: Request, doc_id: str) -> JSONResponse:
    """Remove all indexed passages of a deleted document."""
    request.app.state.logging.info("Delete received: doc_id=%s", doc_id)
    try:
        await request.app.state.chat_service.delete(doc_id)
    except PipelineError as exc:
        raise _to_http_exception(exc)
    return JSONResponse(content=DeleteResponse(deleted=True).model_dump())
