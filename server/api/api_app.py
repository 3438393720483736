"""FastAPI application entry point for the PDF chat API."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import os
from server.api.routers.DocumentRouter import document_router
from server.api.routers.HealthRouter import health_router
from server.api.services.DocumentChatService import DocumentChatService
from services.pdf_ingest.IngestionService import IngestionService
from services.rag_query.QueryOrchestrator import QueryOrchestrator
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.source.SourceClientManager import SourceClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.models.config import PipelineConfig

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown."""
    app.state.logging = logging
    app.state.config = HelperConfig(logger=app.state.logging)
    pipeline_config = PipelineConfig.from_helper_config(app.state.config)

    # Initialise clients
    source_client = SourceClientManager(helper_config=app.state.config).get_client()
    embed_client = EmbedClientManager(helper_config=app.state.config).get_client()
    rag_client = RAGClientManager(helper_config=app.state.config).get_client()
    llm_client = LLMClientManager(helper_config=app.state.config).get_client()
    app.state.clients = [source_client, embed_client, rag_client, llm_client]

    try:
        for client in app.state.clients:
            await client.boot()

        # Health checks, the vector store and embedding backend are required
        await rag_client.do_healthcheck()
        await embed_client.do_healthcheck()

        # Ensure the collection exists with the embedding model's dimension
        vector_size, distance = await embed_client.do_fetch_embedding_vector_size()
        await rag_client.do_ensure_collection(vector_size=vector_size, distance=distance)

        # Wire up services
        ingestion_service = IngestionService(
            helper_config=app.state.config,
            pipeline_config=pipeline_config,
            source_client=source_client,
            embed_client=embed_client,
            rag_client=rag_client,
        )
        query_orchestrator = QueryOrchestrator(
            helper_config=app.state.config,
            pipeline_config=pipeline_config,
            ingestion_service=ingestion_service,
            embed_client=embed_client,
            rag_client=rag_client,
            llm_client=llm_client,
        )
        app.state.chat_service = DocumentChatService(
            helper_config=app.state.config,
            ingestion_service=ingestion_service,
            query_orchestrator=query_orchestrator,
        )

        app.state.logging.info("PDF chat API ready.", color="green")
        yield
    finally:
        # Shutdown
        for client in app.state.clients:
            await client.close()
        app.state.logging.info("PDF chat API shut down.")


app = FastAPI(
    title="PDF Chat",
    description="Ask natural-language questions about uploaded PDF documents.",
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(document_router)


# Server Start
if __name__ == "__main__":
    # start server
    import uvicorn
    logging.info(f"Starting PDF chat API Server v{app_version} on port 8000...")
    uvicorn.run(app, host="0.0.0.0", port=8000)
