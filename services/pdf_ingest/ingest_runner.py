"""Ingestion runner entry point.

Builds (or reuses) the vector index namespace of one stored document, or
removes it, without going through the HTTP API.

Usage:
    python -m services.pdf_ingest.ingest_runner --doc-id <doc_id> --owner-id <owner_id>
    python -m services.pdf_ingest.ingest_runner --doc-id <doc_id> --delete
"""

import argparse
import asyncio
import sys

from services.pdf_ingest.IngestionService import IngestionService
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.source.SourceClientManager import SourceClientManager
from shared.exceptions.pipeline_errors import PipelineError
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.models.config import PipelineConfig


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingest or remove a stored PDF document.")
    parser.add_argument("--doc-id", required=True, help="Document id (namespace key).")
    parser.add_argument("--owner-id", default="", help="Owner of the document (required for ingestion).")
    parser.add_argument("--delete", action="store_true", help="Remove the document's namespace instead.")
    args = parser.parse_args(argv)
    if not args.delete and not args.owner_id:
        parser.error("--owner-id is required unless --delete is given.")
    return args


async def main(argv: list[str] | None = None) -> int:
    """Run one ingestion or removal. Returns the process exit code."""
    args = parse_args(argv)
    logger = setup_logging()
    config = HelperConfig(logger=logger)
    pipeline_config = PipelineConfig.from_helper_config(config)

    source_client = SourceClientManager(helper_config=config).get_client()
    embed_client = EmbedClientManager(helper_config=config).get_client()
    rag_client = RAGClientManager(helper_config=config).get_client()
    clients = [source_client, embed_client, rag_client]

    try:
        for client in clients:
            await client.boot()

        await rag_client.do_healthcheck()
        await embed_client.do_healthcheck()

        # create the rag collection, if not already existing
        vector_size, distance = await embed_client.do_fetch_embedding_vector_size()
        await rag_client.do_ensure_collection(vector_size=vector_size, distance=distance)

        service = IngestionService(
            helper_config=config,
            pipeline_config=pipeline_config,
            source_client=source_client,
            embed_client=embed_client,
            rag_client=rag_client,
        )
        if args.delete:
            await service.do_delete(args.doc_id)
            logger.info("Removed namespace %r.", args.doc_id, color="green")
        else:
            built = await service.do_ingest(doc_id=args.doc_id, owner_id=args.owner_id)
            logger.info("Namespace %r %s.", args.doc_id, "built" if built else "reused", color="green")
        return 0
    except PipelineError as exc:
        logger.error("Failed: %s", exc)
        return 1
    finally:
        for client in clients:
            await client.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
