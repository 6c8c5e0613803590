"""Command-line interface for adding, ingesting and searching transcripts."""

import argparse
import asyncio
import sys

from src.core.config import ReingestPolicy, TranscriptRAGConfig, get_config
from src.core.errors import TranscriptRAGError
from src.core.schemas import PipelineResult
from src.ingestion.pipeline import TranscriptIngestionPipeline
from src.ingestion.transcript_service import TranscriptService
from src.tools.transcript_search.service import (
    TranscriptSearchService,
    format_results_markdown,
)
from src.tools.transcript_search.tool import SearchTranscriptsOutput
from src.utils.clients import get_clients
from src.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with add, ingest and search subcommands."""
    parser = argparse.ArgumentParser(
        description="Transcript RAG - store, index and search video transcripts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fetch and store a YouTube transcript
  python -m src.cli add https://youtube.com/watch?v=dQw4w9WgXcQ

  # Prompt for URLs until "exit"
  python -m src.cli add

  # Chunk, embed and store every transcript
  python -m src.cli ingest

  # Rebuild one transcript's chunks with smaller windows
  python -m src.cli ingest --transcript-id 12 --policy replace --chunk-size 500 --overlap 100

  # Search
  python -m src.cli search "how to stay motivated"
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser("add", help="Fetch and store YouTube transcripts")
    add.add_argument("urls", nargs="*", help="YouTube URLs (prompts when omitted)")

    ingest = subparsers.add_parser("ingest", help="Chunk, embed and store transcripts")
    ingest.add_argument("--transcript-id", help="Only ingest this transcript")
    ingest.add_argument(
        "--policy",
        choices=[p.value for p in ReingestPolicy],
        help="What to do with transcripts that already have chunks",
    )
    ingest.add_argument("--chunk-size", type=int, help="Window size in characters")
    ingest.add_argument("--overlap", type=int, help="Overlap between windows")
    ingest.add_argument(
        "--dry-run",
        action="store_true",
        help="Chunk and count only - no embedding calls or database writes",
    )

    search = subparsers.add_parser("search", help="Semantic search over chunks")
    search.add_argument("query", help="Natural-language query")
    search.add_argument("--top-k", type=int, help="Maximum number of results")
    search.add_argument("--threshold", type=float, help="Minimum similarity (0-1)")
    search.add_argument(
        "--json", action="store_true", help="Print the tool's JSON output"
    )

    return parser


def apply_overrides(config: TranscriptRAGConfig, args: argparse.Namespace) -> TranscriptRAGConfig:
    """Return a copy of config with CLI overrides applied."""
    overrides = {}
    if getattr(args, "policy", None):
        overrides["reingest_policy"] = ReingestPolicy(args.policy)
    if getattr(args, "chunk_size", None) is not None:
        overrides["chunk_size"] = args.chunk_size
    if getattr(args, "overlap", None) is not None:
        overrides["chunk_overlap"] = args.overlap
    return config.model_copy(update=overrides)


def print_ingestion_summary(result: PipelineResult, dry_run: bool) -> None:
    """Print pipeline results for the user."""
    print("\n" + "=" * 60)
    print("Ingestion Results" + (" (dry run)" if dry_run else ""))
    print("=" * 60)
    print(f"Total transcripts: {result.total_transcripts}")
    if dry_run:
        expected = sum(t.chunks_expected for t in result.transcripts)
        print(f"Chunks that would be created: {expected}")
    else:
        print(f"Completed: {result.processed}")
        print(f"Partially ingested: {result.partial}")
        print(f"Failed: {result.failed}")
        print(f"Skipped (already ingested): {result.skipped}")
        print(f"Total chunks created: {result.chunks_created}")

    partial = [t for t in result.transcripts if t.status == "partial"]
    for t in partial:
        print(
            f"  ⚠️  {t.transcript_id}: {t.chunks_written} chunks written, "
            f"stopped at chunk {t.failed_chunk_index} of {t.chunks_expected}"
        )

    if result.errors:
        print("\nErrors encountered:")
        for error in result.errors:
            print(f"  ❌ {error}")
    elif not dry_run:
        print("\n✅ No errors encountered")

    print("=" * 60 + "\n")


async def add_command(config: TranscriptRAGConfig, urls: list[str]) -> int:
    """Fetch and store transcripts; prompts for URLs when none are given."""
    _, store = get_clients(config)
    service = TranscriptService(config, store)

    async def add_one(url: str) -> bool:
        try:
            print(f"Fetching transcript for: {url}")
            transcript = await service.add_transcript(url)
        except TranscriptRAGError as e:
            print(f"\n❌ An error occurred: {e}\n")
            return False
        except Exception as e:
            logger.exception("add_transcript_failed", url=url, error_type=type(e).__name__)
            print(f"\n❌ An error occurred: {e}\n")
            return False

        if transcript is None:
            print("Could not retrieve valid transcript content.")
            return False
        print(f"✅ Stored transcript {transcript.id} ({len(transcript.transcript)} chars)\n")
        return True

    if urls:
        results = [await add_one(url) for url in urls]
        return 0 if all(results) else 1

    while True:
        url = (await asyncio.to_thread(input, 'Enter a YouTube URL (or type "exit" to quit): ')).strip()
        if url.lower() == "exit":
            print("Goodbye!")
            return 0
        if not url:
            print("URL cannot be empty. Please try again.")
            continue
        await add_one(url)


async def ingest_command(config: TranscriptRAGConfig, args: argparse.Namespace) -> int:
    """Run the batch ingestion driver and print a summary."""
    embedding_service, store = get_clients(config)
    pipeline = TranscriptIngestionPipeline(config, store, store, embedding_service)

    transcript_id = args.transcript_id
    if transcript_id is not None and transcript_id.isdigit():
        transcript_id = int(transcript_id)

    print("\n" + "=" * 60)
    print("Transcript Ingestion")
    print("=" * 60)
    print(f"Embedding model: {config.embedding_model}")
    print(f"Chunk size: {config.chunk_size} chars, overlap {config.chunk_overlap}")
    print(f"Re-ingest policy: {config.reingest_policy}")
    if args.dry_run:
        print("\n⚠️  DRY RUN MODE - No embedding calls or database writes")
    print("=" * 60 + "\n")

    result = await pipeline.ingest_all(transcript_id=transcript_id, dry_run=args.dry_run)
    print_ingestion_summary(result, args.dry_run)

    logger.info(
        "cli_ingest_completed",
        total_transcripts=result.total_transcripts,
        processed=result.processed,
        partial=result.partial,
        failed=result.failed,
        skipped=result.skipped,
        chunks_created=result.chunks_created,
    )
    return 0 if not (result.failed or result.partial) else 1


async def search_command(config: TranscriptRAGConfig, args: argparse.Namespace) -> int:
    """Search and print the results."""
    embedding_service, store = get_clients(config)
    service = TranscriptSearchService(config, store, embedding_service)

    results = await service.search(args.query, args.top_k, args.threshold)

    if args.json:
        print(SearchTranscriptsOutput(results=results).model_dump_json(indent=2))
    else:
        print(format_results_markdown(args.query, results))
    return 0


async def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)

    config = get_config()
    configure_logging(config.log_level)

    try:
        config = apply_overrides(config, args)
        logger.info("cli_started", command=args.command)

        if args.command == "add":
            return await add_command(config, args.urls)
        if args.command == "ingest":
            return await ingest_command(config, args)
        return await search_command(config, args)

    except (TranscriptRAGError, ValueError) as e:
        logger.error("cli_failed", command=args.command, error_type=type(e).__name__)
        print(f"\n❌ {args.command} failed: {e}")
        return 1


def run() -> None:
    """Console script wrapper."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
