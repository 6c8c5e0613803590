"""Script to delete stored chunks so transcripts can be re-ingested from scratch.

This script:
1. Counts chunks for every stored transcript (or the ids given)
2. Deletes those chunks after confirmation
3. Leaves the transcripts themselves untouched

Run from the repository root: python -m scripts.clear_chunks [TRANSCRIPT_ID ...]
"""

import asyncio
import sys

from src.core.config import get_config
from src.utils.clients import get_clients


async def clear_chunks(transcript_ids: list[str]) -> None:
    """Delete the chunks of the selected transcripts."""
    config = get_config()
    _, store = get_clients(config)

    transcripts = await store.list_transcripts()
    if transcript_ids:
        wanted = set(transcript_ids)
        transcripts = [t for t in transcripts if str(t.id) in wanted]

    print("Current state:")
    total = 0
    for transcript in transcripts:
        count = await store.count_chunks(transcript.id)
        total += count
        print(f"  {transcript.id}  {transcript.url}  chunks={count}")
    print(f"  Total chunks: {total}")

    if not total:
        print("\nNothing to delete")
        return

    confirm = input("\nDelete these chunks? Type 'yes' to continue: ")
    if confirm.lower() != "yes":
        print("Aborted")
        return

    for transcript in transcripts:
        deleted = await store.delete_chunks(transcript.id)
        print(f"Deleted {deleted} chunks for transcript {transcript.id}")

    print("\nDone! You can now re-run ingestion:")
    print("  python -m src.cli ingest")


if __name__ == "__main__":
    asyncio.run(clear_chunks(sys.argv[1:]))
