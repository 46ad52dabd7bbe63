import argparse
import asyncio
import os
import sys

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from docsearch_server.db import DocumentStore, session_scope
from docsearch_server.search.engine import PostgresFullTextIndex
from docsearch_server.search.lifecycle import IndexLifecycleTracker


async def main(workspace_key: str = None):
    async with session_scope() as session:
        store = DocumentStore(session)
        tracker = IndexLifecycleTracker(store, PostgresFullTextIndex(session))

        if workspace_key:
            workspace = await store.find_workspace(workspace_key)
            if workspace is None:
                print(f"No active workspace matches '{workspace_key}'.")
                return 1
            workspaces = [workspace]
        else:
            workspaces = await store.list_workspaces()

        if not workspaces:
            print("No active workspaces.")
            return 0

        for workspace in workspaces:
            print(f"Rebuilding index for workspace '{workspace.slug}'...")
            result = await tracker.rebuild_index(workspace)
            await session.commit()

            print(
                f"  {result.indexed_documents}/{result.total_documents} documents indexed "
                f"in {result.processing_time}s"
            )
            if result.failed_document_ids:
                print(f"  Failed: {', '.join(str(i) for i in result.failed_document_ids)}")

    print("Done! Index rebuilt.")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Rebuild the search index.")
    parser.add_argument(
        "--workspace",
        help="Slug or API key of one workspace (default: all active workspaces)",
    )
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.workspace)))
