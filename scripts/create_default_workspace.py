import asyncio
import os
import sys

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from docsearch_server.db import DocumentStore, Workspace, create_schema, session_scope
from docsearch_server.tenants import generate_api_key

DEFAULT_SLUG = "default"


async def main():
    print("Ensuring schema exists...")
    await create_schema()

    async with session_scope() as session:
        store = DocumentStore(session)

        existing = await store.find_workspace(DEFAULT_SLUG)
        if existing is not None:
            print(f"Default workspace already exists (id={existing.id}).")
            print(f"API key: {existing.api_key}")
            return

        workspace = await store.add_workspace(
            Workspace(
                name="Default Workspace",
                slug=DEFAULT_SLUG,
                description="Default workspace for document search",
                api_key=generate_api_key(),
                is_active=True,
            )
        )

        print(f"Created default workspace (id={workspace.id}).")
        print(f"API key: {workspace.api_key}")


if __name__ == "__main__":
    asyncio.run(main())
