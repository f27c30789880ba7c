"""Set up the Pinecone index backing the agent knowledge base.

Creates the index with the dimensionality the embedding client produces
(512, text-embedding-3-small) and cosine similarity, then prints the host
to export as PINECONE_HOST.

Usage:
    PINECONE_API_KEY=... python scripts/setup_pinecone.py
"""

import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from knowledge_backend.config import load_settings


def main() -> None:
    """Create the knowledge base index if it does not exist."""
    settings = load_settings("default")
    api_key = settings.index.api_key or os.environ.get("PINECONE_API_KEY")

    if not api_key:
        print("❌ Error: Pinecone credentials not found. Export PINECONE_API_KEY.")
        sys.exit(1)

    try:
        from pinecone import Pinecone, ServerlessSpec

        print("🔧 Setting up Pinecone...\n")

        pc = Pinecone(api_key=api_key)

        index_name = settings.index.index_name
        dimension = settings.embedding.dimensions
        metric = "cosine"

        existing_indexes = pc.list_indexes()
        index_names = [idx["name"] for idx in existing_indexes]

        if index_name in index_names:
            print(f"✅ Index '{index_name}' already exists!")
        else:
            print(f"📝 Creating index '{index_name}'...")
            print(f"  • Dimension: {dimension}")
            print(f"  • Metric: {metric}")
            print("  • Spec: Serverless (us-east-1)")

            pc.create_index(
                name=index_name,
                dimension=dimension,
                metric=metric,
                spec=ServerlessSpec(cloud="aws", region="us-east-1"),
            )

            print(f"✅ Index '{index_name}' created successfully!")

        description = pc.describe_index(index_name)
        stats = pc.Index(name=index_name, host=description.host).describe_index_stats()

        print("\nIndex Statistics:")
        print(f"  • Total vectors: {stats.total_vector_count}")
        print(f"  • Dimension: {description.dimension}")
        print("\n🎉 Pinecone setup complete!")
        print("\nExport the index host before starting the server:")
        print(f"  export PINECONE_HOST={description.host}")

    except Exception as e:
        print(f"❌ Error: {e}")
        print("\nTroubleshooting:")
        print("  • Check your API key is correct")
        print("  • Ensure you have a free index slot available")
        print("  • Visit https://app.pinecone.io/ to check your account")
        sys.exit(1)


if __name__ == "__main__":
    main()
