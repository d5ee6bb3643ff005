"""
Create the data directory and any missing documents (published, draft, users,
TV URLs, uploads dir). Idempotent: existing documents are never overwritten.

Usage:
  python scripts/init_data.py
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.groupboard.config import load_config
from app.groupboard.documents import initialize_documents
from app.groupboard.storage import DocumentSet, storage_from_config


def init_data(config: dict | None = None) -> DocumentSet:
    docs = storage_from_config(config if config is not None else load_config())
    initialize_documents(docs)
    return docs


def main() -> None:
    from dotenv import load_dotenv

    load_dotenv()
    docs = init_data()
    print(f"Data dir: {docs.config.base_dir}", flush=True)
    for store in (docs.published, docs.draft, docs.users, docs.tv_urls):
        print(f"  {store.path.name}: {'ok' if store.exists() else 'MISSING'}", flush=True)


if __name__ == "__main__":
    main()
