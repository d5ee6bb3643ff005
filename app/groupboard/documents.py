from __future__ import annotations

import logging

from flask import Flask, current_app

from app.groupboard.storage import DocumentSet, storage_from_config

logger = logging.getLogger(__name__)


def initialize_documents(docs: DocumentSet) -> None:
    """Create any missing documents. Idempotent; never overwrites existing data."""
    from app.groupboard.modules.displays.service import TVUrlStore
    from app.groupboard.modules.snapshots.service import DraftPublishController
    from app.groupboard.modules.users.service import UserStore

    DraftPublishController(docs).initialize()
    if UserStore(docs.users).initialize():
        logger.warning("Seeded default users in %s; change the admin password", docs.users.path)
    TVUrlStore(docs.tv_urls).initialize()
    docs.uploads.root.mkdir(parents=True, exist_ok=True)


def init_documents(app: Flask) -> DocumentSet:
    """
    Build the document stores from app config and create any missing documents.
    Stores live in app.extensions so every request shares the same per-document locks.
    """
    docs = storage_from_config(app.config)
    initialize_documents(docs)
    app.extensions["groupboard_documents"] = docs

    app.logger.info("Data dir: %s", docs.config.base_dir)
    app.logger.info("Published: %s Draft: %s", docs.published.path, docs.draft.path)
    app.logger.info("Users: %s TV URLs: %s", docs.users.path, docs.tv_urls.path)
    return docs


def document_set(app: Flask | None = None) -> DocumentSet:
    """Stores for the current app. Use inside request handlers."""
    if app is None:
        app = current_app
    return app.extensions["groupboard_documents"]
