"""Deploy job uploading the built asset directory.

Configuration comes from the environment (see
:meth:`asset_uploader.config.SyncConfig.from_env` and
:func:`asset_uploader.storage.load_backend`). Exits non-zero when the sync
fails so deploy pipelines stop before pointing at a broken manifest.
"""

from __future__ import annotations

import logging
import os
import sys

from .config import SyncConfig
from .errors import AssetUploaderError
from .storage import load_backend
from .uploader import S3Sync, SyncResult

logger = logging.getLogger(__name__)


def run() -> SyncResult:
    config = SyncConfig.from_env()
    storage = None if config.no_upload else load_backend()
    return S3Sync(config, storage).run()


def main() -> int:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        result = run()
    except AssetUploaderError as exc:
        logger.error("Asset sync failed: %s", exc)
        return 1
    logger.info("Manifest has %d entries", len(result.digest))
    return 0


if __name__ == "__main__":
    sys.exit(main())
