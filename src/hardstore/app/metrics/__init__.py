"""Prometheus metrics module with multiprocess support.

prometheus_client picks its value storage when it is first imported, so
PROMETHEUS_MULTIPROC_DIR is set here before that import. Every metric
module lives under this package and therefore runs this first.
"""

import os
import shutil
from pathlib import Path

from hardstore.app.config import get_settings

_multiproc_dir = os.environ.setdefault(
    "PROMETHEUS_MULTIPROC_DIR", get_settings().metrics.multiproc_dir
)
Path(_multiproc_dir).mkdir(parents=True, exist_ok=True)

from prometheus_client import (  # noqa: E402
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    generate_latest,
    multiprocess,
)
from starlette.responses import Response  # noqa: E402


def setup_metrics() -> None:
    """Clean the multiprocess directory at startup.

    Removes stale files from previous runs. Call before the first request.
    """
    path = Path(_multiproc_dir)
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


def get_metrics_response() -> Response:
    """Generate Prometheus metrics aggregated over all worker processes."""
    registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(registry)
    return Response(
        content=generate_latest(registry),
        media_type=CONTENT_TYPE_LATEST,
    )
