"""Run the Minnebo API with uvicorn.

Usage:
    python scripts/serve.py                     # 0.0.0.0:8000
    python scripts/serve.py --port 3001 --reload
"""

import argparse
import logging
import sys
from pathlib import Path

import uvicorn

sys.path.insert(0, str(Path(__file__).parent.parent))

from minnebo.config import get_config
from minnebo.errors import ConfigurationError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Serve the Minnebo API")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes")
    args = parser.parse_args()

    # Fail before binding the port if secrets are missing or weak
    try:
        get_config()
    except ConfigurationError as exc:
        logger.error("Refusing to start: %s", exc)
        sys.exit(1)

    uvicorn.run(
        "minnebo.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
