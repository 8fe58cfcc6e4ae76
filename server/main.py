# =============================================================================
# Plant Disease Gateway - Server Entry Point
# =============================================================================
# CLI entry point: loads .env, resolves configuration, refuses to start
# without GOOGLE_API_KEY, and serves the FastAPI app with uvicorn.
# =============================================================================

import argparse
import logging
import sys

import uvicorn
from dotenv import load_dotenv

from config import ConfigError, get_config
from server.app import create_app

logger = logging.getLogger(__name__)


def main():
    """Parse CLI arguments, apply overrides, and start the server."""
    parser = argparse.ArgumentParser(
        description="Plant Disease Detection — Gemini gateway server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--host", type=str, default=None, help="Server bind address")
    parser.add_argument("--port", type=int, default=None, help="Server bind port (env: PORT)")
    parser.add_argument("--model", type=str, default=None, help="Gemini model identifier")
    parser.add_argument("--timeout", type=float, default=None, help="Gemini call timeout in seconds")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    load_dotenv()
    config = get_config()

    if args.host is not None:
        config.server_host = args.host
    if args.port is not None:
        config.server_port = args.port
    if args.model is not None:
        config.model_id = args.model
    if args.timeout is not None:
        config.request_timeout_seconds = args.timeout

    config.refresh_server_url()

    try:
        config.validate()
    except ConfigError as exc:
        logger.error("%s", exc)
        sys.exit(1)

    print("\n" + "=" * 60)
    print("  Plant Disease Detection — Gemini gateway")
    print("=" * 60)
    print(f"  Model      : {config.model_id}")
    print(f"  Timeout    : {config.request_timeout_seconds:g}s")
    print(f"  Uploads    : {config.upload_dir}")
    print(f"  Listening  : {config.server_host}:{config.server_port}")
    print("=" * 60 + "\n")

    app = create_app(config)
    logger.info("Server running on %s", config.server_url)
    uvicorn.run(
        app,
        host=config.server_host,
        port=config.server_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
