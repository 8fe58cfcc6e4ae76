# =============================================================================
# Plant Disease Gateway - Client Entry Point
# =============================================================================
# Uploads a leaf image to a running gateway and prints the diagnosis.
# =============================================================================

import argparse
import logging
import sys

from config import get_config
from client.client import PredictClient, PredictError

logger = logging.getLogger(__name__)


def main(argv=None):
    """CLI entry point for the gateway client."""
    parser = argparse.ArgumentParser(
        description="Plant Disease Detection — diagnose a leaf image",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("image", nargs="?", help="Path to the leaf image to upload")
    parser.add_argument(
        "--server-url", type=str, default=None,
        help="Server base URL (e.g., http://127.0.0.1:5005)",
    )
    parser.add_argument(
        "--test-gemini", action="store_true",
        help="Only check the server's connection to Gemini",
    )
    parser.add_argument(
        "--wait", type=int, default=0,
        help="Seconds to wait for the server to come up",
    )
    args = parser.parse_args(argv)

    if args.image is None and not args.test_gemini:
        parser.error("an image path is required unless --test-gemini is given")

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    server_url = args.server_url or get_config().server_url
    client = PredictClient(server_url=server_url)

    if args.wait and not client.wait_for_server(timeout=args.wait):
        logger.error("Server not available. Exiting.")
        return 1

    try:
        if args.test_gemini:
            body = client.test_gemini()
        else:
            body = client.predict(args.image)
    except PredictError as exc:
        logger.error("%s", exc)
        return 1

    print(body["result"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
