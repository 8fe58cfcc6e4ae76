# =============================================================================
# Plant Disease Gateway - HTTP Client
# =============================================================================
# Provides the PredictClient class used to talk to a running gateway:
# uploading leaf images for diagnosis, probing Gemini connectivity and
# waiting for the server to come up.
# =============================================================================

import logging
import mimetypes
import os
import time

import requests

logger = logging.getLogger(__name__)


class PredictError(RuntimeError):
    """The gateway answered with ``success: false``."""

    def __init__(self, message: str, status_code: int, error: str = None):
        detail = f"{message} ({error})" if error else message
        super().__init__(f"HTTP {status_code}: {detail}")
        self.status_code = status_code
        self.error = error


class PredictClient:
    """
    HTTP client for the plant disease gateway.

    Args:
        server_url: Base URL of the server (e.g., "http://127.0.0.1:5005").
        timeout:    Per-request timeout in seconds.
    """

    def __init__(self, server_url: str, timeout: float = 120.0):
        self._server_url = server_url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()

    def _url(self, path: str) -> str:
        return f"{self._server_url}{path}"

    @staticmethod
    def _unwrap(response: requests.Response) -> dict:
        """Return the JSON body, raising PredictError on a failure envelope."""
        try:
            body = response.json()
        except ValueError:
            response.raise_for_status()
            raise
        if not body.get("success", False):
            raise PredictError(
                body.get("message", "Request failed"),
                status_code=response.status_code,
                error=body.get("error"),
            )
        return body

    def health(self) -> str:
        """Return the liveness text served at ``/``."""
        response = self._session.get(self._url("/"), timeout=self._timeout)
        response.raise_for_status()
        return response.text

    def predict(self, image_path: str) -> dict:
        """
        Upload a leaf image to ``/predict``.

        The media type is guessed from the file extension.

        Args:
            image_path: Path of the image file to upload.

        Returns:
            dict: The server's JSON body (``success`` and ``result``).

        Raises:
            PredictError: If the server reports a failure.
            requests.exceptions.RequestException: On transport errors.
        """
        mime_type = mimetypes.guess_type(image_path)[0] or "application/octet-stream"
        filename = os.path.basename(image_path)

        with open(image_path, "rb") as fh:
            response = self._session.post(
                self._url("/predict"),
                files={"file": (filename, fh, mime_type)},
                timeout=self._timeout,
            )
        body = self._unwrap(response)
        logger.info("Diagnosis received for %s (%d chars)", filename, len(body["result"]))
        return body

    def test_gemini(self) -> dict:
        """Call ``/test-gemini`` and return its JSON body."""
        response = self._session.get(self._url("/test-gemini"), timeout=self._timeout)
        return self._unwrap(response)

    def wait_for_server(self, timeout: int = 60, poll_interval: float = 2.0) -> bool:
        """
        Block until the server's liveness endpoint answers.

        Args:
            timeout:       Maximum seconds to wait for the server.
            poll_interval: Seconds between polls.

        Returns:
            True if the server is up, False if timeout expired.
        """
        url = self._url("/")
        start = time.time()

        logger.info("Waiting for server at %s (timeout=%ds)...", url, timeout)

        while (time.time() - start) < timeout:
            try:
                response = self._session.get(url, timeout=5)
                if response.status_code == 200:
                    logger.info("Server is up.")
                    return True
            except requests.exceptions.ConnectionError:
                logger.debug("Server not reachable yet...")

            time.sleep(poll_interval)

        logger.error("Timed out waiting for server after %ds.", timeout)
        return False
