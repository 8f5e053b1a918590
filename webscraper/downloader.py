from __future__ import annotations

import logging
import os
import tempfile
from typing import Optional

import requests

from .errors import DownloadFailure
from .logging_utils import log_event, resolve_logger

CHUNK_SIZE = 64 * 1024


class FileDownloader:
    """Fetches a URL into a local file.

    download() never raises: failures are logged and reported as False so a
    caller sweeping many files can keep going."""

    def __init__(
        self,
        timeout_s: float = 10.0,
        session: Optional[requests.Session] = None,
        user_agent: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._timeout = (timeout_s, timeout_s)
        self._session = session
        self._headers = {"User-Agent": user_agent} if user_agent else None
        self._logger = resolve_logger(logger, __name__)

    def download(self, url: str, dest_path: str) -> bool:
        try:
            self._download(url, dest_path)
        except (requests.RequestException, OSError, DownloadFailure) as exc:
            log_event(
                self._logger,
                logging.ERROR,
                "download_failed",
                url=url,
                dest_path=dest_path,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return False
        log_event(self._logger, logging.INFO, "download_complete", url=url, dest_path=dest_path)
        return True

    def _download(self, url: str, dest_path: str) -> None:
        getter = self._session.get if self._session is not None else requests.get
        response = getter(url, headers=self._headers, timeout=self._timeout, stream=True)
        try:
            if response.status_code != 200:
                raise DownloadFailure(f"HTTP status code {response.status_code} for {url}")

            directory = os.path.dirname(os.path.abspath(dest_path))
            if os.path.exists(directory) and not os.path.isdir(directory):
                raise DownloadFailure(f"Destination exists and is not a directory: {directory}")
            os.makedirs(directory, exist_ok=True)

            fd, tmp_path = tempfile.mkstemp(prefix=".download-", dir=directory)
            try:
                with os.fdopen(fd, "wb") as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
                os.replace(tmp_path, dest_path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        finally:
            response.close()
