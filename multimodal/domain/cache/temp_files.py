from typing import List, Optional
import asyncio
import mimetypes
import os
import tempfile
import threading

import structlog

logger = structlog.get_logger(__name__)


class TempFileRegistry:
    """Tracks temporary files written for inline and buffer media.

    Files are released as soon as they have been decoded; ``cleanup`` removes
    whatever is left at disposal.
    """

    def __init__(self, directory: Optional[str] = None, prefix: str = "multimodal-"):
        self.directory = directory
        self.prefix = prefix
        self._paths: List[str] = []
        self._lock = threading.Lock()

    async def create(self, payload: bytes, mime_type: str) -> str:
        """Write payload to a new temporary file and track it"""

        suffix = mimetypes.guess_extension(mime_type) or ""
        path = await asyncio.to_thread(self._write, payload, suffix)

        with self._lock:
            self._paths.append(path)

        logger.debug("Created temp media file", path=path, size=len(payload))
        return path

    def _write(self, payload: bytes, suffix: str) -> str:
        with tempfile.NamedTemporaryFile(
            delete=False, suffix=suffix, prefix=self.prefix, dir=self.directory
        ) as tf:
            tf.write(payload)
            return tf.name

    @property
    def paths(self) -> List[str]:
        with self._lock:
            return list(self._paths)

    def release(self, path: str) -> bool:
        """Delete one tracked file once it has been consumed.

        A file that cannot be removed stays tracked for ``cleanup``.
        """

        with self._lock:
            if path not in self._paths:
                return False

        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to release temp media file", path=path, error=str(e))
            return False

        with self._lock:
            if path in self._paths:
                self._paths.remove(path)
        return True

    def cleanup(self) -> int:
        """Delete every tracked file and return how many were removed.

        Failures are logged and skipped, never raised.
        """

        with self._lock:
            paths, self._paths = self._paths, []

        removed = 0
        for path in paths:
            try:
                os.remove(path)
                removed += 1
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("Failed to remove temp media file", path=path, error=str(e))

        return removed
