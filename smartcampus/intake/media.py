"""
Media capture: turns a selected file into a data URI.

No size or type checks are made here. Encoding is all-or-nothing: a read or
encode failure yields None and nothing reaches the draft.
"""

import asyncio
import base64
import logging
import mimetypes
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


def guess_mime_type(
    content_type: Optional[str] = None,
    filename: Optional[str] = None
) -> str:
    """Declared content type, else a guess from the filename, else octet-stream."""
    if content_type:
        return content_type
    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed:
            return guessed
    return DEFAULT_MIME_TYPE


def to_data_uri(data: bytes, mime_type: str = DEFAULT_MIME_TYPE) -> str:
    """Encode raw bytes as ``data:<mime>;base64,<payload>``."""
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


class MediaEncoder:
    """Encodes user-selected files off the event loop."""

    async def encode_bytes(
        self,
        data: bytes,
        content_type: Optional[str] = None,
        filename: Optional[str] = None
    ) -> Optional[str]:
        """
        Encode already-read file contents.

        Returns:
            Data URI, or None if encoding failed
        """
        mime_type = guess_mime_type(content_type, filename)
        try:
            return await asyncio.to_thread(to_data_uri, bytes(data), mime_type)
        except (TypeError, ValueError) as e:
            logger.warning(f"Image encoding failed for {filename or 'upload'}: {e}")
            return None

    async def encode_file(self, path: Union[str, Path]) -> Optional[str]:
        """
        Read and encode a file from disk.

        Returns:
            Data URI, or None if the file could not be read
        """
        path = Path(path)
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            logger.warning(f"Image read failed for {path}: {e}")
            return None

        return await self.encode_bytes(data, filename=path.name)
