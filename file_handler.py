"""Upload validation and the cached source file"""
from dataclasses import dataclass
from typing import Optional, List, Dict, Any, Callable, Union, Awaitable
from datetime import datetime
import inspect
import logging
import os

from config import monitor_config
from exceptions import FileProcessingError
from models import FileCache

logger = logging.getLogger(__name__)

PROCESSING_FAILED_MESSAGE = 'Failed to process Excel file. Please try uploading the file again.'

Rows = List[Dict[str, Any]]
Decoder = Callable[[bytearray], Union[Rows, Awaitable[Rows]]]


@dataclass
class FileValidationResult:
    is_valid: bool
    error: Optional[str] = None


def validate_excel_file(
    file_name: Optional[str],
    size: int,
    content_type: Optional[str] = None,
    config=monitor_config
) -> FileValidationResult:
    """
    Check an upload before anything is read or decoded.

    The MIME type is advisory only: an unexpected type is logged and accepted.

    Args:
        file_name: Client-side file name
        size: Size in bytes
        content_type: MIME type reported by the client, if any
        config: Limits to apply

    Returns:
        FileValidationResult with a user-facing error when invalid
    """
    if not file_name:
        return FileValidationResult(False, 'No file selected')

    extension = os.path.splitext(file_name.lower())[1].lstrip('.')
    if extension not in config.allowed_extensions:
        return FileValidationResult(False, 'Please upload a valid Excel file (.xls or .xlsx)')

    if content_type not in config.excel_mime_types:
        logger.warning(f"Unexpected MIME type for Excel file {file_name}: {content_type}")

    if size <= 0:
        return FileValidationResult(False, 'The selected file is empty')

    if size > config.max_upload_bytes:
        limit_mb = config.max_upload_bytes // (1024 * 1024)
        return FileValidationResult(False, f'File size exceeds {limit_mb}MB limit')

    return FileValidationResult(True)


def create_file_cache(file_name: str, content: bytes, content_type: Optional[str] = None) -> FileCache:
    """Read the upload once into an immutable buffer"""
    return FileCache(
        file_name=file_name,
        data=bytes(content),
        captured_at=datetime.now(),
        content_type=content_type
    )


async def read_and_process_file(file_cache: FileCache, decoder: Decoder) -> Rows:
    """
    Decode a fresh copy of the cached bytes.

    The decoder gets its own bytearray so the cache survives decoders that
    consume or mutate their input. Sync and async decoders are both accepted.

    Raises:
        FileProcessingError: Any decoder failure, or an empty result
    """
    buffer = bytearray(file_cache.data)
    try:
        rows = decoder(buffer)
        if inspect.isawaitable(rows):
            rows = await rows
        if not rows:
            raise ValueError('Decoder returned no rows')
        return list(rows)
    except Exception as e:
        logger.error(f"Error processing {file_cache.file_name}: {e}")
        raise FileProcessingError(PROCESSING_FAILED_MESSAGE) from e
