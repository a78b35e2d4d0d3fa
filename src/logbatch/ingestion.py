"""Local file ingestion for log batches.

Batches are stored as JSON documents of the form ``{"resource_logs": [...]}``
where attribute values are plain JSON values and trace/span ids are hex
strings. Gzipped files are decompressed transparently.

JSON has no bytes type: a Bytes attribute is written as base64 text and reads
back as a Str value holding that text.
"""

import gzip
import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from .schemas import LogBatch

logger = logging.getLogger(__name__)


def read_batch_file(file_path: Union[str, Path]) -> str:
    """Read a batch file from the local filesystem.

    Args:
        file_path: Path to the batch file

    Returns:
        Raw file content as string
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Batch file not found: {file_path}")

    if file_path.suffix == '.gz':
        with gzip.open(file_path, 'rt', encoding='utf-8') as f:
            return f.read()
    with open(file_path, 'r', encoding='utf-8') as f:
        return f.read()


def parse_batch(raw_content: str) -> LogBatch:
    """Parse JSON content into a LogBatch.

    A bare list is accepted as the ``resource_logs`` array.
    """
    data = json.loads(raw_content)
    if isinstance(data, list):
        data = {"resource_logs": data}
    return LogBatch.model_validate(data)


def load_batch(file_path: Union[str, Path]) -> LogBatch:
    batch = parse_batch(read_batch_file(file_path))
    logger.info(f"Loaded batch with {batch.record_count()} records from {file_path}")
    return batch


def dump_batch(batch: LogBatch) -> Dict[str, Any]:
    """Return the JSON-ready representation of a batch.

    Bytes attribute values become base64 strings, so they reload as Str.
    """
    return batch.model_dump(mode="json")
