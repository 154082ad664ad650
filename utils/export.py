"""CSV export of tabular task results"""

import csv
import datetime
import logging
from pathlib import Path
from typing import Optional, Sequence, Union

logger = logging.getLogger(__name__)

EXPORT_PREFIX = "export_results_"


def export_filename(now: Optional[datetime.datetime] = None) -> str:
    """Timestamped file name, e.g. export_results_20240131-142501.csv"""
    now = now or datetime.datetime.now()
    return f"{EXPORT_PREFIX}{now.strftime('%Y%m%d-%H%M%S')}.csv"


def export_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    directory: Union[str, Path, None] = None,
    filename: Optional[str] = None,
) -> Path:
    """
    Write a table to CSV.

    The header line is omitted when there are no headers.

    Args:
        headers: Column names
        rows: Table rows
        directory: Target directory (default: current directory)
        filename: File name (default: timestamped name)

    Returns:
        Path of the written file

    Raises:
        OSError: the file could not be written
    """
    target = Path(directory or ".") / (filename or export_filename())

    with open(target, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        if headers:
            writer.writerow(list(headers))
        writer.writerows(list(row) for row in rows)

    logger.info(f"Exported {len(rows)} rows to {target}")
    return target
