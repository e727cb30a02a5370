"""Streaming CSV writer that splits output by row count.

Rows are pulled one at a time from a forward-only source and written
straight to disk, so memory use does not grow with the result size. At most
one output file is open at any moment.
"""

import csv
import os
from typing import Any, Iterable, List, Optional, Sequence

from dbexport.export.filenames import FilenamePolicy
from dbexport.logging import get_logger

logger = get_logger(__name__)

# RFC 4180 line endings; quoting applies to fields holding , " \r or \n
CSV_LINE_TERMINATOR = "\r\n"
CSV_ENCODING = "utf-8"


def _check_limit(max_rows_per_file: int) -> int:
    if max_rows_per_file < 1:
        raise ValueError("max_rows_per_file must be a positive integer")
    return max_rows_per_file


class CsvFileHandle:
    """One open output file and the number of data rows written to it."""

    def __init__(self, path: str, column_names: Sequence[str]):
        self.path = path
        self.row_count = 0
        self._file = open(path, "w", encoding=CSV_ENCODING, newline="")
        self._writer = csv.writer(
            self._file,
            quoting=csv.QUOTE_MINIMAL,
            lineterminator=CSV_LINE_TERMINATOR,
        )
        self._writer.writerow(column_names)

    def write_row(self, row: Sequence[Any]) -> None:
        self._writer.writerow(row)
        self.row_count += 1

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    @property
    def closed(self) -> bool:
        return self._file.closed


class StreamingCsvWriter:
    """Writes a row source to one or more CSV files of at most ``max_rows_per_file`` rows.

    A writer keeps the running row count of its last ``write_all`` call in
    ``row_count``; use one writer per export.
    """

    def __init__(
        self,
        output_directory: str,
        max_rows_per_file: int = 100000,
        progress_interval: Optional[int] = None,
    ):
        self.output_directory = output_directory
        self.max_rows_per_file = _check_limit(max_rows_per_file)
        self.progress_interval = progress_interval
        self.row_count = 0

    def write_all(
        self,
        row_source: Iterable[Sequence[Any]],
        column_names: Sequence[str],
        base_filename: str,
        max_rows_per_file: Optional[int] = None,
    ) -> List[str]:
        """Stream every row of ``row_source`` into CSV files.

        The first file is named ``<base>.csv``, later ones ``<base>_part002.csv``
        and so on. Every file starts with a header row. An empty source still
        produces one header-only file.

        Args:
            row_source: Lazy, finite sequence of rows
            column_names: Header values, in column order
            base_filename: Extension-less base name
            max_rows_per_file: Overrides the writer's split threshold

        Returns:
            Paths of the files written, in creation order
        """
        limit = (
            self.max_rows_per_file
            if max_rows_per_file is None
            else _check_limit(max_rows_per_file)
        )
        os.makedirs(self.output_directory, exist_ok=True)

        file_paths: List[str] = []
        handle: Optional[CsvFileHandle] = None
        self.row_count = 0

        try:
            for row in row_source:
                if self.row_count % limit == 0:
                    handle = self._rotate(handle, column_names, base_filename, file_paths)
                handle.write_row(row)
                self.row_count += 1

                if self.progress_interval and self.row_count % self.progress_interval == 0:
                    logger.info(
                        f"Processed {self.row_count} records, current file: {handle.path}"
                    )

            if handle is None:
                handle = self._rotate(None, column_names, base_filename, file_paths)
        finally:
            if handle is not None and not handle.closed:
                handle.close()
                logger.info(
                    f"Completed CSV file: {handle.path} with {handle.row_count} records"
                )

        logger.info(
            f"CSV write completed. Total records: {self.row_count}, "
            f"files generated: {len(file_paths)}"
        )
        return file_paths

    def _rotate(
        self,
        handle: Optional[CsvFileHandle],
        column_names: Sequence[str],
        base_filename: str,
        file_paths: List[str],
    ) -> CsvFileHandle:
        if handle is not None:
            handle.close()
            logger.info(f"Completed CSV file: {handle.path} with {handle.row_count} records")

        file_name = FilenamePolicy.split_file_name(base_filename, len(file_paths) + 1)
        path = os.path.join(self.output_directory, file_name)
        new_handle = CsvFileHandle(path, column_names)
        file_paths.append(path)
        return new_handle
