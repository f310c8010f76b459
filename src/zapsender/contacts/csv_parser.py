"""
CSV reading for contact lists.

Produces raw rows (column name -> value) for ``ContactLoader``. Header names
and cell values are trimmed; columns missing from a short row are absent
(``None``) rather than empty.
"""

import csv
import io
from pathlib import Path

from zapsender.shared.exceptions import ContactSourceError
from zapsender.shared.logging import get_logger

logger = get_logger(__name__)

RawRow = dict[str, str | None]


class ContactFileReader:
    """Reader for contact CSV files."""

    def __init__(
        self,
        delimiter: str = ",",
        encoding: str = "utf-8-sig",
    ) -> None:
        """Initialize CSV reader.

        Args:
            delimiter: CSV field delimiter.
            encoding: File encoding. The default also strips a UTF-8 BOM.
        """
        self.delimiter = delimiter
        self.encoding = encoding

    def read(self, path: str | Path) -> list[RawRow]:
        """Read every data row of a CSV file.

        Args:
            path: File location, resolved against the working directory.

        Returns:
            Rows in file order.

        Raises:
            ContactSourceError: The file is missing, unreadable, not valid
                text in the configured encoding, or has no header row.
        """
        abs_path = Path(path).resolve()
        if not abs_path.is_file():
            raise ContactSourceError(f"CSV not found: {abs_path}", path=abs_path)

        try:
            content = abs_path.read_bytes()
        except OSError as e:
            raise ContactSourceError(f"Cannot read CSV {abs_path}: {e}", path=abs_path) from e

        return self.parse(content, source=abs_path)

    def parse(self, content: bytes, source: str | Path | None = None) -> list[RawRow]:
        """Parse raw CSV bytes into rows."""
        try:
            text = content.decode(self.encoding)
        except UnicodeDecodeError as e:
            raise ContactSourceError(f"File encoding error: {e}", path=source) from e

        reader = csv.reader(io.StringIO(text), delimiter=self.delimiter)
        try:
            header = next(reader)
        except StopIteration:
            raise ContactSourceError("CSV file is empty or has no headers", path=source) from None

        columns = [h.strip() for h in header]
        logger.debug("CSV headers parsed", extra={"headers": columns})

        rows: list[RawRow] = []
        for record in reader:
            # Blank lines carry no data
            if not record or all(not cell.strip() for cell in record):
                continue
            row: RawRow = {}
            for index, column in enumerate(columns):
                row[column] = record[index].strip() if index < len(record) else None
            rows.append(row)

        return rows
