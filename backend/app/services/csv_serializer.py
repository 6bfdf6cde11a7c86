"""
CSV output in the partner's format: comma separated, no header row,
CRLF after every row (including the last), UTF-8.

Cells starting with = + - or @ are prefixed with a tab so spreadsheet
applications do not evaluate them as formulas.
"""
import csv
import io
from typing import Any, Iterable, Sequence

FORMULA_TRIGGERS = ("=", "+", "-", "@")
LINE_TERMINATOR = "\r\n"


def neutralize(value: Any) -> str:
    text = "" if value is None else str(value)
    if text and text[0] in FORMULA_TRIGGERS:
        return "\t" + text
    return text


class RecordSerializer:
    def __init__(self, delimiter: str = ",", encoding: str = "utf-8"):
        self.delimiter = delimiter
        self.encoding = encoding

    def serialize_text(self, rows: Iterable[Sequence[Any]]) -> str:
        buf = io.StringIO(newline="")
        writer = csv.writer(
            buf,
            delimiter=self.delimiter,
            quotechar='"',
            doublequote=True,
            quoting=csv.QUOTE_MINIMAL,
            lineterminator=LINE_TERMINATOR,
        )
        for row in rows:
            writer.writerow([neutralize(v) for v in row])
        return buf.getvalue()

    def serialize(self, rows: Iterable[Sequence[Any]]) -> bytes:
        return self.serialize_text(rows).encode(self.encoding)
