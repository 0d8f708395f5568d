"""List output as a plain table or JSON."""

import json
from typing import List, TextIO

from tabulate import tabulate

from .models import CertificateRow

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
TABLE_HEADERS = ["FQDN", "Not Before", "Not After", "Serial"]


def render_table(rows: List[CertificateRow], stream: TextIO) -> None:
    """Write rows as an aligned, borderless table."""
    lines = [
        [
            row.fqdn,
            row.not_before.strftime(DATE_FORMAT),
            row.not_after.strftime(DATE_FORMAT),
            row.serial,
        ]
        for row in rows
    ]
    stream.write(tabulate(lines, headers=TABLE_HEADERS, tablefmt="plain") + "\n")


def render_json(rows: List[CertificateRow], stream: TextIO) -> None:
    """Write rows as a JSON array."""
    payload = [row.model_dump(mode="json", by_alias=True) for row in rows]
    json.dump(payload, stream)
    stream.write("\n")
