from __future__ import annotations

import csv
import io
from enum import Enum

from pytest_vagrant_session.exceptions import (
    FieldNotFound,
    MachineReadableParseError,
    UnrecognizedStatus,
)


class Status(str, Enum):
    # https://github.com/hashicorp/vagrant/blob/main/templates/locales/en.yml
    UNKNOWN = "unknown"
    NOT_CREATED = "not_created"
    RUNNING = "running"
    SAVED = "saved"
    POWER_OFF = "poweroff"


class BoxSubcommand(str, Enum):
    ADD = "add"
    LIST = "list"
    OUTDATED = "outdated"
    REMOVE = "remove"
    REPACKAGE = "repackage"
    UPDATE = "update"


# vagrant mixes 4- and 5-field rows (e.g. `metadata,provider,...`)
VARIABLE_FIELDS = -1

_STATES = {
    "running": Status.RUNNING,
    "not_created": Status.NOT_CREATED,
    "saved": Status.SAVED,
    "poweroff": Status.POWER_OFF,
}


def parse_records(text: str, fields_per_record: int = 0) -> list[list[str]]:
    """
    Parse `--machine-readable` output into rows of fields.

    Each row looks like `timestamp,target,type,data...`. Blank lines are
    skipped. A row with broken quoting raises MachineReadableParseError, and
    so does a row whose field count differs from `fields_per_record`:

    - 0 (default): every row must have as many fields as the first one
    - a positive number: every row must have exactly that many fields
    - VARIABLE_FIELDS: rows may have any number of fields
    """
    reader = csv.reader(io.StringIO(text), strict=True)
    records: list[list[str]] = []
    expected = fields_per_record
    try:
        for row in reader:
            if not row:
                continue
            if expected == 0:
                expected = len(row)
            if expected > 0 and len(row) != expected:
                raise MachineReadableParseError(
                    f"invalid machine-readable output at line {reader.line_num}: "
                    f"wrong number of fields, expected {expected}, got {len(row)}"
                )
            records.append(row)
    except csv.Error as e:
        raise MachineReadableParseError(
            f"invalid machine-readable output at line {reader.line_num}: {e}"
        ) from e
    return records


def parse_field(records: list[list[str]], type_name: str) -> str:
    """
    Return the data of the last row whose type column equals `type_name`.
    """
    data = ""
    for record in records:
        # timestamp, target and type are fixed; without data the row is useless
        if len(record) < 4:
            continue
        if record[2] == type_name:
            data = record[3]

    if not data:
        raise FieldNotFound(f"couldn't parse data for vagrant type: {type_name!r}")
    return data


def to_status(state: str) -> Status:
    try:
        return _STATES[state]
    except KeyError:
        raise UnrecognizedStatus(state) from None
