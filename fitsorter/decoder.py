from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, List, Protocol
import io
import logging
import struct

from fitparse import FitFile, FitParseError

from .errors import (
    DecodeError,
    IntegrityError,
    MultipleRecordGroupsError,
    OpenError,
    SchemaMismatchError,
)
from .models import DecodedActivity

log = logging.getLogger(__name__)

FIT_SIGNATURE = b".FIT"
MIN_HEADER_SIZE = 12
CRC_SIZE = 2

# fitparse raises plain Python errors on some malformed field data
_MALFORMED = (FitParseError, ValueError, KeyError, IndexError, TypeError, struct.error)


class RecordDecoder(Protocol):
    """Turns one file's byte stream into a DecodedActivity.

    ``validate`` raises IntegrityError; ``decode`` raises DecodeError or
    SchemaMismatchError. Both read from the current stream position.
    """

    def validate(self, stream: BinaryIO) -> None: ...

    def decode(self, stream: BinaryIO) -> DecodedActivity: ...


def split_record_groups(data: bytes) -> List[bytes]:
    """Split a (possibly chained) FIT byte string into its record groups."""
    groups: List[bytes] = []
    offset = 0
    while offset < len(data):
        if len(data) - offset < MIN_HEADER_SIZE:
            raise IntegrityError(f"truncated header at byte {offset}")
        header_size = data[offset]
        data_size, = struct.unpack_from("<I", data, offset + 4)
        signature = data[offset + 8:offset + 12]
        if header_size < MIN_HEADER_SIZE or signature != FIT_SIGNATURE:
            raise IntegrityError(f"not a FIT header at byte {offset}")
        end = offset + header_size + data_size + CRC_SIZE
        if end > len(data):
            raise IntegrityError(f"record group at byte {offset} is truncated")
        groups.append(data[offset:end])
        offset = end
    if not groups:
        raise IntegrityError("empty file")
    return groups


def _as_utc(value) -> datetime:
    if not isinstance(value, datetime):
        raise DecodeError(f"activity timestamp is not a date: {value!r}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class FitRecordDecoder:
    """RecordDecoder backed by fitparse."""

    def validate(self, stream: BinaryIO) -> None:
        for group in split_record_groups(stream.read()):
            try:
                FitFile(io.BytesIO(group), check_crc=True).parse()
            except _MALFORMED as exc:
                raise IntegrityError(f"integrity check failed: {exc}") from exc

    def decode(self, stream: BinaryIO) -> DecodedActivity:
        first, *rest = split_record_groups(stream.read())
        if rest:
            raise MultipleRecordGroupsError(f"found {len(rest) + 1} record groups, expected 1")

        try:
            fit = FitFile(io.BytesIO(first), check_crc=False)
            file_ids = list(fit.get_messages("file_id"))
            activities = list(fit.get_messages("activity"))
            sports = tuple(str(m.get_value("sport")) for m in fit.get_messages("sport"))
        except _MALFORMED as exc:
            raise DecodeError(f"failed to decode: {exc}") from exc

        file_type = file_ids[0].get_value("type") if file_ids else None
        if file_type != "activity":
            raise SchemaMismatchError(f"not an activity file (file type {file_type})")
        if not activities:
            raise DecodeError("activity message missing")

        activity = activities[0]
        try:
            timer = activity.get_value("total_timer_time") or 0
            # Fields declared wider than their base type decode as tuples
            if isinstance(timer, bool) or not isinstance(timer, (int, float)):
                raise DecodeError(f"total_timer_time is not a number: {timer!r}")
            return DecodedActivity(
                activity_type=str(activity.get_value("type")),
                timestamp=_as_utc(activity.get_value("timestamp")),
                total_timer_millis=int(round(timer * 1000)),
                sports=sports,
            )
        except _MALFORMED as exc:
            raise DecodeError(f"failed to decode activity: {exc}") from exc


def decode_file(path: Path, decoder: RecordDecoder) -> DecodedActivity:
    """Validate, rewind and decode one file."""
    try:
        f = open(path, "rb")
    except OSError as exc:
        raise OpenError(f"failed to open '{path}': {exc}") from exc

    with f:
        try:
            decoder.validate(f)
            f.seek(0)
            activity = decoder.decode(f)
        except OSError as exc:
            raise OpenError(f"failed to read '{path}': {exc}") from exc
    log.debug("decoded %s: %s", path, activity)
    return activity
