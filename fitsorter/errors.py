class FitSorterError(Exception):
    """Base error for the project."""

class FatalRunError(FitSorterError):
    """Aborts the whole run."""

class ScanError(FatalRunError):
    pass

class ConfigError(FitSorterError):
    pass

class RecordError(FitSorterError):
    """A file could not be turned into a decoded activity."""

class OpenError(RecordError):
    pass

class IntegrityError(RecordError):
    pass

class DecodeError(RecordError):
    pass

class MultipleRecordGroupsError(DecodeError):
    pass

class SchemaMismatchError(RecordError):
    pass

class NotQualifyingError(FitSorterError):
    def __init__(self, reason, message: str, sport_count: int | None = None):
        super().__init__(message)
        self.reason = reason
        self.sport_count = sport_count

class CopyError(FitSorterError):
    pass
