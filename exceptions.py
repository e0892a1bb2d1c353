"""Exception hierarchy for the Flock Line Monitor"""


class MonitorError(Exception):
    """Base class for errors surfaced to the operator"""


class FileValidationError(MonitorError):
    """Upload rejected before any decode attempt (extension, size)"""


class ExcelProcessingError(MonitorError):
    """The workbook could not be decoded into rows"""


class FileProcessingError(MonitorError):
    """A refresh failed; the cached file has been discarded"""
