class ExtractionError(Exception):
    """Base class for all errors raised while extracting report records."""

    def __init__(self, message: str, *, cause: Exception = None):
        super().__init__(message)
        self.__cause__ = cause  # Optional chaining for debugging


class ExtractionFileFormatNotSupportedError(ExtractionError):
    """Raised when the file format for extraction is not supported."""

    def __init__(self, file_path: str, message: str = None, *, cause: Exception = None):
        self.file_path = file_path
        if message is None:
            message = f"Extraction file format not supported: {file_path}"
        super().__init__(message, cause=cause)


class ReportFormatNotSupportedError(ExtractionError):
    """Raised when no report format is registered for an application/version."""

    def __init__(self, application: str, version: str, *, cause: Exception = None):
        self.application = application
        self.version = version
        super().__init__(
            f"Report format not supported: {application} {version}", cause=cause
        )


###################
# Table extraction
###################


class TableExtractionError(ExtractionError):
    """Raised when the markup cannot be turned into tables. Always fatal."""


class MalformedTableError(TableExtractionError):
    def __init__(self, *, cause: Exception = None):
        super().__init__("Parsing malformed table", cause=cause)


class MalformedRowError(TableExtractionError):
    def __init__(self, *, cause: Exception = None):
        super().__init__("Parsing malformed row", cause=cause)


class MalformedCellError(TableExtractionError):
    def __init__(self, *, cause: Exception = None):
        super().__init__("Parsing malformed cell", cause=cause)


class MismatchedTagError(TableExtractionError):
    """A structural closing tag does not match the most recently opened one."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Parsing a mismatched token. Expected: '{expected}', but got: '{actual}'"
        )


class UnexpectedStackStateError(TableExtractionError):
    """The open-tag stack held something other than a structural start tag."""

    def __init__(self, entry: object):
        self.entry = entry
        super().__init__(f"Parsing encountered an unexpected stack entry: {entry!r}")


class TableSourceError(TableExtractionError):
    """The token source failed to read the underlying stream."""

    def __init__(self, message: str = None, *, cause: Exception = None):
        if message is None:
            message = f"Reading the markup source failed: {cause}"
        super().__init__(message, cause=cause)
