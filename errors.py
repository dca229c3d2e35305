# errors.py


class ConfigurationError(ValueError):
    """Cache geometry that cannot be built."""


class TraceParseError(ValueError):
    def __init__(self, message, line_no=None, line=None):
        self.line_no = line_no
        self.line = line
        if line_no is not None:
            message = f"line {line_no}: {message}: {line!r}"
        super().__init__(message)


class ReplacementSetViolation(AssertionError):
    """Caller broke a ReplacementSet precondition."""
