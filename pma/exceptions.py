"""
Custom exception hierarchy for pma.

Every fatal condition is raised as a subclass of ``PmaError`` and only
turned into a process exit status at the CLI edge (``pma.cli``), so the
library can be driven from tests or other programs without exiting.

Recoverable anomalies (a malformed data line mid-stanza, an unknown
configuration key, a row-count mismatch, an unopenable input file) are
never raised -- they are logged with the source name and line number.
"""


class PmaError(Exception):
    """Base exception for all pma errors."""


class StanzaNotFoundError(PmaError):
    """Raised when a mandatory stanza marker (e.g. ``METADATA:``) is missing."""


class SchemaError(PmaError):
    """Raised when the self-describing header cannot produce a valid schema.

    This can happen if:
    - The ``TIME_VALUES:`` line is missing or malformed.
    - A class has a bad type flag or an out-of-range start row.
    - A metric name is declared in more than one place.
    - The first ``DATE:`` block does not hold exactly one timestamp.
    """


class DataFormatError(PmaError):
    """Raised when class data cannot be mapped onto the schema.

    For example, when a vector stanza line has the wrong number of fields
    during device discovery, or an array class has no device rows at all.
    """


class ConfigValidationError(PmaError):
    """Raised when the configuration file cannot be read or converted.

    Includes the offending line number when one is known.
    """


class ExportError(PmaError):
    """Raised when an output target cannot be created or opened.

    For example, permission errors, or a narrow-output path that exists
    but is not a directory.
    """
