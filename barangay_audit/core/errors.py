class AuditError(Exception):
    """Base class for audit trail failures."""


class StorageError(AuditError):
    """The audit store could not complete an operation."""


class SweepError(AuditError):
    """A retention sweep failed. Caught and logged by the sweeper loop."""
