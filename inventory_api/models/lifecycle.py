import enum


class RecordStatus(str, enum.Enum):
    """Lifecycle state of catalog and account rows. Retired rows are never deleted."""
    ACTIVE = "active"
    RETIRED = "retired"
