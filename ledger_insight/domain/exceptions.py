"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidRecordError(DomainException):
    """Source record is not a mapping or attribute object and cannot be read"""

    def __init__(self, kind: str, message: str):
        super().__init__(f"Invalid {kind} record: {message}")
        self.kind = kind
