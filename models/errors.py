"""
Error types shared by models and repositories
"""


class BackendError(Exception):
    """Raised when the backing store returns something unusable"""


class RowValidationError(BackendError):
    """A stored row or payload does not match the expected shape"""

    def __init__(self, entity: str, field: str, value=None):
        self.entity = entity
        self.field = field
        self.value = value
        super().__init__(f"{entity}: invalid value for '{field}': {value!r}")
