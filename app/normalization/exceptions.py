"""Exceptions raised while normalizing raw postings."""


class NormalizationError(Exception):
    """A posting is missing data required to enter the catalog.

    The pipeline skips the posting and counts it as an error.
    """

    def __init__(self, message: str, field: str, external_id: str = "") -> None:
        """Initialize with the offending field.

        Args:
            message: Human-readable error message
            field: Name of the missing or invalid field
            external_id: Provider id of the posting, when known
        """
        super().__init__(message)
        self.field = field
        self.external_id = external_id
