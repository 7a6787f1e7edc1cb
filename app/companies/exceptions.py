"""Company resolution exceptions."""


class CompanyError(Exception):
    """Base exception for company resolution errors."""

    pass


class CompanyMergeError(CompanyError):
    """Raised when an admin merge cannot be performed.

    Examples:
    - keep_id and merge_id are the same company
    - either id does not exist
    """

    pass
