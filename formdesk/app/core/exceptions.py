class InvalidSchema(Exception):
    """Raised when a form definition is structurally invalid."""


class FormNotFound(Exception):
    """Raised when a form is missing, inactive, or owned by someone else."""


class ResponseNotFound(Exception):
    """Raised when a response does not exist within the given form."""


class ValidationError(Exception):
    """Raised when submitted answers fail validation.

    Carries every offending field, not just the first one.
    """

    def __init__(self, errors):
        self.errors = list(errors)
        fields = ", ".join(e.label or e.field_id for e in self.errors)
        super().__init__(f"Invalid answers for: {fields}")


class UploadFailure(Exception):
    """Raised when an attached asset could not be written to object storage."""


class PersistFailure(Exception):
    """Raised when a response could not be written to the database."""


class ExportNoContent(Exception):
    """Raised when an export would produce an empty artifact."""


class AssetNotFound(Exception):
    """Raised by object storage when a URI cannot be resolved to bytes."""
