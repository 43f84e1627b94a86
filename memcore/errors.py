# memcore/errors.py


class MemoryCoreError(Exception):
    """Base class for all memory core failures."""


class ValidationError(MemoryCoreError):
    """Missing or empty required input; nothing was written."""


class ProviderError(MemoryCoreError):
    """Embedding or completion service failure."""


class StoreError(MemoryCoreError):
    """Datastore failure, raised after the session has been rolled back."""


class OwnershipError(MemoryCoreError):
    """A user tried to reach a row owned by somebody else."""


class NotFoundError(MemoryCoreError):
    """The requested memory or cluster does not exist."""
