"""
Domain exceptions.

Raised inside the store, vault, mirror and migration modules and converted
into result values at each component boundary.
"""


class StoreError(Exception):
    """Base error for document store failures."""
    pass


class CollectionReadError(StoreError):
    """A collection file exists but could not be read or parsed."""
    pass


class CollectionWriteError(StoreError):
    """A collection could not be serialized or persisted."""
    pass


class InvalidCollectionName(StoreError):
    """A collection file name would escape the data root."""
    pass


class VaultError(Exception):
    """Secret could not be sealed or opened."""
    pass


class MigrationError(Exception):
    """A schema migration step failed."""
    pass


class MirrorError(Exception):
    """A mirror sync pass could not run."""
    pass
