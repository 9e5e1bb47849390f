class StoreError(Exception):
    """Base class for failures of the document store."""


class StoreQueryFailure(StoreError):
    pass


class StoreWriteFailure(StoreError):
    pass
