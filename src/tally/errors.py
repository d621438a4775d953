"""Error taxonomy for the Tally counter store."""


class TallyError(Exception):
    """Base class for all Tally errors."""


class StorageUnavailable(TallyError):
    """The durable store could not be opened or initialized.

    Fatal for the session: there is no degraded mode.
    """


class RecordNotFound(TallyError):
    """A lookup by id returned nothing.

    Managers convert this into a no-op; it never reaches the user.
    """

    def __init__(self, collection: str, record_id: str):
        super().__init__(f"No record {record_id!r} in {collection}")
        self.collection = collection
        self.record_id = record_id


class InvalidInput(TallyError, ValueError):
    """Rejected user input (empty name, non-numeric start/step value)."""


class InvalidTransition(InvalidInput):
    """A lifecycle transition that the state machine does not allow."""


class DuplicateKey(TallyError):
    """An insert collided with an existing id. Indicates a programming error."""

    def __init__(self, collection: str, record_id: str):
        super().__init__(f"Duplicate id {record_id!r} in {collection}")
        self.collection = collection
        self.record_id = record_id
