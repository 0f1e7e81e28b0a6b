class CronhooksError(Exception):
    """Base class for errors raised by the task/log core."""


class ValidationError(CronhooksError):
    """One or more fields were rejected.

    ``errors`` maps field name -> human readable reason, so callers can
    render the message next to the offending input.
    """

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


class DataIntegrityError(ValidationError):
    """A write would break a cross-record invariant (e.g. retry budget)."""


class NotFoundError(CronhooksError):
    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")
