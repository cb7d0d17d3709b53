"""Exceptions raised by the remote store API."""


class NotFoundError(Exception):
    def __init__(self, resource: str, record_id: int) -> None:
        super().__init__(f"{resource} {record_id} not found")
        self.resource = resource
        self.record_id = record_id
