# errors.py
class StoreError(Exception):
    """Base error for the study store. `status_code` is the HTTP status class."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidInputError(StoreError):
    status_code = 400


class NotFoundError(StoreError):
    status_code = 404


class ConflictError(StoreError):
    status_code = 409


class StorageError(StoreError):
    status_code = 500
