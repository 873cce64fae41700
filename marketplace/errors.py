# marketplace/errors.py
"""Service-level errors. Each carries the HTTP status the API maps it to."""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    status_code = 400


class InvalidFileType(ServiceError):
    status_code = 400


class NotFound(ServiceError):
    status_code = 404


class TransactionFailure(ServiceError):
    status_code = 500


class StoreFailure(ServiceError):
    status_code = 500
