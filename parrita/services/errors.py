from typing import Dict, Optional


class ServiceError(Exception):
    """Failure with a status code and a message safe to show the visitor."""

    def __init__(
        self,
        status_code: int,
        message: str,
        headers: Optional[Dict[str, str]] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.headers = headers or {}
