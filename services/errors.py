from __future__ import annotations

from typing import Optional

DEFAULT_FAULT_CODE = 500


class ServiceError(Exception):
    """An external routing / map-data call failed.

    ``status_code`` is the HTTP status of the failed response when one was
    received, otherwise a gateway-style classification (502 malformed body,
    503 unreachable, 504 timeout, 500 anything else).
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code if status_code is not None else DEFAULT_FAULT_CODE

    def __str__(self) -> str:
        return f"{self.message} (status {self.status_code})"
