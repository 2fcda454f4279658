from __future__ import annotations

from typing import Optional


class BindError(OSError):
    """The listener could not bind its address; fatal at startup."""

    def __init__(self, host: str, port: int, cause: Optional[OSError] = None) -> None:
        reason = (cause.strerror or str(cause)) if cause is not None else "bind failed"
        message = f"cannot bind {host}:{port}: {reason}"
        if cause is not None and cause.errno is not None:
            super().__init__(cause.errno, message)
        else:
            super().__init__(message)
        self.host = host
        self.port = port


class HandlerError(RuntimeError):
    """Raised from inside a route handler when the response cannot be produced."""


__all__ = ["BindError", "HandlerError"]
