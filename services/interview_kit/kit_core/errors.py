from __future__ import annotations


class KitError(Exception):
    def __init__(self, detail: str, status_code: int = 400) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class InvalidRequestError(KitError):
    """Rejected before any model call is made."""


class GenerationError(KitError):
    """The model call failed or produced nothing usable."""

    def __init__(self, detail: str = "model_produced_no_output", status_code: int = 502) -> None:
        super().__init__(detail, status_code)
