from typing import List


class MalformedLayout(ValueError):
    """Seat layout payload violates the seat record schema; the whole layout is rejected"""

    def __init__(self, message: str, position=None):
        self.position = position
        if position is not None:
            message = f"{message} (row {position[0]}, seat {position[1]})"
        super().__init__(message)


class SelectionValidationFailed(ValueError):
    """Selection is not ready for submission. Carries the user-correctable issues."""

    def __init__(self, errors: List):
        self.errors = list(errors)
        super().__init__("; ".join(e.error_message for e in self.errors))

    @property
    def error_codes(self) -> List[str]:
        return [e.error_code for e in self.errors]
