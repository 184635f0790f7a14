# replaybt/utils/errors.py
from typing import Optional


class UserInputError(RuntimeError):
    """
    Raised for invalid user-provided input (dates, files, config values).
    Should NOT print traceback; the CLI prints message + hint and exits 2.
    """

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.hint = hint
