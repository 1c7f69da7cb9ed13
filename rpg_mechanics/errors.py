from typing import Optional


class EvaluationError(ValueError):
    """
    Raised when a formula, check or bare expression cannot be evaluated.

    `source_id` names the formula or check that failed (None for a bare
    expression) and `cause` keeps the underlying exception.
    """

    def __init__(
        self,
        message: str,
        source_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.source_id = source_id
        self.cause = cause
