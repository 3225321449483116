"""Exceptions raised by the analysis core."""


class AnalysisError(Exception):
    """Base class for fatal analysis failures."""


class DataIntegrityError(AnalysisError):
    """A closed account or security still carries activity.

    Attributes:
        bucket: The bucket whose owner was closed while relevant.
    """

    def __init__(self, bucket, message: str) -> None:
        super().__init__(f"{message}: {bucket.name}")
        self.bucket = bucket


class LogicError(AnalysisError):
    """A transaction reached a dispatch branch that has no handler.

    Attributes:
        category_class: The unhandled category class.
    """

    def __init__(self, category_class) -> None:
        super().__init__(f"Unexpected category type: {category_class}")
        self.category_class = category_class


__all__ = ["AnalysisError", "DataIntegrityError", "LogicError"]
