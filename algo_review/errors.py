class ReviewError(Exception):
    """Base class for tracker errors."""


class ValidationError(ReviewError):
    pass


class InvalidDate(ValidationError):
    def __init__(self, value):
        super().__init__(f"Invalid calendar date: {value!r}")
        self.value = value


class DuplicateIdentifier(ReviewError):
    def __init__(self, identifier: str):
        super().__init__(f"Problem {identifier!r} already exists")
        self.identifier = identifier


class ProblemNotFound(ReviewError):
    def __init__(self, identifier: str):
        super().__init__(f"Problem {identifier!r} not found")
        self.identifier = identifier


class StoreError(ReviewError):
    pass
