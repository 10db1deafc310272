"""Exception hierarchy for MDRF parsing and generation"""


class MdrfError(Exception):
    """Base class for every error raised by the converter."""


class ParseError(MdrfError):
    """MDRF text could not be converted to a Document.

    line is the 1-based line nearest the fault; reason is the bare cause.
    """

    def __init__(self, reason: str, line: int):
        super().__init__(f"MDRF parse error (line {line}): {reason}")
        self.reason = reason
        self.line = line


class DecodeError(MdrfError):
    """YAML text could not be decoded into the expected value."""

    def __init__(self, reason: str):
        super().__init__(f"Invalid YAML: {reason}")
        self.reason = reason


class GenerationError(MdrfError):
    """A Document could not be rendered to MDRF text."""


class ValidationError(GenerationError):
    """The object handed to the generator has an invalid shape."""

    def __init__(self, problems: list[str] | str):
        if isinstance(problems, str):
            problems = [problems]
        super().__init__("Invalid input: " + "; ".join(problems))
        self.problems = list(problems)
