"""Error types for the feed decoder."""


class ParseError(Exception):
    """Error decoding feed content.

    Raised when a response body cannot be decoded as an RSS or Atom feed.
    """

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize the parse error.

        Args:
            message: Human-readable error message.
            line: Line number where the error occurred, if known.
            column: Column number where the error occurred, if known.
        """
        self.message = message
        self.line = line
        self.column = column
        super().__init__(self._format())

    def _format(self) -> str:
        if self.line is None:
            return self.message
        if self.column is None:
            return f"{self.message} (line {self.line})"
        return f"{self.message} (line {self.line}, column {self.column})"
