from __future__ import annotations


class OutputHelper:
    """Per-test output sink for diagnostic lines.

    The plugin attaches the collected text to the test report under the
    ``fixturewire output`` section.
    """

    def __init__(self) -> None:
        self._lines: list[str] = []

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def write_line(self, message: str) -> None:
        self._lines.append(message)

    def getvalue(self) -> str:
        return "".join(f"{line}\n" for line in self._lines)
