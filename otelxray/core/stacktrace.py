"""
otelxray.core.stacktrace - Stack-trace parsing for X-Ray exception causes.

OpenTelemetry records exceptions as span events carrying the exception
type, message and the raw stack trace text. X-Ray wants structured frames
and an explicit chain of causes, so this module parses the text produced
by each supported SDK language.

All parsers are lenient: a line that does not look like a frame is skipped
and parsing continues. The summary line ("Type: message") is never parsed
as a frame because the type and message come from the event attributes.

Classes:
    Language: Supported source languages
    StackFrame: One parsed stack frame
    ExceptionRecord: One entry of the X-Ray cause.exceptions list
    LineReader / ReverseLineReader: Cursor over the lines of a trace
    StackTraceParser: Base class of the per-language parsers

Functions:
    parse_exception: Turn an exception event into a chain of ExceptionRecords
"""

from __future__ import annotations

import abc
import enum
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from otelxray.core.trace_id import new_segment_id


class Language(enum.Enum):
    """Source language of the process that recorded the exception."""

    JAVA = "java"
    DOTNET = "dotnet"
    PYTHON = "python"
    JAVASCRIPT = "javascript"
    PHP = "php"
    GO = "go"

    @classmethod
    def from_sdk(cls, name: Optional[str]) -> Optional[Language]:
        """Map a telemetry.sdk.language value to a Language.

        Args:
            name: Value of the telemetry.sdk.language resource attribute

        Returns:
            The matching Language, or None for unknown languages
        """
        if not name:
            return None
        return _SDK_LANGUAGES.get(name.lower())


_SDK_LANGUAGES: Dict[str, Language] = {
    "java": Language.JAVA,
    "dotnet": Language.DOTNET,
    "python": Language.PYTHON,
    "javascript": Language.JAVASCRIPT,
    "nodejs": Language.JAVASCRIPT,
    "webjs": Language.JAVASCRIPT,
    "php": Language.PHP,
    "go": Language.GO,
}


@dataclass
class StackFrame:
    """A single frame: source path, function label and line number (0 if unknown)."""

    path: str = ""
    label: str = ""
    line: int = 0

    def to_dict(self) -> Dict[str, Any]:
        frame: Dict[str, Any] = {"path": self.path, "label": self.label}
        if self.line:
            frame["line"] = self.line
        return frame


@dataclass
class ExceptionRecord:
    """One exception in an X-Ray cause chain.

    Attributes:
        id: 16 hex character identifier, unique within the document
        type: Exception type name
        message: Exception message
        stack: Parsed frames, innermost call first
        cause: id of the next record in the chain, if any
    """

    id: str
    type: Optional[str] = None
    message: Optional[str] = None
    stack: List[StackFrame] = field(default_factory=list)
    cause: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {"id": self.id}
        if self.type is not None:
            record["type"] = self.type
        if self.message is not None:
            record["message"] = self.message
        if self.stack:
            record["stack"] = [frame.to_dict() for frame in self.stack]
        if self.cause is not None:
            record["cause"] = self.cause
        return record


class LineReader:
    """Forward cursor over the lines of a stack trace."""

    def __init__(self, text: str) -> None:
        self._lines = text.splitlines()
        self._position = 0

    def read_line(self) -> Optional[str]:
        """Return the next line, or None when the text is exhausted."""
        if self._position >= len(self._lines):
            return None
        line = self._lines[self._position]
        self._position += 1
        return line

    def peek(self) -> Optional[str]:
        if self._position >= len(self._lines):
            return None
        return self._lines[self._position]


class ReverseLineReader(LineReader):
    """Cursor that yields the lines of a stack trace from last to first."""

    def __init__(self, text: str) -> None:
        super().__init__(text)
        self._lines.reverse()


def _chain(records: List[ExceptionRecord], exc_type: Optional[str], message: Optional[str]) -> ExceptionRecord:
    """Append a new record and link the previous tail to it."""
    record = ExceptionRecord(id=new_segment_id(), type=exc_type, message=message)
    if records:
        records[-1].cause = record.id
    records.append(record)
    return record


def _split_type_message(text: str) -> Tuple[str, str]:
    exc_type, sep, message = text.partition(":")
    if not sep:
        return text.strip(), ""
    return exc_type.strip(), message.strip()


def _parse_int(text: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        return 0


class StackTraceParser(abc.ABC):
    """Base class for language specific parsers.

    Subclasses fill ``records[0]`` (already created for the reported
    exception) with frames and append chained causes.
    """

    language: Language

    @abc.abstractmethod
    def parse(self, records: List[ExceptionRecord], stacktrace: str) -> None:
        """Add frames and causes parsed from ``stacktrace`` to ``records``."""


class JavaParser(StackTraceParser):
    """Parses Throwable.printStackTrace() output.

    Example input::

        java.lang.IllegalStateException: state is not legal
        \tat io.opentelemetry.sdk.trace.RecordEventsReadableSpanTest.recordException(Test.java:626)
        \tat java.base/jdk.internal.reflect.NativeMethodAccessorImpl.invoke0(Native Method)
        Caused by: java.lang.IllegalArgumentException: bad argument
        \t... 3 more
    """

    language = Language.JAVA

    _CAUSED_BY = "Caused by: "

    def parse(self, records: List[ExceptionRecord], stacktrace: str) -> None:
        reader = LineReader(stacktrace)
        if reader.read_line() is None:
            return

        current = records[0]
        line = reader.read_line()
        while line is not None:
            if line.startswith("\tat "):
                frame = self._parse_frame(line)
                if frame is not None:
                    current.stack.append(frame)
                line = reader.read_line()
            elif line.startswith(self._CAUSED_BY):
                exc_type, message = _split_type_message(line[len(self._CAUSED_BY):])
                current = _chain(records, exc_type, message)
                line = reader.read_line()
                # message continues until the next indented line
                while line is not None and not line.startswith("\t"):
                    if line.startswith(self._CAUSED_BY):
                        break
                    current.message = f"{current.message}\n{line}"
                    line = reader.read_line()
            else:
                line = reader.read_line()

    @staticmethod
    def _parse_frame(line: str) -> Optional[StackFrame]:
        paren = line.find("(")
        if paren < 0 or not line.endswith(")"):
            return None

        label = line[4:paren]
        slash = label.find("/")
        if slash >= 0:
            label = label[slash + 1:]

        location = line[paren + 1:-1]
        path, sep, number = location.partition(":")
        return StackFrame(path=path, label=label, line=_parse_int(number) if sep else 0)


class DotNetParser(StackTraceParser):
    """Parses Exception.ToString() output.

    Inner exceptions appear in the header joined with " ---> ", and their
    frames come first, each block closed by an
    "--- End of inner exception stack trace ---" line.
    """

    language = Language.DOTNET

    _INNER_MARKER = " ---> "
    _INNER_END = "--- End of inner exception stack trace ---"

    def parse(self, records: List[ExceptionRecord], stacktrace: str) -> None:
        reader = LineReader(stacktrace)
        header = reader.read_line()
        if header is None:
            return

        blocks: List[List[StackFrame]] = [[]]
        line = reader.read_line()
        while line is not None:
            stripped = line.strip()
            if stripped.startswith("at "):
                frame = self._parse_frame(stripped)
                if frame is not None:
                    blocks[-1].append(frame)
            elif stripped.startswith(self._INNER_END):
                blocks.append([])
            elif not blocks[-1] and len(blocks) == 1 and stripped:
                # header continues on following lines (multi-line message)
                header = f"{header}\n{line}"
            line = reader.read_line()

        inner = header.split(self._INNER_MARKER)[1:]
        for text in inner:
            exc_type, message = _split_type_message(text)
            _chain(records, exc_type, message)

        # frame blocks are printed innermost first
        chain = records[-len(inner) - 1:] if inner else records[:1]
        for record, frames in zip(reversed(chain), blocks):
            record.stack.extend(frames)

    @staticmethod
    def _parse_frame(line: str) -> Optional[StackFrame]:
        body = line[3:]
        label, sep, location = body.partition(" in ")
        if sep:
            path, colon, number = location.rpartition(":")
            if not colon:
                return StackFrame(path=location, label=label, line=0)
            if number.startswith("line "):
                number = number[5:]
            return StackFrame(path=path, label=label, line=_parse_int(number))

        paren = body.rfind(")")
        if paren < 0:
            return None
        return StackFrame(path="", label=body[:paren + 1], line=0)


class PythonParser(StackTraceParser):
    """Parses traceback.format_exception() output.

    Python prints the innermost call last, so each traceback block is read
    backwards. Chained exceptions appear as earlier blocks separated by the
    "During handling..." or "The above exception was the direct cause..."
    markers; the block closest to the end is the reported exception.
    """

    language = Language.PYTHON

    _CHAIN_MARKERS = (
        "During handling of the above exception, another exception occurred:",
        "The above exception was the direct cause of the following exception:",
    )
    _FRAME = re.compile(r'^\s*File "(?P<path>[^"]*)", line (?P<line>[^,]*)(?:, in (?P<label>.*))?$')

    def parse(self, records: List[ExceptionRecord], stacktrace: str) -> None:
        reader = ReverseLineReader(stacktrace)
        current = records[0]
        # last line is the summary of the reported exception
        if reader.read_line() is None:
            return

        line = reader.read_line()
        while line is not None:
            if line.strip() in self._CHAIN_MARKERS:
                exc_type, message = self._read_summary(reader)
                current = _chain(records, exc_type, message)
            else:
                frame = self._parse_frame(line)
                if frame is not None:
                    current.stack.append(frame)
            line = reader.read_line()

    @classmethod
    def _read_summary(cls, reader: ReverseLineReader) -> Tuple[str, str]:
        """Collect the "Type: message" lines that end the previous block.

        Reading backwards, the summary is every unindented line before the
        code line or frame line that precedes it.
        """
        lines: List[str] = []
        while True:
            line = reader.peek()
            if line is None:
                break
            if not line.strip() and not lines:
                reader.read_line()
                continue
            if not line.strip() or line[0].isspace() or line.startswith("Traceback "):
                break
            lines.append(reader.read_line())
        lines.reverse()
        return _split_type_message("\n".join(lines))

    @classmethod
    def _parse_frame(cls, line: str) -> Optional[StackFrame]:
        match = cls._FRAME.match(line)
        if match is None:
            return None
        label = match.group("label") or ""
        return StackFrame(path=match.group("path"), label=label, line=_parse_int(match.group("line")))


class JavaScriptParser(StackTraceParser):
    """Parses V8 style Error.stack text."""

    language = Language.JAVASCRIPT

    _PREFIX = "    at "
    _LOCATION = re.compile(r"^(?P<path>.*?):(?P<line>\d+)(?::\d+)?$")

    def parse(self, records: List[ExceptionRecord], stacktrace: str) -> None:
        reader = LineReader(stacktrace)
        if reader.read_line() is None:
            return

        line = reader.read_line()
        while line is not None:
            if line.startswith(self._PREFIX):
                frame = self._parse_frame(line[len(self._PREFIX):].rstrip())
                if frame is not None:
                    records[0].stack.append(frame)
            line = reader.read_line()

    @classmethod
    def _parse_frame(cls, body: str) -> Optional[StackFrame]:
        if not body:
            return None

        label = ""
        location = body
        if body.endswith(")"):
            paren = body.find(" (")
            if paren < 0:
                return None
            label = body[:paren]
            location = body[paren + 2:-1]
        elif "(" in body:
            return None

        match = cls._LOCATION.match(location)
        if match is None:
            return StackFrame(path=location, label=label, line=0)
        return StackFrame(path=match.group("path"), label=label, line=int(match.group("line")))


class PhpParser(StackTraceParser):
    """Parses the Java-like trace text produced by the PHP SDK."""

    language = Language.PHP

    _CAUSED_BY = "Caused by: "

    def parse(self, records: List[ExceptionRecord], stacktrace: str) -> None:
        reader = LineReader(stacktrace)
        if reader.read_line() is None:
            return

        current = records[0]
        line = reader.read_line()
        while line is not None:
            if line.startswith("\tat "):
                frame = self._parse_frame(line[4:])
                if frame is not None:
                    current.stack.append(frame)
            elif line.startswith(self._CAUSED_BY):
                exc_type, message = _split_type_message(line[len(self._CAUSED_BY):])
                current = _chain(records, exc_type, message)
            line = reader.read_line()

    @staticmethod
    def _parse_frame(body: str) -> Optional[StackFrame]:
        body = body.rstrip()
        paren = body.find("(")
        if paren < 0:
            return StackFrame(path="", label=body, line=0) if body else None
        if not body.endswith(")"):
            return None

        location = body[paren + 1:-1]
        path, colon, number = location.rpartition(":")
        if not colon:
            return StackFrame(path=location, label=body[:paren], line=0)
        return StackFrame(path=path, label=body[:paren], line=_parse_int(number))


class GoParser(StackTraceParser):
    """Parses goroutine dumps as produced by runtime/debug.Stack().

    Each frame takes two lines: the function call, then a tab-indented
    "path:line +0xoffset" line. Every goroutine section is flattened into
    the stack of the reported exception. The runtime panic(...) call itself
    is not a frame.
    """

    language = Language.GO

    _PANIC_CALL = "panic("

    _LOCATION = re.compile(r"^\t(?P<path>\S+?):(?P<line>\d+)(?:\s|$)")

    def parse(self, records: List[ExceptionRecord], stacktrace: str) -> None:
        reader = LineReader(stacktrace)
        if reader.read_line() is None:
            return

        label: Optional[str] = None
        line = reader.read_line()
        while line is not None:
            if line.startswith("\t"):
                match = self._LOCATION.match(line)
                if match is not None and label is not None:
                    records[0].stack.append(
                        StackFrame(path=match.group("path"), label=label, line=int(match.group("line")))
                    )
                label = None
            elif not line.strip() or line.startswith(("goroutine ", self._PANIC_CALL)):
                label = None
            else:
                label = line.strip()
            line = reader.read_line()


PARSERS: Dict[Language, StackTraceParser] = {
    parser.language: parser
    for parser in (
        JavaParser(),
        DotNetParser(),
        PythonParser(),
        JavaScriptParser(),
        PhpParser(),
        GoParser(),
    )
}


def parse_exception(
    language: Optional[Language],
    exc_type: Optional[str],
    message: Optional[str],
    stacktrace: Optional[str],
) -> List[ExceptionRecord]:
    """Build the cause chain for one exception event.

    Args:
        language: Language of the recording SDK (None if unknown)
        exc_type: Value of exception.type
        message: Value of exception.message
        stacktrace: Value of exception.stacktrace

    Returns:
        Records ordered outermost first; each record's ``cause`` holds the
        id of the following record. Unknown languages and empty traces
        produce a single record without frames.
    """
    records = [ExceptionRecord(id=new_segment_id(), type=exc_type, message=message)]
    if stacktrace and language is not None:
        PARSERS[language].parse(records, stacktrace)
    return records
