"""Unit tests for otelxray.core.stacktrace."""

from __future__ import annotations

import pytest

from otelxray.core.stacktrace import (
    ExceptionRecord,
    Language,
    LineReader,
    ReverseLineReader,
    StackFrame,
    StackTraceParser,
    parse_exception,
)

JAVA_FRAMES = (
    "java.lang.IllegalStateException: state is not legal\n"
    "\tat io.opentelemetry.sdk.trace.RecordEventsReadableSpanTest.recordException"
    "(RecordEventsReadableSpanTest.java:626)\n"
    "\tat java.base/jdk.internal.reflect.NativeMethodAccessorImpl.invoke0(Native Method)\n"
    "\tat java.base/jdk.internal.reflect.NativeMethodAccessorImpl.invoke(NativeMethodAccessorImpl.java:62)\n"
)

JAVA_CAUSE_FRAMES = (
    "\tat org.junit.platform.engine.support.hierarchical.ThrowableCollector.execute(ThrowableCollector.java:73)\n"
    "\tat org.junit.platform.engine.support.hierarchical.NodeTestTask.executeRecursively(NodeTestTask.java)"
)


def frames(record: ExceptionRecord):
    return [(frame.label, frame.path, frame.line) for frame in record.stack]


def assert_java_frames(record: ExceptionRecord) -> None:
    assert frames(record)[:3] == [
        ("io.opentelemetry.sdk.trace.RecordEventsReadableSpanTest.recordException", "RecordEventsReadableSpanTest.java", 626),
        ("jdk.internal.reflect.NativeMethodAccessorImpl.invoke0", "Native Method", 0),
        ("jdk.internal.reflect.NativeMethodAccessorImpl.invoke", "NativeMethodAccessorImpl.java", 62),
    ]


class TestLanguage:
    """Tests for Language.from_sdk."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("java", Language.JAVA),
            ("dotnet", Language.DOTNET),
            ("python", Language.PYTHON),
            ("nodejs", Language.JAVASCRIPT),
            ("webjs", Language.JAVASCRIPT),
            ("PHP", Language.PHP),
            ("go", Language.GO),
        ],
    )
    def test_known_languages(self, name: str, expected: Language) -> None:
        """Test SDK language names map to parsers."""
        assert Language.from_sdk(name) is expected

    @pytest.mark.parametrize("name", [None, "", "cobol"])
    def test_unknown_languages(self, name) -> None:
        """Test unknown or missing names map to None."""
        assert Language.from_sdk(name) is None


class TestLineReaders:
    """Tests for LineReader and ReverseLineReader."""

    def test_forward(self) -> None:
        """Test lines are returned in order, then None."""
        reader = LineReader("a\nb")

        assert reader.peek() == "a"
        assert reader.read_line() == "a"
        assert reader.read_line() == "b"
        assert reader.read_line() is None
        assert reader.peek() is None

    def test_reverse(self) -> None:
        """Test lines are returned last first."""
        reader = ReverseLineReader("a\nb\nc")

        assert [reader.read_line() for _ in range(4)] == ["c", "b", "a", None]


class TestRecordSerialization:
    """Tests for StackFrame.to_dict and ExceptionRecord.to_dict."""

    def test_frame_without_line(self) -> None:
        """Test an unknown line number is omitted."""
        assert StackFrame(path="Native Method", label="invoke0").to_dict() == {
            "path": "Native Method",
            "label": "invoke0",
        }

    def test_record_omits_empty_fields(self) -> None:
        """Test only id is required."""
        assert ExceptionRecord(id="0123456789abcdef").to_dict() == {"id": "0123456789abcdef"}

    def test_record_keeps_empty_message(self) -> None:
        """Test an empty message is still written."""
        record = ExceptionRecord(id="0123456789abcdef", type="E", message="")

        assert record.to_dict() == {"id": "0123456789abcdef", "type": "E", "message": ""}


class TestParseWithoutStacktrace:
    """Tests for exceptions that carry no parsable trace."""

    def test_without_stacktrace(self) -> None:
        """Test a single record is built from type and message."""
        records = parse_exception(Language.JAVA, "com.foo.Exception", "Error happened", "")

        assert len(records) == 1
        assert len(records[0].id) == 16
        assert records[0].type == "com.foo.Exception"
        assert records[0].message == "Error happened"
        assert records[0].stack == []

    def test_without_message(self) -> None:
        """Test an empty message is preserved."""
        records = parse_exception(Language.JAVA, "com.foo.Exception", "", None)

        assert records[0].message == ""
        assert records[0].stack == []

    def test_unknown_language(self) -> None:
        """Test a trace is not parsed when the language is unknown."""
        records = parse_exception(None, "com.foo.Exception", "Error happened", JAVA_FRAMES)

        assert len(records) == 1
        assert records[0].stack == []


class TestJavaParser:
    """Tests for Java stack traces."""

    def test_no_cause(self) -> None:
        """Test frames of a trace without causes."""
        records = parse_exception(Language.JAVA, "com.foo.Exception", "Error happened", JAVA_FRAMES)

        assert len(records) == 1
        assert records[0].type == "com.foo.Exception"
        assert records[0].message == "Error happened"
        assert len(records[0].stack) == 3
        assert_java_frames(records[0])

    def test_cause_without_stacktrace(self) -> None:
        """Test a "Caused by" line without frames."""
        stacktrace = JAVA_FRAMES + "Caused by: java.lang.IllegalArgumentException: bad argument"

        records = parse_exception(Language.JAVA, "com.foo.Exception", "Error happened", stacktrace)

        assert len(records) == 2
        assert_java_frames(records[0])
        assert records[0].cause == records[1].id
        assert records[1].type == "java.lang.IllegalArgumentException"
        assert records[1].message == "bad argument"
        assert records[1].stack == []
        assert records[1].cause is None

    def test_cause_without_message(self) -> None:
        """Test a "Caused by" line with only a type."""
        stacktrace = JAVA_FRAMES + "Caused by: java.lang.IllegalArgumentException"

        records = parse_exception(Language.JAVA, "com.foo.Exception", "Error happened", stacktrace)

        assert records[1].type == "java.lang.IllegalArgumentException"
        assert records[1].message == ""

    def test_cause_with_stacktrace(self) -> None:
        """Test frames after "Caused by" belong to the cause."""
        stacktrace = (
            JAVA_FRAMES
            + "Caused by: java.lang.IllegalArgumentException: bad argument\n"
            + JAVA_CAUSE_FRAMES
        )

        records = parse_exception(Language.JAVA, "com.foo.Exception", "Error happened", stacktrace)

        assert len(records) == 2
        assert len(records[0].stack) == 3
        assert frames(records[1]) == [
            ("org.junit.platform.engine.support.hierarchical.ThrowableCollector.execute", "ThrowableCollector.java", 73),
            ("org.junit.platform.engine.support.hierarchical.NodeTestTask.executeRecursively", "NodeTestTask.java", 0),
        ]

    def test_skips_suppressed_compressed_and_malformed_lines(self) -> None:
        """Test malformed frames, suppressed blocks and "... more" lines are skipped."""
        stacktrace = (
            JAVA_FRAMES
            + "\tat java.base/jdk.internal.reflect.NativeMethodAccessorImpl.invoke(NativeMethodAccessorImpl.java:62)afaefaef\n"
            + "\tat java.base/jdk.internal.reflect.NativeMethodAccessorImpl.invoke\n"
            + "\tat java.base/jdk.internal.reflect.NativeMethodAccessorImpl.invoke(NativeMethodAccessorImpl.java:62\n"
            + "\tat java.base/java.util.ArrayList.forEach(ArrayList.java:)\n"
            + "\tSuppressed: Resource$CloseFailException: Resource ID = 2\n"
            + "\t\tat Resource.close(Resource.java:26)\t\n"
            + "\t\tat Foo3.main(Foo3.java:5)\n"
            + "\tSuppressed: Resource$CloseFailException: Resource ID = 1\n"
            + "\t\tat Resource.close(Resource.java:26)\n"
            + "\t\tat Foo3.main(Foo3.java:5)\n"
            + "Caused by: java.lang.IllegalArgumentException: bad argument\n"
            + JAVA_CAUSE_FRAMES
            + "\n\t... 99 more"
        )

        records = parse_exception(Language.JAVA, "com.foo.Exception", "Error happened", stacktrace)

        assert len(records) == 2
        assert len(records[0].stack) == 4
        assert_java_frames(records[0])
        assert frames(records[0])[3] == ("java.util.ArrayList.forEach", "ArrayList.java", 0)
        assert records[0].cause == records[1].id
        assert len(records[1].stack) == 2

    def test_multiline_cause_message(self) -> None:
        """Test unindented lines after "Caused by" extend its message."""
        stacktrace = (
            JAVA_FRAMES
            + "Caused by: java.lang.IllegalArgumentException: first line\n"
            + "second line\n"
            + JAVA_CAUSE_FRAMES
        )

        records = parse_exception(Language.JAVA, "com.foo.Exception", "Error happened", stacktrace)

        assert records[1].message == "first line\nsecond line"
        assert len(records[1].stack) == 2


class TestDotNetParser:
    """Tests for .NET stack traces."""

    def test_simple_stacktrace(self) -> None:
        """Test frames with and without source locations."""
        stacktrace = (
            "System.FormatException: Input string was not in a correct format.\n"
            "\tat System.Number.ThrowOverflowOrFormatException(ParsingStatus status, TypeCode type)\n"
            "\tat System.Number.ParseInt32(ReadOnlySpan1 value, NumberStyles styles, NumberFormatInfo info)\n"
            "\tat System.Int32.Parse(String s)\n"
            "\tat MyNamespace.IntParser.Parse(String s) in C:\\apps\\MyNamespace\\IntParser.cs:line 11\n"
            "\tat MyNamespace.Program.Main(String[] args) in C:\\apps\\MyNamespace\\Program.cs:line 12"
        )

        records = parse_exception(
            Language.DOTNET, "System.FormatException", "Input string was not in a correct format", stacktrace
        )

        assert len(records) == 1
        assert records[0].type == "System.FormatException"
        assert frames(records[0]) == [
            ("System.Number.ThrowOverflowOrFormatException(ParsingStatus status, TypeCode type)", "", 0),
            ("System.Number.ParseInt32(ReadOnlySpan1 value, NumberStyles styles, NumberFormatInfo info)", "", 0),
            ("System.Int32.Parse(String s)", "", 0),
            ("MyNamespace.IntParser.Parse(String s)", "C:\\apps\\MyNamespace\\IntParser.cs", 11),
            ("MyNamespace.Program.Main(String[] args)", "C:\\apps\\MyNamespace\\Program.cs", 12),
        ]

    def test_rethrown_stacktrace(self) -> None:
        """Test "End of stack trace" separators do not split the stack."""
        stacktrace = (
            "System.Exception: test\n"
            "\tat App.Controllers.AppController.OutgoingHttp() in /src/App/Controllers/AppController.cs:line 21\n"
            "\tat lambda_method(Closure , Object , Object[] )\n"
            "\tat Microsoft.Extensions.Internal.ObjectMethodExecutor.Execute(Object target, Object[] parameters)\n"
            "--- End of stack trace from previous location where exception was thrown ---\n"
            "\tat Microsoft.AspNetCore.Mvc.Infrastructure.ResourceInvoker.<InvokeFilterPipelineAsync>g__Awaited|19_0"
            "(ResourceInvoker invoker, Task lastTask, State next, Scope scope, Object state, Boolean isCompleted)\n"
            "\tat Microsoft.AspNetCore.Authorization.AuthorizationMiddleware.Invoke(HttpContext context)"
        )

        records = parse_exception(Language.DOTNET, "System.Exception", "test", stacktrace)

        assert len(records) == 1
        stack = records[0].stack
        assert len(stack) == 5
        assert stack[0].label == "App.Controllers.AppController.OutgoingHttp()"
        assert stack[0].path == "/src/App/Controllers/AppController.cs"
        assert stack[0].line == 21
        assert stack[3].label == (
            "Microsoft.AspNetCore.Mvc.Infrastructure.ResourceInvoker.<InvokeFilterPipelineAsync>g__Awaited|19_0"
            "(ResourceInvoker invoker, Task lastTask, State next, Scope scope, Object state, Boolean isCompleted)"
        )
        assert stack[3].path == ""
        assert stack[3].line == 0

    def test_inner_exception(self) -> None:
        """Test inner exceptions are chained and receive their own frames."""
        stacktrace = (
            "System.InvalidOperationException: outer ---> System.ArgumentException: inner\n"
            "\tat App.Inner() in /src/App.cs:line 5\n"
            "\t--- End of inner exception stack trace ---\n"
            "\tat App.Outer() in /src/App.cs:line 10"
        )

        records = parse_exception(Language.DOTNET, "System.InvalidOperationException", "outer", stacktrace)

        assert len(records) == 2
        assert records[0].cause == records[1].id
        assert records[1].type == "System.ArgumentException"
        assert records[1].message == "inner"
        assert frames(records[1]) == [("App.Inner()", "/src/App.cs", 5)]
        assert frames(records[0]) == [("App.Outer()", "/src/App.cs", 10)]

    def test_malformed_stacktrace(self) -> None:
        """Test frames without a closing parenthesis are skipped."""
        stacktrace = (
            "System.Exception: test\n"
            "\tat App.Controllers.AppController.OutgoingHttp() in /src/App/Controllers/AppController.cs:line 21\n"
            "\tat Microsoft.AspNetCore.Diagnostics.DeveloperExceptionPageMiddleware.Invoke(HttpContext context malformed\n"
            "\tat System.Net.Http.HttpConnectionPool.ConnectAsync(HttpRequestMessage request, Boolean allowHttp2, "
            "CancellationToken cancellationToken) non-malformed"
        )

        records = parse_exception(Language.DOTNET, "System.Exception", "test", stacktrace)

        stack = records[0].stack
        assert len(stack) == 2
        assert stack[0].line == 21
        assert stack[1].label == (
            "System.Net.Http.HttpConnectionPool.ConnectAsync(HttpRequestMessage request, Boolean allowHttp2, "
            "CancellationToken cancellationToken)"
        )
        assert stack[1].path == ""
        assert stack[1].line == 0


class TestPythonParser:
    """Tests for Python tracebacks."""

    def test_single_traceback(self) -> None:
        """Test frames are returned innermost first."""
        stacktrace = (
            "Traceback (most recent call last):\n"
            '  File "/app/main.py", line 10, in handler\n'
            "    load()\n"
            '  File "/app/store.py", line 4, in load\n'
            '    raise KeyError("user")\n'
            "KeyError: 'user'"
        )

        records = parse_exception(Language.PYTHON, "KeyError", "'user'", stacktrace)

        assert len(records) == 1
        assert frames(records[0]) == [
            ("load", "/app/store.py", 4),
            ("handler", "/app/main.py", 10),
        ]

    def test_chained_exceptions(self) -> None:
        """Test earlier tracebacks become causes of the reported exception."""
        stacktrace = (
            "Traceback (most recent call last):\n"
            '  File "/app/main.py", line 10, in handler\n'
            "    load()\n"
            '  File "/app/store.py", line 4, in load\n'
            '    raise KeyError("user")\n'
            "KeyError: 'user'\n"
            "\n"
            "The above exception was the direct cause of the following exception:\n"
            "\n"
            "Traceback (most recent call last):\n"
            '  File "/app/main.py", line 12, in handler\n'
            '    raise LookupFailed("no user") from exc\n'
            "LookupFailed: no user"
        )

        records = parse_exception(Language.PYTHON, "LookupFailed", "no user", stacktrace)

        assert len(records) == 2
        assert records[0].cause == records[1].id
        assert frames(records[0]) == [("handler", "/app/main.py", 12)]
        assert records[1].type == "KeyError"
        assert records[1].message == "'user'"
        assert frames(records[1]) == [
            ("load", "/app/store.py", 4),
            ("handler", "/app/main.py", 10),
        ]


class TestOtherParsers:
    """Tests for JavaScript, PHP and Go traces."""

    def test_javascript(self) -> None:
        """Test V8 frames with and without function names."""
        stacktrace = (
            "Error: boom\n"
            "    at Object.handler (/app/index.js:10:15)\n"
            "    at /app/router.js:22:3\n"
            "    at new Promise (<anonymous>)"
        )

        records = parse_exception(Language.JAVASCRIPT, "Error", "boom", stacktrace)

        assert frames(records[0]) == [
            ("Object.handler", "/app/index.js", 10),
            ("", "/app/router.js", 22),
            ("new Promise", "<anonymous>", 0),
        ]

    def test_php(self) -> None:
        """Test PHP frames and chained causes."""
        stacktrace = (
            "Exception: boom\n"
            "\tat handler(/var/www/index.php:12)\n"
            "\tat {main}\n"
            "Caused by: RuntimeException: inner\n"
            "\tat load(/var/www/lib.php:7)"
        )

        records = parse_exception(Language.PHP, "Exception", "boom", stacktrace)

        assert len(records) == 2
        assert frames(records[0]) == [("handler", "/var/www/index.php", 12), ("{main}", "", 0)]
        assert records[1].type == "RuntimeException"
        assert records[1].message == "inner"
        assert frames(records[1]) == [("load", "/var/www/lib.php", 7)]

    def test_go(self) -> None:
        """Test two-line Go frames."""
        stacktrace = (
            "goroutine 1 [running]:\n"
            "main.handler(0x1)\n"
            "\t/app/main.go:12 +0x1d\n"
            "main.main()\n"
            "\t/app/main.go:20 +0x25"
        )

        records = parse_exception(Language.GO, "panic", "boom", stacktrace)

        assert frames(records[0]) == [
            ("main.handler(0x1)", "/app/main.go", 12),
            ("main.main()", "/app/main.go", 20),
        ]

    def test_javascript_skips_malformed_frame(self) -> None:
        """Test a broken frame is skipped and the surrounding frames keep their order."""
        stacktrace = (
            "Error: boom\n"
            "    at Object.handler (/app/index.js:10:15)\n"
            "    at Object.broken (/app/broken.js:3\n"
            "    at /app/router.js:22:3"
        )

        records = parse_exception(Language.JAVASCRIPT, "Error", "boom", stacktrace)

        assert frames(records[0]) == [
            ("Object.handler", "/app/index.js", 10),
            ("", "/app/router.js", 22),
        ]

    def test_php_skips_malformed_frame_and_more_lines(self) -> None:
        """Test broken frames and "... N more" lines are skipped in order."""
        stacktrace = (
            "Exception: boom\n"
            "\tat handler(/var/www/index.php:12)\n"
            "\tat broken(/var/www/broken.php:3\n"
            "\tat dispatch(/var/www/router.php:40)\n"
            "Caused by: RuntimeException: inner\n"
            "\tat load(/var/www/lib.php:7)\n"
            "\t... 2 more"
        )

        records = parse_exception(Language.PHP, "Exception", "boom", stacktrace)

        assert len(records) == 2
        assert frames(records[0]) == [
            ("handler", "/var/www/index.php", 12),
            ("dispatch", "/var/www/router.php", 40),
        ]
        assert frames(records[1]) == [("load", "/var/www/lib.php", 7)]

    def test_go_skips_malformed_frame(self) -> None:
        """Test a frame whose location line is broken is skipped."""
        stacktrace = (
            "goroutine 1 [running]:\n"
            "main.handler(0x1)\n"
            "\t/app/main.go:12 +0x1d\n"
            "main.broken()\n"
            "\t/app/broken.go +0x10\n"
            "main.main()\n"
            "\t/app/main.go:20 +0x25"
        )

        records = parse_exception(Language.GO, "panic", "boom", stacktrace)

        assert frames(records[0]) == [
            ("main.handler(0x1)", "/app/main.go", 12),
            ("main.main()", "/app/main.go", 20),
        ]

    def test_go_flattens_goroutines_and_skips_panic_call(self) -> None:
        """Test every goroutine section lands in one frame list without the panic call."""
        stacktrace = (
            "panic: boom\n"
            "\n"
            "goroutine 1 [running]:\n"
            "panic({0x45d440, 0xc000012345})\n"
            "\t/usr/local/go/src/runtime/panic.go:884 +0x213\n"
            "main.handler(0x1)\n"
            "\t/app/main.go:12 +0x1d\n"
            "\n"
            "goroutine 7 [chan receive]:\n"
            "main.worker()\n"
            "\t/app/worker.go:30 +0x40\n"
        )

        records = parse_exception(Language.GO, "panic", "boom", stacktrace)

        assert len(records) == 1
        assert frames(records[0]) == [
            ("main.handler(0x1)", "/app/main.go", 12),
            ("main.worker()", "/app/worker.go", 30),
        ]


class TestStackTraceParserBase:
    """Tests for the StackTraceParser base class."""

    def test_parse_must_be_overridden(self) -> None:
        """Test a parser without parse() cannot be instantiated."""

        class IncompleteParser(StackTraceParser):
            language = Language.GO

        with pytest.raises(TypeError):
            IncompleteParser()

    def test_base_class_is_abstract(self) -> None:
        """Test the base class itself cannot be instantiated."""
        with pytest.raises(TypeError):
            StackTraceParser()
