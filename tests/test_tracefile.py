import pytest

from errors import TraceParseError
from tracefile import TraceEvent, generate_trace, parse_trace_line, read_trace, write_trace


def test_parse_trace_line():
    assert parse_trace_line("r 1f\n") == TraceEvent("r", 0x1F)
    assert parse_trace_line("w   DEADBEEF") == TraceEvent("w", 0xDEADBEEF)
    assert parse_trace_line("   \n") is None


@pytest.mark.parametrize("line", ["r", "r 10 20", "x 10", "r zz", "w -4", "r 0x20", "r 1_0", "w +1f"])
def test_malformed_lines(line):
    with pytest.raises(TraceParseError):
        parse_trace_line(line, 3)


def test_read_trace_reports_line_number(tmp_path):
    path = tmp_path / "trace.txt"
    path.write_text("r 0\n\nw 20\nr nothex\n")
    events = read_trace(str(path))
    assert next(events) == ("r", 0)
    assert next(events) == ("w", 0x20)
    with pytest.raises(TraceParseError) as exc:
        next(events)
    assert exc.value.line_no == 4


def test_write_trace_uses_bare_hex(tmp_path):
    path = tmp_path / "out.txt"
    write_trace([TraceEvent("r", 255), TraceEvent("w", 0x1000)], str(path))
    assert path.read_text() == "r ff\nw 1000\n"
    assert list(read_trace(str(path))) == [("r", 255), ("w", 0x1000)]


def test_generate_trace_is_seeded():
    a = generate_trace(num_requests=200, working_set_kb=4, random_seed=7)
    b = generate_trace(num_requests=200, working_set_kb=4, random_seed=7)
    assert a == b
    assert len(a) == 200
    assert all(0 <= e.address < 4 * 1024 for e in a)


def test_generate_sequential_reads():
    events = generate_trace(num_requests=10, working_set_kb=1, block_size=32,
                            read_ratio=1.0, access_pattern="sequential", random_seed=0)
    assert [e.address // 32 for e in events] == list(range(10))
    assert {e.op for e in events} == {"r"}


def test_generate_unknown_pattern():
    with pytest.raises(ValueError):
        generate_trace(num_requests=1, access_pattern="zigzag")
