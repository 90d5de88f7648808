from beanline.adapters.stream.memory import InMemoryStream
from beanline.ports.stream import StreamPort


def _opened(incoming: bytes = b"") -> InMemoryStream:
    stream = InMemoryStream(incoming)
    assert stream.open("localhost", 11300, 500)
    return stream


def test_satisfies_stream_port():
    assert isinstance(InMemoryStream(), StreamPort)


def test_open_counts_calls():
    stream = InMemoryStream()
    stream.open("localhost", 11300, 500)
    stream.open("localhost", 11300, 500)
    assert stream.open_calls == 2
    assert stream.is_open


def test_refused_connection():
    stream = InMemoryStream(accept_connections=False)
    assert stream.open("localhost", 11300, 500) is False
    assert not stream.is_open


def test_write_records_messages():
    stream = _opened()
    assert stream.write(b"stats\r\n")
    assert stream.write(b"list-tubes\r\n")
    assert stream.sent == [b"stats\r\n", b"list-tubes\r\n"]


def test_write_refused_when_closed():
    stream = InMemoryStream()
    assert stream.write(b"stats\r\n") is False
    assert stream.sent == []


def test_write_refused_when_configured():
    stream = InMemoryStream(accept_writes=False)
    stream.open("localhost", 11300, 500)
    assert stream.write(b"stats\r\n") is False


def test_read_line_strips_crlf():
    stream = _opened(b"USING jobs\r\nWATCHING 2\r\n")
    assert stream.read_line() == b"USING jobs"
    assert stream.read_line() == b"WATCHING 2"


def test_read_line_without_data_times_out():
    stream = _opened(b"PARTIAL")
    assert stream.read_line() is None
    assert stream.is_timed_out()
    assert stream.unread == b"PARTIAL"


def test_read_exact_bytes():
    stream = _opened(b"abc\r\ndef")
    assert stream.read(3) == b"abc"
    assert stream.read(2) == b"\r\n"
    assert stream.unread == b"def"


def test_short_read_times_out():
    stream = _opened(b"ab")
    assert stream.read(3) is None
    assert stream.is_timed_out()


def test_feed_appends_to_buffer():
    stream = _opened(b"A\r\n")
    stream.feed(b"B\r\n")
    assert stream.read_line() == b"A"
    assert stream.read_line() == b"B"


def test_open_clears_timeout():
    stream = _opened()
    stream.expire()
    assert stream.is_timed_out()
    stream.open("localhost", 11300, 500)
    assert not stream.is_timed_out()


def test_reads_fail_when_closed():
    stream = _opened(b"DELETED\r\n")
    stream.close()
    assert stream.close_calls == 1
    assert stream.read_line() is None
    assert stream.read(1) is None


def test_close_discards_unread_output():
    stream = _opened(b"FOUND 1 3\r\nabc\r\n")
    assert stream.read_line() == b"FOUND 1 3"
    stream.close()
    assert stream.unread == b""
    stream.open("localhost", 11300, 500)
    assert stream.read_line() is None


def test_feed_on_open_waits_for_next_connection():
    stream = _opened(b"USING jobs\r\n")
    stream.feed_on_open(b"DELETED\r\n")
    assert stream.unread == b"USING jobs\r\n"
    stream.close()
    stream.open("localhost", 11300, 500)
    assert stream.read_line() == b"DELETED"


def test_feed_on_open_kept_when_connection_refused():
    stream = _opened()
    stream.feed_on_open(b"DELETED\r\n")
    stream.close()
    stream.accept_connections = False
    assert stream.open("localhost", 11300, 500) is False
    stream.accept_connections = True
    stream.open("localhost", 11300, 500)
    assert stream.read_line() == b"DELETED"
