import pytest

from peerchat import framing
from peerchat.framing import (FrameError, FrameTooLarge, NotEncodable, ShortRead, Unsendable, decode, encode,
                              read_exact, split_frames)


def test_hello_on_the_wire():
    assert encode("hello") == b"\x00\x05hello"


def test_length_counts_utf8_bytes_not_characters():
    frame = encode("héllo ✓")
    assert frame[:2] == len("héllo ✓".encode("utf-8")).to_bytes(2, "big")


def test_empty_frame(chunked):
    assert encode("") == b"\x00\x00"
    assert decode(chunked(b"\x00\x00")) == ""


@pytest.mark.parametrize("text", ["hello\n", "", "ünïcødé 日本語 🙂", "x" * framing.MAX_PAYLOAD])
def test_round_trip(chunked, text):
    assert decode(chunked(encode(text), step=4096)) == text


def test_round_trip_over_socket(pair):
    a, b = pair
    framing.send_frame(a, "one\n")
    framing.send_frame(a, "two\n")
    assert decode(b) == "one\n"
    assert decode(b) == "two\n"


def test_oversized_text_is_rejected():
    with pytest.raises(FrameTooLarge) as info:
        encode("x" * (framing.MAX_PAYLOAD + 1))
    assert info.value.size == framing.MAX_PAYLOAD + 1


def test_partial_reads_are_accumulated(chunked):
    stream = chunked(encode("split across many reads"), step=1)
    assert decode(stream) == "split across many reads"


def test_frames_are_read_back_to_back(chunked):
    stream = chunked(encode("a") + encode("") + encode("bc"), step=3)
    assert [decode(stream), decode(stream), decode(stream)] == ["a", "", "bc"]
    assert decode(stream) is None


def test_eof_before_length_is_peer_closed(chunked):
    assert decode(chunked(b"")) is None


def test_eof_before_payload_is_peer_closed(chunked):
    assert decode(chunked(b"\x00\x05")) is None


def test_eof_inside_length_is_short_read(chunked):
    with pytest.raises(ShortRead) as info:
        decode(chunked(b"\x00"))
    assert (info.value.wanted, info.value.got) == (2, 1)


def test_eof_inside_payload_is_short_read(chunked):
    with pytest.raises(ShortRead):
        decode(chunked(b"\x00\x05hel"))


def test_invalid_utf8_payload(chunked):
    with pytest.raises(FrameError):
        decode(chunked(b"\x00\x02\xff\xfe"))


def test_read_exact(chunked):
    stream = chunked(b"abcdef", step=2)
    assert read_exact(stream, 5) == b"abcde"
    with pytest.raises(ShortRead):
        read_exact(stream, 2)


def test_split_frames_keeps_partial_tail():
    data = encode("one") + encode("two")[:3]
    frames, rest = split_frames(data)
    assert frames == [b"one"]
    assert rest == encode("two")[:3]
    frames, rest = split_frames(rest + encode("two")[3:])
    assert frames == [b"two"] and rest == b""


def test_lone_surrogate_is_unsendable():
    with pytest.raises(NotEncodable) as info:
        encode("bad \udcff")
    assert isinstance(info.value, Unsendable)
    assert isinstance(info.value.__cause__, UnicodeEncodeError)


def test_too_large_is_unsendable():
    assert issubclass(FrameTooLarge, Unsendable)
