import pytest

from godis import utils


def test_to_cmd_line():
    assert utils.to_cmd_line("SET", "a", "b") == [b"SET", b"a", b"b"]
    assert utils.to_cmd_line() == []


def test_to_cmd_line2_and_3():
    assert utils.to_cmd_line2("GET", "k") == [b"GET", b"k"]
    assert utils.to_cmd_line3("SET", b"k", b"\x00v") == [b"SET", b"k", b"\x00v"]
    assert utils.to_cmd_line2("PING") == [b"PING"]


def test_bytes_equals():
    assert utils.bytes_equals(b"abc", bytearray(b"abc"))
    assert not utils.bytes_equals(b"abc", b"abd")
    assert not utils.bytes_equals(None, b"")
    assert not utils.bytes_equals(b"", None)
    assert utils.bytes_equals(None, None)


def test_equals():
    assert utils.equals(b"x", bytearray(b"x"))
    marker = object()
    assert utils.equals(marker, marker)
    assert not utils.equals(marker, object())
    assert not utils.equals(b"x", "x")


@pytest.mark.parametrize("size", [1, 5, 10])
def test_convert_range_whole(size):
    assert utils.convert_range(0, -1, size) == (0, size)
    assert utils.convert_range(-size, -1, size) == (0, size)
    assert utils.convert_range(0, size * 3, size) == (0, size)


@pytest.mark.parametrize("size", [1, 5, 10])
def test_convert_range_out_of_bound(size):
    assert utils.convert_range(size, size + 1, size) == (-1, -1)
    assert utils.convert_range(-size - 1, 0, size) == (-1, -1)
    assert utils.convert_range(0, -size - 1, size) == (-1, -1)


def test_convert_range_matches_list_slicing():
    items = list(range(10))
    for start in range(10):
        for end in range(start, 10):
            lo, hi = utils.convert_range(start, end, len(items))
            assert items[lo:hi] == items[start : end + 1]