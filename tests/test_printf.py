import io

import pytest

from xvkit.printf import format_string, fprintf


@pytest.mark.parametrize("n", [0, 7, -7, 2147483647, -2147483648, 123456])
def test_decimal_round_trip(n):
    assert int(format_string("%d", n)) == n


def test_negative_decimal():
    assert format_string("%d", -5) == "-5"


def test_decimal_wraps_to_32_bits():
    assert format_string("%d", (1 << 32) + 5) == format_string("%d", 5)


@pytest.mark.parametrize("n", [0, 1, 255, 0xDEADBEEF, 0x7FFFFFFF])
def test_hex_round_trip(n):
    text = format_string("%x", n)
    assert int(text, 16) == n
    assert text == text.upper()


def test_hex_of_negative_is_unsigned():
    assert int(format_string("%x", -1), 16) == (1 << 32) - 1


def test_long_is_unsigned_low_word():
    assert format_string("%l", (1 << 32) + 7) == format_string("%l", 7)
    assert int(format_string("%l", -1)) == (1 << 32) - 1


@pytest.mark.parametrize("ptr", [0, 0x80000000, (1 << 64) - 1])
def test_pointer_fixed_width(ptr):
    text = format_string("%p", ptr)
    assert text.startswith("0x")
    assert len(text) == 2 + 16
    assert int(text, 16) == ptr


def test_pointer_zero():
    assert format_string("%p", 0) == "0x0000000000000000"


def test_strings_and_null():
    assert format_string("hi %s!", "there") == "hi there!"
    assert format_string("%s", None) == "(null)"


def test_char():
    assert format_string("%c%c", ord("o"), "k") == "ok"


def test_percent_and_unknown():
    assert format_string("100%%") == "100%"
    assert format_string("%q") == "%q"


def test_trailing_percent_dropped():
    assert format_string("abc%") == "abc"


def test_mixed_arguments():
    assert format_string("%s: %d of %d", "n", 3, 4) == "n: 3 of 4"


def test_missing_argument_raises():
    with pytest.raises(ValueError):
        format_string("%d %d", 1)


def test_fprintf_writes_stream():
    stream = io.StringIO()
    fprintf(stream, "%s %d\n", "x", 12)
    assert stream.getvalue() == format_string("%s %d\n", "x", 12)