import random

import pytest

from bookshelf.domain.errors import ChecksumError, LengthError, ValidationError
from bookshelf.domain.isbn import (
    check_digit,
    format_isbn,
    is_valid_isbn,
    normalize_isbn,
    validate_isbn,
)


def test_normalize_strips_everything_but_digits():
    assert normalize_isbn("978-3-16-148410-0") == "9783161484100"
    assert normalize_isbn(" 978 3 16x") == "978316"
    assert normalize_isbn("") == ""


def test_known_valid_isbn_passes():
    assert validate_isbn("9783161484100") == "9783161484100"
    assert validate_isbn("978-3-16-148410-0") == "9783161484100"


def test_wrong_check_digit_raises_checksum_error():
    with pytest.raises(ChecksumError) as excinfo:
        validate_isbn("9783161484101")
    assert isinstance(excinfo.value, ValidationError)
    assert excinfo.value.field == "isbn"


def test_short_isbn_raises_length_error():
    with pytest.raises(LengthError):
        validate_isbn("97831614841")


def test_long_isbn_raises_length_error():
    with pytest.raises(LengthError):
        validate_isbn("97831614841000")


def test_completing_any_prefix_with_its_check_digit_validates():
    rng = random.Random(20240601)
    prefixes = ["000000000000", "999999999999"] + [
        "".join(rng.choice("0123456789") for _ in range(12)) for _ in range(300)
    ]
    for prefix in prefixes:
        candidate = prefix + str(check_digit(prefix))
        assert validate_isbn(candidate) == candidate


def test_check_digit_for_known_prefixes():
    assert check_digit("978316148410") == 0
    assert check_digit("978054792822") == 7
    assert check_digit("978045152493") == 5


def test_check_digit_rejects_wrong_prefix_length():
    with pytest.raises(LengthError):
        check_digit("97831614841")


def test_format_groups_thirteen_digits():
    assert format_isbn("9783161484100") == "978-3-161-48410-0"
    assert format_isbn("978-3-16-148410-0") == "978-3-161-48410-0"


def test_format_leaves_partial_input_unchanged():
    assert format_isbn("978-3-16") == "978-3-16"
    assert format_isbn("") == ""


@pytest.mark.parametrize(
    "value",
    ["9783161484100", "978-3-16-148410-0", "978 3161484100", "97831", "abc", "", "97831614841000"],
)
def test_format_is_idempotent(value):
    once = format_isbn(value)
    assert format_isbn(once) == once


def test_is_valid_isbn():
    assert is_valid_isbn("978-0-451-52493-5")
    assert not is_valid_isbn("invalid-isbn")
    assert not is_valid_isbn("9780451524936")
