import pytest

from shop_assistant.sizing import normalize_size, parse_height, size_for_height


@pytest.mark.parametrize(
    "height,expected",
    [
        (140, "S"),
        (159, "S"),
        (160, "M"),
        (179, "M"),
        (180, "L"),
        (194, "L"),
        (195, "XL"),
        (209, "XL"),
        (210, "2XL"),
        (240, "2XL"),
    ],
)
def test_size_bands_are_half_open(height, expected):
    assert size_for_height(height) == expected


def test_short_heights_get_no_size():
    assert size_for_height(139) is None
    assert size_for_height(0) is None


def test_every_height_maps_deterministically():
    for h in range(0, 300):
        first = size_for_height(h)
        assert first == size_for_height(h)
        assert first is None or first in {"S", "M", "L", "XL", "2XL"}


def test_parse_height():
    assert parse_height(175) == 175
    assert parse_height("182") == 182
    assert parse_height("175cm") == 175
    assert parse_height("175.5 cm") == 175
    assert parse_height("tall") is None
    assert parse_height(None) is None
    assert parse_height(True) is None


def test_normalize_size():
    assert normalize_size("xxl") == "2XL"
    assert normalize_size(" m ") == "M"
    assert normalize_size("Large") == "L"
    assert normalize_size("XS") is None
    assert normalize_size("") is None
