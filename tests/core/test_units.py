"""Unit tests for chainarcade/core/units.py"""

import pytest

from chainarcade.core.units import format_ether, short_address


@pytest.mark.parametrize(
    "wei, expected",
    [
        (10**16, "0.01"),
        (5 * 10**16, "0.05"),
        (10**17, "0.1"),
        (10**18, "1.0"),
        (15 * 10**17, "1.5"),
        (100 * 10**18, "100.0"),
        (0, "0.0"),
        (1, "0.000000000000000001"),
    ],
)
def test_format_ether(wei: int, expected: str) -> None:
    """Whole amounts keep one decimal, fractions are printed without trailing zeros."""
    assert format_ether(wei) == expected


def test_short_address() -> None:
    address = "0x1234567890abcdef1234567890abcdef12345678"
    assert short_address(address) == "0x123456...345678"


def test_short_address_leaves_short_strings_alone() -> None:
    assert short_address("0x1234") == "0x1234"
