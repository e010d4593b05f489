"""Amount helpers. Ledger amounts are integers in wei; the UI shows ether."""

from decimal import Decimal

WEI_PER_ETHER = 10**18


def format_ether(wei: int) -> str:
    """
    Same output as ethers' formatEther:
    ---

    * 10**16 -> "0.01"
    * 10**18 -> "1.0"  (a whole amount always keeps one decimal)
    """
    ether = Decimal(wei) / Decimal(WEI_PER_ETHER)
    text = format(ether.normalize(), "f")
    if "." not in text:
        text += ".0"
    return text


def short_address(address: str, head: int = 8, tail: int = 6) -> str:
    """0x1234ab...9f8e7d"""
    if len(address) <= head + tail:
        return address
    return f"{address[:head]}...{address[-tail:]}"
