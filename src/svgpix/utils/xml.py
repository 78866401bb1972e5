import logging
from typing import Iterable

logger = logging.getLogger(__name__)


def num2str(num: int | float, digits: int = 10) -> str:
    """Convert a number to a compact SVG attribute string."""
    if isinstance(num, bool):
        raise ValueError(f"Unsupported type: {type(num)}")
    if isinstance(num, int):
        return str(num)
    if isinstance(num, float):
        if num.is_integer():
            return str(int(num))
        return format(num, f".{digits}g")
    raise ValueError(f"Unsupported type: {type(num)}")


def seq2str(seq: Iterable[int | float], sep: str = " ") -> str:
    """Convert a sequence of numbers to a separated attribute string."""
    return sep.join(num2str(n) for n in seq)
