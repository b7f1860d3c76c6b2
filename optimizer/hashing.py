"""
Hashing Module
Deterministic short class names from CSS declaration text.
"""

from typing import Iterable

BASE36_DIGITS = '0123456789abcdefghijklmnopqrstuvwxyz'
DJB2_SEED = 5381

def djb2_hash(s: str) -> int:
    """DJB2 string hash wrapped to unsigned 32 bits.

    Iterates UTF-16 code units so names stay identical to the ones produced
    by JavaScript tooling for the same declaration text.
    """
    data = s.encode('utf-16-le')
    h = DJB2_SEED
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = (h * 33 + code_unit) & 0xFFFFFFFF
    return h

def to_base36(n: int) -> str:
    """Render the low 24 bits of n in base 36 (at most 5 characters)."""
    n &= 0xFFFFFF
    if n == 0:
        return '0'
    digits = []
    while n > 0:
        n, rem = divmod(n, 36)
        digits.append(BASE36_DIGITS[rem])
    return ''.join(reversed(digits))

def hash_class_name(decl: str, prefix: str = '_') -> str:
    """Class name for a single declaration such as "display:flex"."""
    return prefix + to_base36(djb2_hash(decl))

def hash_merged_class_name(declarations: Iterable[str], prefix: str = '_m') -> str:
    """Class name for a set of declarations; independent of their order."""
    combined = ';'.join(sorted(declarations))
    return prefix + to_base36(djb2_hash(combined))
