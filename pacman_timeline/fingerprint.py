"""Cheap change-detection fingerprint over the installed package list."""

import hashlib
from typing import Sequence


def compute_fingerprint(packages: Sequence[str]) -> int:
    """Hash the installed package list into an unsigned 64-bit integer.

    The order of ``packages`` is significant: the same names in a different
    order produce a different fingerprint and therefore a cache refresh.
    Not suitable for anything security related.
    """
    digest = hashlib.blake2b(",".join(packages).encode("utf-8"), digest_size=8)
    return int.from_bytes(digest.digest(), "big")
