"""Devolution Code Generator - short human-presentable claim code.

Invariants:
    - Code length is fixed (DEVOLUTION_CODE_LENGTH unless overridden)
    - Characters are sampled uniformly, with replacement, from the object id
    - A fresh code on every call: nothing is cached per object

Design Decisions:
    - random, not secrets: the code is read aloud at the counter, it is not a credential
"""

import random

from lostfound.core.domain_types import DevolutionCode
from lostfound.core.errors import InvalidIdentifierError


DEVOLUTION_CODE_LENGTH: int = 5


def generate_devolution_code(
    object_id: str,
    length: int = DEVOLUTION_CODE_LENGTH,
    rng: random.Random | None = None,
) -> DevolutionCode:
    """Sample `length` characters from object_id."""
    if not object_id:
        raise InvalidIdentifierError(object_id)
    chooser = rng or random
    return DevolutionCode("".join(chooser.choices(object_id, k=length)))
