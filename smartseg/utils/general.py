"""
General utility functions for the smartseg package.
"""

import numpy as np
from typing import Any, Iterable, List, TypeVar, Union

T = TypeVar('T')

RandomSource = Union[None, int, np.random.Generator]


def make_rng(seed: RandomSource = None) -> np.random.Generator:
    """
    Build a random generator from a seed.
    
    Args:
        seed: None for a system-seeded generator, an integer seed,
            or an existing Generator (returned unchanged)
        
    Returns:
        numpy Generator
    """
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def round_to(n: float, digits: int = 0) -> float:
    """
    Round a number to a specific number of decimal places.
    
    Args:
        n: Number to round
        digits: Number of decimal digits to keep
        
    Returns:
        Rounded number
    """
    return round(float(n), digits)


def distinct(coll: Iterable[T]) -> List[T]:
    """
    Return a list with duplicates removed, preserving order.
    
    Args:
        coll: Collection to process
        
    Returns:
        List with duplicates removed
    """
    seen = set()
    result = []
    for item in coll:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def to_builtin(value: Any) -> Any:
    """
    Convert numpy scalars and arrays (possibly nested in dicts and lists)
    to plain Python values so they can be dumped as JSON.
    """
    if isinstance(value, dict):
        return {k: to_builtin(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_builtin(v) for v in value]
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    return value
