"""
Co-occurrence Analyzer Module
Pairwise co-occurrence statistics over class usages.
"""

from collections import defaultdict
from itertools import combinations
from typing import Dict, List, Iterable

from .types import ClassUsage, CoOccurrence

def build_cooccurrence_matrix(usages: Iterable[ClassUsage]) -> Dict[str, Dict[str, int]]:
    """Count every unordered class pair; keyed by the lexicographically first class."""
    matrix = defaultdict(lambda: defaultdict(int))
    for usage in usages:
        # classes are stored sorted, so a < b for every pair
        for a, b in combinations(usage.classes, 2):
            matrix[a][b] += 1
    return {cls: dict(inner) for cls, inner in matrix.items()}

def matrix_to_cooccurrences(matrix: Dict[str, Dict[str, int]]) -> List[CoOccurrence]:
    """Flatten the matrix, most frequent pairs first."""
    result = [
        CoOccurrence(class_a, class_b, frequency)
        for class_a, inner in matrix.items()
        for class_b, frequency in inner.items()
    ]
    result.sort(key=lambda co: (-co.frequency, co.class_a, co.class_b))
    return result

def get_top_cooccurrences(cooccurrences: List[CoOccurrence], n: int) -> List[CoOccurrence]:
    return cooccurrences[:n]

def build_adjacency_list(cooccurrences: Iterable[CoOccurrence], min_frequency: int) -> Dict[str, List[Dict]]:
    """Undirected weighted graph of pairs with frequency >= min_frequency."""
    adjacency = defaultdict(list)
    for co in cooccurrences:
        if co.frequency >= min_frequency:
            adjacency[co.class_a].append({'target': co.class_b, 'weight': co.frequency})
            adjacency[co.class_b].append({'target': co.class_a, 'weight': co.frequency})
    return dict(adjacency)
