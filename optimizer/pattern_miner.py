"""
Pattern Miner Module
Frequent class-set mining with savings estimation and subsumption pruning.
"""

import logging
from collections import Counter, defaultdict
from itertools import combinations
from typing import Dict, Iterable, List

from .types import (
    ClassUsage,
    MergePattern,
    DEFAULT_HTML_WEIGHT,
    DEFAULT_CSS_RULE_WEIGHT,
    DEFAULT_SUBSUMPTION_THRESHOLD,
)

logger = logging.getLogger(__name__)

# Enumeration cost grows with C(k, n); larger requests are clamped
MAX_SUPPORTED_PATTERN_SIZE = 5

def estimate_bytes_saved(size: int, frequency: int,
                         html_weight: int = DEFAULT_HTML_WEIGHT,
                         css_rule_weight: int = DEFAULT_CSS_RULE_WEIGHT) -> int:
    """Merging n classes saves n-1 attribute tokens per occurrence and n-1 rules."""
    return (size - 1) * html_weight * frequency + (size - 1) * css_rule_weight

def _sort_key(pattern: MergePattern):
    return (-pattern.bytes_saved, -pattern.size, pattern.original_classes)

def find_frequent_patterns(usages: Iterable[ClassUsage], min_frequency: int, max_pattern_size: int,
                           html_weight: int = DEFAULT_HTML_WEIGHT,
                           css_rule_weight: int = DEFAULT_CSS_RULE_WEIGHT,
                           subsumption_threshold: float = DEFAULT_SUBSUMPTION_THRESHOLD) -> List[MergePattern]:
    """
    Enumerate class subsets of size 2..max_pattern_size for every usage and keep
    those seen at least min_frequency times.

    Returns candidates sorted by estimated savings (descending, ties broken by
    larger size then class names) with subsumed patterns removed.
    """
    if max_pattern_size < 1:
        raise ValueError(f"max_pattern_size must be positive, got {max_pattern_size}")
    if max_pattern_size > MAX_SUPPORTED_PATTERN_SIZE:
        logger.warning(f"max_pattern_size {max_pattern_size} clamped to {MAX_SUPPORTED_PATTERN_SIZE}")
        max_pattern_size = MAX_SUPPORTED_PATTERN_SIZE

    pattern_counts = Counter()
    for usage in usages:
        classes = usage.classes
        for size in range(2, min(max_pattern_size, len(classes)) + 1):
            pattern_counts.update(combinations(classes, size))

    patterns = []
    for subset, frequency in pattern_counts.items():
        if frequency >= min_frequency:
            patterns.append(MergePattern(
                original_classes=list(subset),
                frequency=frequency,
                bytes_saved=estimate_bytes_saved(len(subset), frequency, html_weight, css_rule_weight),
            ))
    patterns.sort(key=_sort_key)
    logger.debug(f"Counted {len(pattern_counts)} subsets, {len(patterns)} meet min_frequency={min_frequency}")

    return remove_subsumed_patterns(patterns, subsumption_threshold)

def remove_subsumed_patterns(patterns: List[MergePattern],
                             threshold: float = DEFAULT_SUBSUMPTION_THRESHOLD) -> List[MergePattern]:
    """
    Drop a pattern when a strict superset pattern reaches at least
    threshold * its frequency. Input order is preserved.
    """
    class_sets = [frozenset(p.original_classes) for p in patterns]
    result = []
    for i, pattern in enumerate(patterns):
        dominated = any(
            other.size > pattern.size
            and other.frequency >= pattern.frequency * threshold
            and class_sets[i] < class_sets[j]
            for j, other in enumerate(patterns)
            if j != i
        )
        if dominated:
            logger.debug(f"Pruned subsumed pattern {pattern.key}")
        else:
            result.append(pattern)
    return result

def group_by_class_set(usages: Iterable[ClassUsage]) -> Dict[str, List[ClassUsage]]:
    """Group usages by their exact class set (pipe-joined key)."""
    groups = defaultdict(list)
    for usage in usages:
        groups[usage.key].append(usage)
    return dict(groups)
