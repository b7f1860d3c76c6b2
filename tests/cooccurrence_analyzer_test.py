import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from optimizer.types import CoOccurrence, usages_from_class_lists
from optimizer.cooccurrence_analyzer import (
    build_adjacency_list,
    build_cooccurrence_matrix,
    get_top_cooccurrences,
    matrix_to_cooccurrences,
)

USAGES = usages_from_class_lists([
    ['_flex', '_gap', '_p4'],
    ['_gap', '_flex'],
    ['_flex', '_p4'],
    ['_m0', '_flex'],
])

def test_matrix_counts_unordered_pairs():
    matrix = build_cooccurrence_matrix(USAGES)
    assert matrix['_flex'] == {'_gap': 2, '_p4': 2, '_m0': 1}
    assert matrix['_gap'] == {'_p4': 1}
    assert '_p4' not in matrix

def test_cooccurrences_sorted_by_frequency():
    pairs = matrix_to_cooccurrences(build_cooccurrence_matrix(USAGES))
    assert pairs[0] == CoOccurrence('_flex', '_gap', 2)
    assert pairs[1] == CoOccurrence('_flex', '_p4', 2)
    assert [p.frequency for p in pairs] == sorted((p.frequency for p in pairs), reverse=True)
    assert all(p.class_a < p.class_b for p in pairs)

def test_top_cooccurrences():
    pairs = matrix_to_cooccurrences(build_cooccurrence_matrix(USAGES))
    assert len(get_top_cooccurrences(pairs, 2)) == 2
    assert get_top_cooccurrences(pairs, 100) == pairs

def test_adjacency_list_is_symmetric():
    pairs = matrix_to_cooccurrences(build_cooccurrence_matrix(USAGES))
    adjacency = build_adjacency_list(pairs, min_frequency=2)
    assert {'target': '_gap', 'weight': 2} in adjacency['_flex']
    assert {'target': '_flex', 'weight': 2} in adjacency['_gap']
    assert '_m0' not in adjacency

def test_empty_usages():
    assert build_cooccurrence_matrix([]) == {}
    assert matrix_to_cooccurrences({}) == []
