import sys
import os
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from optimizer.types import OptimizeOptions, usages_from_class_lists
from optimizer.hashing import hash_merged_class_name
from optimizer.css_optimizer import optimize, optimize_core, optimize_css, optimize_html

TABLE = {'_flex': 'display:flex', '_gap': 'gap:1rem', '_p4': 'padding:1rem'}
USAGES = usages_from_class_lists([
    ['_flex', '_gap', '_p4'],
    ['_flex', '_gap', '_p4'],
    ['_flex', '_gap'],
])
MERGED = hash_merged_class_name(['display:flex', 'gap:1rem', 'padding:1rem'])

SAMPLE_CSS = (
    '._flex{display:flex}'
    '._gap{gap:1rem}'
    '._p4{padding:1rem}'
    '._m0{margin:0}'
    '._flex:hover{opacity:.8}'
    '@media (min-width:640px){._flex{display:block}}'
)

def test_end_to_end_three_class_group():
    result = optimize_core(USAGES, '', TABLE, OptimizeOptions(min_frequency=2))
    assert result.merge_map == {'_flex _gap _p4': MERGED}
    assert result.css == f'.{MERGED}{{display:flex;gap:1rem;padding:1rem}}'
    assert result.stats.merged_patterns == 1
    assert result.stats.original_classes == 3
    assert result.stats.estimated_bytes_saved == 78
    pattern = result.patterns[0]
    assert pattern.merged_class == MERGED
    assert pattern.declarations == ['display:flex', 'gap:1rem', 'padding:1rem']

def test_subsumption_scenario():
    usages = usages_from_class_lists([['_a', '_b', '_c']] * 10 + [['_a', '_b']] * 8)
    table = {'_a': 'a:1', '_b': 'b:1', '_c': 'c:1'}
    result = optimize(usages, '', table)
    assert list(result.merge_map) == ['_a _b _c']

def test_claimed_rules_dropped_others_kept_in_order():
    result = optimize_core(USAGES, SAMPLE_CSS, TABLE)
    assert result.css.startswith(f'.{MERGED}{{')
    assert '._flex{display:flex}' not in result.css
    assert '._gap{gap:1rem}' not in result.css
    assert '._p4{padding:1rem}' not in result.css
    assert '._m0{margin:0}' in result.css
    assert '._flex:hover{opacity:.8}' in result.css
    assert '._flex{display:block}' in result.css
    assert result.css.index('._m0{margin:0}') < result.css.index('._flex:hover') < result.css.index('@media')

def test_pretty_output():
    result = optimize_core(USAGES, SAMPLE_CSS, TABLE, OptimizeOptions(pretty=True))
    lines = result.css.split('\n')
    assert lines[0] == f'.{MERGED} {{ display:flex; gap:1rem; padding:1rem }}'
    assert lines[1] == '._m0{margin:0}'

def test_empty_usages_return_input():
    result = optimize_core([], SAMPLE_CSS, TABLE)
    assert result.css == SAMPLE_CSS
    assert result.merge_map == {}
    assert result.patterns == []
    assert result.stats.merged_patterns == 0

def test_nothing_accepted_returns_css_unchanged():
    css = '._a{color:red}  ._b{color:blue}'
    usages = usages_from_class_lists([['_a', '_b']] * 3)
    result = optimize_core(usages, css, {'_a': 'color:red'})
    assert result.css == css
    assert result.merge_map == {}

def test_missing_declaration_blocks_pattern():
    table = {'_flex': 'display:flex', '_gap': 'gap:1rem'}
    result = optimize_core(USAGES, '', table)
    assert result.merge_map == {'_flex _gap': hash_merged_class_name(['display:flex', 'gap:1rem'])}
    for key in result.merge_map:
        assert all(cls in table for cls in key.split())

def test_merge_keys_are_disjoint():
    usages = usages_from_class_lists(
        [['_a', '_b', '_c']] * 4
        + [['_b', '_c', '_d']] * 5
        + [['_d', '_e']] * 6
        + [['_a', '_e', '_f']] * 3
    )
    table = {cls: f'{cls[1:]}:1' for cls in ['_a', '_b', '_c', '_d', '_e', '_f']}
    result = optimize_core(usages, '', table)
    claimed = [cls for key in result.merge_map for cls in key.split()]
    assert len(claimed) == len(set(claimed))
    assert result.claimed_classes == sorted(claimed)

def test_deterministic():
    usages = usages_from_class_lists([['_a', '_b'], ['_c', '_d']] * 3)
    table = {'_a': 'a:1', '_b': 'b:1', '_c': 'c:1', '_d': 'd:1'}
    css = '._a{a:1}._b{b:1}._c{c:1}._d{d:1}'
    first = optimize_core(usages, css, table)
    second = optimize_core(usages, css, table)
    assert first.to_dict() == second.to_dict()
    assert len(first.merge_map) == 2

def test_identical_merged_rule_emitted_once():
    usages = usages_from_class_lists([['_a', '_b']] * 2 + [['_a2', '_b2']] * 2)
    table = {'_a': 'display:flex', '_b': 'gap:1rem', '_a2': 'display:flex', '_b2': 'gap:1rem'}
    result = optimize_core(usages, '', table)
    assert len(result.merge_map) == 2
    assert len(set(result.merge_map.values())) == 1
    assert result.css.count('{') == 1

def test_declaration_first_table_is_accepted():
    inverted = {decl: cls for cls, decl in TABLE.items()}
    assert optimize_core(USAGES, '', inverted).merge_map == optimize_core(USAGES, '', TABLE).merge_map

@pytest.mark.parametrize('options', [
    {'max_pattern_size': 0},
    {'min_frequency': 0},
    {'html_weight': -1},
    {'subsumption_threshold': 1.5},
    {'max_pattern_size': '3'},
    {'min_frequency': True},
    {'subsumption_threshold': '0.8'},
    {'class_prefix': ''},
])
def test_invalid_options(options):
    with pytest.raises(ValueError):
        OptimizeOptions(**options)

def test_options_from_dict_accepts_camel_case():
    with pytest.raises(ValueError):
        OptimizeOptions.from_dict(['minFrequency'])
    options = OptimizeOptions.from_dict({'minFrequency': 3, 'classPrefix': 'u-', 'pretty': True, 'unknown': 1})
    assert options.min_frequency == 3
    assert options.class_prefix == 'u-'
    assert options.pretty

def test_optimize_css_and_html():
    html = '<div class="_flex _gap card"></div><div class="_gap _flex"></div>'
    mapping = {'display:flex': '_flex', 'gap:1rem': '_gap'}
    css = '._flex{display:flex}._gap{gap:1rem}'
    result = optimize_css(css, html, mapping)
    merged = hash_merged_class_name(['display:flex', 'gap:1rem'])
    assert result.css == f'.{merged}{{display:flex;gap:1rem}}'
    assert optimize_html(html, result.merge_map) == (
        f'<div class="{merged} card"></div><div class="{merged}"></div>'
    )
