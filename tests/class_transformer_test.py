import sys
import os
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from optimizer.class_extractor import class_extractor
from optimizer.class_transformer import (
    ClassTransformer,
    apply_merge_to_classes,
    build_merge_plan,
    class_transformer,
    transform_html,
    transform_jsx,
    transform_svelte,
)
from optimizer.css_optimizer import optimize_core

MERGE_MAP = {'_a _b': '_m1'}

def test_build_merge_plan_longest_first():
    plan = build_merge_plan({'_a _b': '_m1', '_c _d _e': '_m2', '_f _g': '_m3'})
    assert plan[0] == (('_c', '_d', '_e'), '_m2')
    assert [merged for _, merged in plan[1:]] == ['_m1', '_m3']

def test_apply_merge_to_classes():
    assert apply_merge_to_classes(['title', '_b', '_c', '_a'], MERGE_MAP) == ['_m1', '_c', 'title']

def test_apply_merge_without_match_sorts_prefixed_classes():
    assert apply_merge_to_classes(['title', '_b', '_a'], {'_x _y': '_m1'}) == ['_a', '_b', 'title']
    assert apply_merge_to_classes(['_b', 'hero', '_x', 'title'], MERGE_MAP) == ['_b', '_x', 'hero', 'title']

def test_apply_merge_with_empty_map_keeps_input():
    assert apply_merge_to_classes(['_b', '_a'], {}) == ['_b', '_a']

def test_apply_merge_keeps_duplicate_classes():
    assert apply_merge_to_classes(['_c', '_c', '_a', '_b'], MERGE_MAP) == ['_m1', '_c', '_c']
    assert apply_merge_to_classes(['_c', '_b', '_c'], MERGE_MAP) == ['_b', '_c', '_c']

def test_transform_without_match_leaves_attribute_order():
    html = '<div class="title _b _a"></div>'
    assert transform_html(html, {'_x _y': '_m1'}) == html

def test_apply_merge_is_idempotent():
    merge_map = {'_a _b': '_m1', '_c _d _e': '_m2'}
    classes = ['_e', 'card', '_a', '_d', '_b', '_c', '_z']
    once = apply_merge_to_classes(classes, merge_map)
    assert once == ['_m2', '_m1', '_z', 'card']
    assert apply_merge_to_classes(once, merge_map) == once

def test_transform_html_preserves_quotes_and_semantic_classes():
    html = '<div class="card _a _b"></div><p class=\'_b _a\'>x</p><i class="_a"></i>'
    assert transform_html(html, MERGE_MAP) == '<div class="_m1 card"></div><p class=\'_m1\'>x</p><i class="_a"></i>'

def test_transform_html_leaves_other_attributes():
    html = '<div data-class="_a _b" class="_a _b"></div>'
    assert transform_html(html, MERGE_MAP) == '<div data-class="_a _b" class="_m1"></div>'

def test_transform_svelte_keeps_expressions():
    content = '<div class="_a {active ? \'on\' : \'\'} _b title _p-{n}">x</div>'
    expected = '<div class="_m1 {active ? \'on\' : \'\'} title _p-{n}">x</div>'
    assert transform_svelte(content, MERGE_MAP) == expected

def test_transform_jsx_forms():
    content = (
        '<div className="_a _b hero" />'
        '<div className={"_b _a"} />'
        '<div className={`_a _b ${open ? "_x" : ""}`} />'
    )
    expected = (
        '<div className="_m1 hero" />'
        '<div className={"_m1"} />'
        '<div className={`_m1 ${open ? "_x" : ""}`} />'
    )
    assert transform_jsx(content, MERGE_MAP) == expected

@pytest.mark.parametrize('transform', [transform_html, transform_jsx, transform_svelte])
def test_transform_twice_is_noop(transform):
    content = '<div class="_a _b card" className="_b _a" className={`_a _b ${x}`}></div>'
    once = transform(content, MERGE_MAP)
    assert transform(once, MERGE_MAP) == once

def test_transform_files_dispatches_by_extension():
    files = [
        {'path': 'index.html', 'content': '<div class="_a _b"></div>'},
        {'path': 'App.tsx', 'content': '<div className="_a _b" class="_a _b" />'},
    ]
    results = class_transformer.transform_files(files, MERGE_MAP)
    assert results[0] == {'path': 'index.html', 'content': '<div class="_m1"></div>'}
    assert results[1]['content'] == '<div className="_m1" class="_a _b" />'

def test_register_custom_transformer():
    transformer = ClassTransformer()
    transformer.register('vue', lambda content, merge_map, **options: content.upper())
    assert transformer.transform_with_type('<x/>', MERGE_MAP, 'vue') == '<X/>'

TABLE = {'_flex': 'display:flex', '_gap': 'gap:1rem', '_p4': 'padding:1rem'}

ROUND_TRIP_SOURCES = {
    'page.html': (
        '<section class="hero _flex _gap _p4"><div class="_gap _flex _p4 js-toggle"></div></section>',
        ['hero', 'js-toggle'],
    ),
    'Page.jsx': (
        '<section className="hero _flex _gap _p4">'
        '<div className={`_flex _gap _p4 ${active ? "is-active" : ""}`} /></section>',
        ['hero', '${active ? "is-active" : ""}'],
    ),
    'Page.svelte': (
        '<section class="hero _flex _gap _p4">'
        '<div class="_flex {visible ? \'shown\' : \'\'} _gap _p4 _w-{size}"></div></section>',
        ['hero', "{visible ? 'shown' : ''}", '_w-{size}'],
    ),
}

@pytest.mark.parametrize('path', sorted(ROUND_TRIP_SOURCES))
def test_round_trip_keeps_untouched_text(path):
    content, preserved = ROUND_TRIP_SOURCES[path]
    files = [{'path': path, 'content': content}]
    usages = class_extractor.extract_from_files(files)
    result = optimize_core(usages, '', TABLE)
    assert list(result.merge_map) == ['_flex _gap _p4']

    transformed = class_transformer.transform_files(files, result.merge_map)[0]['content']
    merged = result.merge_map['_flex _gap _p4']
    assert transformed.count(merged) == 2
    for text in preserved:
        assert text in transformed
    for cls in TABLE:
        assert cls not in transformed
