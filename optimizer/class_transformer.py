"""
Class Transformer Module
Re-applies a merge map to class lists and to source text in each dialect.

An attribute is only rewritten when at least one merge key fully matches it,
so applying the same merge map twice is a no-op.
"""

import re
import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .types import DEFAULT_CLASS_PREFIX
from .class_extractor import (
    HTML_CLASS_PATTERN,
    TEMPLATE_CLASS_PATTERN,
    JSX_STRING_PATTERN,
    JSX_BRACE_PATTERN,
    file_type_of,
    is_optimizable,
    split_template_value,
    match_value,
)

logger = logging.getLogger(__name__)

MergePlan = List[Tuple[Tuple[str, ...], str]]
Transformer = Callable[..., str]

def build_merge_plan(merge_map: Dict[str, str]) -> MergePlan:
    """Merge keys as (classes, merged_class), longest groups first."""
    keys = sorted(merge_map, key=lambda k: (-len(k.split()), -len(k), k))
    return [(tuple(key.split()), merge_map[key]) for key in keys if key.strip()]

def _merge_eligible(eligible: Sequence[str], plan: MergePlan) -> Tuple[List[str], List[str]]:
    """Returns (merged class names, remaining eligible classes)."""
    remaining = list(eligible)
    present = set(remaining)
    merged = []
    for parts, merged_class in plan:
        if all(cls in present for cls in parts):
            present.difference_update(parts)
            remaining = [cls for cls in remaining if cls in present]
            merged.append(merged_class)
    return merged, remaining

def _split_classes(classes: Sequence[str], plan: MergePlan,
                   class_prefix: str) -> Tuple[List[str], List[str], List[str]]:
    """Returns (merged names, remaining prefixed classes sorted, other classes in order)."""
    eligible = sorted(cls for cls in classes if is_optimizable(cls, class_prefix))
    others = [cls for cls in classes if not is_optimizable(cls, class_prefix)]
    merged, remaining = _merge_eligible(eligible, plan)
    return merged, remaining, others

def _apply_plan(classes: Sequence[str], plan: MergePlan, class_prefix: str) -> Optional[List[str]]:
    """Merged class list, or None when no merge key matched."""
    merged, remaining, others = _split_classes(classes, plan, class_prefix)
    if not merged:
        return None
    return merged + remaining + others

def apply_merge_to_classes(classes: Sequence[str], merge_map: Dict[str, str],
                           class_prefix: str = DEFAULT_CLASS_PREFIX) -> List[str]:
    """
    Replace every fully present merge group with its merged class.

    Returns [merged..., remaining prefixed (sorted)..., other classes in their
    original order], also when no group matches. Duplicate prefixed classes
    outside a merged group are kept. An empty merge map returns the input as is.
    """
    if not merge_map:
        return list(classes)
    merged, remaining, others = _split_classes(classes, build_merge_plan(merge_map), class_prefix)
    return merged + remaining + others

def _rewrite_value(match: re.Match, new_value: str) -> str:
    index, _ = match_value(match)
    text = match.group(0)
    start = match.start(index) - match.start(0)
    end = match.end(index) - match.start(0)
    return text[:start] + new_value + text[end:]

def _plain_replacer(plan: MergePlan, class_prefix: str):
    def replace(match: re.Match) -> str:
        _, value = match_value(match)
        result = _apply_plan(value.split(), plan, class_prefix)
        if result is None:
            return match.group(0)
        return _rewrite_value(match, ' '.join(result))
    return replace

def _template_replacer(plan: MergePlan, class_prefix: str):
    def replace(match: re.Match) -> str:
        _, value = match_value(match)
        chunks = split_template_value(value)
        literal = [chunk for chunk, dynamic in chunks if not dynamic]
        eligible = sorted(cls for cls in literal if is_optimizable(cls, class_prefix))
        merged, remaining = _merge_eligible(eligible, plan)
        if not merged:
            return match.group(0)
        # expressions and semantic classes keep their text and relative order
        others = [chunk for chunk, dynamic in chunks if dynamic or not is_optimizable(chunk, class_prefix)]
        return _rewrite_value(match, ' '.join(merged + remaining + others))
    return replace

def transform_html(content: str, merge_map: Dict[str, str], class_prefix: str = DEFAULT_CLASS_PREFIX) -> str:
    """Rewrite class="..." attributes."""
    if not merge_map:
        return content
    plan = build_merge_plan(merge_map)
    return HTML_CLASS_PATTERN.sub(_plain_replacer(plan, class_prefix), content)

def transform_jsx(content: str, merge_map: Dict[str, str], class_prefix: str = DEFAULT_CLASS_PREFIX) -> str:
    """Rewrite className="..." and className={"..."} / {`...`} attributes."""
    if not merge_map:
        return content
    plan = build_merge_plan(merge_map)
    content = JSX_STRING_PATTERN.sub(_plain_replacer(plan, class_prefix), content)
    return JSX_BRACE_PATTERN.sub(_template_replacer(plan, class_prefix), content)

def transform_svelte(content: str, merge_map: Dict[str, str], class_prefix: str = DEFAULT_CLASS_PREFIX) -> str:
    """Rewrite class="..." attributes, leaving {expression} chunks untouched."""
    if not merge_map:
        return content
    plan = build_merge_plan(merge_map)
    return TEMPLATE_CLASS_PATTERN.sub(_template_replacer(plan, class_prefix), content)

TRANSFORMERS: Dict[str, Transformer] = {
    'html': transform_html,
    'htm': transform_html,
    'jsx': transform_jsx,
    'tsx': transform_jsx,
    'svelte': transform_svelte,
}

class ClassTransformer:
    """Dispatches transformation to a dialect-specific function by file type."""

    def __init__(self, transformers: Optional[Dict[str, Transformer]] = None):
        self.transformers = dict(TRANSFORMERS if transformers is None else transformers)

    def register(self, file_type: str, transformer: Transformer):
        self.transformers[file_type.lower().lstrip('.')] = transformer

    def transform(self, content: str, merge_map: Dict[str, str], **options) -> str:
        return self.transform_with_type(content, merge_map, 'html', **options)

    def transform_with_type(self, content: str, merge_map: Dict[str, str], file_type: str, **options) -> str:
        transformer = self.transformers.get(file_type.lower().lstrip('.'), transform_html)
        return transformer(content, merge_map, **options)

    def transform_files(self, files: Iterable[Dict[str, str]], merge_map: Dict[str, str],
                        **options) -> List[Dict[str, str]]:
        results = []
        for file in files:
            path = str(file['path'])
            content = self.transform_with_type(file['content'], merge_map, file_type_of(path), **options)
            if content != file['content']:
                logger.debug(f"Rewrote class attributes in {path}")
            results.append({'path': file['path'], 'content': content})
        return results

class_transformer = ClassTransformer()
