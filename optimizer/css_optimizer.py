"""
CSS Optimizer Module
Merges frequently co-occurring utility classes into single combined classes.

The optimizer is a pure function of its inputs: the declaration table and
the merge map are passed explicitly, so independent runs never share state.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from .types import ClassUsage, MergePattern, OptimizeOptions, OptimizeResult, OptimizeStats
from .hashing import hash_merged_class_name
from .pattern_miner import find_frequent_patterns
from .css_parser import CLASS_RULE, scan_stylesheet, invert_mapping, normalize_declaration_table
from .class_extractor import extract_html
from .class_transformer import transform_html

logger = logging.getLogger(__name__)

def _format_rule(merged_class: str, declarations: Sequence[str], pretty: bool) -> str:
    if pretty:
        return f".{merged_class} {{ {'; '.join(declarations)} }}"
    return f".{merged_class}{{{';'.join(declarations)}}}"

def _filter_original_css(css: str, claimed: set) -> List[str]:
    """
    Drop single-class rules for claimed classes. Media blocks, pseudo-class
    rules and any other statement are kept verbatim, in source order.
    """
    remaining = []
    for statement in scan_stylesheet(css):
        if statement.kind == CLASS_RULE and statement.class_name in claimed:
            continue
        remaining.append(statement.text)
    return remaining

def optimize_core(usages: Sequence[ClassUsage], css: str, class_to_declaration: Dict[str, str],
                  options: Optional[OptimizeOptions] = None) -> OptimizeResult:
    """
    Find frequent class groups, greedily accept non-conflicting ones and emit
    the optimized stylesheet.

    Candidates are walked in descending estimated savings; a candidate is
    skipped when any of its classes has no declaration or is already claimed
    by an accepted merge, so no class ever belongs to two merge keys.
    """
    options = options or OptimizeOptions()
    log = logger.info if options.verbose else logger.debug
    table = normalize_declaration_table(class_to_declaration)

    if not usages:
        return OptimizeResult(css=css, stats=OptimizeStats(original_classes=len(table)))

    log(f"Analyzing {len(usages)} class usage sites")
    candidates = find_frequent_patterns(
        usages,
        options.min_frequency,
        options.max_pattern_size,
        html_weight=options.html_weight,
        css_rule_weight=options.css_rule_weight,
        subsumption_threshold=options.subsumption_threshold,
    )
    log(f"Found {len(candidates)} frequent patterns")

    merge_map = {}
    accepted: List[MergePattern] = []
    merged_rules = []
    merged_declarations = {}
    claimed = set()
    total_bytes_saved = 0

    for candidate in candidates:
        declarations = [table.get(cls) for cls in candidate.original_classes]
        if not all(declarations):
            logger.debug(f"Skipping {candidate.key}: unresolved class")
            continue
        if any(cls in claimed for cls in candidate.original_classes):
            logger.debug(f"Skipping {candidate.key}: class already claimed")
            continue

        declarations = sorted(declarations)
        merged_class = hash_merged_class_name(declarations)
        previous = merged_declarations.get(merged_class)
        if previous is not None and previous != declarations:
            logger.warning(f"Skipping {candidate.key}: merged name {merged_class} collides with another declaration set")
            continue

        merge_map[candidate.key] = merged_class
        claimed.update(candidate.original_classes)
        accepted.append(replace(candidate, declarations=declarations, merged_class=merged_class))
        if previous is None:
            merged_declarations[merged_class] = declarations
            merged_rules.append(_format_rule(merged_class, declarations, options.pretty))
        total_bytes_saved += candidate.bytes_saved

    stats = OptimizeStats(
        original_classes=len(table),
        merged_patterns=len(accepted),
        estimated_bytes_saved=total_bytes_saved,
    )
    log(f"Merged {len(accepted)} patterns")
    log(f"Estimated savings: {total_bytes_saved} bytes")

    if not accepted:
        return OptimizeResult(css=css, merge_map=merge_map, patterns=accepted, stats=stats)

    separator = '\n' if options.pretty else ''
    optimized_css = separator.join(merged_rules + _filter_original_css(css, claimed))
    return OptimizeResult(css=optimized_css, merge_map=merge_map, patterns=accepted, stats=stats)

def optimize(usages: Sequence[ClassUsage], css: str, class_to_declaration: Dict[str, str],
             options: Optional[OptimizeOptions] = None) -> OptimizeResult:
    """Framework-agnostic entry point taking pre-extracted usages."""
    return optimize_core(usages, css, class_to_declaration, options)

def optimize_css(css: str, html: str, declaration_mapping: Dict[str, str],
                 options: Optional[OptimizeOptions] = None) -> OptimizeResult:
    """
    Convenience wrapper: extract usages from HTML and optimize against a
    {declaration: class} mapping as emitted by atomic CSS extractors.
    """
    options = options or OptimizeOptions()
    usages = extract_html(html, class_prefix=options.class_prefix, source='html')
    logger.debug(f"Found {len(usages)} class usage sites in HTML")
    return optimize_core(usages, css, invert_mapping(declaration_mapping), options)

def optimize_html(html: str, merge_map: Dict[str, str], class_prefix: str = '_') -> str:
    """Apply a merge map to every class attribute in the HTML."""
    return transform_html(html, merge_map, class_prefix=class_prefix)
