"""
CSS Parser Module
Scans stylesheets into top-level statements and builds declaration tables.
"""

import re
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import tinycss2

from .types import CssRule, DEFAULT_CLASS_PREFIX

logger = logging.getLogger(__name__)

SINGLE_CLASS_SELECTOR = re.compile(r'^\.(-?[A-Za-z_][\w-]*)$')
PSEUDO_CLASS_SELECTOR = re.compile(r'^\.(-?[A-Za-z_][\w-]*)(::?[A-Za-z-]+(?:\([^)]*\))?)$')

CLASS_RULE = 'class'
PSEUDO_RULE = 'pseudo'
MEDIA_RULE = 'media'
OTHER_RULE = 'other'

@dataclass(frozen=True)
class StyleStatement:
    kind: str
    text: str
    class_name: Optional[str] = None
    declarations: str = ''

def normalize_declarations(content) -> str:
    """Normalize a declaration block to "prop:value;prop:value" form."""
    if isinstance(content, str):
        content = tinycss2.parse_component_value_list(content)
    normalized = []
    for decl in tinycss2.parse_declaration_list(content or [], skip_comments=True, skip_whitespace=True):
        if decl.type != 'declaration':
            continue
        value = tinycss2.serialize(decl.value).strip()
        if decl.important:
            value += '!important'
        normalized.append(f"{decl.name}:{value}")
    return ';'.join(normalized)

def scan_stylesheet(css: str) -> List[StyleStatement]:
    """
    Split a stylesheet into top-level statements, in source order.
    Unparseable fragments are dropped.
    """
    statements = []
    for rule in tinycss2.parse_stylesheet(css, skip_comments=True, skip_whitespace=True):
        if rule.type == 'qualified-rule':
            selector = tinycss2.serialize(rule.prelude).strip()
            text = f"{selector}{{{tinycss2.serialize(rule.content).strip()}}}"
            single = SINGLE_CLASS_SELECTOR.match(selector)
            pseudo = PSEUDO_CLASS_SELECTOR.match(selector)
            if single:
                statements.append(StyleStatement(CLASS_RULE, text, single.group(1), normalize_declarations(rule.content)))
            elif pseudo:
                statements.append(StyleStatement(PSEUDO_RULE, text, pseudo.group(1)))
            else:
                statements.append(StyleStatement(OTHER_RULE, text))
        elif rule.type == 'at-rule':
            kind = MEDIA_RULE if rule.lower_at_keyword == 'media' else OTHER_RULE
            statements.append(StyleStatement(kind, rule.serialize().strip()))
        elif rule.type == 'error':
            logger.debug(f"Skipping unparseable CSS fragment: {rule.message}")
    return statements

def parse_css_rules(css: str) -> List[CssRule]:
    """Single-class rules (".name{...}") with normalized declarations."""
    return [
        CssRule(statement.class_name, statement.declarations)
        for statement in scan_stylesheet(css)
        if statement.kind == CLASS_RULE
    ]

def build_class_to_declaration_map(css: str, class_prefix: str = DEFAULT_CLASS_PREFIX) -> Dict[str, str]:
    """Declaration table for every prefixed single-class rule in the stylesheet."""
    table = {}
    for rule in parse_css_rules(css):
        if rule.selector.startswith(class_prefix) and rule.declarations:
            table[rule.selector] = rule.declarations
    return table

def invert_mapping(mapping: Dict[str, str]) -> Dict[str, str]:
    """{declaration: class} -> {class: declaration}."""
    return {cls: decl for decl, cls in mapping.items()}

def _looks_like_declaration(text: str) -> bool:
    return ':' in text and not text.startswith(('.', '_'))

def normalize_declaration_table(table: Dict[str, str]) -> Dict[str, str]:
    """
    Accept either {class: declaration} or {declaration: class} and return
    {class: declaration}. Direction is detected from which side looks like
    "property:value" text; ambiguous tables are taken as {class: declaration}.
    """
    if not table:
        return {}
    keys_are_decls = all(_looks_like_declaration(k) for k in table)
    values_are_decls = all(_looks_like_declaration(v) for v in table.values())
    if keys_are_decls and not values_are_decls:
        logger.debug("Declaration table given as {declaration: class}; inverting")
        return invert_mapping(table)
    return dict(table)
