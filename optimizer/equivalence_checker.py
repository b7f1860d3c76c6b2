"""
Equivalence Checker Module
Verifies that optimized markup renders the same declarations as the original.
"""

import logging
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Set, Tuple

from bs4 import BeautifulSoup

from .types import OptimizeResult
from .css_parser import normalize_declaration_table

logger = logging.getLogger(__name__)

@dataclass
class ElementMismatch:
    index: int
    tag: str
    original_classes: List[str]
    optimized_classes: List[str]
    missing_declarations: List[str] = field(default_factory=list)
    extra_declarations: List[str] = field(default_factory=list)
    reason: str = 'declarations'

@dataclass
class EquivalenceResult:
    elements_compared: int = 0
    mismatches: List[ElementMismatch] = field(default_factory=list)

    @property
    def equivalent(self) -> bool:
        return not self.mismatches

    def to_dict(self) -> Dict:
        return {
            'equivalent': self.equivalent,
            'elements_compared': self.elements_compared,
            'mismatches': [asdict(m) for m in self.mismatches],
        }

def _split_declarations(decl: str) -> List[str]:
    return [part.strip() for part in decl.split(';') if part.strip()]

class EquivalenceChecker:
    """Compares original and optimized HTML element by element."""

    def optimized_table(self, class_to_declaration: Dict[str, str], result: OptimizeResult) -> Dict[str, str]:
        """Declaration table after optimization: claimed class rules are gone, merged classes added."""
        claimed = set(result.claimed_classes)
        table = {cls: decl for cls, decl in class_to_declaration.items() if cls not in claimed}
        for pattern in result.patterns:
            table[pattern.merged_class] = ';'.join(pattern.declarations)
        return table

    def resolve(self, classes: List[str], table: Dict[str, str]) -> Tuple[Set[str], List[str]]:
        """Split classes into their declaration set and the sorted classes without a declaration."""
        declarations = set()
        unresolved = []
        for cls in classes:
            decl = table.get(cls)
            if decl:
                declarations.update(_split_declarations(decl))
            else:
                unresolved.append(cls)
        return declarations, sorted(unresolved)

    def compare(self, original_html: str, optimized_html: str, class_to_declaration: Dict[str, str],
                result: OptimizeResult) -> EquivalenceResult:
        original_table = normalize_declaration_table(class_to_declaration)
        optimized_table = self.optimized_table(original_table, result)

        original_elements = BeautifulSoup(original_html, 'html.parser').find_all(True)
        optimized_elements = BeautifulSoup(optimized_html, 'html.parser').find_all(True)
        logger.debug(f"Comparing {len(original_elements)} original and {len(optimized_elements)} optimized elements")

        comparison = EquivalenceResult()
        if len(original_elements) != len(optimized_elements):
            comparison.mismatches.append(ElementMismatch(
                index=-1, tag='[document]', original_classes=[], optimized_classes=[], reason='structure'))
            return comparison

        for index, (before, after) in enumerate(zip(original_elements, optimized_elements)):
            comparison.elements_compared += 1
            before_classes = list(before.get('class') or [])
            after_classes = list(after.get('class') or [])
            if before.name != after.name:
                comparison.mismatches.append(ElementMismatch(
                    index, before.name, before_classes, after_classes, reason='tag'))
                continue

            before_decls, before_other = self.resolve(before_classes, original_table)
            after_decls, after_other = self.resolve(after_classes, optimized_table)
            if before_decls != after_decls or before_other != after_other:
                mismatch = ElementMismatch(
                    index,
                    before.name,
                    before_classes,
                    after_classes,
                    missing_declarations=sorted(before_decls - after_decls),
                    extra_declarations=sorted(after_decls - before_decls),
                    reason='declarations' if before_decls != after_decls else 'classes',
                )
                logger.debug(f"Element {index} <{before.name}> differs: {mismatch.reason}")
                comparison.mismatches.append(mismatch)

        return comparison
