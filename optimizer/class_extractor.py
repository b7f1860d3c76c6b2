"""
Class Extractor Module
Extracts optimizable class usages from HTML, JSX/TSX and Svelte-style templates.

Extraction is a regex approximation: malformed or unterminated attributes
simply produce no usage.
"""

import re
import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from .types import ClassUsage, DEFAULT_CLASS_PREFIX

logger = logging.getLogger(__name__)

HTML_CLASS_PATTERN = re.compile(r'(?<![\w:.-])class\s*=\s*(?:"([^"<>]*)"|\'([^\'<>]*)\')')
TEMPLATE_CLASS_PATTERN = re.compile(r'(?<![\w:.-])class\s*=\s*(?:"([^"]*)"|\'([^\']*)\')')
JSX_STRING_PATTERN = re.compile(r'(?<![\w:.-])className\s*=\s*(?:"([^"]*)"|\'([^\']*)\')')
JSX_BRACE_PATTERN = re.compile(r'(?<![\w:.-])className\s*=\s*\{\s*(?:"([^"]*)"|\'([^\']*)\'|`([^`]*)`)\s*\}')

Extractor = Callable[..., List[ClassUsage]]

def split_template_value(value: str) -> List[Tuple[str, bool]]:
    """Split an attribute value into whitespace-separated chunks.

    Returns (chunk, is_dynamic) pairs. A chunk is dynamic when it contains a
    bracketed interpolation ("{expr}" or "${expr}"); brace depth is tracked so
    whitespace inside an expression does not split it.
    """
    chunks = []
    current = []
    depth = 0
    dynamic = False
    for ch in value:
        if ch == '{':
            depth += 1
            dynamic = True
        elif ch == '}' and depth > 0:
            depth -= 1
        if ch.isspace() and depth == 0:
            if current:
                chunks.append((''.join(current), dynamic))
            current = []
            dynamic = False
            continue
        current.append(ch)
    if current:
        chunks.append((''.join(current), dynamic))
    return chunks

def is_optimizable(cls: str, class_prefix: str) -> bool:
    return cls.startswith(class_prefix) and len(cls) > len(class_prefix)

def match_value(match: re.Match) -> Tuple[int, str]:
    """Return (group index, value) of the alternative that matched."""
    for index in range(1, (match.re.groups or 0) + 1):
        value = match.group(index)
        if value is not None:
            return index, value
    return 0, ''

def _line_of(content: str, offset: int) -> int:
    return content.count('\n', 0, offset) + 1

def _usages_from_pattern(content: str, pattern: re.Pattern, class_prefix: str, min_classes: int,
                         source: str, templated: bool) -> List[ClassUsage]:
    usages = []
    min_classes = max(min_classes, 2)
    for match in pattern.finditer(content):
        _, value = match_value(match)
        if not value.strip():
            continue
        if templated:
            tokens = [chunk for chunk, dynamic in split_template_value(value) if not dynamic]
        else:
            tokens = value.split()
        classes = sorted({cls for cls in tokens if is_optimizable(cls, class_prefix)})
        if len(classes) >= min_classes:
            usages.append(ClassUsage(tuple(classes), f"{source}:{_line_of(content, match.start())}"))
    return usages

def extract_html(content: str, class_prefix: str = DEFAULT_CLASS_PREFIX, min_classes: int = 2,
                 source: str = 'html') -> List[ClassUsage]:
    """Extract usages from class="..." attributes in plain markup."""
    return _usages_from_pattern(content, HTML_CLASS_PATTERN, class_prefix, min_classes, source, False)

def extract_jsx(content: str, class_prefix: str = DEFAULT_CLASS_PREFIX, min_classes: int = 2,
                source: str = 'jsx') -> List[ClassUsage]:
    """Extract usages from className="..." and className={"..."} / {`...`} attributes."""
    usages = _usages_from_pattern(content, JSX_STRING_PATTERN, class_prefix, min_classes, source, False)
    usages.extend(_usages_from_pattern(content, JSX_BRACE_PATTERN, class_prefix, min_classes, source, True))
    return usages

def extract_svelte(content: str, class_prefix: str = DEFAULT_CLASS_PREFIX, min_classes: int = 2,
                   source: str = 'svelte') -> List[ClassUsage]:
    """Extract usages from component templates, ignoring {expression} chunks."""
    return _usages_from_pattern(content, TEMPLATE_CLASS_PATTERN, class_prefix, min_classes, source, True)

EXTRACTORS: Dict[str, Extractor] = {
    'html': extract_html,
    'htm': extract_html,
    'jsx': extract_jsx,
    'tsx': extract_jsx,
    'svelte': extract_svelte,
}

def file_type_of(path: str) -> str:
    suffix = Path(path).suffix.lower().lstrip('.')
    return suffix or 'html'

class ClassExtractor:
    """Dispatches extraction to a dialect-specific function by file type."""

    def __init__(self, extractors: Optional[Dict[str, Extractor]] = None):
        self.extractors = dict(EXTRACTORS if extractors is None else extractors)

    def register(self, file_type: str, extractor: Extractor):
        self.extractors[file_type.lower().lstrip('.')] = extractor

    def extract(self, content: str, **options) -> List[ClassUsage]:
        """Extract using the HTML extractor."""
        return self.extract_with_type(content, 'html', **options)

    def extract_with_type(self, content: str, file_type: str, **options) -> List[ClassUsage]:
        extractor = self.extractors.get(file_type.lower().lstrip('.'), extract_html)
        return extractor(content, **options)

    def extract_from_files(self, files: Iterable[Dict[str, str]], **options) -> List[ClassUsage]:
        """Extract from [{'path': ..., 'content': ...}] and tag each usage with its path."""
        all_usages = []
        options.pop('source', None)
        for file in files:
            path = str(file['path'])
            usages = self.extract_with_type(file['content'], file_type_of(path), source=path, **options)
            logger.debug(f"Extracted {len(usages)} usages from {path}")
            all_usages.extend(usages)
        return all_usages

def extract_unique_classes(html: str, class_prefix: str = DEFAULT_CLASS_PREFIX) -> Set[str]:
    """All optimizable classes appearing in class attributes, regardless of count."""
    classes = set()
    for match in HTML_CLASS_PATTERN.finditer(html):
        _, value = match_value(match)
        classes.update(cls for cls in value.split() if is_optimizable(cls, class_prefix))
    return classes

class_extractor = ClassExtractor()
