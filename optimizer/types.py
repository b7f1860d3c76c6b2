"""
Optimizer Types Module
Data model shared by extraction, mining, optimization and transformation.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Tuple, Iterable

DEFAULT_CLASS_PREFIX = '_'
DEFAULT_MIN_FREQUENCY = 2
DEFAULT_MAX_PATTERN_SIZE = 5
DEFAULT_HTML_WEIGHT = 7
DEFAULT_CSS_RULE_WEIGHT = 25
DEFAULT_SUBSUMPTION_THRESHOLD = 0.8

@dataclass(frozen=True)
class ClassUsage:
    """One element's optimizable classes, deduplicated and sorted."""
    classes: Tuple[str, ...]
    source: str = ''

    def __post_init__(self):
        canonical = tuple(sorted(set(self.classes)))
        if len(canonical) < 2:
            raise ValueError(f"ClassUsage needs at least 2 distinct classes, got {list(canonical)}")
        object.__setattr__(self, 'classes', canonical)

    @property
    def key(self) -> str:
        return '|'.join(self.classes)

@dataclass(frozen=True)
class CoOccurrence:
    class_a: str
    class_b: str
    frequency: int

@dataclass
class MergePattern:
    original_classes: List[str]
    frequency: int
    bytes_saved: int
    declarations: List[str] = field(default_factory=list)
    merged_class: str = ''

    @property
    def key(self) -> str:
        """Merge key: constituent classes, sorted, space-joined."""
        return ' '.join(sorted(self.original_classes))

    @property
    def size(self) -> int:
        return len(self.original_classes)

    @property
    def is_accepted(self) -> bool:
        return bool(self.merged_class)

@dataclass(frozen=True)
class CssRule:
    selector: str
    declarations: str

@dataclass(frozen=True)
class OptimizeStats:
    original_classes: int = 0
    merged_patterns: int = 0
    estimated_bytes_saved: int = 0

@dataclass(frozen=True)
class OptimizeResult:
    css: str
    merge_map: Dict[str, str] = field(default_factory=dict)
    patterns: List[MergePattern] = field(default_factory=list)
    stats: OptimizeStats = field(default_factory=OptimizeStats)

    @property
    def claimed_classes(self) -> List[str]:
        return sorted(cls for key in self.merge_map for cls in key.split(' '))

    def to_dict(self) -> Dict:
        """Convert the result to a JSON-serializable dictionary."""
        return {
            'css': self.css,
            'merge_map': dict(self.merge_map),
            'patterns': [asdict(p) for p in self.patterns],
            'stats': asdict(self.stats),
        }

@dataclass
class OptimizeOptions:
    min_frequency: int = DEFAULT_MIN_FREQUENCY
    max_pattern_size: int = DEFAULT_MAX_PATTERN_SIZE
    class_prefix: str = DEFAULT_CLASS_PREFIX
    pretty: bool = False
    verbose: bool = False
    html_weight: int = DEFAULT_HTML_WEIGHT
    css_rule_weight: int = DEFAULT_CSS_RULE_WEIGHT
    subsumption_threshold: float = DEFAULT_SUBSUMPTION_THRESHOLD

    def __post_init__(self):
        for name in ('min_frequency', 'max_pattern_size', 'html_weight', 'css_rule_weight'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        if isinstance(self.subsumption_threshold, bool) or not isinstance(self.subsumption_threshold, (int, float)):
            raise ValueError(f"subsumption_threshold must be a number, got {self.subsumption_threshold!r}")
        if not isinstance(self.class_prefix, str) or not self.class_prefix:
            raise ValueError(f"class_prefix must be a non-empty string, got {self.class_prefix!r}")
        if self.max_pattern_size < 1:
            raise ValueError(f"max_pattern_size must be positive, got {self.max_pattern_size}")
        if self.min_frequency < 1:
            raise ValueError(f"min_frequency must be positive, got {self.min_frequency}")
        if self.html_weight < 0 or self.css_rule_weight < 0:
            raise ValueError("byte weights must not be negative")
        if not 0 < self.subsumption_threshold <= 1:
            raise ValueError(f"subsumption_threshold must be in (0, 1], got {self.subsumption_threshold}")

    @classmethod
    def from_dict(cls, data: Dict) -> 'OptimizeOptions':
        """Build options from a dict, accepting snake_case or camelCase keys."""
        aliases = {
            'minFrequency': 'min_frequency',
            'maxPatternSize': 'max_pattern_size',
            'classPrefix': 'class_prefix',
            'htmlWeight': 'html_weight',
            'cssRuleWeight': 'css_rule_weight',
            'subsumptionThreshold': 'subsumption_threshold',
        }
        if data is not None and not isinstance(data, dict):
            raise ValueError(f"options must be an object, got {type(data).__name__}")
        known = set(cls.__dataclass_fields__)
        kwargs = {}
        for key, value in (data or {}).items():
            name = aliases.get(key, key)
            if name in known:
                kwargs[name] = value
        return cls(**kwargs)

def usages_from_class_lists(class_lists: Iterable[Iterable[str]], source: str = 'inline') -> List[ClassUsage]:
    """Build usages from raw class lists, skipping lists with fewer than 2 distinct classes."""
    usages = []
    for index, classes in enumerate(class_lists):
        classes = list(classes)
        if len(set(classes)) >= 2:
            usages.append(ClassUsage(tuple(classes), f"{source}:{index}"))
    return usages
