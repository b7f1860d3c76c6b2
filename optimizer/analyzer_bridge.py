"""
Analyzer Bridge Module
Adapts co-occurrence reports from an external static analyzer (one that reads
a different source language) into optimizer input.

Report shape:
    {"cooccurrences": [{"classes": [...], "file": str, "line": int, "isStatic": bool}],
     "warnings": [{"kind": str, "file": str, "line": int, "message": str}]}

The "classes" of a co-occurrence are CSS declarations; each one is hashed
into a class name so naming matches the rest of the pipeline.
"""

import json
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Sequence, Union

from .types import ClassUsage
from .hashing import hash_class_name
from utils.file_utils import get_all_files_by_extension, read_file_content

logger = logging.getLogger(__name__)

KNOWN_WARNING_KINDS = frozenset({
    'dynamic_conditional',
    'dynamic_function_call',
    'untraceable_variable',
    'dynamic_array_construction',
})

ANALYZER_SOURCE_EXTENSIONS = ['.mbt']
ANALYZER_EXCLUDE_SUFFIXES = ['_test.mbt']

@dataclass(frozen=True)
class ClassCooccurrence:
    classes: List[str]
    file: str
    line: int
    is_static: bool

@dataclass(frozen=True)
class AnalyzerWarning:
    kind: str
    file: str
    line: int
    message: str

    def __str__(self):
        return f"{self.file}:{self.line} - {self.kind}: {self.message}"

@dataclass
class AnalysisReport:
    cooccurrences: List[ClassCooccurrence] = field(default_factory=list)
    warnings: List[AnalyzerWarning] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'cooccurrences': [
                {'classes': list(co.classes), 'file': co.file, 'line': co.line, 'isStatic': co.is_static}
                for co in self.cooccurrences
            ],
            'warnings': [
                {'kind': w.kind, 'file': w.file, 'line': w.line, 'message': w.message}
                for w in self.warnings
            ],
        }

@dataclass
class ConvertedResult:
    usages: List[ClassUsage] = field(default_factory=list)
    class_to_declaration: Dict[str, str] = field(default_factory=dict)
    warnings: List[AnalyzerWarning] = field(default_factory=list)

def parse_report(data: Union[str, bytes, Dict[str, Any]]) -> AnalysisReport:
    """Parse a report from JSON text or an already-decoded dict."""
    if isinstance(data, (str, bytes)):
        data = json.loads(data)
    if not isinstance(data, dict):
        raise ValueError(f"Analyzer report must be a JSON object, got {type(data).__name__}")

    report = AnalysisReport()
    for entry in data.get('cooccurrences') or []:
        is_static = entry.get('isStatic', entry.get('is_static', False))
        report.cooccurrences.append(ClassCooccurrence(
            classes=[str(decl) for decl in entry.get('classes') or []],
            file=str(entry.get('file', '')),
            line=int(entry.get('line', 0)),
            is_static=bool(is_static),
        ))
    for entry in data.get('warnings') or []:
        kind = str(entry.get('kind', ''))
        if kind not in KNOWN_WARNING_KINDS:
            logger.debug(f"Unrecognized analyzer warning kind: {kind}")
        report.warnings.append(AnalyzerWarning(
            kind=kind,
            file=str(entry.get('file', '')),
            line=int(entry.get('line', 0)),
            message=str(entry.get('message', '')),
        ))
    return report

def merge_reports(reports: Iterable[AnalysisReport]) -> AnalysisReport:
    merged = AnalysisReport()
    for report in reports:
        merged.cooccurrences.extend(report.cooccurrences)
        merged.warnings.extend(report.warnings)
    return merged

def convert_to_optimizer_input(report: AnalysisReport,
                               hash_fn: Callable[[str], str] = hash_class_name) -> ConvertedResult:
    """
    Convert static co-occurrences into usages plus a declaration table.
    Dynamic entries are skipped; warnings are passed through unchanged.
    """
    result = ConvertedResult(warnings=list(report.warnings))
    skipped = 0
    for co in report.cooccurrences:
        if not co.is_static:
            skipped += 1
            continue
        classes = []
        for decl in co.classes:
            class_name = hash_fn(decl)
            result.class_to_declaration[class_name] = decl
            classes.append(class_name)
        if len(set(classes)) >= 2:
            result.usages.append(ClassUsage(tuple(classes), f"{co.file}:{co.line}"))
    logger.debug(f"Converted {len(result.usages)} static co-occurrences, skipped {skipped} dynamic")
    return result

def run_analyzer(command: Sequence[str], source_path: Union[str, Path]) -> AnalysisReport:
    """
    Run the external analyzer on one source file and parse its JSON stdout.
    The command receives the source path as its last argument.
    """
    try:
        completed = subprocess.run(
            [*command, str(source_path)],
            capture_output=True,
            text=True,
            check=True,
        )
        return parse_report(completed.stdout.strip() or '{}')
    except (subprocess.CalledProcessError, json.JSONDecodeError) as e:
        logger.error(f"Analyzer failed on {source_path}: {e}")
        raise

def analyze_directory(command: Sequence[str], directory: Union[str, Path]) -> AnalysisReport:
    """Run the analyzer over every non-test source file below directory."""
    files = get_all_files_by_extension(
        directory,
        ANALYZER_SOURCE_EXTENSIONS,
        exclude_suffixes=ANALYZER_EXCLUDE_SUFFIXES,
    )
    logger.info(f"Analyzing {len(files)} source files in {directory}")
    return merge_reports(run_analyzer(command, path) for path in files)

def load_report_file(path: Union[str, Path]) -> AnalysisReport:
    return parse_report(read_file_content(Path(path)))
