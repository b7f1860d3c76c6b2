#!/usr/bin/env python3
"""
Class Merge Optimizer
Main entry point for the application.
"""

import sys
import json
import shlex
import subprocess
import logging
import argparse
from pathlib import Path

from optimizer.types import OptimizeOptions, DEFAULT_CLASS_PREFIX, DEFAULT_MIN_FREQUENCY, DEFAULT_MAX_PATTERN_SIZE
from optimizer.class_extractor import class_extractor, file_type_of
from optimizer.class_transformer import class_transformer
from optimizer.cooccurrence_analyzer import build_cooccurrence_matrix, matrix_to_cooccurrences, get_top_cooccurrences
from optimizer.css_optimizer import optimize_core
from optimizer.css_parser import build_class_to_declaration_map, normalize_declaration_table
from optimizer.analyzer_bridge import analyze_directory, convert_to_optimizer_input, load_report_file, merge_reports
from optimizer.equivalence_checker import EquivalenceChecker
from reporting.report_builder import ReportBuilder
from utils.file_utils import load_sources, read_file_content, write_file_content

logger = logging.getLogger(__name__)

def _options_from_args(args) -> OptimizeOptions:
    return OptimizeOptions(
        min_frequency=args.min_frequency,
        max_pattern_size=args.max_pattern_size,
        class_prefix=args.prefix,
        pretty=args.pretty,
        verbose=args.verbose,
    )

def _load_declarations(args, css: str, class_prefix: str) -> dict:
    """Declaration table from --mapping (either direction) or from the stylesheet itself."""
    if args.mapping:
        return normalize_declaration_table(json.loads(read_file_content(Path(args.mapping))))
    return build_class_to_declaration_map(css, class_prefix)

def _output_path(source_path: str, inputs, out_dir: Path) -> Path:
    source = Path(source_path)
    for base in inputs:
        base = Path(base).resolve()
        if base.is_dir() and base in source.parents:
            return out_dir / source.relative_to(base)
    return out_dir / source.name

def run_optimize(args) -> int:
    options = _options_from_args(args)
    sources = load_sources(args.sources)
    css = read_file_content(Path(args.css)) if args.css else ''
    table = _load_declarations(args, css, options.class_prefix)
    logger.info(f"Loaded {len(sources)} source files and {len(table)} class declarations")

    usages = class_extractor.extract_from_files(sources, class_prefix=options.class_prefix)
    warnings = []
    if args.analyzer_report:
        converted = convert_to_optimizer_input(merge_reports(load_report_file(p) for p in args.analyzer_report))
        usages.extend(converted.usages)
        table.update(converted.class_to_declaration)
        warnings = converted.warnings
        for warning in warnings:
            logger.warning(str(warning))

    result = optimize_core(usages, css, table, options)

    if args.output:
        write_file_content(Path(args.output), result.css)
        logger.info(f"Optimized CSS written to {args.output}")
    else:
        print(result.css)

    transformed = class_transformer.transform_files(sources, result.merge_map, class_prefix=options.class_prefix)
    if args.out_dir:
        out_dir = Path(args.out_dir)
        for entry in transformed:
            target = _output_path(entry['path'], args.sources, out_dir)
            write_file_content(target, entry['content'])
        logger.info(f"Wrote {len(transformed)} transformed sources to {out_dir}")

    verification = None
    if args.verify:
        checker = EquivalenceChecker()
        original_html = ''.join(s['content'] for s in sources if file_type_of(s['path']) == 'html')
        optimized_html = ''.join(t['content'] for t in transformed if file_type_of(t['path']) == 'html')
        verification = checker.compare(original_html, optimized_html, table, result)
        if not verification.equivalent:
            logger.warning(f"Equivalence check found {len(verification.mismatches)} differing elements")

    builder = ReportBuilder()
    builder.collect_metrics(result, original_css=css, warnings=warnings, verification=verification)
    if args.report_html:
        builder.generate_html_report(args.report_html)
    if args.report_json:
        builder.generate_json_report(args.report_json)
    if options.verbose:
        print(builder.render_text(), file=sys.stderr)
    return 0

def run_cooccur(args) -> int:
    sources = load_sources(args.sources)
    usages = class_extractor.extract_from_files(sources, class_prefix=args.prefix)
    cooccurrences = matrix_to_cooccurrences(build_cooccurrence_matrix(usages))
    top = get_top_cooccurrences(cooccurrences, args.top)
    if args.json:
        print(json.dumps([
            {'class_a': co.class_a, 'class_b': co.class_b, 'frequency': co.frequency} for co in top
        ], indent=2))
    else:
        for co in top:
            print(f"{co.frequency:>6}  {co.class_a} {co.class_b}")
    return 0

def run_bridge(args) -> int:
    reports = [load_report_file(path) for path in args.reports]
    if args.analyzer_cmd:
        reports.append(analyze_directory(shlex.split(args.analyzer_cmd), args.source_dir))
    converted = convert_to_optimizer_input(merge_reports(reports))
    for warning in converted.warnings:
        logger.warning(str(warning))

    payload = json.dumps({
        'usages': [{'classes': list(u.classes), 'source': u.source} for u in converted.usages],
        'class_to_declaration': converted.class_to_declaration,
        'warnings': [str(w) for w in converted.warnings],
    }, indent=2)
    if args.output:
        write_file_content(Path(args.output), payload)
        logger.info(f"Optimizer input written to {args.output}")
    else:
        print(payload)
    return 0

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Merge co-occurring utility classes into combined classes')
    parser.add_argument('-v', '--verbose', action='store_true', help='log progress at INFO level')
    subparsers = parser.add_subparsers(dest='command', required=True)

    optimize = subparsers.add_parser('optimize', help='optimize a stylesheet against markup sources')
    optimize.add_argument('sources', nargs='+', help='source files or directories (.html, .jsx, .tsx, .svelte)')
    optimize.add_argument('--css', help='stylesheet holding the single-class rules')
    optimize.add_argument('--mapping', help='JSON declaration table ({class: decl} or {decl: class})')
    optimize.add_argument('--analyzer-report', action='append', default=[],
                          help='external analyzer report JSON to merge in (repeatable)')
    optimize.add_argument('--prefix', default=DEFAULT_CLASS_PREFIX)
    optimize.add_argument('--min-frequency', type=int, default=DEFAULT_MIN_FREQUENCY)
    optimize.add_argument('--max-pattern-size', type=int, default=DEFAULT_MAX_PATTERN_SIZE)
    optimize.add_argument('--pretty', action='store_true', help='one merged rule per line')
    optimize.add_argument('-o', '--output', help='write optimized CSS here instead of stdout')
    optimize.add_argument('--out-dir', help='write rewritten sources below this directory')
    optimize.add_argument('--report-html')
    optimize.add_argument('--report-json')
    optimize.add_argument('--verify', action='store_true', help='check HTML sources render the same declarations')
    optimize.set_defaults(func=run_optimize)

    cooccur = subparsers.add_parser('cooccur', help='print the most frequent class pairs')
    cooccur.add_argument('sources', nargs='+')
    cooccur.add_argument('--prefix', default=DEFAULT_CLASS_PREFIX)
    cooccur.add_argument('--top', type=int, default=20)
    cooccur.add_argument('--json', action='store_true')
    cooccur.set_defaults(func=run_cooccur)

    bridge = subparsers.add_parser('bridge', help='convert external analyzer reports into optimizer input')
    bridge.add_argument('reports', nargs='*', help='analyzer report JSON files')
    bridge.add_argument('--analyzer-cmd', help='analyzer command to run on every source file')
    bridge.add_argument('--source-dir', default='.', help='directory scanned when --analyzer-cmd is given')
    bridge.add_argument('-o', '--output')
    bridge.set_defaults(func=run_bridge)
    return parser

def main(argv=None) -> int:
    """Main execution function."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )
    try:
        return args.func(args)
    except (ValueError, OSError, subprocess.CalledProcessError) as e:
        logger.error(str(e))
        return 1

if __name__ == "__main__":
    sys.exit(main())
