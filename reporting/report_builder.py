"""
Report Builder Module
Generates optimization reports using Jinja2 templates.
"""

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from optimizer.types import OptimizeResult
from utils.file_utils import write_file_content

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / 'templates'

class ReportBuilder:
    def __init__(self, template_dir: Optional[Union[str, Path]] = None):
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
            autoescape=select_autoescape(['html']),
        )
        self.template_name = 'report.html'
        self.data = {}

    def collect_metrics(self, result: OptimizeResult, original_css: Optional[str] = None,
                        warnings: Iterable = (), verification=None) -> Dict:
        """Collect and organize optimization metrics."""
        self.data = {
            'stats': asdict(result.stats),
            'patterns': [asdict(p) for p in result.patterns],
            'merge_map': dict(result.merge_map),
            'css_bytes_before': len(original_css.encode('utf-8')) if original_css is not None else None,
            'css_bytes_after': len(result.css.encode('utf-8')),
            'warnings': [asdict(w) for w in warnings],
            'verification': verification.to_dict() if verification is not None else None,
        }
        return self.data

    def render_html(self) -> str:
        template = self.env.get_template(self.template_name)
        return template.render(**self.data)

    def render_text(self) -> str:
        stats = self.data.get('stats', {})
        lines = [
            f"Merged patterns: {stats.get('merged_patterns', 0)}",
            f"Declaration classes: {stats.get('original_classes', 0)}",
            f"Estimated bytes saved: {stats.get('estimated_bytes_saved', 0)}",
        ]
        if self.data.get('css_bytes_before') is not None:
            lines.append(f"CSS size: {self.data['css_bytes_before']} -> {self.data['css_bytes_after']} bytes")
        for pattern in self.data.get('patterns', []):
            lines.append(
                f"  .{pattern['merged_class']} <- {' '.join(pattern['original_classes'])}"
                f" (x{pattern['frequency']}, ~{pattern['bytes_saved']} bytes)"
            )
        for warning in self.data.get('warnings', []):
            lines.append(f"  warning {warning['file']}:{warning['line']} - {warning['kind']}: {warning['message']}")
        verification = self.data.get('verification')
        if verification is not None:
            status = 'equivalent' if verification['equivalent'] else f"{len(verification['mismatches'])} mismatches"
            lines.append(f"Equivalence check: {status} ({verification['elements_compared']} elements)")
        return '\n'.join(lines)

    def generate_html_report(self, output_path: Union[str, Path]) -> Path:
        """Generate HTML report with the merged patterns and statistics."""
        output_path = Path(output_path)
        write_file_content(output_path, self.render_html())
        logger.info(f"HTML report written to {output_path}")
        return output_path

    def generate_json_report(self, output_path: Union[str, Path]) -> Path:
        """Generate JSON report with raw optimization data."""
        output_path = Path(output_path)
        write_file_content(output_path, json.dumps(self.data, indent=2))
        logger.info(f"JSON report written to {output_path}")
        return output_path
