"""
Web Interface for Class Merge Optimization
JSON API over the optimizer: optimize, transform, co-occurrence stats and
external analyzer report conversion.
"""

import sys
import logging
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from flask import Flask, request, jsonify
from optimizer.types import OptimizeOptions, DEFAULT_CLASS_PREFIX
from optimizer.class_extractor import class_extractor
from optimizer.class_transformer import class_transformer
from optimizer.cooccurrence_analyzer import build_cooccurrence_matrix, matrix_to_cooccurrences, get_top_cooccurrences
from optimizer.css_optimizer import optimize_core
from optimizer.css_parser import build_class_to_declaration_map
from optimizer.analyzer_bridge import parse_report, convert_to_optimizer_input
from reporting.report_builder import ReportBuilder

logger = logging.getLogger(__name__)

app = Flask(__name__)

def _payload() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError('Request body must be a JSON object')
    return data

def _sources(data: dict) -> list:
    sources = data.get('sources')
    if sources is None and 'html' in data:
        sources = [{'path': 'input.html', 'content': data['html']}]
    if not isinstance(sources, list) or not all(isinstance(s, dict) and 'content' in s for s in sources):
        raise ValueError("'sources' must be a list of {path, content} objects")
    return [{'path': s.get('path', 'input.html'), 'content': s['content']} for s in sources]

@app.errorhandler(ValueError)
def handle_value_error(e):
    return jsonify({'error': str(e)}), 400

@app.route('/health')
def health():
    return jsonify({'status': 'ok'})

@app.route('/api/optimize', methods=['POST'])
def api_optimize():
    data = _payload()
    options = OptimizeOptions.from_dict(data.get('options') or {})
    sources = _sources(data)
    css = data.get('css', '')
    declarations = data.get('declarations')
    if not isinstance(css, str):
        raise ValueError("'css' must be a string")
    if declarations is not None and not isinstance(declarations, dict):
        raise ValueError("'declarations' must be an object")
    try:
        declarations = declarations or build_class_to_declaration_map(css, options.class_prefix)
        usages = class_extractor.extract_from_files(sources, class_prefix=options.class_prefix)
        result = optimize_core(usages, css, declarations, options)
        response = result.to_dict()
        if data.get('transform', True):
            response['sources'] = class_transformer.transform_files(
                sources, result.merge_map, class_prefix=options.class_prefix)
        builder = ReportBuilder()
        builder.collect_metrics(result, original_css=css)
        response['report'] = builder.render_text()
        return jsonify(response)
    except Exception as e:
        logger.error(f"Optimization failed: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500

@app.route('/api/transform', methods=['POST'])
def api_transform():
    data = _payload()
    merge_map = data.get('merge_map')
    if not isinstance(merge_map, dict):
        raise ValueError("'merge_map' must be an object")
    class_prefix = data.get('class_prefix', DEFAULT_CLASS_PREFIX)
    return jsonify({'sources': class_transformer.transform_files(_sources(data), merge_map, class_prefix=class_prefix)})

@app.route('/api/cooccurrences', methods=['POST'])
def api_cooccurrences():
    data = _payload()
    class_prefix = data.get('class_prefix', DEFAULT_CLASS_PREFIX)
    top = int(data.get('top', 20))
    usages = class_extractor.extract_from_files(_sources(data), class_prefix=class_prefix)
    cooccurrences = matrix_to_cooccurrences(build_cooccurrence_matrix(usages))
    return jsonify({
        'usages': len(usages),
        'pairs': [
            {'class_a': co.class_a, 'class_b': co.class_b, 'frequency': co.frequency}
            for co in get_top_cooccurrences(cooccurrences, top)
        ],
    })

@app.route('/api/bridge', methods=['POST'])
def api_bridge():
    data = _payload()
    converted = convert_to_optimizer_input(parse_report(data.get('report', data)))
    return jsonify({
        'usages': [{'classes': list(u.classes), 'source': u.source} for u in converted.usages],
        'class_to_declaration': converted.class_to_declaration,
        'warnings': [str(w) for w in converted.warnings],
    })

if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    app.run(debug=True)
