"""Routes module for the LaTeX editor API."""
from flask import Blueprint, Response, current_app, jsonify, request
from typing import Any, Dict

from .texcore.compiler.latex_compiler import LaTeXCompiler
from .texcore.compiler.preprocess import extract_packages, remove_latex_comments
from .texcore.models.types import ContentChange, ContentChangeEvent, ProcessingError
from .texcore.utils.html_helpers import HTMLHelper

api_bp = Blueprint('api', __name__, url_prefix='/api')

ERROR_STATUS = {
    'unknown_document': 404,
}


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ProcessingError(
            error_type="invalid_request",
            message="Request body must be a JSON object",
            context=request.path
        )
    return data


def _require_content(data: Dict[str, Any]) -> str:
    content = data.get('content')
    if not isinstance(content, str):
        raise ProcessingError(
            error_type="invalid_request",
            message="Missing required field: content",
            context=request.path
        )
    return content


def init_app(app):
    """Register the API blueprint and its error handler."""
    app.register_blueprint(api_bp)

    @app.errorhandler(ProcessingError)
    def handle_processing_error(error: ProcessingError):
        current_app.config['LOGGER'].warning(
            f"Rejected request {request.path}: {error.message}"
        )
        status = ERROR_STATUS.get(error.error_type, 400)
        return jsonify({'error': error.message, 'type': error.error_type}), status


@api_bp.route('/compile', methods=['POST'])
def compile_document():
    """Compile a LaTeX source to preview HTML."""
    content = _require_content(_json_body())

    compiler = LaTeXCompiler(current_app.config['TEX'].compiler, logger=current_app.config['LOGGER'])
    html = compiler.compile(content)
    packages = extract_packages(remove_latex_comments(content))

    return jsonify({
        'html': html,
        'packages': [{'name': p.name, 'options': p.options} for p in packages],
        'headings': HTMLHelper().extract_anchors(html),
    })


@api_bp.route('/documents/<doc_id>', methods=['POST'])
def open_document(doc_id: str):
    """Open a document session, or reset it to new content."""
    content = _require_content(_json_body())
    session = current_app.config['SESSIONS'].open(doc_id, content)
    current_app.config['LOGGER'].info(f"Opened document {doc_id}")
    timings = current_app.config['TEX'].preview
    return jsonify({
        'id': session.document_id,
        'length': len(session.content),
        'preview': {'debounce_ms': timings.debounce_ms, 'settle_ms': timings.settle_ms},
    })


@api_bp.route('/documents/<doc_id>/changes', methods=['POST'])
def post_changes(doc_id: str):
    """Feed one editor change event to the document's edit tracker."""
    data = _json_body()
    content = _require_content(data)
    session = current_app.config['SESSIONS'].get(doc_id)

    try:
        changes = [ContentChange.from_dict(change) for change in data.get('changes', [])]
    except (KeyError, TypeError, ValueError) as e:
        raise ProcessingError(
            error_type="invalid_request",
            message=f"Malformed change: {str(e)}",
            context=request.path
        )

    groups = session.apply_changes(ContentChangeEvent(changes=changes, content=content))
    return jsonify({'groups': groups})


@api_bp.route('/documents/<doc_id>/changes', methods=['GET'])
def get_changes(doc_id: str):
    """Summaries of the recent edit groups, oldest first."""
    session = current_app.config['SESSIONS'].get(doc_id)
    return jsonify({'changes': [summary.to_dict() for summary in session.recent_changes()]})


@api_bp.route('/documents/<doc_id>/context', methods=['GET'])
def get_context(doc_id: str):
    """Structural context at a cursor offset."""
    session = current_app.config['SESSIONS'].get(doc_id)
    offset = request.args.get('offset', type=int)
    if offset is None:
        raise ProcessingError(
            error_type="invalid_request",
            message="Query parameter offset must be an integer",
            context=request.path
        )
    return jsonify(session.cursor_context(offset))


@api_bp.route('/documents/<doc_id>/preview', methods=['GET'])
def preview(doc_id: str):
    """Compiled HTML for the document's current content."""
    session = current_app.config['SESSIONS'].get(doc_id)
    return Response(session.compile(), mimetype='text/html')
