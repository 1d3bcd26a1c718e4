"""API endpoints for component identification and narration."""

import base64
import json
import logging
from typing import Any, Dict, Optional

from flask import Blueprint, jsonify, request, current_app
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from circuit_narrator.config import Config
from circuit_narrator.errors import InvalidInput, NarratorError, error_handler
from circuit_narrator.identification import decode_base64_image, load_image
from circuit_narrator.inference import call_with_timeout
from circuit_narrator.models import ComponentCategory
from circuit_narrator.speech import encode_wav
from circuit_narrator.web.error_responses import (
    format_error_response,
    narrator_error_response,
    invalid_json_response,
    file_too_large_response,
    unexpected_error_response,
    ErrorCode,
    ActionRequired
)

# Create logger
logger = logging.getLogger(__name__)

# Create API blueprint
bp = Blueprint('api', __name__, url_prefix='/api')


@bp.errorhandler(NarratorError)
def handle_narrator_error(e):
    """Map identification and speech errors to JSON responses."""
    return narrator_error_response(e)


@bp.errorhandler(RequestEntityTooLarge)
def handle_file_too_large(e):
    """Handle request size limit exceeded."""
    logger.warning(f"Request size limit exceeded: {e}")
    return file_too_large_response(Config.MAX_IMAGE_BYTES)


@bp.errorhandler(Exception)
def handle_unexpected_error(e):
    """Handle unexpected errors with proper logging."""
    if isinstance(e, HTTPException):
        return e

    logger.error(f"Unexpected error: {e}", exc_info=True)

    return unexpected_error_response(
        error_details=str(e),
        include_details=current_app.debug
    )


def _json_body() -> Optional[Dict[str, Any]]:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return None
    return body


def _text_from_body(body: Dict[str, Any]) -> str:
    """Text to speak: explicit `text`, else the voice description of `componentId`."""
    text = body.get('text')
    if text is None and body.get('componentId') is not None:
        component = current_app.config['CATALOG'].get(str(body['componentId']))
        text = component.voice_description

    if not isinstance(text, str):
        text = ''
    error = error_handler.validate_text(text)
    if error:
        raise InvalidInput(error)
    return text


@bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'ok',
        'message': 'Circuit Narrator API is running',
        'models': current_app.config['MODEL_CACHE'].status()
    })


@bp.route('/components', methods=['GET'])
def list_components():
    """
    List catalog components.

    Query parameters:
        category: Optional filter (passive, active, input, output)
    """
    catalog = current_app.config['CATALOG']
    category = request.args.get('category')

    if category:
        try:
            components = catalog.by_category(ComponentCategory(category.lower()))
        except ValueError:
            valid = ', '.join(c.value for c in ComponentCategory)
            response = format_error_response(
                error_message=f'Invalid category: "{category}". Valid: {valid}',
                error_code=ErrorCode.INVALID_INPUT,
                action_required=ActionRequired.FIX_REQUEST
            )
            return jsonify(response), 400
    else:
        components = list(catalog)

    return jsonify({
        'success': True,
        'components': [
            {'id': c.id, 'name': c.name, 'category': c.category.value}
            for c in components
        ]
    })


@bp.route('/components/<component_id>', methods=['GET'])
def get_component(component_id):
    """Return full details for one component."""
    component = current_app.config['CATALOG'].get(component_id)
    return jsonify({'success': True, 'component': component.to_dict()})


@bp.route('/identify', methods=['POST'])
def identify():
    """
    Identify the component in an uploaded photo.

    Request JSON:
        image: base64 image or data URL (required)
        top_n: number of matches to return (default 1)
        min_confidence: absolute score floor in [0, 1]
        min_margin: lead over the runner-up in [0, 1]; null disables it

    Returns JSON with:
        success: True when a component was recognized
        componentId, name, confidence: the best match
        matches: every accepted match
        topScores: closest misses when nothing was recognized (success False)
    """
    body = _json_body()
    if body is None:
        return invalid_json_response()

    raw = decode_base64_image(body.get('image'), Config.MAX_IMAGE_BYTES)
    image = load_image(raw, Config.MAX_IMAGE_BYTES)

    options = {'top_n': body.get('top_n', Config.DEFAULT_TOP_N)}
    if body.get('min_confidence') is not None:
        options['min_confidence'] = body['min_confidence']
    if 'min_margin' in body:
        options['min_margin'] = body['min_margin']

    identifier = current_app.config['IDENTIFIER']
    matches = call_with_timeout(
        "identification", Config.IDENTIFY_TIMEOUT, identifier.identify, image, **options
    )

    best = matches[0]
    return jsonify({
        'success': True,
        'componentId': best.component.id,
        'name': best.component.name,
        'confidence': best.confidence,
        'matches': [m.to_dict() for m in matches]
    })


@bp.route('/speak', methods=['POST'])
def speak():
    """
    Synthesize text to a WAV file.

    Any sentence that fails aborts the request (502); the client gets
    either the complete narration or an error.

    Request JSON:
        text: text to speak (truncated to MAX_TEXT_LENGTH), or
        componentId: speak that component's voice description
    """
    body = _json_body()
    if body is None:
        return invalid_json_response()

    text = _text_from_body(body)
    synthesizer = current_app.config['SYNTHESIZER']
    result = call_with_timeout(
        "speech synthesis", Config.SYNTHESIS_TIMEOUT,
        synthesizer.synthesize, text, max_length=Config.MAX_TEXT_LENGTH
    )

    audio = encode_wav(result.waveform.samples, result.sample_rate)
    return current_app.response_class(
        audio,
        mimetype='audio/wav',
        headers={
            'Cache-Control': 'public, max-age=86400',
            'X-Audio-Duration': f"{result.duration_seconds:.3f}"
        }
    )


@bp.route('/speak-stream', methods=['POST'])
def speak_stream():
    """
    Stream synthesized speech sentence by sentence as NDJSON.

    Each line is {"index", "total", "audio"} with a 0-based sentence
    index and a base64 WAV. Sentences that fail are skipped; the last
    line is {"done": true, "failed": [...]} listing their indices.
    """
    body = _json_body()
    if body is None:
        return invalid_json_response()

    text = _text_from_body(body)
    synthesizer = current_app.config['SYNTHESIZER']

    # validation and model loading happen before the first byte is sent
    stream = call_with_timeout(
        "speech synthesis", Config.SYNTHESIS_TIMEOUT,
        synthesizer.stream, text, max_length=Config.MAX_STREAM_TEXT_LENGTH
    )

    def generate():
        for chunk in stream:
            audio = encode_wav(chunk.waveform.samples, chunk.waveform.sample_rate)
            yield json.dumps({
                'index': chunk.index - 1,
                'total': chunk.total,
                'audio': base64.b64encode(audio).decode('ascii')
            }) + '\n'

        if stream.failures:
            logger.warning(f"Stream finished with {len(stream.failures)}/{stream.total} sentence(s) skipped")
        yield json.dumps({
            'done': True,
            'failed': [index - 1 for index in stream.failed_indices]
        }) + '\n'

    return current_app.response_class(
        generate(),
        mimetype='application/x-ndjson',
        headers={
            'Cache-Control': 'no-cache',
            'X-Accel-Buffering': 'no'
        }
    )
