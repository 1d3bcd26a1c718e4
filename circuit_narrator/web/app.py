"""Flask application for the Circuit Narrator web API."""

from flask import Flask
from flask_cors import CORS
import os
import logging

from circuit_narrator.catalog import ComponentCatalog
from circuit_narrator.config import Config
from circuit_narrator.identification import ComponentIdentifier
from circuit_narrator.inference import ModelCache
from circuit_narrator.speech import SpeechSynthesizer


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(model_cache: ModelCache = None, catalog: ComponentCatalog = None):
    """
    Create and configure the Flask application.

    The app is the composition root for the web surface: it owns one
    model cache shared by every request.

    Args:
        model_cache: Model cache to use (a transformers-backed one is created if None)
        catalog: Component catalog (the built-in catalog if None)
    """
    app = Flask(__name__)

    # Configure CORS for API endpoints
    CORS(app, resources={
        r"/api/*": {
            "origins": "*",
            "methods": ["GET", "POST"],
            "allow_headers": ["Content-Type"]
        }
    })

    # base64 inflates the image by a third, plus the JSON envelope
    app.config['MAX_CONTENT_LENGTH'] = Config.MAX_IMAGE_BYTES * 2

    catalog = catalog or ComponentCatalog()
    model_cache = model_cache or ModelCache()

    app.config['CATALOG'] = catalog
    app.config['MODEL_CACHE'] = model_cache
    app.config['IDENTIFIER'] = ComponentIdentifier(model_cache, catalog)
    app.config['SYNTHESIZER'] = SpeechSynthesizer(model_cache)

    if os.environ.get('NARRATOR_PRELOAD', 'false').lower() == 'true':
        logger.info("Preloading models in the background...")
        # construction is single-flight, so requests arriving meanwhile just wait for it
        model_cache.preload_async()

    register_routes(app)

    logger.info(f"Circuit Narrator API ready ({len(catalog)} components)")
    return app


def register_routes(app):
    """Register all application routes."""
    from circuit_narrator.web import api
    app.register_blueprint(api.bp)


if __name__ == '__main__':
    from circuit_narrator.web.run import main
    main()
