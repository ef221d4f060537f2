# app/__init__.py
import os
from flask import Flask
from flask_cors import CORS

from config import config, get_tex_config
from .texcore.session import SessionRegistry
from .texcore.utils.logger import TexLogger

# Setup logging
logger = TexLogger(name=__name__)


def create_app(config_name=None):
    try:
        # Initialize app
        if config_name is None:
            config_name = os.environ.get('FLASK_ENV', 'development')

        app = Flask(__name__)
        config_class = config.get(config_name, config['default'])
        app.config.from_object(config_class)

        # Core settings from TEXCORE_* variables or TEXCORE_CONFIG_FILE
        tex_config = get_tex_config(config_class)
        app.config['TEX'] = tex_config

        app_logger = TexLogger(
            name="api",
            level=tex_config.logging.level,
            log_file=tex_config.logging.log_file
        )

        # One registry of open documents per application
        app.config.update(
            LOGGER=app_logger,
            SESSIONS=SessionRegistry(tex_config)
        )

        # Configure CORS
        CORS(app, resources={
            r"/api/*": {
                "origins": app.config.get('CORS_ORIGINS', '*'),
                "methods": app.config.get('CORS_METHODS', ["GET", "POST", "OPTIONS"]),
                "allow_headers": app.config.get('CORS_ALLOWED_HEADERS', ["Content-Type"]),
                "supports_credentials": True
            }
        })

        # Register blueprint
        from .routes import init_app as init_routes
        init_routes(app)
        logger.info("Successfully registered routes blueprint")

        return app

    except Exception as e:
        logger.error(f"Application initialization failed: {str(e)}")
        raise
