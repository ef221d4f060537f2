import os
from dotenv import load_dotenv

from app_config import TexConfig, load_config

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, ".env"))


class Config:
    # Basic configuration
    SECRET_KEY = os.environ.get("SECRET_KEY") or "you-will-never-guess"

    # CORS settings
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'http://localhost:5000,http://127.0.0.1:5000,http://localhost:5001,http://127.0.0.1:5001').split(',')
    CORS_METHODS = ['GET', 'POST', 'OPTIONS']
    CORS_ALLOWED_HEADERS = ['Content-Type', 'Authorization']

    # Largest document accepted by the API
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024

    LOG_LEVEL = 'INFO'


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    DEVELOPMENT = True

    CORS_ORIGINS = [
        'http://localhost:5000',
        'http://127.0.0.1:5000',
        'http://localhost:5001',
        'http://127.0.0.1:5001'
    ]

    LOG_LEVEL = 'DEBUG'


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    DEVELOPMENT = False

    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '').split(',')

    LOG_LEVEL = 'INFO'


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    DEBUG = True
    CORS_ORIGINS = ['http://localhost:5000']

    LOG_LEVEL = 'WARNING'


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_environment() -> str:
    """Get current environment."""
    return os.environ.get('FLASK_ENV', 'development')


def get_config():
    return config.get(get_environment(), config['default'])


def get_tex_config(config_class=None) -> TexConfig:
    """
    Build the texcore configuration for a Flask configuration class.

    Settings come from TEXCORE_* variables, or from TEXCORE_CONFIG_FILE when
    set. Without either source of a log level the class LOG_LEVEL applies.
    """
    config_class = config_class or get_config()
    tex_config = load_config()
    if not os.environ.get("TEXCORE_LOG_LEVEL") and not os.environ.get("TEXCORE_CONFIG_FILE"):
        tex_config.logging.level = config_class.LOG_LEVEL
    return tex_config
