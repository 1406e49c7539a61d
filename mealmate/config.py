"""
Application Configuration

Centralizes Flask and meal planner settings, read from the environment.
"""

import os

# Base directory of the project
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


class Config:
    """Base configuration class."""

    SECRET_KEY = os.environ.get('FLASK_SECRET', 'dev-secret-key-change-me')

    # Where the preferences/pantry JSON blobs live
    STATE_DIR = os.environ.get('MEALMATE_STATE_DIR', os.path.join(BASE_DIR, 'state'))

    # AI collaborator
    MODEL_ID = os.environ.get('MEALMATE_MODEL', 'gemini-2.5-flash')
    AI_TIMEOUT = float(os.environ.get('MEALMATE_AI_TIMEOUT', '60'))

    # Upload settings
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB max upload
    ALLOWED_IMAGE_TYPES = {'image/jpeg', 'image/png', 'image/webp'}


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False


class TestingConfig(Config):
    TESTING = True


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config(env=None):
    """Get configuration based on environment."""
    if env is None:
        env = os.environ.get('FLASK_ENV', 'development')
    return config.get(env, config['default'])
