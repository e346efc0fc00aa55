"""
Project: SharePlate Canteen Backend
Description:
Runtime configuration. Values come from the environment with development
defaults; create_app() overrides a few of them for tests.
"""

import os


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///shareplate.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # bearer tokens stay valid for 7 days
    TOKEN_MAX_AGE = int(os.getenv("TOKEN_MAX_AGE", 7 * 24 * 3600))

    SOCKETIO_ASYNC_MODE = os.getenv("SOCKETIO_ASYNC_MODE", "eventlet")
    CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "*")
