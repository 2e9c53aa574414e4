"""Celery worker entry point: ``celery -A make_celery worker -l INFO``."""

from app import create_app

flask_app = create_app()
celery_app = flask_app.extensions["celery"]
