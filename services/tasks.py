"""Celery application and background tasks.

Usage:
    # Start a worker
    celery -A make_celery worker -l INFO
"""

from __future__ import annotations

import logging

import requests
from celery import Celery, Task
from flask import Flask, current_app

from .email_dispatcher import DELIVER_EMAIL, EmailMessage

logger = logging.getLogger(__name__)


def celery_init_app(app: Flask) -> Celery:
    """Create the Celery app bound to ``app`` and register the admission tasks."""

    class FlaskTask(Task):
        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery_app = Celery(app.import_name, task_cls=FlaskTask)
    celery_app.config_from_object(app.config["CELERY"])
    celery_app.task(
        name=DELIVER_EMAIL,
        bind=True,
        max_retries=3,
        default_retry_delay=60,
        retry_backoff=True,
        shared=False,
    )(deliver_email)
    app.extensions["celery"] = celery_app
    return celery_app


def deliver_email(self, payload: dict) -> None:
    """Send one queued message through the application's transport.

    Transport errors are retried. Any other failure is logged and stays in the
    worker; it never reaches the request that queued the message.
    """

    message = EmailMessage(**payload)
    transport = current_app.extensions["admission"].transport
    try:
        transport.send(message)
    except requests.RequestException as exc:
        logger.warning("Retrying %s email to %s: %s", message.kind, message.to, exc)
        raise self.retry(exc=exc)
    except Exception:
        logger.exception("Email delivery failed: %s email to %s", message.kind, message.to)
        raise
