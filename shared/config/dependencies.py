"""
FastAPI dependencies for the collaborators create_app() attaches to
app.state. Routes never reach for module globals, so tests can hand the app
fake processors and notifiers.
"""
from fastapi import Request

from .settings import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_payment_processor(request: Request):
    return request.app.state.payment_processor


def get_notifier(request: Request):
    return request.app.state.notifier
