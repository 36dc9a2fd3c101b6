from fastapi.requests import HTTPConnection

from spacecounter.hub import Hub
from spacecounter.settings import Settings


def get_hub(conn: HTTPConnection) -> Hub:
    return conn.app.state.hub


def get_settings(conn: HTTPConnection) -> Settings:
    return conn.app.state.settings
