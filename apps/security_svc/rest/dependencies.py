# apps/security_svc/rest/dependencies.py
from fastapi import Request

from libs.containers.security_container import SecurityContainer


def get_container(request: Request) -> SecurityContainer:
    return request.app.state.container
