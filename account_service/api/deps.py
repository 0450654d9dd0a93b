"""
Request dependencies
"""

from fastapi import Request

from ..system import AccountSystem


def get_account_system(request: Request) -> AccountSystem:
    """The AccountSystem the application was created with"""
    return request.app.state.account_system
