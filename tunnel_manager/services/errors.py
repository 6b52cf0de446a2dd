"""Tunnel manager error taxonomy"""


class TunnelManagerError(Exception):
    """Base error; carries a message fit for display"""
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TunnelManagerError):
    """Missing or malformed input, detected before any command runs"""
    code = "validation"


class AuthRequiredError(TunnelManagerError):
    """The daemon is not authenticated"""
    code = "auth_required"


class ProviderError(TunnelManagerError):
    """The daemon ran and reported a failure"""
    code = "provider"


class ExecutorError(ProviderError):
    """The command could not be spawned or timed out"""
    code = "executor"
