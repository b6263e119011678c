"""suite-sso: cross-application session bootstrap for an app suite.

Usage:
    from suite_sso import AppConfig, SessionRuntime

    async with SessionRuntime("http://localhost:3001", AppConfig()) as runtime:
        snapshot = await runtime.init()
"""

__version__ = "0.4.0"

from suite_sso.config import AppConfig
from suite_sso.coordinator import BootstrapCoordinator, RunStatus
from suite_sso.environment import EnvironmentResolver
from suite_sso.identity import AuthSnapshot, AuthState, CustomTokenSignIn, TokenSignIn
from suite_sso.models import BootstrapResult, SuiteUser
from suite_sso.runtime import SessionRuntime

__all__ = [
    "AppConfig",
    "AuthSnapshot",
    "AuthState",
    "BootstrapCoordinator",
    "BootstrapResult",
    "CustomTokenSignIn",
    "EnvironmentResolver",
    "RunStatus",
    "SessionRuntime",
    "SuiteUser",
    "TokenSignIn",
    "__version__",
]
