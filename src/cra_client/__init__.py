"""CRA Client - Desktop shell for one allowlisted remote web application"""

__version__ = "1.0.0"
__author__ = "CRA Client maintainers"
__description__ = "Desktop shell for one allowlisted remote web application"

__all__ = ["main", "CraClient", "__version__"]


def __getattr__(name: str):
    """Lazy import to avoid pulling in the window toolkit on package import.

    This allows importing cra_client.core or cra_client.adapters without
    a display, which is needed for CI/headless environments.
    """
    if name == "CraClient":
        from .main import CraClient

        return CraClient
    if name == "main":
        from .main import main

        return main
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
