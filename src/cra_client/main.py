#!/usr/bin/env python3
"""CRA Client: wrap one allowlisted remote web application in a native window"""

import logging
import signal
import sys

from . import __version__
from .adapters.config_env import ConfigResolver, EnvConfigLoader
from .adapters.deploy_info import HttpBuildParityChecker
from .adapters.reachability import HttpReachabilityProbe
from .adapters.webview_host import JsApi, WebviewHost
from .async_bridge import get_async_bridge, reset_async_bridge
from .config import config
from .core.controller import LaunchGate
from .core.validator import ConfigValidator
from .platform_utils import IS_WINDOWS, BuildProfile, detect_build_profile, get_platform_info
from .shell_page import BOOTSTRAP_HTML
from .startup_log import FileStartupLog

logger = logging.getLogger(__name__)


class CraClient:
    """Main application - config, launch gate and the hosting window"""

    def __init__(self, profile: BuildProfile | None = None):
        self.profile = profile or detect_build_profile()
        self.startup_log = FileStartupLog()
        self.host = WebviewHost(self.startup_log)
        self.gate = LaunchGate(
            EnvConfigLoader(ConfigResolver(), ConfigValidator(self.profile)),
            HttpReachabilityProbe(),
            HttpBuildParityChecker(),
            window=self.host,
            ui=self.host,
            startup_log=self.startup_log,
        )
        self.bridge = get_async_bridge()

    def run(self) -> int:
        """Run the application until the window closes"""
        self.startup_log.record("----- CRA Client startup -----")
        self.startup_log.record(f"version={__version__}")
        self.startup_log.record(f"profile={self.profile.value}")
        info = get_platform_info()
        self.startup_log.record(f"platform={info['system']} {info['release']} {info['machine']}")

        snapshot = self.gate.initialize()
        logger.info("Startup state: %s", snapshot.phase)

        try:
            import webview
        except ImportError as e:
            logger.error("pywebview is not available: %s", e)
            self.startup_log.record(f"window=error:pywebview unavailable ({e})")
            self.shutdown()
            return 1

        window = webview.create_window(
            snapshot.window_title,
            html=BOOTSTRAP_HTML,
            width=snapshot.window_width,
            height=snapshot.window_height,
            resizable=True,
            js_api=JsApi(self.gate, self.bridge),
        )
        self.host.bind(window)

        gui = "edgechromium" if IS_WINDOWS else None
        try:
            webview.start(gui=gui, debug=config.DEBUG)
        finally:
            self.shutdown()
        return 0

    def shutdown(self):
        """Clean shutdown"""
        logger.info("Shutting down")
        reset_async_bridge()
        self.startup_log.record("shutdown")
        self.startup_log.close()


def main():
    logging.basicConfig(
        level=logging.DEBUG if config.DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = CraClient()

    # Window toolkits swallow Ctrl+C on some platforms
    signal.signal(signal.SIGINT, signal.SIG_DFL)

    sys.exit(app.run())


if __name__ == "__main__":
    main()
