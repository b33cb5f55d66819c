"""Logging set-up for scripts and notebooks that use probnet.

The library itself only creates module loggers; call ``configure_logging()``
once from an entry point to actually see the messages. Calling it again is
harmless: if the root logger already has handlers, nothing happens.
"""

import logging

FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: int = logging.INFO) -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(FORMAT))
    root.addHandler(console)
    root.setLevel(level)
