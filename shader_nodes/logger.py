import logging
import sys

LOGGER_NAME = "ShaderNodes"
PACKAGE_LOGGER_NAME = "shader_nodes"


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def setup_logger(level=logging.INFO) -> logging.Logger:
    """
    Route Shader Nodes logging to stdout.

    Modules log through ``logging.getLogger(__name__)``, i.e. under the
    ``shader_nodes`` package logger, while applications may log through
    ``get_logger()``. Both get the same handler; calling this again
    replaces it rather than stacking a second one.

    Args:
        level: Logging level (default: INFO)
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    # [ShaderNodes] [LEVEL] message
    handler.setFormatter(logging.Formatter(f'[{LOGGER_NAME}] [%(levelname)s] %(message)s'))

    for name in (LOGGER_NAME, PACKAGE_LOGGER_NAME):
        target = logging.getLogger(name)
        target.setLevel(level)
        target.handlers.clear()
        target.addHandler(handler)

    return get_logger()
