from __future__ import annotations

import logging
import warnings


class EmfError(RuntimeError):
    pass


class EmfIOError(EmfError):
    """Output sink could not be opened, written, seeked or closed."""


class EmfEncodingError(EmfError, ValueError):
    pass


class DocumentStateError(EmfError):
    pass


class EmfFontError(EmfError):
    """Font metrics could not be loaded for a requested font."""


class UnsupportedFeatureWarning(UserWarning):
    """Non-fatal: the request was degraded to an approximation or skipped."""


def warn_unsupported(logger: logging.Logger, message: str) -> None:
    logger.warning("%s", message)
    warnings.warn(message, UnsupportedFeatureWarning, stacklevel=3)
