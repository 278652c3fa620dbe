from rich.logging import RichHandler

from yapl.utils.logging import get, setup


def test_logger_levels():
    logger = get("debug")
    assert logger.level == 10  # DEBUG
    logger = get("error")
    assert logger.level == 40  # ERROR
    logger = get("unknown")
    assert logger.level == 20  # INFO


def test_setup_is_idempotent():
    lg = setup("warning")
    setup("warning")
    assert sum(isinstance(h, RichHandler) for h in lg.handlers) == 1
    assert lg.level == 30
