import logging

from rich.logging import RichHandler

from utils import config


class PaddedNameFormatter(logging.Formatter):
    """Pads logger names to the widest one seen so far so messages line up."""

    name_width = 12

    def format(self, record):
        PaddedNameFormatter.name_width = max(
            PaddedNameFormatter.name_width, len(record.name)
        )
        record.name = record.name.ljust(PaddedNameFormatter.name_width)
        return super().format(record)


def _resolve_level() -> int:
    level = logging.getLevelName(config.log_level())
    # getLevelName returns a string for unknown names
    return level if isinstance(level, int) else logging.INFO


def get_logger(name=None) -> logging.Logger:
    """
    Return a logger writing through RichHandler, plus a plain file handler
    when STORE_LOG_FILE is set (the TUI owns the terminal while running).
    """
    name = name or "store"
    logger = logging.getLogger(name)
    level = _resolve_level()
    logger.setLevel(level)

    if not logger.handlers:
        console_handler = RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        console_handler.setFormatter(PaddedNameFormatter("[%(name)s]  %(message)s"))
        console_handler.setLevel(level)
        logger.addHandler(console_handler)

        path = config.log_file()
        if path:
            file_handler = logging.FileHandler(path, encoding="utf-8")
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")
            )
            file_handler.setLevel(level)
            logger.addHandler(file_handler)

        logger.propagate = False
        logger.debug(f"Logger '{name}' ready (level={logging.getLevelName(level)}).")

    return logger
