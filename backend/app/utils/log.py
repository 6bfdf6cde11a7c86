import logging
import sys


def get_logger(name: str, prefix: str = None) -> logging.Logger:
    """
    Return a named logger writing "[PREFIX] message" lines to stdout.
    Handlers are attached once so repeated imports don't duplicate output.
    """
    log = logging.getLogger(name)
    log.setLevel(logging.DEBUG)
    if not log.handlers:
        h = logging.StreamHandler(sys.stdout)
        tag = prefix or name.rsplit(".", 1)[-1].upper()
        h.setFormatter(logging.Formatter(f"[{tag}] %(levelname)s %(message)s"))
        log.addHandler(h)
    return log
