import logging
import os
import sys


def get_logger(name: str = "svaas") -> logging.Logger:
    root = logging.getLogger("svaas")
    if not root.handlers:
        h = logging.StreamHandler(sys.stderr)
        fmt = logging.Formatter("[%(asctime)s] %(levelname)s %(name)s %(message)s")
        h.setFormatter(fmt)
        root.addHandler(h)
        root.setLevel(os.getenv("SVAAS_LOG_LEVEL", "WARNING").upper())
    return logging.getLogger(name) if name != "svaas" else root
