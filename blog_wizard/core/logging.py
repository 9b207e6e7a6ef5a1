import sys
import logging
from uvicorn.logging import DefaultFormatter

def setup_logging(level: int = logging.INFO):
    formatter = DefaultFormatter(
        fmt="%(levelprefix)s %(asctime)s - %(name)s - %(message)s",
        datefmt="%H:%M:%S",
        use_colors=True
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=[handler])

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    # google-genai logs every request at INFO
    logging.getLogger("google_genai").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
