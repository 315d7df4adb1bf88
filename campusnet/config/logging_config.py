# campusnet/config/logging_config.py
import logging

from campusnet.config.settings import Settings

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    level = logging.DEBUG if settings.debug else logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    # evita handler duplicado quando create_app roda mais de uma vez (testes)
    if not any(getattr(h, "_campusnet", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._campusnet = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    # engineio/socketio são muito verbosos em DEBUG
    logging.getLogger("engineio.server").setLevel(logging.WARNING)
    logging.getLogger("socketio.server").setLevel(logging.WARNING)
