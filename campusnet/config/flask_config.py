from flask import Flask

from campusnet.config.settings import Settings


def configure_app(app: Flask, settings: Settings) -> None:
    app.config["ENV"] = settings.environment
    app.config["DEBUG"] = settings.debug

    # payloads saem na ordem montada (messageId, chatId, ...)
    app.json.sort_keys = False
