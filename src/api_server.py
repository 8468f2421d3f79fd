"""
Read-side API serving the generated translation JSON files.

Every request reads the files from disk; nothing is cached.
"""
import json
import logging
import os
from datetime import datetime, timezone
from typing import Dict, List, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from src.app_config import AppConfig, load_app_config
from src.logging_config import LOGGER_NAME
from src.version_store import SettingsStore

logger = logging.getLogger(LOGGER_NAME)


def load_translation(translation_dir: str, lang: str) -> Optional[Dict[str, str]]:
    """Load the translation file for ``lang``, or None if it is missing or unreadable."""
    # Language names from the CSV header never contain path separators.
    if os.path.basename(lang) != lang or lang in ('', '.', '..'):
        return None
    file_path = os.path.join(translation_dir, f"{lang}.json")
    if not os.path.isfile(file_path):
        return None
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            translations = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error loading translation for {lang}: {e}")
        return None
    if not isinstance(translations, dict):
        logger.error(f"Translation file for {lang} does not contain a JSON object")
        return None
    return translations


def get_available_languages(translation_dir: str) -> List[str]:
    """List the languages that have a JSON file in ``translation_dir``."""
    try:
        if not os.path.isdir(translation_dir):
            return []
        return sorted(
            filename[:-len('.json')]
            for filename in os.listdir(translation_dir)
            if filename.endswith('.json')
        )
    except OSError as e:
        logger.error(f"Error reading translation directory: {e}")
        return []


def create_app(config: AppConfig) -> FastAPI:
    app = FastAPI(title="Translation API Server")
    settings_store = SettingsStore(config.settings_file)
    translation_dir = config.translation_dir

    def current_version() -> str:
        return settings_store.read_version()

    @app.get("/api/translate")
    async def translate(lang: Optional[str] = None, key: Optional[str] = None):
        version = current_version()

        if not lang:
            return JSONResponse(status_code=400, content={
                "version": version,
                "error": "Missing language parameter",
                "message": "Please provide a language code using ?lang=<code> (e.g., ?lang=en or ?lang=de)",
                "availableLanguages": get_available_languages(translation_dir),
            })

        translations = load_translation(translation_dir, lang)
        if translations is None:
            return JSONResponse(status_code=404, content={
                "version": version,
                "error": "Language not found",
                "message": f"Translation file for language '{lang}' not found",
                "availableLanguages": get_available_languages(translation_dir),
            })

        if key:
            if key in translations:
                return {
                    "version": version,
                    "language": lang,
                    "key": key,
                    "translation": translations[key],
                }
            return JSONResponse(status_code=404, content={
                "version": version,
                "error": "Key not found",
                "message": f"Translation key '{key}' not found for language '{lang}'",
                "language": lang,
                "key": key,
            })

        return {
            "version": version,
            "language": lang,
            "translations": translations,
        }

    @app.get("/api/languages")
    async def languages():
        available = get_available_languages(translation_dir)
        return {
            "version": current_version(),
            "languages": available,
            "count": len(available),
        }

    @app.get("/health")
    async def health():
        return {
            "version": current_version(),
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/")
    async def root():
        return {
            "version": current_version(),
            "message": "Translation API Server",
            "endpoints": {
                "translate": "/api/translate?lang=<language_code>",
                "translateKey": "/api/translate?lang=<language_code>&key=<translation_key>",
                "languages": "/api/languages",
                "health": "/health",
            },
            "examples": [
                "/api/translate?lang=en",
                "/api/translate?lang=en&key=confirm_delete",
                "/api/translate?lang=de&key=welcome_message",
            ],
            "availableLanguages": get_available_languages(translation_dir),
        }

    return app


def serve() -> None:
    """Run the API server with uvicorn."""
    config = load_app_config()
    logger.info(f"Translation API server is running on http://{config.api_host}:{config.api_port}")
    logger.info(f"Available languages: {', '.join(get_available_languages(config.translation_dir))}")
    uvicorn.run(create_app(config), host=config.api_host, port=config.api_port)


if __name__ == "__main__":
    serve()
