import logging
import os

import pytest

from src.app_config import AppConfig
from src.logging_config import LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_logger():
    """Undo handler setup done by load_app_config so caplog sees every record."""
    logger = logging.getLogger(LOGGER_NAME)
    yield
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def project_dir(tmp_path):
    """A throwaway project root with the default file layout."""
    return tmp_path


@pytest.fixture
def app_config(project_dir):
    translation_dir = os.path.join(project_dir, 'translation')
    return AppConfig(
        project_root=str(project_dir),
        csv_file=os.path.join(project_dir, 'translations.csv'),
        translation_dir=translation_dir,
        i18n_dir=os.path.join(translation_dir, 'i18n'),
        settings_file=os.path.join(project_dir, 'settings.json'),
        reject_duplicate_languages=False,
        api_host='127.0.0.1',
        api_port=8000
    )


@pytest.fixture
def write_csv(app_config):
    """Write CSV content to the configured source file and return its path."""
    def _write(content: str, path: str = None) -> str:
        path = path or app_config.csv_file
        with open(path, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
        return path
    return _write


@pytest.fixture
def sample_csv():
    return "key,en,de\nhello,Hello,Hallo\nbye,Bye,Tschüss\n"
