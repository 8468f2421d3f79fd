"""Application configuration module for the CSV translation tools."""
import logging
import os
import sys
from dataclasses import dataclass
from typing import Dict, Any

import yaml
from dotenv import load_dotenv

from src.logging_config import setup_logger


@dataclass
class AppConfig:
    """Application configuration dataclass."""
    # Core paths
    project_root: str
    csv_file: str
    translation_dir: str
    i18n_dir: str
    settings_file: str

    # Validation policy
    reject_duplicate_languages: bool

    # Read-side API
    api_host: str
    api_port: int


def _compute_project_root() -> str:
    """Compute the project root directory."""
    script_real_path = os.path.realpath(__file__)
    script_dir = os.path.dirname(script_real_path)
    return os.path.abspath(os.path.join(script_dir, os.pardir))


def _dotenv_candidates(project_root: str) -> tuple[str, str]:
    return os.path.join(project_root, '.env'), os.path.join(project_root, 'docker', '.env')


def _load_dotenv_files(project_root: str) -> None:
    """Load .env files from project root or docker directory."""
    dotenv_path_project_root, dotenv_path_docker_dir = _dotenv_candidates(project_root)

    if os.path.exists(dotenv_path_project_root):
        load_dotenv(dotenv_path_project_root)
    elif os.path.exists(dotenv_path_docker_dir):
        load_dotenv(dotenv_path_docker_dir)


def _load_yaml_config(project_root: str) -> Dict[str, Any]:
    """Load YAML configuration file with error handling and path resolution."""
    default_config_path = os.path.join(project_root, 'config.yaml')
    config_file = os.environ.get('CSV_TRANSLATIONS_CONFIG_FILE', default_config_path)

    if not os.path.isabs(config_file):
        config_file = os.path.abspath(config_file)

    config = {}
    try:
        # The config file is optional; defaults cover every setting.
        if not os.path.exists(config_file):
            return config

        if not os.access(config_file, os.R_OK):
            print(f"Error: Configuration file '{config_file}' exists but is not readable. Check file permissions.",
                  file=sys.stderr)
            return config

        with open(config_file, 'r', encoding='utf-8') as config_file_stream:
            loaded_config = yaml.safe_load(config_file_stream)
            if loaded_config is None:
                print(f"Warning: Configuration file '{config_file}' is empty. Using default configuration.",
                      file=sys.stderr)
            elif isinstance(loaded_config, dict):
                config = loaded_config
            else:
                print(f"Error: Configuration file '{config_file}' must contain a YAML dictionary. Using defaults.",
                      file=sys.stderr)

    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file '{config_file}': {e}", file=sys.stderr)
        print("Please check your YAML syntax. Using default configuration.", file=sys.stderr)
    except OSError as e:
        print(f"Error: Could not read configuration file '{config_file}': {e}", file=sys.stderr)
        print("Using default configuration.", file=sys.stderr)

    return config


def _setup_logger_from_config(config: Dict[str, Any], project_root: str) -> logging.Logger:
    """Set up logger based on configuration."""
    log_config = config.get('logging') or {}
    log_level_str = os.environ.get('LOG_LEVEL', log_config.get('log_level', 'INFO')).upper()
    log_file_path = log_config.get('log_file_path', 'logs/csv_translations.log')
    if log_file_path:
        log_file_path = _resolve_path(project_root, log_file_path)
    log_to_console = log_config.get('log_to_console', True)
    return setup_logger(log_level_str, log_file_path, log_to_console)


def _log_dotenv_status(logger: logging.Logger, project_root: str) -> None:
    """Log the status of .env file loading."""
    dotenv_path_project_root, dotenv_path_docker_dir = _dotenv_candidates(project_root)

    if os.path.exists(dotenv_path_project_root):
        logger.debug("Loaded environment variables from: %s", dotenv_path_project_root)
    elif os.path.exists(dotenv_path_docker_dir):
        logger.debug("Loaded environment variables from: %s", dotenv_path_docker_dir)
    else:
        logger.debug(
            "No .env file found in project root ('%s') or in docker/ ('%s'). Relying on system environment variables if any.",
            dotenv_path_project_root,
            dotenv_path_docker_dir
        )


def _resolve_path(project_root: str, path: str) -> str:
    """Resolve a configured path against the project root unless it is absolute."""
    if os.path.isabs(path):
        return path
    return os.path.join(project_root, path)


def load_app_config() -> AppConfig:
    """
    Load application configuration from YAML file and environment variables.

    Returns:
        AppConfig: The loaded application configuration.
    """
    project_root = os.environ.get('CSV_TRANSLATIONS_PROJECT_ROOT') or _compute_project_root()

    _load_dotenv_files(project_root)

    config = _load_yaml_config(project_root)

    logger = _setup_logger_from_config(config, project_root)

    _log_dotenv_status(logger, project_root)

    translation_dir = _resolve_path(project_root, config.get('translation_dir', 'translation'))
    i18n_dir = config.get('i18n_dir')
    i18n_dir = _resolve_path(project_root, i18n_dir) if i18n_dir else os.path.join(translation_dir, 'i18n')

    api_config = config.get('api') or {}
    api_port = int(os.environ.get('PORT', api_config.get('port', 8000)))

    return AppConfig(
        project_root=project_root,
        csv_file=_resolve_path(project_root, config.get('csv_file', 'translations.csv')),
        translation_dir=translation_dir,
        i18n_dir=i18n_dir,
        settings_file=_resolve_path(project_root, config.get('settings_file', 'settings.json')),
        reject_duplicate_languages=bool(config.get('reject_duplicate_languages', False)),
        api_host=os.environ.get('HOST', api_config.get('host', '0.0.0.0')),
        api_port=api_port
    )
