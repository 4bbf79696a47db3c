"""
Configuration Loader - Load and manage control policies

This module provides functions to load configuration from YAML/JSON files
and turn it into the settings used by the control core.

Key Features:
    - Load default and custom policy configurations
    - Parse settling delay, alert thresholds and reload limits
    - Parse seed machines, workers and jobs for the reference store
    - Save settings back to YAML
"""

import yaml
from dotenv import load_dotenv
import json
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / 'config' / 'default_policy.yaml'


@dataclass
class LLMSettings:
    """Settings for the Groq-backed recommendation engine."""
    model: str = "llama-3.3-70b-versatile"
    temperature: float = 0.1
    max_tokens: int = 2048


@dataclass
class ControlSettings:
    """
    Tunable behaviour of the control core.

    settling_delay_seconds is the debounce between receiving a rescheduling
    recommendation and surfacing its resolution alert.
    """
    settling_delay_seconds: float = 3.0
    default_estimated_delay: float = 15.0     # Minutes, used when the engine omits it
    idle_machine_threshold: int = 2           # Idle machines tolerated before an alert
    job_list_limit: int = 50
    job_sort_key: str = "-created_date"
    trend_window: int = 5                     # Snapshots kept for KPI trends
    llm: LLMSettings = field(default_factory=LLMSettings)

    def __post_init__(self):
        if self.settling_delay_seconds < 0:
            raise ValueError(
                f"settling_delay_seconds must be non-negative, got: {self.settling_delay_seconds}"
            )
        if self.job_list_limit <= 0:
            raise ValueError(f"job_list_limit must be positive, got: {self.job_list_limit}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to the configuration file layout."""
        return {
            'disruption': {
                'settling_delay_seconds': self.settling_delay_seconds,
                'default_estimated_delay': self.default_estimated_delay,
            },
            'alerts': {
                'idle_machine_threshold': self.idle_machine_threshold,
            },
            'reload': {
                'job_list_limit': self.job_list_limit,
                'job_sort_key': self.job_sort_key,
            },
            'metrics': {
                'trend_window': self.trend_window,
            },
            'llm': {
                'model': self.llm.model,
                'temperature': self.llm.temperature,
                'max_tokens': self.llm.max_tokens,
            },
        }


def load_yaml(file_path: str) -> Dict[str, Any]:
    """
    Load YAML configuration file.

    Args:
        file_path: Path to YAML file

    Returns:
        Dictionary with configuration data
    """
    with open(file_path, 'r') as f:
        return yaml.safe_load(f) or {}


def load_json(file_path: str) -> Dict[str, Any]:
    """
    Load JSON configuration file.

    Args:
        file_path: Path to JSON file

    Returns:
        Dictionary with configuration data
    """
    with open(file_path, 'r') as f:
        return json.load(f)


def load_settings_from_config(config: Dict[str, Any]) -> ControlSettings:
    """
    Create ControlSettings from a configuration dictionary.

    Missing sections fall back to the defaults.

    Args:
        config: Configuration dictionary

    Returns:
        ControlSettings object
    """
    defaults = ControlSettings()

    disruption_config = config.get('disruption', {})
    alert_config = config.get('alerts', {})
    reload_config = config.get('reload', {})
    metrics_config = config.get('metrics', {})
    llm_config = config.get('llm', {})

    return ControlSettings(
        settling_delay_seconds=float(disruption_config.get(
            'settling_delay_seconds', defaults.settling_delay_seconds)),
        default_estimated_delay=float(disruption_config.get(
            'default_estimated_delay', defaults.default_estimated_delay)),
        idle_machine_threshold=int(alert_config.get(
            'idle_machine_threshold', defaults.idle_machine_threshold)),
        job_list_limit=int(reload_config.get('job_list_limit', defaults.job_list_limit)),
        job_sort_key=reload_config.get('job_sort_key', defaults.job_sort_key),
        trend_window=int(metrics_config.get('trend_window', defaults.trend_window)),
        llm=LLMSettings(
            model=llm_config.get('model', defaults.llm.model),
            temperature=float(llm_config.get('temperature', defaults.llm.temperature)),
            max_tokens=int(llm_config.get('max_tokens', defaults.llm.max_tokens)),
        ),
    )


def load_seed_records(config: Dict[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Extract seed records for the reference entity store.

    Args:
        config: Configuration dictionary

    Returns:
        {"machine": [...], "worker": [...], "job": [...]}
    """
    seed = config.get('seed', {})
    return {
        'machine': list(seed.get('machines', [])),
        'worker': list(seed.get('workers', [])),
        'job': list(seed.get('jobs', [])),
    }


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load complete configuration from file.

    If no path provided, loads default_policy.yaml from the config directory
    (or plain defaults when that file is not shipped alongside the code).

    Environment variables (GROQ_API_KEY, GROQ_MODEL_AGENTS, ...) are read
    from a local .env file if present.

    Args:
        config_path: Optional path to config file

    Returns:
        Dictionary containing settings and seed records
    """
    load_dotenv()

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
        if not config_path.exists():
            return {
                'settings': ControlSettings(),
                'seed': load_seed_records({}),
                'raw_config': {}
            }

    # Load config file
    if str(config_path).endswith('.json'):
        config_data = load_json(str(config_path))
    else:
        config_data = load_yaml(str(config_path))

    return {
        'settings': load_settings_from_config(config_data),
        'seed': load_seed_records(config_data),
        'raw_config': config_data
    }


def save_config(settings: ControlSettings, output_path: str,
                seed: Optional[Dict[str, List[Dict[str, Any]]]] = None):
    """
    Save configuration to YAML file.

    Args:
        settings: Settings to save
        output_path: Path to output file
        seed: Optional seed records to include
    """
    config = settings.to_dict()
    if seed:
        config['seed'] = {
            'machines': seed.get('machine', []),
            'workers': seed.get('worker', []),
            'jobs': seed.get('job', []),
        }

    with open(output_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False)
