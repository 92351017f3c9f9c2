"""
Configuration Loader

Loads pipeline configuration from YAML files with environment variable
substitution, layered over built-in defaults.
"""

import yaml
import os
import copy
from pathlib import Path
from typing import Dict, Any, Mapping, Optional
import re
import logging


DEFAULT_CONFIG: Dict[str, Any] = {
    'paths': {
        'raw_dir': 'raw_evtx_logs',
        'work_dir': '.',
        'decoded_dir': 'converted_json',
        'filtered_dir': 'filtered_events',
        'merged_dir': 'merged_events',
        'formatted_dir': 'formatted_events',
        'final_dir': 'final_events'
    },
    'decoder': {
        'executable': None,
        'max_workers': 4
    },
    'selection': {
        'event_ids': None,
        'max_workers': 10
    },
    'merge': {
        'max_workers': 10
    },
    'normalization': {
        'max_workers': 10
    },
    'enrichment': {
        'max_workers': 10
    },
    'logging': {
        'level': 'INFO',
        'format': 'text',
        'output': 'stdout',
        'file_path': 'logs/evtx_aggregator.log'
    }
}


def deepMerge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    # override wins
    merged = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, Mapping):
            merged[key] = deepMerge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigLoader:
    """
    Loads configuration from YAML files with environment variable support.
    
    Supports:
    - Environment variable substitution ${VAR_NAME}
    - Layering over DEFAULT_CONFIG
    - Validation of pool sizes
    """
    
    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize config loader.
        
        Args:
            config_path: Path to configuration file, or None for defaults only
        """
        self.config_path = Path(config_path) if config_path else None
        self.logger = logging.getLogger(self.__class__.__name__)
        self.config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
    
    def load(self) -> Dict[str, Any]:
        """
        Load configuration from file.
        
        Returns:
            Configuration dictionary
        """
        if self.config_path is None:
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            return self.config
        
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")
        
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                content = f.read()
            
            content = self._substituteEnvVars(content)
            
            loaded = yaml.safe_load(content) or {}
            if not isinstance(loaded, dict):
                raise ValueError(f"YAML root must be a mapping: {self.config_path}")
            
            self.config = deepMerge(copy.deepcopy(DEFAULT_CONFIG), loaded)
            
            if not self.validate():
                raise ValueError(f"Invalid configuration in {self.config_path}")
            
            self.logger.info(f"Configuration loaded from {self.config_path}")
            return self.config
        
        except Exception as e:
            self.logger.error(f"Error loading configuration: {e}")
            raise
    
    def _substituteEnvVars(self, content: str) -> str:
        """
        Substitute environment variables in format ${VAR_NAME}.
        
        Args:
            content: File content with variables
            
        Returns:
            Content with substituted values
        """
        pattern = r'\$\{([^}]+)\}'
        
        def replacer(match):
            var_name = match.group(1)
            value = os.environ.get(var_name)
            if value is None:
                self.logger.warning(f"Environment variable not found: {var_name}")
                return match.group(0)
            return value
        
        return re.sub(pattern, replacer, content)
    
    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.
        
        Args:
            key: Configuration key (supports dot notation)
            default: Default value if key not found
            
        Returns:
            Configuration value
        """
        keys = key.split('.')
        value = self.config
        
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default
        
        return value
    
    def validate(self) -> bool:
        """
        Validate configuration structure.
        
        Returns:
            True if valid
        """
        for section in ['decoder', 'selection', 'merge', 'normalization', 'enrichment']:
            workers = self.config.get(section, {}).get('max_workers')
            if not isinstance(workers, int) or isinstance(workers, bool) or workers < 1:
                self.logger.error(f"{section}.max_workers must be a positive integer, got {workers!r}")
                return False
        
        eventIds = self.config.get('selection', {}).get('event_ids')
        if eventIds is not None and not isinstance(eventIds, list):
            self.logger.error("selection.event_ids must be a list of integers")
            return False
        
        return True
