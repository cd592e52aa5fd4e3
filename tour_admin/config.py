import os
import configparser
from pathlib import Path

class Config:
    """Configuration manager for the Tour Admin console."""

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the configuration if not already initialized."""
        if self._initialized:
            return

        self._config_dir = Path(os.getenv('TOUR_ADMIN_CONFIG_DIR', 'config'))
        self._config_path = self._config_dir / 'settings.ini'
        self._config = configparser.ConfigParser(interpolation=None)

        # Create config directory if it doesn't exist
        if not self._config_dir.exists():
            self._config_dir.mkdir(parents=True)

        # Load config or create default
        if self._config_path.exists():
            self._config.read(self._config_path)
        else:
            self._create_default_config()

        self._initialized = True

    def _create_default_config(self):
        """Create default configuration file."""
        self._config['BACKEND'] = {
            'type': 'sql',
            'sql_url': 'sqlite:///tour_admin.db',
            'echo': 'False'
        }

        self._config['SUPABASE'] = {
            'url': '',
            'key': '',
            'bucket': 'media'
        }

        self._config['MEDIA'] = {
            'local_root': 'media',
            'public_base_url': '',
            'max_upload_mb': '3'
        }

        self._config['ADMIN'] = {
            'emails': ''
        }

        self._config['LISTING'] = {
            'page_size': '10',
            'timezone': 'UTC'
        }

        self._config['LOGGING'] = {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            'directory': 'logs',
            'max_size_mb': '10',
            'backup_count': '5',
            'console_output': 'True'
        }

        self._save_config()

    def _save_config(self):
        """Save configuration to file."""
        with open(self._config_path, 'w') as configfile:
            self._config.write(configfile)

    def get(self, section, key, default=None):
        """Get configuration value."""
        try:
            return self._config.get(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

    def get_int(self, section, key, default=None):
        """Get configuration value as integer."""
        try:
            return self._config.getint(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_float(self, section, key, default=None):
        """Get configuration value as float."""
        try:
            return self._config.getfloat(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_boolean(self, section, key, default=None):
        """Get configuration value as boolean."""
        try:
            return self._config.getboolean(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def set(self, section, key, value):
        """Set configuration value."""
        if not self._config.has_section(section):
            self._config.add_section(section)

        self._config.set(section, key, str(value))
        self._save_config()

    @property
    def backend_config(self):
        """Get document/blob backend configuration."""
        backend_type = self.get('BACKEND', 'type', 'sql').lower()
        # Remove any comments from the value
        backend_type = backend_type.split('#')[0].strip()
        return {
            'type': backend_type,
            'sql_url': self.get('BACKEND', 'sql_url', 'sqlite:///tour_admin.db'),
            'echo': self.get_boolean('BACKEND', 'echo', False)
        }

    @property
    def supabase_config(self):
        """Get Supabase connection configuration.

        Environment variables take precedence over the config file.
        """
        return {
            'url': os.getenv('SUPABASE_URL') or self.get('SUPABASE', 'url', ''),
            'key': os.getenv('SUPABASE_KEY') or self.get('SUPABASE', 'key', ''),
            'bucket': os.getenv('SUPABASE_BUCKET') or self.get('SUPABASE', 'bucket', 'media')
        }

    @property
    def media_config(self):
        """Get media storage configuration."""
        return {
            'local_root': self.get('MEDIA', 'local_root', 'media'),
            'public_base_url': self.get('MEDIA', 'public_base_url', ''),
            'max_upload_mb': self.get_float('MEDIA', 'max_upload_mb', 3.0)
        }

    @property
    def admin_emails(self):
        """Get the administrator allow-list."""
        raw = os.getenv('ADMIN_EMAILS') or self.get('ADMIN', 'emails', '')
        return [email.strip() for email in raw.split(',') if email.strip()]

    @property
    def listing_config(self):
        """Get list view configuration."""
        return {
            'page_size': self.get_int('LISTING', 'page_size', 10),
            'timezone': self.get('LISTING', 'timezone', 'UTC')
        }

    @property
    def log_config(self):
        """Get logging configuration."""
        return {
            'level': self.get('LOGGING', 'level', 'INFO'),
            'format': self.get('LOGGING', 'format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
            'directory': self.get('LOGGING', 'directory', 'logs'),
            'max_size_mb': self.get_int('LOGGING', 'max_size_mb', 10),
            'backup_count': self.get_int('LOGGING', 'backup_count', 5),
            'console_output': self.get_boolean('LOGGING', 'console_output', True)
        }

# Global config instance
config = Config()
