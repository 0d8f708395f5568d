"""Configuration Service - settings resolution for vault-openvpn."""

from .config_manager import ConfigManager, Settings

__all__ = ['ConfigManager', 'Settings']
