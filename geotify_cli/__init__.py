"""
Geotify CLI - Command-line interface for the geotify service.

Sends MQTT commands to the control plane without hand-writing JSON.

Usage:
    geotify-cli add --lat 37.33 --lon -122.03 --radius 150 --note "Office"
    geotify-cli remove <identifier>
    geotify-cli list
    geotify-cli rearm
    geotify-cli status
"""

__version__ = "1.0.0"
