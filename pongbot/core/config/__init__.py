"""
Configuration subsystem for pongbot.

Static configuration from environment variables (`.env` supported), with
strict parsing for the values whose misconfiguration must stop startup.

Usage
-----
```python
from pongbot.core.config import Config

Config.validate()
token = Config.DISCORD_TOKEN
primary = Config.PREFIXES.primary
```
"""

from pongbot.core.config.config import (
    Config,
    PrefixOptions,
    normalize_database_url,
    parse_dotenv_flag,
    parse_prefixes,
)

__all__ = [
    "Config",
    "PrefixOptions",
    "parse_prefixes",
    "parse_dotenv_flag",
    "normalize_database_url",
]
