"""
ini-inplace: read and write single INI values while preserving the file.

This package can be used both as a CLI tool and as a library.

CLI Usage:
    ini-inplace get server port app.ini
    ini-inplace set server port 8080 app.ini

Library Usage:
    from ini_inplace import IniParser

    parser = IniParser()
    with open("app.ini", "rb") as source:
        port = parser.read_typed(source, "server", "port", int)

    with open("app.ini", "rb") as source, open("app.ini.new", "wb") as destination:
        parser.write(source, destination, "server", "port", "8080")
"""

from .config import ConfigError, ParserConfig
from .exceptions import DuplicateKeyError, IniError, TooLargeError, ValueParseError
from .models import DuplicatePolicy, ScanResult
from .parser import IniParser
from .values import char, parse_value

__version__ = "0.1.0"

__all__ = [
    # Core functionality
    "IniParser",
    "parse_value",
    # Data models
    "ParserConfig",
    "DuplicatePolicy",
    "ScanResult",
    # Utilities
    "char",
    # Exceptions
    "ConfigError",
    "DuplicateKeyError",
    "IniError",
    "TooLargeError",
    "ValueParseError",
    # Version
    "__version__",
]
