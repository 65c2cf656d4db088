"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    PHPCS_STANDARD       — Ruleset used by check/fix (default: WordPress)
    PHPCS_BIN            — phpcs executable name or absolute path (default: phpcs)
    PHPCBF_BIN           — phpcbf executable name or absolute path (default: phpcbf)
    COMPOSER_BIN         — composer executable (default: composer)
    COMPOSER_BIN_DIR     — Extra directory searched for phpcs/phpcbf
                           (default: ~/.composer/vendor/bin)
    AUTO_INSTALL         — Install the toolchain via composer at startup (default: false)
    FIX_WORKERS          — Max concurrent per-file fix operations (default: 1)
    PHP_COMPAT_STANDARD  — Ruleset for PHP compatibility checks (default: PHPCompatibilityWP)
    PHP_COMPAT_VERSION   — Default testVersion for compatibility checks (default: 7.4-)
    LOG_LEVEL            — Root log level (default: INFO)
    LOG_DIR              — Directory for dated log files (default: logs)

Timeout Philosophy:
    Every external call is blocking and bounded. Per-file check/fix calls
    use CHECK_TIMEOUT; a toolchain install is a bulk download and gets the
    much larger INSTALL_TIMEOUT. A timeout is an invocation failure, never
    a hang.

These values are read once. The toolchain resolver turns them into an
immutable ToolchainConfig that is passed down explicitly; nothing here is
written back into os.environ.
"""
import os
from dotenv import load_dotenv

load_dotenv()

PHPCS_STANDARD = os.getenv("PHPCS_STANDARD", "WordPress")
PHPCS_BIN = os.getenv("PHPCS_BIN", "phpcs")
PHPCBF_BIN = os.getenv("PHPCBF_BIN", "phpcbf")
COMPOSER_BIN = os.getenv("COMPOSER_BIN", "composer")
COMPOSER_BIN_DIR = os.getenv(
    "COMPOSER_BIN_DIR",
    os.path.join(os.path.expanduser("~"), ".composer", "vendor", "bin"),
)
AUTO_INSTALL = os.getenv("AUTO_INSTALL", "false").lower() == "true"

# Timeouts in seconds
CHECK_TIMEOUT = int(os.getenv("CHECK_TIMEOUT", 60))
INSTALL_TIMEOUT = int(os.getenv("INSTALL_TIMEOUT", 180))
GIT_TIMEOUT = int(os.getenv("GIT_TIMEOUT", 30))

# Fix pass concurrency (1 = strictly sequential)
FIX_WORKERS = max(1, int(os.getenv("FIX_WORKERS", 1)))

# PHP compatibility
PHP_COMPAT_STANDARD = os.getenv("PHP_COMPAT_STANDARD", "PHPCompatibilityWP")
PHP_COMPAT_VERSION = os.getenv("PHP_COMPAT_VERSION", "7.4-")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = os.getenv("LOG_DIR", "logs")
