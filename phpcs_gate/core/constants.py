"""
Constants
Centralised storage for analyzer exit codes, file filters and git rules.
"""
# Extensions handed to the analyzer
PHP_EXTENSIONS = (".php",)

# phpcs: 0 = clean, 1/2 = violations reported (JSON on stdout), 3 = processing error
PHPCS_EXIT_CLEAN = 0

# phpcbf: 0 = nothing to fix, 1 = fixes applied, 2 = fixing failed
PHPCBF_EXIT_NOTHING = 0
PHPCBF_EXIT_FIXED = 1

# git diff --name-status letter for deletions
GIT_STATUS_DELETED = "D"

# Directories the compatibility check never descends into
COMPAT_IGNORE_PATTERNS = ["vendor/*", "node_modules/*", "build/*", "dist/*", ".git/*"]

COMPOSER_PACKAGES = [
    "squizlabs/php_codesniffer",
    "wp-coding-standards/wpcs",
    "phpcompatibility/phpcompatibility-wp",
    "dealerdirect/phpcodesniffer-composer-installer",
]
COMPOSER_INSTALLER_PLUGIN = "dealerdirect/phpcodesniffer-composer-installer"
