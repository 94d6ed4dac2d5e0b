"""Configuration constants for the preview deploy tool"""

import os

# Global configuration
CONFIG_FILE = os.path.join(os.path.expanduser("~"), ".pages-preview.json")
DEFAULT_PREVIEWS_REPO = "gh-pages-previews"
TEMP_DIR_PREFIX = "pages-preview-"

# Git identity used for preview commits
GIT_USER_NAME = "Pages Preview Bot"
GIT_USER_EMAIL = "deploy@github.local"

# Build
PACKAGE_JSON = "package.json"
BUILD_COMMAND = "npm run build"
BUILD_TIMEOUT = 600  # 10 minutes

# Next.js
NEXT_CONFIG_FILES = ["next.config.js", "next.config.ts", "next.config.mjs"]
NEXT_DEFAULT_CONFIG_FILE = "next.config.js"
NEXT_EXPORT_DIR = "out"
NEXT_SERVER_DIR = ".next"

# Vite
VITE_CONFIG_FILES = [
    "vite.config.js",
    "vite.config.ts",
    "vite.config.mjs",
    "vitest.config.js",
    "vitest.config.ts",
]
VITE_OUTPUT_DIR = "dist"

# Create React App
REACT_SCRIPTS_PACKAGE = "react-scripts"
REACT_OUTPUT_DIR = "build"
REACT_ENV_FILES = [".env", ".env.local", ".env.production", ".env.production.local"]
REACT_OVERRIDE_ENV_FILE = ".env.local"

# Generic projects: candidate output directories, in priority order
GENERIC_OUTPUT_DIRS = ["dist", "build", "public", "out", "_site", "docs"]
GENERIC_OUTPUT_DIR = "dist"

# Cleanup
CLEANUP_AGE_MONTHS = 4
PROTECTED_BRANCHES = ["main", "master"]

# Environment-specific runtime config replaced in the build output
ENV_CONFIG_DIR = "env"
ENV_CONFIG_FILE = "config.js"
