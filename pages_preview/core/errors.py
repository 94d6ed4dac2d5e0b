"""Exception types raised by the preview deploy tool"""

from typing import Dict


class DeployToolError(Exception):
    """Base class for all tool errors"""


class ManifestError(DeployToolError):
    """package.json is missing or cannot be parsed"""


class CommandError(DeployToolError):
    """An external command failed, timed out or could not be found"""


class PatchError(DeployToolError):
    """A config file could not be read or written while patching"""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to patch {path}: {reason}")


class PatchStateError(DeployToolError):
    """configure() was called while a previous patch cycle is outstanding"""


class RestoreError(DeployToolError):
    """One or more patched files could not be restored"""

    def __init__(self, failures: Dict[str, str]):
        self.failures = dict(failures)
        details = "; ".join(f"{path}: {reason}" for path, reason in self.failures.items())
        super().__init__(f"Failed to restore {len(self.failures)} file(s): {details}")


class DeployError(DeployToolError):
    """Pushing the preview branch or configuring hosting failed"""
