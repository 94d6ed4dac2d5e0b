import click
from colorama import Fore, Style, init
import os
import re
import secrets
import shutil
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Dict
import tempfile
import json

from .errors import CommandError, DeployToolError
from ..config.constants import TEMP_DIR_PREFIX

# Initialize colorama
init()

_debug_mode = False

def set_debug_mode(enabled: bool) -> None:
    """Enable or disable debug output"""
    global _debug_mode
    _debug_mode = enabled

def print_success(message: str) -> None:
    """Print success message"""
    click.echo(f"{Fore.GREEN}[SUCCESS]{Style.RESET_ALL} {message}")

def print_error(message: str) -> None:
    """Print error message"""
    click.echo(f"{Fore.RED}[ERROR]{Style.RESET_ALL} {message}")

def print_info(message: str) -> None:
    """Print info message"""
    click.echo(f"{Fore.BLUE}[INFO]{Style.RESET_ALL} {message}")

def print_warning(message: str) -> None:
    """Print warning message"""
    click.echo(f"{Fore.YELLOW}[WARNING]{Style.RESET_ALL} {message}")

def print_debug(message: str) -> None:
    """Print debug message, only in debug mode"""
    if _debug_mode:
        click.echo(f"{Style.DIM}[DEBUG] {message}{Style.RESET_ALL}")

def print_step(step: str, message: str) -> None:
    """Print step message"""
    click.echo(f"{Fore.CYAN}[{step}]{Style.RESET_ALL} {message}")

def print_header(title: str) -> None:
    """Print section header"""
    click.echo(f"\n{Fore.MAGENTA}{Style.BRIGHT}{title}{Style.RESET_ALL}")
    click.echo(f"{Fore.MAGENTA}{'=' * len(title)}{Style.RESET_ALL}")

def check_command_exists(command: str) -> bool:
    """Check if a command exists in system PATH with Windows compatibility"""
    # On Windows, try both the command and .cmd version
    if os.name == 'nt':
        variants = [command, f"{command}.cmd", f"{command}.exe"]
    else:
        variants = [command]

    for variant in variants:
        result = shutil.which(variant)
        if result:
            print_debug(f"Found {command} at: {result}")
            return True

    print_debug(f"{command} not found in PATH")
    return False

def generate_branch_name(base_name: str, now: Optional[datetime] = None) -> str:
    """Build a preview branch name: {name}-{YYYYMMDD-HHMM}-{6 hex chars}"""
    now = now or datetime.now(timezone.utc)

    # Drop npm scope, then anything git or URLs would choke on
    clean_name = re.sub(r'^@[^/]+/', '', base_name or '')
    clean_name = re.sub(r'[^a-zA-Z0-9-]', '-', clean_name) or 'project'

    timestamp = now.strftime('%Y%m%d-%H%M')
    return f"{clean_name}-{timestamp}-{secrets.token_hex(3)}"

def run_command(
    command: List[str],
    cwd: Optional[str] = None,
    capture_output: bool = False,
    timeout: int = 300,
    env: Optional[Dict[str, str]] = None
) -> subprocess.CompletedProcess:
    """Run shell command with Windows compatibility.

    ``env`` is passed to the child process only; the parent environment is
    never modified.
    """
    command = list(command)
    try:
        print_debug(f"Running command: {' '.join(command)}")
        if cwd:
            print_debug(f"Working directory: {cwd}")

        # Windows-specific command resolution
        if os.name == 'nt':
            if command[0] == 'npm':
                command[0] = 'npm.cmd'
            elif command[0] == 'npx':
                command[0] = 'npx.cmd'

        result = subprocess.run(
            command,
            cwd=cwd,
            capture_output=capture_output,
            text=True,
            check=True,
            timeout=timeout,
            env=env,
            shell=True if os.name == 'nt' else False  # Use shell on Windows
        )
        return result
    except subprocess.TimeoutExpired:
        raise CommandError(f"Command timed out after {timeout} seconds: {' '.join(command)}")
    except subprocess.CalledProcessError as e:
        error_msg = f"Command failed: {' '.join(command)}"
        if capture_output and e.stderr:
            error_msg += f"\nError output: {e.stderr.strip()}"
        if e.stdout:
            error_msg += f"\nStdout: {e.stdout.strip()}"
        raise CommandError(error_msg)
    except FileNotFoundError:
        raise CommandError(f"Command not found: {command[0]}. Please ensure it's installed and in PATH.")

def command_env(**overrides: str) -> Dict[str, str]:
    """Copy of the current environment with overrides, for one subprocess"""
    env = dict(os.environ)
    env.update(overrides)
    return env

def create_temp_directory(prefix: str = TEMP_DIR_PREFIX) -> Path:
    """Create temporary directory"""
    return Path(tempfile.mkdtemp(prefix=prefix))

def clean_directory(directory: Path) -> None:
    """Remove directory and all contents"""
    if directory.exists() and directory.is_dir():
        shutil.rmtree(directory)

def format_file_size(size_bytes: float) -> str:
    """Format file size in human readable format"""
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f}{unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f}TB"

def get_directory_size(directory: Path) -> int:
    """Get total size of directory in bytes"""
    total_size = 0
    for file_path in directory.rglob('*'):
        if file_path.is_file():
            total_size += file_path.stat().st_size
    return total_size

def ensure_directory(directory: Path) -> None:
    """Ensure directory exists, create if it doesn't"""
    directory.mkdir(parents=True, exist_ok=True)

def load_json_file(file_path: Path) -> Dict:
    """Load JSON file with error handling"""
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError:
        raise DeployToolError(f"File not found: {file_path}")
    except json.JSONDecodeError as e:
        raise DeployToolError(f"Invalid JSON in {file_path}: {str(e)}")
    except (OSError, UnicodeDecodeError) as e:
        raise DeployToolError(f"Could not read {file_path}: {str(e)}")

def copy_directory_contents(src: Path, dst: Path) -> None:
    """Copy all contents from source to destination directory"""
    ensure_directory(dst)

    for item in src.rglob('*'):
        if item.is_file():
            relative_path = item.relative_to(src)
            destination_file = dst / relative_path
            ensure_directory(destination_file.parent)
            shutil.copy2(item, destination_file)
