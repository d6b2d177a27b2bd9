"""Shell aliases appended to the user's startup file."""

from __future__ import annotations

import os
import stat
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from .command import run_cmd
from .results import Status, StepResult
from .utils import log

if TYPE_CHECKING:
    from .config import DevboxConfig

START_MARKER = "# >>> devbox aliases >>>"
END_MARKER = "# <<< devbox aliases <<<"

ALIASES = r"""
# ========================================
# Useful Aliases
# ========================================
alias v="nvim"
alias py="python3"
alias docker-compose="docker compose"
alias unproxy="unset HTTP_PROXY HTTPS_PROXY http_proxy https_proxy NO_PROXY no_proxy all_proxy ALL_PROXY"
alias dsa='docker stop $(docker ps -a -q)'
# ls aliases (with color and better defaults)
alias ls='ls --color=auto'
alias ll='ls -l --color=auto'
alias la='ls -A --color=auto' # show all except . and ..
alias l='ls -CF --color=auto' # compact with indicators
# Safety-first file operations
alias rm='rm -I' # prompt before removing >3 files or recursively
alias cp='cp -i' # prompt before overwrite
alias mv='mv -i' # prompt before overwrite
# Quick navigation
alias ..='cd ..'
alias ...='cd ../..'
alias ....='cd ../../..'
alias ~='cd ~'
# Grep with color
alias grep='grep --color=auto'
alias fgrep='fgrep --color=auto'
alias egrep='egrep --color=auto'
# Disk usage
alias df='df -h' # human readable
alias du='du -h' # human readable
alias dus='du -sh * | sort -hr' # like duf but includes hidden
# Misc utilities
alias path='echo -e ${PATH//:/\\n}' # pretty print PATH
alias now='date +"%T"'
alias nowdate='date +"%Y-%m-%d"'
alias ping='ping -c 5' # limit to 5 pings
alias diff='colordiff' # if colordiff is installed
# Git shortcuts
alias gs='git status'
alias ga='git add'
alias gc='git commit'
alias gp='git push'
alias gl='git log --oneline --decorate --graph'
# Reload bashrc
alias reload='source ~/.bashrc'
# Clear screen quickly
alias c='clear'
# Show open ports
alias ports='netstat -tulanp 2>/dev/null || ss -tulanp'
# Quick HTTP server (Python)
alias serve='python3 -m http.server 8000'
# Copy current working directory
alias cwd='pwd | tr -d "\n" | xclip -selection clipboard && echo "PWD copied: $(pwd)"'
# Copy last command to clipboard
alias clast='fc -ln -1 | tr -d "\n" | xclip -selection clipboard && echo "Last command copied."'
""".strip("\n")


def alias_block() -> str:
    """Return the alias block wrapped in its markers."""
    return f"{START_MARKER}\n{ALIASES}\n{END_MARKER}\n"


def has_alias_block(content: str) -> bool:
    """Return True if ``content`` already holds the alias block."""
    return START_MARKER in content


def atomic_write(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` through a temp file and a rename."""
    try:
        mode = stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        mode = 0o644
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def append_aliases(rc_file: Path, *, dry_run: bool = False) -> bool:
    """Append the alias block to ``rc_file`` unless it is already there.

    Returns True if the file was changed.
    """
    try:
        content = rc_file.read_text(encoding="utf-8")
    except FileNotFoundError:
        content = ""
    if has_alias_block(content):
        return False
    if dry_run:
        return True

    if content and not content.endswith("\n"):
        content += "\n"
    atomic_write(rc_file, f"{content}\n{alias_block()}")
    return True


def reload_shell_rc(rc_file: Path, *, dry_run: bool = False) -> bool:
    """Source ``rc_file`` in a bash subshell to check that it still loads.

    Failure is tolerated; returns whether the reload succeeded.
    """
    result = run_cmd(["bash", "-c", 'source "$1"', "bash", str(rc_file)], check=False, dry_run=dry_run)
    return result.ok


def install_aliases(config: DevboxConfig) -> StepResult:
    """Add the alias block to the configured startup file and reload it."""
    rc_file = config.rc_file
    log(f"Adding useful aliases to {rc_file}...", "info")
    if not append_aliases(rc_file, dry_run=config.dry_run):
        log(f"Aliases already present in {rc_file}", "success")
        return StepResult("aliases", Status.SKIPPED, f"already present in {rc_file}")

    log(f"Reloading {rc_file} to check the new aliases...", "info")
    if not reload_shell_rc(rc_file, dry_run=config.dry_run):
        log(f"Could not reload {rc_file}; open a new shell to use the aliases", "warning")
        return StepResult("aliases", Status.DEGRADED, f"added to {rc_file}, reload failed")

    log("Aliases added! Open a new shell or run 'source ~/.bashrc' to use them.", "success")
    log("You can now use 'v' for nvim, 'll', 'gs', and all the other shortcuts.", "default", "💡")
    return StepResult("aliases", Status.OK, f"added to {rc_file}")
