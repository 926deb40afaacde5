from __future__ import annotations

ANSIBLE_PLAYBOOK_BINARY_PATH = "/usr/local/bin/ansible-playbook"

SALTBOX_REPO_PATH = "/srv/git/saltbox"
SANDBOX_REPO_PATH = "/opt/sandbox"
SALTBOX_MOD_REPO_PATH = "/opt/saltbox_mod"

SALTBOX_CACHE_FILE = "/srv/git/saltbox/cache.json"
SALTBOX_MOTD_CONFIG_PATH = "/srv/git/saltbox/motd.yml"
SALTBOX_SETTINGS_PATH = "/srv/git/saltbox/sb.yml"

DEFAULT_INSTANCE_TIMEOUT_SECONDS = 1.0

EXIT_CODE_SIGINT = 130
EXIT_CODE_SIGTERM = 143


def saltbox_playbook_path(repo_path: str = SALTBOX_REPO_PATH) -> str:
    return f"{repo_path}/saltbox.yml"


def sandbox_playbook_path(repo_path: str = SANDBOX_REPO_PATH) -> str:
    return f"{repo_path}/sandbox.yml"


def saltbox_mod_playbook_path(repo_path: str = SALTBOX_MOD_REPO_PATH) -> str:
    return f"{repo_path}/saltbox_mod.yml"
