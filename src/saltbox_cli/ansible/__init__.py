"""Ansible playbook tag resolution and execution."""

from saltbox_cli.ansible.runner import PlaybookRunner, build_tag_args
from saltbox_cli.ansible.tags import TagResolution, TagResolver, parse_task_tags

__all__ = ["PlaybookRunner", "TagResolution", "TagResolver", "build_tag_args", "parse_task_tags"]
