"""Playbook engine — the fixed, linear action sequence run against the target.

Modules:

* ``models`` — ``Playbook``, ``PlaybookStep``, ``PlaybookStepType`` data models.
* ``matcher`` — ``PlaybookMatcher`` for target URL → playbook matching.
* ``executor`` — ``PlaybookExecutor`` for running playbook steps against the page.
* ``loader`` — Load playbooks from JSON files (built-in or configured).
"""

from nbpilot.playbook.executor import PlaybookExecutor, resolve_template
from nbpilot.playbook.loader import load_configured_playbooks, load_playbook_from_file, load_playbooks_from_dir
from nbpilot.playbook.matcher import PlaybookMatcher
from nbpilot.playbook.models import Playbook, PlaybookResult, PlaybookStep, PlaybookStepType

__all__ = [
    "Playbook",
    "PlaybookExecutor",
    "PlaybookMatcher",
    "PlaybookResult",
    "PlaybookStep",
    "PlaybookStepType",
    "load_configured_playbooks",
    "load_playbook_from_file",
    "load_playbooks_from_dir",
    "resolve_template",
]
