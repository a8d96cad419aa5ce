"""
apps.console.services package.
"""
from .reconciler import ConfigReconciler, SwitchGate, SyncState  # noqa: F401
from .tabs import project_tabs, get_tab_title  # noqa: F401
from .tree_editor import apply_edit, read_path, render  # noqa: F401
