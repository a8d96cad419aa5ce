"""
apps.console.services.tabs
~~~~~~~~~~~~~~~~~~~~~~~~~~
Projection of an App and its configuration tree onto an ordered list of
editor tabs.

The projection is a pure function of ``(app, tree)``: it knows nothing about
persistence or dirty state.  Tabs come from the well-known keys found under
the tab root of the tree (``referral_json.en`` by default) plus two
pseudo-tabs that are always present:

* ``image``: the reserved ``image`` subtree, with an empty default shape
  when the tree has none yet.
* ``app-details``: fields of the App entity itself, not of the tree.

Public API
----------
project_tabs(app, tree, *, root_path) -> list[Tab]
tab_keys(app, tree, *, root_path)     -> list[str]
find_tab(app, tree, tab_key, *, root_path) -> Tab
get_tab_title(tab_key)                -> str
render_tab(tab, *, locked)            -> FormNode
app_details(app)                      -> dict
"""
from __future__ import annotations

import copy
import enum
from dataclasses import dataclass
from typing import Any

from common.exceptions import NotFoundError
from .field_types import humanize_key
from .tree_editor import FormNode, join_path, read_path, render

DEFAULT_TAB_ROOT = "referral_json.en"

APP_DETAILS_TAB = "app-details"
IMAGE_TAB = "image"

#: Canonical left-to-right order.  Keys not listed here follow, in tree order.
TAB_ORDER: tuple[str, ...] = (
    "page1_referralPromote",
    "page2_referralStatus",
    "page3_referralDownload",
    "page4_referralRedeem",
    "notifications",
    IMAGE_TAB,
    APP_DETAILS_TAB,
)

PSEUDO_TABS: tuple[str, ...] = (APP_DETAILS_TAB, IMAGE_TAB)

#: Literal tree keys shadowed by a pseudo-tab.
EXCLUDED_KEYS: frozenset[str] = frozenset({APP_DETAILS_TAB, IMAGE_TAB, "appDetails", "images"})

TAB_TITLES: dict[str, str] = {
    "page1_referralPromote": "Referral Promote",
    "page2_referralStatus": "Referral Status",
    "page3_referralDownload": "Download Page",
    "page4_referralRedeem": "Redeem Page",
    "notifications": "Notifications",
    IMAGE_TAB: "Image",
    APP_DETAILS_TAB: "App Details",
    "images": "Images",
    "appDetails": "App Details",
}

IMAGE_DEFAULT: dict[str, str] = {"imageUrl": "", "alt": ""}

#: App-details field -> (wire location in the App payload).  ``None`` means a
#: top-level App attribute, otherwise the key inside ``meta``.
APP_DETAIL_FIELDS: dict[str, tuple[str, str | None]] = {
    "packageName": ("packageName", None),
    "appName": ("appName", None),
    "appDescription": ("description", "meta"),
    "playUrl": ("playUrl", "meta"),
    "appStoreUrl": ("appStoreUrl", "meta"),
}

#: App-details fields shown but never editable from the console.
READ_ONLY_APP_FIELDS: frozenset[str] = frozenset({"packageName", "appName", "appDescription"})


class TabSource(str, enum.Enum):
    CONFIG = "config"
    IMAGE = "image"
    APP = "app"


@dataclass(frozen=True)
class Tab:
    """
    One editor tab.

    ``path`` is the full edit path of the tab's subtree inside the
    configuration tree, or ``None`` for ``app-details``.  ``data`` is a copy;
    mutating it does not touch the tree.
    """

    key: str
    title: str
    source: TabSource
    path: str | None
    data: Any
    regenerable: bool

    def to_dict(self, *, include_data: bool = False) -> dict:
        payload = {
            "key": self.key,
            "title": self.title,
            "source": self.source.value,
            "path": self.path,
            "regenerable": self.regenerable,
        }
        if include_data:
            payload["data"] = self.data
        return payload


def get_tab_title(tab_key: str) -> str:
    return TAB_TITLES.get(tab_key) or humanize_key(tab_key)


def app_details(app: dict | None) -> dict:
    """Project an App payload onto the flat ``app-details`` shape."""
    app = app or {}
    details = {}
    for field_name, (source_key, container) in APP_DETAIL_FIELDS.items():
        holder = (app.get(container) or {}) if container else app
        details[field_name] = holder.get(source_key) or ""
    return details


def project_tabs(
    app: dict | None,
    tree: dict | None,
    *,
    root_path: str = DEFAULT_TAB_ROOT,
) -> list[Tab]:
    """
    Return the ordered tab list for *app* and its configuration *tree*.

    Known keys and pseudo-tabs come first in :data:`TAB_ORDER` order, then
    any other key under the tab root in insertion order.  Keys in
    :data:`EXCLUDED_KEYS` never produce a tab of their own.
    """
    section = read_path(tree or {}, root_path)
    if not isinstance(section, dict):
        section = {}

    tabs: list[Tab] = []
    for key in TAB_ORDER:
        if key == APP_DETAILS_TAB:
            tabs.append(_app_details_tab(app))
        elif key == IMAGE_TAB:
            tabs.append(_image_tab(section, root_path))
        elif key in section:
            tabs.append(_config_tab(key, section[key], root_path))

    for key, value in section.items():
        if key in TAB_ORDER or key in EXCLUDED_KEYS:
            continue
        tabs.append(_config_tab(key, value, root_path))
    return tabs


def tab_keys(app: dict | None, tree: dict | None, *, root_path: str = DEFAULT_TAB_ROOT) -> list[str]:
    return [tab.key for tab in project_tabs(app, tree, root_path=root_path)]


def find_tab(
    app: dict | None,
    tree: dict | None,
    tab_key: str,
    *,
    root_path: str = DEFAULT_TAB_ROOT,
) -> Tab:
    """
    Raises:
        common.exceptions.NotFoundError: No tab with that key is projected.
    """
    for tab in project_tabs(app, tree, root_path=root_path):
        if tab.key == tab_key:
            return tab
    raise NotFoundError(f"Tab '{tab_key}' not found.")


def _config_tab(key: str, value: Any, root_path: str) -> Tab:
    return Tab(
        key=key,
        title=get_tab_title(key),
        source=TabSource.CONFIG,
        path=join_path(root_path, key),
        data=copy.deepcopy(value),
        regenerable=True,
    )


def _image_tab(section: dict, root_path: str) -> Tab:
    image = section.get(IMAGE_TAB)
    data = copy.deepcopy(image) if isinstance(image, dict) else dict(IMAGE_DEFAULT)
    return Tab(
        key=IMAGE_TAB,
        title=get_tab_title(IMAGE_TAB),
        source=TabSource.IMAGE,
        path=join_path(root_path, IMAGE_TAB),
        data=data,
        regenerable=False,
    )


def _app_details_tab(app: dict | None) -> Tab:
    return Tab(
        key=APP_DETAILS_TAB,
        title=get_tab_title(APP_DETAILS_TAB),
        source=TabSource.APP,
        path=None,
        data=app_details(app),
        regenerable=False,
    )


def render_tab(tab: Tab, *, locked: bool = False) -> FormNode:
    """
    Render the form of *tab*.  Node paths are relative to the tab's subtree.
    Read-only App fields are disabled even when the editor is unlocked.
    """
    node = render(tab.data, key=tab.key, locked=locked)
    if tab.source is TabSource.APP:
        for child in node.children:
            if child.key in READ_ONLY_APP_FIELDS:
                child.disabled = True
    return node
