"""
apps.generation.services
~~~~~~~~~~~~~~~~~~~~~~~~
Content regeneration and translation for referral configuration tabs.

Both operations are simulated: regeneration marks the headline fields of the
subtree it receives, translation acknowledges the request.  The contract
(inputs, outputs, error cases) is what the console depends on; a real
generator can replace the bodies without touching callers.

Inputs are never mutated.
"""
from __future__ import annotations

import copy

import structlog

from apps.catalog.services import get_app
from common.exceptions import ValidationError

logger = structlog.get_logger(__name__)

#: Language codes the translation service accepts, with display names.
LANGUAGES: dict[str, str] = {
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
    "zh": "Chinese",
    "ja": "Japanese",
    "ko": "Korean",
    "ml": "Malayalam",
    "ta": "Tamil",
    "te": "Telugu",
    "kn": "Kannada",
    "hi": "Hindi",
}

REGENERATED_SUFFIX = " (Regenerated)"

#: Paths whose string value gets the regeneration marker.
_HEADLINE_PATHS: tuple[tuple[str, ...], ...] = (
    ("title",),
    ("hero", "title"),
    ("header", "title"),
)


def regenerate_tab(
    *,
    app_id: str,
    tab_key: str,
    current_subtree,
    app_name: str | None = None,
    app_description: str | None = None,
) -> dict:
    """
    Produce fresh content for one tab.

    Args:
        app_id: Owning app; must exist.
        tab_key: Tab being regenerated, echoed back in the result.
        current_subtree: The tab's current JSON content.
        app_name / app_description: Optional prompt context.  Default to the
            values stored on the app.

    Returns:
        ``{"tabKey": tab_key, "newSubtree": <regenerated copy>}``.
    """
    app = get_app(app_id)
    app_name = app_name or app.app_name
    app_description = app_description or app.description

    regenerated = copy.deepcopy(current_subtree)
    if isinstance(regenerated, dict):
        for path in _HEADLINE_PATHS:
            _append_suffix(regenerated, path)

    logger.info(
        "tab_regenerated",
        app_id=app_id,
        tab_key=tab_key,
        app_name=app_name,
        has_description=bool(app_description),
    )
    return {"tabKey": tab_key, "newSubtree": regenerated}


def translate(*, app_id: str, language_code: str, full_config) -> dict:
    """
    Request a translation of the whole configuration into *language_code*.

    Returns:
        ``{"languageCode": language_code, "status": "completed"}``.

    Raises:
        common.exceptions.ValidationError: Unsupported language code.
        common.exceptions.NotFoundError: Unknown app.
    """
    if language_code not in LANGUAGES:
        raise ValidationError(f"Unsupported language code '{language_code}'.")
    get_app(app_id)

    logger.info(
        "config_translated",
        app_id=app_id,
        language_code=language_code,
        top_level_keys=len(full_config) if isinstance(full_config, dict) else 0,
    )
    return {"languageCode": language_code, "status": "completed"}


def _append_suffix(tree: dict, path: tuple[str, ...]) -> None:
    node = tree
    for key in path[:-1]:
        node = node.get(key)
        if not isinstance(node, dict):
            return
    leaf = path[-1]
    if isinstance(node.get(leaf), str) and node[leaf]:
        node[leaf] += REGENERATED_SUFFIX
