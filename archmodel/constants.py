# archmodel/constants.py
from __future__ import annotations

# Implicit tag carried by every element.
UNIVERSAL_TAG = "Element"

# Metadata entry holding an element's explicit tags.
METADATA_TAGS_KEY = "tags"

# Kinds pulled in by a view's `include *` below its scope element.
WILDCARD_KINDS: tuple[str, ...] = (
    "container",
    "datastore",
    "queue",
    "component",
)

# Split-model filenames (loaded in deterministic order).
MODEL_PART_FILES: tuple[str, ...] = (
    "00_model.yaml",
    "10_elements.yaml",
    "20_relations.yaml",
    "30_views.yaml",
    "40_styles.yaml",
)

# Extra view documents are discovered under views/*.yaml
VIEWS_DIR = "views"

# Marker strings accepted for view selectors in model documents.
WILDCARD_MARKER = "*"
RECURSIVE_MARKER = "**"

# Name of the root landscape view produced by default_views().
INDEX_VIEW_NAME = "index"

AUTOLAYOUT_DIRECTIONS: tuple[str, ...] = ("LR", "TB")
AUTOLAYOUT_DEFAULT = "TB"

MODEL_DIR_DEFAULT = "architecture"
