"""Common literal values used across slate_pages.

These constants keep the logical source layout, output directory names, and
aggregate bundle names centralized so the loader, the asset pipeline, the
extractor and tests import the same values without drifting.

Examples
--------
>>> from slate_pages import _constants
>>> _constants.INCLUDE_TEMPLATE.format(name="errors")
'includes/_errors.md'
>>> _constants.OUTPUT_DIRS
('scripts', 'stylesheets', 'fonts', 'images')
"""

__version__ = "1.0.0"

ENTRY_DOCUMENT = "index.html.md"
LAYOUT_TEMPLATE = "layouts/layout.jinja"
INCLUDE_TEMPLATE = "includes/_{name}.md"
FRONT_MATTER_DELIMITER = "---"

SCRIPTS_DIR = "scripts"
STYLESHEETS_DIR = "stylesheets"
FONTS_DIR = "fonts"
IMAGES_DIR = "images"
OUTPUT_DIRS = (SCRIPTS_DIR, STYLESHEETS_DIR, FONTS_DIR, IMAGES_DIR)
OUTPUT_PAGE = "index.html"

SEARCH_BUNDLE = "all.js"
NO_SEARCH_BUNDLE = "all_nosearch.js"
SCRIPT_SUFFIX = ".js"

PARTIAL_PREFIX = "_"
SCSS_SUFFIX = ".scss"
STYLESHEET_TARGET_SUFFIX = ".css.scss"
RTL_PARTIAL = "rtl"

DEFAULT_LOGO = "logo.png"
DEFAULT_HIGHLIGHT_STYLE = "monokai"
DEFAULT_CONFIG_FILE = "slate.yaml"
DEFAULT_QUIET_WINDOW = 2.0
SLATE_VERSION = "v2.1.0"
