from importlib.metadata import PackageNotFoundError, version

from diffmd.document import MarkdownDocument, ParseError, annotate_document, annotate_file
from diffmd.editdist import align
from diffmd.markup import annotate_blocks, normalize_script, render_markup
from diffmd.models import Edit, EditCommand, RenderOptions
from diffmd.tokenize import tokenize

try:
    __version__ = version("diffmd")
except PackageNotFoundError:
    # Running from a source checkout that was never installed.
    __version__ = "0.0.0-dev"

__all__ = [
    "Edit",
    "EditCommand",
    "MarkdownDocument",
    "ParseError",
    "RenderOptions",
    "align",
    "annotate_blocks",
    "annotate_document",
    "annotate_file",
    "normalize_script",
    "render_markup",
    "tokenize",
    "__version__",
]
