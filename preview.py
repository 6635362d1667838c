import codecs
import enum
import mimetypes
from dataclasses import dataclass
from typing import Callable

from jinja2 import DictLoader, Environment

DEFAULT_MIME_TYPE = "application/octet-stream"
DEFAULT_MAX_PREVIEW_BYTES = 1024 * 1024  # 1 MiB
READ_FAILURE_TEXT = "Could not read file."


class MediaCategory(str, enum.Enum):
    VIDEO = "video"
    AUDIO = "audio"
    IMAGE = "image"
    TEXT = "text"
    OTHER = "other"

    @classmethod
    def from_mime_type(cls, mime_type: str | None) -> "MediaCategory":
        major = (mime_type or "").split("/", 1)[0].lower()
        try:
            return cls(major)
        except ValueError:
            return cls.OTHER


def guess_mime_type(filename: str) -> str:
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or DEFAULT_MIME_TYPE


@dataclass
class TextPreview:
    text: str
    truncated: bool = False


def read_text_preview(path: str, limit: int = DEFAULT_MAX_PREVIEW_BYTES) -> TextPreview:
    """Read at most ``limit`` bytes of a text file. Raises OSError on failure."""
    with open(path, "rb") as f:
        data = f.read(limit + 1)
    if len(data) <= limit:
        return TextPreview(data.decode("utf-8", errors="replace"))
    # Drop a multi-byte character cut in half by the limit.
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    return TextPreview(decoder.decode(data[:limit], final=False), truncated=True)


# ----------------------------
# Templates: one page shell, one viewer per category
# ----------------------------

SHELL_HTML = '''
<!doctype html>
<html>
<head>
    <title>{% block title %}Preview: {{ filename }}{% endblock %}</title>
    <style>
        body { font-family: Arial, sans-serif; background-color: #f2f2f2; margin: 0; padding: 0; }
        .container {
            text-align: center;
            margin: 50px auto;
            max-width: 800px;
            background-color: #fff;
            padding: 20px;
            box-shadow: 0 0 10px rgba(0,0,0,0.1);
        }
        .download-button {
            display: inline-block;
            padding: 10px 20px;
            margin-top: 20px;
            background-color: #007BFF;
            color: #fff;
            text-decoration: none;
            border-radius: 4px;
            transition: background-color 0.3s ease;
        }
        .download-button:hover { background-color: #0056b3; }
        pre { text-align: left; white-space: pre-wrap; }
        .hint { color: #666; font-size: 13px; }
    </style>
</head>
<body>
<div class="container">
    <h1>{{ self.title() }}</h1>
    {% block viewer %}{% endblock %}
    <br>
    <a href="{{ download_url }}" class="download-button">Download file</a>
</div>
</body>
</html>
'''

VIEWER_TEMPLATES = {
    MediaCategory.VIDEO: '''{% extends "shell.html" %}
{% block viewer %}
    <video controls style="max-width:100%; height:auto;">
        <source src="{{ inline_url }}" type="{{ mime_type }}">
        Your browser does not support the video tag.
    </video>
{% endblock %}''',
    MediaCategory.AUDIO: '''{% extends "shell.html" %}
{% block viewer %}
    <audio controls style="width:100%;">
        <source src="{{ inline_url }}" type="{{ mime_type }}">
        Your browser does not support the audio element.
    </audio>
{% endblock %}''',
    MediaCategory.IMAGE: '''{% extends "shell.html" %}
{% block viewer %}
    <img src="{{ inline_url }}" alt="Image preview" style="max-width:100%; height:auto;">
{% endblock %}''',
    MediaCategory.TEXT: '''{% extends "shell.html" %}
{% block viewer %}
    <pre>{{ text }}</pre>
    {% if truncated %}<p class="hint">(preview truncated)</p>{% endif %}
{% endblock %}''',
    MediaCategory.OTHER: '''{% extends "shell.html" %}
{% block title %}{{ filename }}{% endblock %}''',
}

_env = Environment(
    loader=DictLoader(
        {"shell.html": SHELL_HTML}
        | {f"{category.value}.html": source for category, source in VIEWER_TEMPLATES.items()}
    ),
    autoescape=True,
)


def render_preview(
    filename: str,
    mime_type: str,
    inline_url: str,
    download_url: str,
    load_text: Callable[[], TextPreview] | None = None,
) -> str:
    """Render the preview page for one shared file.

    The viewer is chosen from the MIME category of ``mime_type``. Only the
    text viewer touches the file, through ``load_text``; if that raises
    OSError the page still renders, with a placeholder instead of the content.
    """
    category = MediaCategory.from_mime_type(mime_type)
    context = {
        "filename": filename,
        "mime_type": mime_type,
        "inline_url": inline_url,
        "download_url": download_url,
    }

    if category is MediaCategory.TEXT:
        try:
            preview = load_text() if load_text else TextPreview(READ_FAILURE_TEXT)
        except OSError:
            preview = TextPreview(READ_FAILURE_TEXT)
        context.update(text=preview.text, truncated=preview.truncated)

    return _env.get_template(f"{category.value}.html").render(**context)
