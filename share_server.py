#!/usr/bin/env python3
import os
import argparse
import logging
from dataclasses import dataclass
from typing import Callable

from flask import (
    Flask,
    request,
    send_file,
    url_for,
    abort,
    jsonify,
)
from werkzeug.exceptions import NotFound

from netinfo import advertised_address, url_host
from preview import (
    DEFAULT_MAX_PREVIEW_BYTES,
    guess_mime_type,
    read_text_preview,
    render_preview,
)
from share_registry import InvalidPath, ShareRegistry

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 5000
EXTENSION_KEY = "lanshare"

# ----------------------------
# Share context (registry owner + UI-facing calls)
# ----------------------------

@dataclass
class ShareResult:
    ok: bool
    file_path: str
    share_url: str | None = None
    error: str | None = None


@dataclass
class HistoryItem:
    share_id: str
    file_name: str
    share_url: str

    def to_json(self) -> dict:
        return {"shareId": self.share_id, "fileName": self.file_name, "shareUrl": self.share_url}


class ShareContext:
    """Owns the share registry for one running server.

    Built at server start and closed at shutdown. The address used in share
    URLs is resolved again on every call, since interfaces can change while
    the server runs.
    """

    def __init__(
        self,
        port: int = DEFAULT_PORT,
        bound_host: str = DEFAULT_HOST,
        scheme: str = "http",
        address_resolver: Callable[[str], str] = advertised_address,
    ) -> None:
        self.port = port
        self.bound_host = bound_host
        self.scheme = scheme
        self.address_resolver = address_resolver
        self.registry = ShareRegistry()

    def share_url(self, share_id: str, address: str | None = None) -> str:
        if address is None:
            address = self.address_resolver(self.bound_host)
        return f"{self.scheme}://{url_host(address)}:{self.port}/share/{share_id}"

    def share_file(self, path: str) -> ShareResult:
        try:
            share_id = self.registry.register(path)
        except InvalidPath as e:
            return ShareResult(ok=False, file_path=path, error=str(e))
        return ShareResult(ok=True, file_path=self.registry.lookup(share_id) or path, share_url=self.share_url(share_id))

    def history(self) -> list[HistoryItem]:
        address = self.address_resolver(self.bound_host)
        return [
            HistoryItem(
                share_id=entry.share_id,
                file_name=os.path.basename(entry.file_path),
                share_url=self.share_url(entry.share_id, address),
            )
            for entry in self.registry.list()
        ]

    def delete_share(self, share_id: str) -> bool:
        return self.registry.revoke(share_id)

    def resolve(self, share_id: str) -> str | None:
        """Path for a share id, or None if unknown or the file is gone."""
        file_path = self.registry.lookup(share_id)
        if not file_path or not os.path.isfile(file_path):
            return None
        return file_path

    def close(self) -> None:
        self.registry.clear()

# ----------------------------
# Flask app
# ----------------------------

def create_app(context: ShareContext, max_preview_bytes: int = DEFAULT_MAX_PREVIEW_BYTES) -> Flask:
    app = Flask(__name__)
    app.config["SHARE_SCHEME"] = context.scheme
    app.config["SHARE_PORT"] = context.port
    app.config["MAX_PREVIEW_BYTES"] = max_preview_bytes
    app.extensions[EXTENSION_KEY] = context

    def resolve_or_404(share_id: str) -> str:
        file_path = context.resolve(share_id)
        if file_path is None:
            abort(404)
        return file_path

    def send_or_404(file_path: str, **kwargs):
        # The file can vanish between the existence check and the open.
        try:
            return send_file(file_path, **kwargs)
        except FileNotFoundError:
            abort(404)

    @app.errorhandler(NotFound)
    def not_found(e):
        return "File not found", 404, {"Content-Type": "text/plain; charset=utf-8"}

    @app.route("/register", methods=["POST"])
    def register():
        payload = request.get_json(silent=True)
        filepath = payload.get("filepath") if isinstance(payload, dict) else None
        if not isinstance(filepath, str):
            return jsonify({"error": "File does not exist"}), 400

        result = context.share_file(filepath)
        if not result.ok:
            return jsonify({"error": result.error}), 400

        app.logger.info("Registered file: %s", result.file_path)
        app.logger.info("Share URL: %s", result.share_url)
        return jsonify({"url": result.share_url})

    @app.route("/file/<share_id>", methods=["GET"])
    def inline_file(share_id):
        file_path = resolve_or_404(share_id)
        return send_or_404(file_path, mimetype=guess_mime_type(file_path), as_attachment=False)

    @app.route("/download/<share_id>", methods=["GET"])
    def download_file(share_id):
        file_path = resolve_or_404(share_id)
        return send_or_404(file_path, as_attachment=True, download_name=os.path.basename(file_path))

    @app.route("/share/<share_id>", methods=["GET"])
    def share_page(share_id):
        file_path = resolve_or_404(share_id)
        filename = os.path.basename(file_path)

        def load_text():
            try:
                return read_text_preview(file_path, app.config["MAX_PREVIEW_BYTES"])
            except OSError as e:
                app.logger.warning("Could not read %s for preview: %s", file_path, e)
                raise

        page = render_preview(
            filename,
            guess_mime_type(filename),
            inline_url=url_for("inline_file", share_id=share_id),
            download_url=url_for("download_file", share_id=share_id),
            load_text=load_text,
        )
        return page

    @app.route("/history", methods=["GET"])
    def history():
        return jsonify([item.to_json() for item in context.history()])

    return app

# ----------------------------
# Main CLI
# ----------------------------

def print_share_banner(context: ShareContext, shared: list[ShareResult]) -> None:
    address = context.address_resolver(context.bound_host)
    base = f"{context.scheme}://{url_host(address)}:{context.port}"

    print("\n=== LAN share ===")
    print(f"Address:  {address}")
    print(f"Register: curl -H 'Content-Type: application/json' -d '{{\"filepath\": \"/path/to/file\"}}' {base}/register")
    print(f"History:  {base}/history")

    if shared:
        print("\nShared files:")
        for result in shared:
            print(f"  {os.path.basename(result.file_path)}: {result.share_url}")
    print()


def main() -> None:
    parser = argparse.ArgumentParser(description="Share local files on the LAN with preview pages.")
    parser.add_argument("paths", nargs="*", help="Files to share at startup")
    parser.add_argument("--host", default=DEFAULT_HOST, help="Host to bind to (e.g. 127.0.0.1 or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Port to run the server on")
    parser.add_argument(
        "--max-preview-kb",
        type=int,
        default=DEFAULT_MAX_PREVIEW_BYTES // 1024,
        help="Largest text preview shown inline (KiB); longer files are truncated",
    )

    args = parser.parse_args()
    if args.max_preview_kb <= 0:
        raise SystemExit("Error: --max-preview-kb must be positive")

    context = ShareContext(port=args.port, bound_host=args.host)
    shared: list[ShareResult] = []
    for raw in args.paths:
        result = context.share_file(os.path.expanduser(raw))
        if not result.ok:
            raise SystemExit(f"Error: not a file: {raw}")
        shared.append(result)

    app = create_app(context, max_preview_bytes=args.max_preview_kb * 1024)
    app.logger.setLevel(logging.INFO)
    print_share_banner(context, shared)
    try:
        app.run(debug=False, host=args.host, port=args.port)
    finally:
        context.close()

if __name__ == "__main__":
    main()
