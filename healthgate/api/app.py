"""
Flask application factory and server entry-point.
"""

import os
import sys
import traceback

from flask import Flask
from flask_cors import CORS

from healthgate.config import SECRET_KEY, get_env
from healthgate.permissions import PermissionMatrix, get_permission_matrix
from healthgate.api.routes import register_routes


def create_app(matrix: PermissionMatrix = None, secret_key: str = None):
    """Build and return a fully configured Flask application."""
    app = Flask(__name__)
    CORS(app)
    app.config["JWT_SECRET_KEY"] = secret_key or SECRET_KEY

    # ── Initialise shared resources ──────────────────────────────────
    try:
        if matrix is None:
            print("[init] Loading permission matrix...")
            matrix = get_permission_matrix()
        print(f"[init] ✓ Permission matrix ready ({len(matrix.grants)} roles)")
    except Exception as e:
        print(f"[FATAL] Failed to initialize: {e}", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)

    # ── Register routes ──────────────────────────────────────────────
    register_routes(app, matrix)

    return app


def main():
    """Run the development server."""
    print("=" * 60)
    print("healthgate – Access-Control REST API")
    print("=" * 60)

    debug = os.getenv("FLASK_ENV") == "development"
    secret_key = SECRET_KEY if debug else get_env("JWT_SECRET_KEY")

    app = create_app(secret_key=secret_key)

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))

    print(f"\n[server] Starting Flask API on {host}:{port}")
    print(f"[server] Debug mode: {debug}")
    print("[server] CORS enabled: True")
    print("\nAPI Endpoints:")
    print(f"  - GET  http://{host}:{port}/api/access/profile")
    print(f"  - POST http://{host}:{port}/api/access/filter")
    print(f"  - GET  http://{host}:{port}/api/access/route?path=/dashboard")
    print(f"  - GET  http://{host}:{port}/api/access/permissions/<permission>")
    print(f"  - GET  http://{host}:{port}/api/access/nav")
    print(f"  - GET  http://{host}:{port}/health")
    print("\n" + "=" * 60)

    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
