"""
Flask route handlers for the REST API.
"""

import sys
import traceback

from flask import jsonify, request

from healthgate.analysis import summarize_by_location
from healthgate.config import MAX_RECORDS_PER_REQUEST
from healthgate.models import GuardState
from healthgate.nav import visible_nav
from healthgate.page_guard import decide_route, gate
from healthgate.record_filter import apply_scope, extract_records
from healthgate.scope import describe, resolve
from healthgate.api.auth import profile_required


def _profile_json(profile):
    return {
        "user_id": profile.user_id,
        "username": profile.username,
        "role": profile.role,
        "access_level": int(profile.access_level),
        "region": profile.region,
        "district": profile.district,
        "subdistrict": profile.subdistrict,
        "community_name": profile.community,
    }


def register_routes(app, matrix):
    """Register all API routes on the Flask *app*."""

    # ── Health / info ────────────────────────────────────────────────

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "service": "healthgate access API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "profile": "/api/access/profile",
                "filter": "/api/access/filter",
                "route": "/api/access/route",
                "permission": "/api/access/permissions/<permission>",
                "nav": "/api/access/nav",
                "health": "/health",
            },
        })

    @app.route("/health", methods=["GET"])
    def health():
        checks = {"permission_matrix": bool(matrix.grants)}
        all_healthy = all(checks.values())
        return jsonify({
            "status": "healthy" if all_healthy else "unhealthy",
            "checks": checks,
            "roles": sorted(matrix.grants),
        }), 200 if all_healthy else 503

    # ── Profile ──────────────────────────────────────────────────────

    @app.route("/api/access/profile", methods=["GET"])
    @profile_required
    def get_profile():
        profile = request.profile
        scope = resolve(profile)
        return jsonify({
            "success": True,
            "user": _profile_json(profile),
            "scope": describe(scope).to_dict(),
            "permissions": sorted(matrix.permissions_for(profile.role)),
            "guide_only": profile.role is not None and matrix.is_guide_only(profile.role),
        }), 200

    # ── Record filtering ─────────────────────────────────────────────

    @app.route("/api/access/filter", methods=["POST"])
    @profile_required
    def filter_records_endpoint():
        if not request.is_json:
            return jsonify({"error": "Content-Type must be application/json"}), 400

        data = request.get_json(silent=True)
        if not isinstance(data, dict) or "records" not in data:
            return jsonify({"error": "records is required"}), 400

        records = extract_records(data["records"])
        if len(records) > MAX_RECORDS_PER_REQUEST:
            return jsonify({
                "error": f"Too many records; at most {MAX_RECORDS_PER_REQUEST} per request",
            }), 413

        try:
            view = apply_scope(records, resolve(request.profile))
            response = {
                "success": True,
                "records": view.records,
                "total": view.total,
                "visible": view.visible,
                "hidden": view.hidden,
                "is_filtered": view.is_filtered,
                "scope": view.info.to_dict(),
            }
            summary_field = data.get("summary_field")
            if summary_field:
                response["summary"] = summarize_by_location(view.records, summary_field)
            return jsonify(response), 200

        except ValueError as e:
            return jsonify({"success": False, "error": "Invalid request", "details": str(e)}), 400
        except Exception as e:
            print(f"[ERROR] Filter error: {e}", file=sys.stderr)
            traceback.print_exc()
            return jsonify({"success": False, "error": "Filtering failed"}), 500

    # ── Route / permission decisions ─────────────────────────────────

    @app.route("/api/access/route", methods=["GET"])
    @profile_required
    def check_route():
        path = request.args.get("path", "").strip()
        if not path:
            return jsonify({"error": "path is required"}), 400

        decision = decide_route(matrix, request.profile.role, path)
        return jsonify({
            "path": path,
            "state": decision.state.value,
            "redirect_to": decision.redirect_to,
            "matched_prefix": decision.matched_prefix,
        }), 200

    @app.route("/api/access/permissions/<permission>", methods=["GET"])
    @profile_required
    def check_permission(permission):
        state = gate(matrix, request.profile.role, permission)
        return jsonify({
            "permission": permission,
            "state": state.value,
            "allowed": state == GuardState.ALLOW,
        }), 200

    @app.route("/api/access/nav", methods=["GET"])
    @profile_required
    def get_nav():
        role = request.profile.role
        if role is None:
            return jsonify({"state": GuardState.LOADING.value, "items": []}), 200
        return jsonify({
            "state": GuardState.ALLOW.value,
            "items": [item.to_dict() for item in visible_nav(matrix, role)],
        }), 200

    # ── Error handlers ───────────────────────────────────────────────

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Endpoint not found", "message": str(e)}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed", "message": str(e)}), 405

    @app.errorhandler(500)
    def internal_error(e):
        return jsonify({"error": "Internal server error", "message": str(e)}), 500
