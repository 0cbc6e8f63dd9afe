"""
Interactive CLI for the access-control engine.
Sign in as a profile, then check pages, permissions and record files against it.
"""

import json

from healthgate.analysis import format_breakdown, summarize_by_location
from healthgate.models import AccessLevel
from healthgate.nav import visible_nav
from healthgate.page_guard import decide_route, gate
from healthgate.permissions import get_permission_matrix
from healthgate.record_filter import apply_scope, extract_records
from healthgate.scope import describe, profile_from_claims, resolve

HELP = """Commands:
  /some/path                 check whether the page opens
  perm <permission>          check a permission
  filter <file.json> [field] filter a JSON record file, optionally with a breakdown
  nav                        show the visible navigation
  quit                       exit"""


def _ask(prompt: str) -> str:
    return input(prompt).strip()


def main():
    print("=== healthgate: Access-Control Console ===\n")

    matrix = get_permission_matrix()

    # ── Profile ──────────────────────────────────────────────────────
    try:
        role = _ask("Role (e.g. admin, clinician, volunteer): ")
        levels = ", ".join(f"{lvl.value}={lvl.name}" for lvl in AccessLevel)
        level = _ask(f"Access level ({levels}): ")
        claims = {"role": role or None, "access_level": level}
        for name in ("region", "district", "subdistrict", "community_name"):
            claims[name] = _ask(f"{name} (blank if none): ") or None
    except (EOFError, KeyboardInterrupt):
        print("\nExiting.")
        return

    profile = profile_from_claims(claims)
    scope = resolve(profile)

    print(f"\n[auth] Profile: role={profile.role} scope={describe(scope).label}")
    print(f"[auth] Permissions: {', '.join(sorted(matrix.permissions_for(profile.role))) or '(none)'}")
    print(HELP)

    # ── REPL ─────────────────────────────────────────────────────────
    while True:
        try:
            line = _ask("\n> ")
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break

        if not line:
            continue
        if line.lower() in {"quit", "exit"}:
            print("Goodbye.")
            break

        parts = line.split()
        cmd = parts[0].lower()

        if line.startswith("/"):
            decision = decide_route(matrix, profile.role, line)
            print(f"[route] {line} → {decision.state.value}"
                  + (f" (redirect to {decision.redirect_to})" if decision.redirect_to else ""))

        elif cmd == "perm" and len(parts) == 2:
            print(f"[perm] {parts[1]} → {gate(matrix, profile.role, parts[1]).value}")

        elif cmd == "nav":
            for item in visible_nav(matrix, profile.role):
                print(f"  - {item.title} {item.href or ''}")
                for sub in item.sub_items:
                    print(f"      - {sub.title} {sub.href}")

        elif cmd == "filter" and len(parts) in (2, 3):
            try:
                with open(parts[1], encoding="utf-8") as fh:
                    records = extract_records(json.load(fh))
            except (OSError, json.JSONDecodeError) as e:
                print("\n[ERROR] Could not read record file.")
                print("Details:", e)
                continue

            view = apply_scope(records, scope)
            print(f"[filter] {view.info.label}: {view.visible} of {view.total} records visible")

            if len(parts) == 3:
                try:
                    print(format_breakdown(summarize_by_location(view.records, parts[2]), parts[2]))
                except ValueError as e:
                    print("[WARN]", e)

        else:
            print(HELP)


if __name__ == "__main__":
    main()
