import hashlib
import json

PACK_SCHEMA_VERSION = "v2_pack_schema_1"
RESULTS_VERSION = "v2"
FLOW_PAGES = ("page1", "page2", "page3")


def hash_results_pack(content: dict) -> str:
    """sha256 over compact JSON in stored key order."""
    serialized = json.dumps(content, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def validate_results_pack(content) -> dict:
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(content, dict):
        errors.append("Pack JSON must be an object.")
        return {"ok": False, "errors": errors, "warnings": warnings, "normalized": None}

    flow = content.get("flow")
    if not flow:
        errors.append("Missing flow.")
    elif not isinstance(flow, dict):
        errors.append("flow must be an object.")
    else:
        for page in FLOW_PAGES:
            if not flow.get(page):
                errors.append(f"Missing flow.{page}.")

        page1 = flow.get("page1")
        if isinstance(page1, dict) and not (page1.get("headline") or page1.get("title")):
            warnings.append("flow.page1 headline/title is missing.")

    return {"ok": not errors, "errors": errors, "warnings": warnings, "normalized": content}
