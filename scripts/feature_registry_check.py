"""FLAGCORE FILE PURPOSE
Purpose: policy checks for feature modules (FEATURE contract + no cross-feature imports).
Hot path: no.
"""

from __future__ import annotations

import ast
import re
import sys
from pathlib import Path

RE_ENV = re.compile(r"^FLAGS_FEATURE_[A-Z0-9_]+$")

REQUIRED = {"key", "resolver"}


def fail(msg: str) -> None:
    print(f"FEATURE_CHECK_FAIL: {msg}", file=sys.stderr)
    raise SystemExit(1)


def _feature_dict(tree: ast.Module) -> ast.Dict | None:
    for node in tree.body:
        if isinstance(node, ast.Assign) and isinstance(node.value, ast.Dict):
            if any(isinstance(t, ast.Name) and t.id == "FEATURE" for t in node.targets):
                return node.value
    return None


def check_file(path: Path) -> None:
    src = path.read_text(encoding="utf-8")
    tree = ast.parse(src, filename=str(path))

    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for a in node.names:
                if a.name == "features" or a.name.startswith("features."):
                    fail(f"cross-feature import in {path}")
        if isinstance(node, ast.ImportFrom):
            if node.level and node.level > 0:
                fail(f"relative import not allowed in {path}")
            mod = node.module or ""
            if mod == "features" or mod.startswith("features."):
                fail(f"cross-feature import in {path}")

    feature = _feature_dict(tree)
    if feature is None:
        fail(f"FEATURE missing in {path}")

    keys = {k.value: v for k, v in zip(feature.keys, feature.values) if isinstance(k, ast.Constant)}
    for k in sorted(REQUIRED):
        if k not in keys:
            fail(f"FEATURE missing key {k} in {path}")
    env = keys.get("enabled_env")
    if env is not None and not (isinstance(env, ast.Constant) and RE_ENV.match(str(env.value))):
        fail(f"enabled_env invalid in {path}")


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    feat_dir = Path(args[0]) if args else Path("features")
    for path in sorted(feat_dir.glob("*.py")):
        if path.name.startswith("_"):
            continue
        check_file(path)

    print("FEATURE_CHECK_OK")


if __name__ == "__main__":
    main()
