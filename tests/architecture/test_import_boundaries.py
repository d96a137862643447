"""
Import-boundary and purity enforcement.

1. Engine purity      -- fleet_engines/** may not import config, services,
                         or YAML.
2. Engine no-impure   -- fleet_engines/** may not call wall-clock or
                         environment functions.
3. Config centralisation -- outside fleet_config, only the package entry
                         point may be imported (not ``fleet_config.loader``).
4. Dependency direction -- fleet_kernel imports nothing above it;
                         fleet_config never imports engines or services.

All scanning is done via AST -- these tests are read-only.
"""

import ast
import glob
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _python_files(package: str) -> list[str]:
    """Return all .py files under *package*, sorted for deterministic order."""
    return sorted(glob.glob(f"{ROOT / package}/**/*.py", recursive=True))


def _parse(filepath: str) -> ast.AST:
    return ast.parse(Path(filepath).read_text(), filename=filepath)


def _extract_imports(filepath: str) -> list[tuple[int, str]]:
    """Return (line_number, module_string) for every import in *filepath*."""
    results: list[tuple[int, str]] = []
    for node in ast.walk(_parse(filepath)):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                results.append((node.lineno, node.module))
    return results


def _matches_any(module: str, prefixes: tuple[str, ...]) -> bool:
    """True if *module* equals or is a child of any prefix."""
    for prefix in prefixes:
        if module == prefix or module.startswith(f"{prefix}."):
            return True
    return False


def _extract_attribute_calls(filepath: str) -> list[tuple[int, str]]:
    """Return (line_number, 'receiver.attr') for two-level attribute references."""
    results: list[tuple[int, str]] = []
    for node in ast.walk(_parse(filepath)):
        if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name):
            results.append((node.lineno, f"{node.value.id}.{node.attr}"))
    return results


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found: list[str] = []
    for filepath in _python_files(package):
        for lineno, module in _extract_imports(filepath):
            if _matches_any(module, forbidden):
                found.append(f"  {filepath}:{lineno} imports '{module}'")
    return found


# ---------------------------------------------------------------------------
# 1. TestEnginePurity
# ---------------------------------------------------------------------------

class TestEnginePurity:
    """fleet_engines/** may not import config, services or YAML."""

    FORBIDDEN_PREFIXES = (
        "yaml",
        "fleet_config",
        "fleet_services",
    )

    def test_engine_files_exist(self):
        assert _python_files("fleet_engines")

    def test_engine_files_have_no_forbidden_imports(self):
        violations = _violations("fleet_engines", self.FORBIDDEN_PREFIXES)

        assert not violations, (
            "Engine purity violation -- fleet_engines/** must receive the "
            "category table as an argument:\n" + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# 2. TestEngineNoImpureFunctions
# ---------------------------------------------------------------------------

class TestEngineNoImpureFunctions:
    """fleet_engines/** may not call wall-clock or environment functions.

    Allowed (observational-only):
        time.perf_counter
    """

    FORBIDDEN_CALLS = frozenset({
        "datetime.now",
        "datetime.utcnow",
        "date.today",
        "time.time",
        "os.environ",
        "os.getenv",
    })

    def test_no_impure_calls_in_engines(self):
        violations = [
            f"  {filepath}:{lineno} calls '{qualname}'"
            for filepath in _python_files("fleet_engines")
            for lineno, qualname in _extract_attribute_calls(filepath)
            if qualname in self.FORBIDDEN_CALLS
        ]

        assert not violations, (
            "Engine impurity violation -- pass ``as_of`` instead:\n"
            + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# 3. TestConfigCentralization
# ---------------------------------------------------------------------------

class TestConfigCentralization:
    """Code outside fleet_config may only use the ``fleet_config`` entry point."""

    def test_loader_not_imported_outside_config(self):
        violations: list[str] = []
        for package in ("fleet_kernel", "fleet_engines", "fleet_services"):
            violations += _violations(package, ("fleet_config.loader",))

        assert not violations, "\n".join(violations)


# ---------------------------------------------------------------------------
# 4. TestDependencyDirection
# ---------------------------------------------------------------------------

class TestDependencyDirection:

    def test_kernel_imports_nothing_above_it(self):
        violations = _violations(
            "fleet_kernel", ("fleet_engines", "fleet_config", "fleet_services"),
        )

        assert not violations, "\n".join(violations)

    def test_config_does_not_import_engines_or_services(self):
        violations = _violations("fleet_config", ("fleet_engines", "fleet_services"))

        assert not violations, "\n".join(violations)
