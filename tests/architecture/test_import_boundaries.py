"""
Import-boundary enforcement for the four charter packages.

1. Kernel isolation     -- charter_kernel/** imports no other charter layer.
2. Engine purity        -- charter_engines/** may not import config,
                           services or file-format libraries.
3. Engine no-impure     -- charter_engines/** may not read the wall clock
                           or the environment.
4. Config direction     -- charter_config/** may not import services.
5. Exact arithmetic     -- no float literals in engine code.

All scanning is done via AST; these tests are read-only.
"""

import ast
from pathlib import Path

ROOT = Path(__file__).parents[2]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _python_files(package: str) -> list[Path]:
    """Return all .py files under *package*, sorted for deterministic order."""
    return sorted((ROOT / package).rglob("*.py"))


def _parse(path: Path) -> ast.Module:
    return ast.parse(path.read_text(encoding="utf-8"), filename=str(path))


def _extract_imports(path: Path) -> list[tuple[int, str]]:
    """Return (line_number, module_string) for every import in *path*."""
    results: list[tuple[int, str]] = []
    for node in ast.walk(_parse(path)):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom) and node.module:
            results.append((node.lineno, node.module))
    return results


def _matches_any(module: str, prefixes: tuple[str, ...]) -> bool:
    """True if *module* equals or is a child of any prefix."""
    return any(module == p or module.startswith(f"{p}.") for p in prefixes)


def _extract_attribute_calls(path: Path) -> list[tuple[int, str]]:
    """Return (line_number, 'receiver.attr') for two-level attribute references."""
    results: list[tuple[int, str]] = []
    for node in ast.walk(_parse(path)):
        if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name):
            results.append((node.lineno, f"{node.value.id}.{node.attr}"))
    return results


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    return [
        f"  {path.relative_to(ROOT)}:{lineno} imports '{module}'"
        for path in _python_files(package)
        for lineno, module in _extract_imports(path)
        if _matches_any(module, forbidden)
    ]


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestPackagesPresent:
    def test_scanned_packages_exist(self):
        for package in ("charter_kernel", "charter_engines", "charter_config", "charter_services"):
            assert _python_files(package), f"{package} has no Python files"


class TestKernelIsolation:
    FORBIDDEN_PREFIXES = ("charter_engines", "charter_config", "charter_services", "yaml")

    def test_kernel_imports_no_upper_layer(self):
        violations = _violations("charter_kernel", self.FORBIDDEN_PREFIXES)
        assert not violations, (
            "Kernel isolation violation:\n" + "\n".join(violations)
        )


class TestEnginePurity:
    FORBIDDEN_PREFIXES = ("charter_config", "charter_services", "yaml", "os", "sqlite3")

    def test_engine_files_have_no_forbidden_imports(self):
        violations = _violations("charter_engines", self.FORBIDDEN_PREFIXES)
        assert not violations, (
            "Engine purity violation: charter_engines/** must not import "
            "config, services or I/O modules:\n" + "\n".join(violations)
        )


class TestEngineNoImpureFunctions:
    FORBIDDEN_CALLS = frozenset({
        "datetime.now",
        "datetime.utcnow",
        "datetime.today",
        "date.today",
        "time.time",
        "os.environ",
        "os.getenv",
    })

    def test_engines_never_read_clock_or_environment(self):
        violations = [
            f"  {path.relative_to(ROOT)}:{lineno} references '{call}'"
            for path in _python_files("charter_engines")
            for lineno, call in _extract_attribute_calls(path)
            if call in self.FORBIDDEN_CALLS
        ]
        assert not violations, (
            "Engines must receive time from the caller:\n" + "\n".join(violations)
        )


class TestConfigDirection:
    def test_config_does_not_import_services(self):
        violations = _violations("charter_config", ("charter_services",))
        assert not violations, "\n".join(violations)


class TestExactArithmetic:
    def test_no_float_literals_in_engines(self):
        violations = [
            f"  {path.relative_to(ROOT)}:{node.lineno} float literal {node.value!r}"
            for path in _python_files("charter_engines")
            for node in ast.walk(_parse(path))
            if isinstance(node, ast.Constant) and isinstance(node.value, float)
        ]
        assert not violations, "\n".join(violations)
