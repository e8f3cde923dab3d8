"""
Architecture contract tests using grimp.

These tests enforce the layered architecture:
- games (Layer 1, lowest) - no internal dependencies
- engine (Layer 2) - can import from games
- policy (Layer 3) - can import from engine, games
- solvers (Layer 4) - can import from policy, engine, games
- evaluation (Layer 5) - can import from solvers and below
- correlation (Layer 6, highest) - can import from evaluation and below

tabular_cfr.errors may be imported from every layer.

Run with: pytest tests/test_architecture.py -v
"""

import pytest

# Try to import grimp, skip tests if not installed
grimp = pytest.importorskip("grimp")

PACKAGE = "tabular_cfr"
LAYERS = ["games", "engine", "policy", "solvers", "evaluation", "correlation"]
SHARED = {"errors"}


def layer_of(module):
    """Top-level layer name of a tabular_cfr module, e.g. 'games'."""
    parts = module.split(".")
    return parts[1] if len(parts) > 1 else None


class TestLayerArchitecture:
    """Test that layer dependencies are respected."""

    @pytest.fixture(autouse=True)
    def setup(self):
        """Build the import graph once for all tests."""
        self.graph = grimp.build_graph(PACKAGE)

    def internal_imports(self, layer):
        prefix = f"{PACKAGE}.{layer}"
        imports = set()
        for module in self.graph.modules:
            if module == prefix or module.startswith(prefix + "."):
                for imported in self.graph.find_modules_directly_imported_by(module):
                    if imported.startswith(PACKAGE + ".") and layer_of(imported) != layer:
                        imports.add(imported)
        return imports

    def test_games_has_no_internal_imports(self):
        """Layer 1 (games) should only import the error taxonomy."""
        forbidden = [m for m in self.internal_imports("games") if layer_of(m) not in SHARED]
        assert forbidden == [], (
            f"games layer should not import from other layers, "
            f"but imports: {forbidden}"
        )

    @pytest.mark.parametrize("layer", LAYERS[1:])
    def test_only_imports_lower_layers(self, layer):
        allowed = set(LAYERS[:LAYERS.index(layer)]) | SHARED
        for imp in self.internal_imports(layer):
            assert layer_of(imp) in allowed, (
                f"{layer} layer imported from forbidden layer: {imp}"
            )

    def test_errors_imports_nothing_internal(self):
        imported = self.graph.find_modules_directly_imported_by(f"{PACKAGE}.errors")
        assert not [m for m in imported if m.startswith(PACKAGE)]


class TestNoCircularImports:
    """Test that there are no circular import dependencies."""

    def test_no_circular_imports_in_package(self):
        """Importing every layer in order should succeed."""
        import tabular_cfr
        import tabular_cfr.games
        import tabular_cfr.engine
        import tabular_cfr.policy
        import tabular_cfr.solvers
        import tabular_cfr.evaluation
        import tabular_cfr.correlation

        assert tabular_cfr.correlation.cce_dist is not None
