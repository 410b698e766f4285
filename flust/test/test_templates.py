import pytest

from flust.compiler.generator import generate
from flust.compiler.templates import (
    TEMPLATE_REGISTRY,
    CodeWriter,
    NodeTemplate,
    get_template,
    register_template,
    registered_plugin_types,
)
from flust.core.ir import Flow, Node


class TestRegistry:

    def setup_method(self):
        self._saved = dict(TEMPLATE_REGISTRY)

    def teardown_method(self):
        TEMPLATE_REGISTRY.clear()
        TEMPLATE_REGISTRY.update(self._saved)

    def test_builtin_types(self):
        """Test every built-in plugin type is registered."""
        assert registered_plugin_types() == sorted([
            "call-function", "debug", "function-definition", "legacy-code", "legacy_code", "start-node",
        ])

    def test_alias_shares_template(self):
        """Test legacy_code resolves to the same template as legacy-code."""
        assert get_template("legacy_code") is get_template("legacy-code")

    def test_duplicate_registration(self):
        """Test a type tag cannot be registered twice."""
        with pytest.raises(ValueError):
            @register_template("debug")
            class _Clash(NodeTemplate):
                pass

    def test_new_node_kind(self):
        """Test a registered template is used by the generator without other changes."""
        @register_template("sleep")
        class SleepTemplate(NodeTemplate):
            def render(self, node, incoming, context):
                return f"tokio::time::sleep(std::time::Duration::from_millis({context['ms']})).await;"

        code = generate(Flow(nodes=(Node("z", "sleep", properties={"ms": 250}),)))
        assert "    tokio::time::sleep(std::time::Duration::from_millis(250)).await;\n" in code


class TestCodeWriter:

    def test_indentation(self):
        """Test push/pop indentation and unindented blank lines."""
        w = CodeWriter()
        w.writeln("fn a() {").push().block("x();\n\ny();").pop().writeln("}")
        assert w.result() == "fn a() {\n    x();\n\n    y();\n}"

    def test_pop_never_negative(self):
        """Test popping past zero stays at column zero."""
        assert CodeWriter().pop().pop().writeln("x").lines() == ["x"]

    def test_comment(self):
        """Test Rust line comments."""
        assert CodeWriter(indent=1).comment("note").lines() == ["    // note"]
