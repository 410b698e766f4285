from pathlib import Path

import pytest

from flust.compiler.generator import EMPTY_PROGRAM, generate
from flust.core.errors import (
    CycleDetectedError,
    DuplicateFunctionError,
    MissingPropertyError,
    NodeNotFoundError,
    UnknownPluginTypeError,
    UnmappedArgumentError,
)
from flust.core.ir import Connection, ConnectionType, Flow, Node
from flust.core.parser import parse_file, parse_str

EXAMPLES = Path(__file__).resolve().parent.parent / "examples"


def _flow(nodes, connections=()):
    return Flow(nodes=tuple(nodes), connections=tuple(connections))


def _hierarchical_flow():
    return _flow(
        [
            Node("f", "function-definition", properties={
                "function_name": "my_func",
                "arguments": [{"name": "x", "type": "i32"}],
            }),
            Node("f_start", "start-node", parent_id="f"),
            Node("f_debug", "debug", properties={"variable": "x"}, parent_id="f"),
            Node("m", "function-definition", properties={"function_name": "main"}),
            Node("m_start", "start-node", parent_id="m"),
            Node("m_call", "call-function", parent_id="m", properties={
                "target_function": "my_func",
                "arguments": [{"name": "x"}],
            }),
        ],
        [
            Connection("f_start", "f_debug"),
            Connection("m_start", "m_call", ConnectionType.FUNCTION_CALL, {"x": "42"}),
        ],
    )


class TestFlatFlows:

    def test_empty_flow(self):
        """Test an empty flow yields the fixed empty program."""
        assert generate(Flow()) == EMPTY_PROGRAM == "fn main() {\n    // Empty flow\n}\n"

    def test_legacy_code_generation(self):
        """Test legacy code is passed through verbatim inside the entry point."""
        code = generate(_flow([Node("n1", "legacy-code", label="Test", properties={"code": "let x = 42;"})]))
        assert code == "#[tokio::main]\nasync fn main() {\n    let x = 42;\n}\n"

    def test_legacy_code_alias_and_newlines(self):
        """Test the underscore alias and multi-line code."""
        code = generate(_flow([Node("n1", "legacy_code", properties={"code": "let a = 1;\n\nlet b = a;"})]))
        assert "    let a = 1;\n\n    let b = a;\n" in code

    def test_legacy_code_without_code(self):
        """Test a legacy node without code contributes nothing."""
        code = generate(_flow([Node("n1", "legacy-code")]))
        assert code == "#[tokio::main]\nasync fn main() {\n}\n"

    def test_debug_generation(self):
        """Test a labelled debug print."""
        code = generate(_flow([Node("n1", "debug", label="Debug", properties={"variable": "x", "label": "Value"})]))
        assert 'println!("Value: {:?}", x);' in code

    def test_debug_without_label(self):
        """Test an unlabelled debug print."""
        for props in ({"variable": "x"}, {"variable": "x", "label": ""}):
            code = generate(_flow([Node("n1", "debug", properties=props)]))
            assert '    println!("{:?}", x);\n' in code
            assert "Value" not in code

    def test_debug_requires_variable(self):
        """Test debug without a variable is a missing property."""
        with pytest.raises(MissingPropertyError) as info:
            generate(_flow([Node("n1", "debug")]))
        assert info.value.property_name == "variable"

    def test_debug_label_escaped(self):
        """Test quotes and braces in a label keep the println! literal valid."""
        props = {"variable": "x", "label": 'say "hi" {x}\\n'}
        code = generate(_flow([Node("n1", "debug", properties=props)]))
        assert '    println!("say \\"hi\\" {{x}}\\\\n: {:?}", x);\n' in code

    def test_yaml_date_property(self):
        """Test unquoted YAML dates are rendered as their ISO text."""
        flow = parse_str(
            "nodes:\n"
            "  - {id: d, plugin_type: debug, properties: {variable: x, label: 2024-01-01}}\n"
        )
        code = generate(flow)
        assert '    println!("2024-01-01: {:?}", x);\n' in code

    def test_connected_nodes(self):
        """Test that code appears in topological order."""
        code = generate(_flow(
            [
                Node("b", "debug", properties={"variable": "result", "label": ""}),
                Node("a", "legacy-code", properties={"code": "let result = 100;"}),
            ],
            [Connection("a", "b")],
        ))
        assert code.index("let result = 100;") < code.index("println!")

    def test_top_level_function_definitions_not_inlined(self):
        """Test containers never appear inline in the fallback entry scope."""
        code = generate(_flow([
            Node("f", "function-definition", properties={"function_name": "helper"}),
            Node("l", "legacy-code", properties={"code": "helper().await;"}),
        ]))
        assert code == (
            "async fn helper() {\n}\n"
            "\n"
            "#[tokio::main]\nasync fn main() {\n    helper().await;\n}\n"
        )


class TestHierarchicalFlows:

    def test_function_and_main(self):
        """Test a helper function definition followed by the entry point."""
        code = generate(_hierarchical_flow())
        assert code == (
            "async fn my_func(x: i32) {\n"
            '    println!("{:?}", x);\n'
            "}\n"
            "\n"
            "#[tokio::main]\n"
            "async fn main() {\n"
            "    my_func(42).await;\n"
            "}\n"
        )
        assert code.index("async fn my_func") < code.index("#[tokio::main]")

    def test_return_type_and_multiple_arguments(self):
        """Test the signature renders every argument and the return type."""
        code = generate(_flow([
            Node("f", "function-definition", properties={
                "function_name": "pow",
                "arguments": [{"name": "num", "type": "i8"}, {"name": "exp", "type": "i8"}],
                "return_type": "i32",
            }),
        ]))
        assert code.startswith("async fn pow(num: i8, exp: i8) -> i32 {\n}\n")

    def test_empty_return_type_omitted(self):
        """Test an empty return type drops the annotation."""
        code = generate(_flow([
            Node("f", "function-definition", properties={"function_name": "f", "return_type": ""}),
        ]))
        assert code.startswith("async fn f() {\n")

    def test_arguments_as_json_string(self):
        """Test arguments stored JSON-encoded by an editor."""
        code = generate(_flow([
            Node("f", "function-definition", properties={
                "function_name": "f",
                "arguments": '[{"name": "a", "type": "String"}]',
            }),
        ]))
        assert code.startswith("async fn f(a: String) {\n")

    def test_functions_in_declaration_order(self):
        """Test definitions are emitted in the order they are declared."""
        code = generate(_flow([
            Node("second", "function-definition", properties={"function_name": "zeta"}),
            Node("first", "function-definition", properties={"function_name": "alpha"}),
        ]))
        assert code.index("async fn zeta") < code.index("async fn alpha")

    def test_main_ignores_stray_top_level_nodes(self, caplog):
        """Test top-level nodes are not emitted once a main container exists."""
        code = generate(_flow([
            Node("m", "function-definition", properties={"function_name": "main"}),
            Node("inside", "legacy-code", parent_id="m", properties={"code": "inside();"}),
            Node("stray", "legacy-code", properties={"code": "stray();"}),
        ]))
        assert "inside();" in code
        assert "stray();" not in code
        assert "stray" in caplog.text

    def test_cross_scope_connections_ignored_for_ordering(self):
        """Test an edge between scopes does not create a false cycle."""
        code = generate(_flow(
            [
                Node("f", "function-definition", properties={"function_name": "f"}),
                Node("a", "legacy-code", parent_id="f", properties={"code": "a();"}),
                Node("b", "legacy-code", properties={"code": "b();"}),
            ],
            [Connection("a", "b"), Connection("b", "a")],
        ))
        assert "    a();" in code
        assert "    b();" in code

    def test_example_file(self):
        """Test the bundled power example compiles to the expected program."""
        code = generate(parse_file(EXAMPLES / "pow_flow.yaml"))
        assert code == (
            "async fn pow(num: i8, exp: i8) -> i32 {\n"
            "    let mut potencia: i32 = 1;\n"
            "    let mut i = 1;\n"
            "    while i <= exp {\n"
            "        potencia *= num as i32;\n"
            "        i += 1;\n"
            "    }\n"
            '    println!("{:?}", potencia);\n'
            "    return potencia;\n"
            "}\n"
            "\n"
            "#[tokio::main]\n"
            "async fn main() {\n"
            "    let a: i8 = 3;\n"
            "    let b: i8 = 3;\n"
            "    let potencia = pow(a, b).await;\n"
            '    println!("Result: {:?}", potencia);\n'
            "}\n"
        )


class TestCallFunction:

    def _call(self, mapping=None, **props):
        props.setdefault("target_function", "work")
        connections = []
        if mapping is not None:
            connections.append(Connection("s", "c", ConnectionType.FUNCTION_CALL, mapping))
        return generate(_flow(
            [Node("s", "start-node"), Node("c", "call-function", properties=props)],
            connections,
        ))

    def test_bare_call(self):
        """Test a call without return variable is a bare awaited statement."""
        assert "    work().await;\n" in self._call()

    def test_declared_binding(self):
        """Test the default let binding."""
        assert "    let r = work().await;\n" in self._call(return_variable="r")

    def test_mutable_typed_binding(self):
        """Test mut and an explicit type."""
        code = self._call(return_variable="r", is_mutable=True, return_type="i32")
        assert "    let mut r: i32 = work().await;\n" in code

    def test_assignment(self):
        """Test assignment to an existing variable."""
        code = self._call(return_variable="r", declare_variable=False, is_mutable=True)
        assert "    r = work().await;\n" in code

    def test_string_flags(self):
        """Test boolean flags given as strings."""
        code = self._call(return_variable="r", declare_variable="false")
        assert "    r = work().await;\n" in code

    def test_arguments_in_declared_order(self):
        """Test argument values follow the arguments property order."""
        code = self._call(
            mapping={"b": "second", "a": "first"},
            arguments=[{"name": "a", "type": "i32"}, {"name": "b", "type": "i32"}],
        )
        assert "    work(first, second).await;\n" in code

    def test_unmapped_argument(self):
        """Test a missing mapping entry is fatal."""
        with pytest.raises(UnmappedArgumentError) as info:
            self._call(mapping={"a": "1"}, arguments=[{"name": "a"}, {"name": "b"}])
        assert info.value.argument == "b"
        assert info.value.node_id == "c"

    def test_no_incoming_connection(self):
        """Test arguments without any incoming connection are unmapped."""
        with pytest.raises(UnmappedArgumentError):
            self._call(arguments=[{"name": "a"}])

    def test_missing_target(self):
        """Test call-function without a target."""
        with pytest.raises(MissingPropertyError) as info:
            generate(_flow([Node("c", "call-function")]))
        assert info.value.property_name == "target_function"

    def test_first_incoming_mapping_wins(self):
        """Test only the first incoming connection's mapping is consulted."""
        flow = _flow(
            [
                Node("p", "legacy-code", properties={"code": "let v = 1;"}),
                Node("q", "legacy-code", properties={"code": "let w = 2;"}),
                Node("c", "call-function", properties={
                    "target_function": "work", "arguments": [{"name": "a"}],
                }),
            ],
            [
                Connection("p", "c", variable_mapping={"a": "v"}),
                Connection("q", "c", variable_mapping={"a": "w"}),
            ],
        )
        assert "work(v).await;" in generate(flow)


class TestGenerationErrors:

    def test_cycle_in_scope(self):
        """Test a cycle inside one scope aborts generation."""
        with pytest.raises(CycleDetectedError):
            generate(_flow(
                [Node("a", "legacy-code"), Node("b", "legacy-code")],
                [Connection("a", "b"), Connection("b", "a")],
            ))

    def test_unknown_plugin_type(self):
        """Test unknown plugin types are fatal."""
        with pytest.raises(UnknownPluginTypeError) as info:
            generate(_flow([Node("x", "teleport")]))
        assert info.value.plugin_type == "teleport"

    def test_unknown_connection_endpoint(self):
        """Test a connection to an unknown node."""
        with pytest.raises(NodeNotFoundError) as info:
            generate(_flow([Node("a", "legacy-code")], [Connection("a", "ghost")]))
        assert info.value.node_id == "ghost"

    def test_unknown_parent(self):
        """Test a parent_id that does not resolve."""
        with pytest.raises(NodeNotFoundError):
            generate(_flow([Node("a", "legacy-code", parent_id="nowhere")]))

    def test_function_without_name(self):
        """Test function-definition requires function_name."""
        with pytest.raises(MissingPropertyError):
            generate(_flow([Node("f", "function-definition")]))

    def test_function_argument_without_type(self):
        """Test every signature argument needs a type."""
        with pytest.raises(MissingPropertyError) as info:
            generate(_flow([
                Node("f", "function-definition", properties={
                    "function_name": "f", "arguments": [{"name": "x"}],
                }),
            ]))
        assert info.value.property_name == "arguments[0].type"

    def test_duplicate_function_names(self):
        """Test two containers with the same name."""
        with pytest.raises(DuplicateFunctionError) as info:
            generate(_flow([
                Node("f1", "function-definition", properties={"function_name": "f"}),
                Node("f2", "function-definition", properties={"function_name": "f"}),
            ]))
        assert info.value.node_ids == ("f1", "f2")

    def test_deterministic_output(self):
        """Test repeated generation is byte-identical."""
        flow = _hierarchical_flow()
        assert generate(flow) == generate(flow)
