"""Tests for the markup parser."""

import pytest

from charplot.errors import ParseError
from charplot.models import Direction, EdgeKind, EdgeRecord, GroupRecord, NodeShape
from charplot.parser import detect_kind, parse, parse_class, parse_flowchart, parse_gitgraph, parse_state


class TestDetectKind:
    """Tests for diagram kind detection."""

    @pytest.mark.parametrize("text, kind", [
        ("graph TD\nA-->B", "flowchart"),
        ("%% comment\n\nflowchart LR\nA-->B", "flowchart"),
        ("stateDiagram-v2\n[*] --> A", "state"),
        ("stateDiagram\nA --> B", "state"),
        ("classDiagram\nA <|-- B", "class"),
        ("gitGraph LR:\ncommit", "gitgraph"),
    ])
    def test_known(self, text, kind):
        assert detect_kind(text) == kind

    def test_unknown(self):
        with pytest.raises(ParseError, match="unknown diagram type 'sequenceDiagram'") as exc:
            detect_kind("\nsequenceDiagram\nA->>B: hi")
        assert exc.value.line == 2

    def test_empty(self):
        with pytest.raises(ParseError):
            detect_kind("  \n%% nothing\n")


class TestFlowchart:
    """Tests for flowchart parsing."""

    def test_header_direction(self):
        assert parse("graph LR\nA --> B").direction is Direction.LR
        assert parse("flowchart TB\nA --> B").direction is Direction.TD
        assert parse("graph\nA --> B").direction is Direction.TD

    def test_invalid_direction(self):
        with pytest.raises(ParseError, match="line 1"):
            parse("graph XY\nA --> B")

    def test_shapes(self):
        graph = parse_flowchart(
            "graph TD\n"
            "  a[Rect] --> b(Round)\n"
            "  c([Stadium]) --> d((Circle))\n"
            "  e{Decide} --> f{{Hex}}\n"
            "  g[(Store)] --> h[[Sub]]\n"
        )
        shapes = {n.id: (n.label, n.shape) for n in graph.nodes}
        assert shapes == {
            "a": ("Rect", NodeShape.RECTANGLE),
            "b": ("Round", NodeShape.ROUNDED),
            "c": ("Stadium", NodeShape.TERMINAL),
            "d": ("Circle", NodeShape.CIRCLE),
            "e": ("Decide", NodeShape.DIAMOND),
            "f": ("Hex", NodeShape.HEXAGON),
            "g": ("Store", NodeShape.CYLINDER),
            "h": ("Sub", NodeShape.SUBROUTINE),
        }

    @pytest.mark.parametrize("op, kind", [
        ("-->", EdgeKind.ARROW),
        ("--->", EdgeKind.ARROW),
        ("---", EdgeKind.LINE),
        ("-.->", EdgeKind.DOTTED_ARROW),
        ("-.-", EdgeKind.DOTTED),
        ("==>", EdgeKind.THICK_ARROW),
        ("===", EdgeKind.THICK),
        ("~~~", EdgeKind.INVISIBLE),
    ])
    def test_edge_operators(self, op, kind):
        graph = parse(f"graph TD\nA {op} B")
        assert graph.edges == (EdgeRecord("A", "B", kind),)

    def test_edge_operators_without_spaces(self):
        graph = parse("graph TD\nA-->B\nB-.->C")
        assert [(e.source, e.target, e.kind) for e in graph.edges] == [
            ("A", "B", EdgeKind.ARROW),
            ("B", "C", EdgeKind.DOTTED_ARROW),
        ]

    def test_labels(self):
        graph = parse(
            "graph TD\n"
            "  A -->|yes| B\n"
            "  A -- no --> C\n"
            "  B -. maybe .-> C\n"
            "  C == sure ==> D\n"
        )
        assert [(e.target, e.kind, e.label) for e in graph.edges] == [
            ("B", EdgeKind.ARROW, "yes"),
            ("C", EdgeKind.ARROW, "no"),
            ("C", EdgeKind.DOTTED_ARROW, "maybe"),
            ("D", EdgeKind.THICK_ARROW, "sure"),
        ]

    def test_chain(self):
        graph = parse("graph TD\nA --> B --> C")
        assert [(e.source, e.target) for e in graph.edges] == [("A", "B"), ("B", "C")]

    def test_ampersand_lists(self):
        graph = parse("graph TD\nA & B --> C & D")
        assert [(e.source, e.target) for e in graph.edges] == [
            ("A", "C"), ("A", "D"), ("B", "C"), ("B", "D"),
        ]

    def test_semicolons_and_comments(self):
        graph = parse("graph TD;\n%% ignore me\nA-->B; B-->C;\n")
        assert len(graph.edges) == 2

    def test_quoted_label_and_line_break(self):
        graph = parse('graph TD\nA["Hello<br>World"]')
        assert graph.nodes[0].label == "Hello\nWorld"

    def test_label_defined_later(self):
        graph = parse("graph TD\nA --> B\nB[Second]")
        assert graph.node("B").label == "Second"
        assert graph.node("A").label is None

    def test_styling_is_ignored(self):
        graph = parse("graph TD\nA --> B\nclassDef red fill:#f00\nstyle A fill:#fff\n")
        assert len(graph.nodes) == 2

    def test_subgraph(self):
        graph = parse(
            "graph TD\n"
            "  A --> B\n"
            "  subgraph backend [Back End]\n"
            "    B --> C\n"
            "  end\n"
            "  C --> D\n"
        )
        (group,) = graph.groups
        assert group.id == "backend"
        assert group.label == "Back End"
        # Nodes mentioned inside the subgraph join it, D stays outside
        assert group.node_ids == ("B", "C")

    def test_subgraph_title_without_brackets(self):
        graph = parse("graph TD\nsubgraph Data Layer\nX\nend")
        assert graph.groups[0].label == "Data Layer"
        assert graph.groups[0].node_ids == ("X",)

    def test_nested_subgraph_rejected(self):
        with pytest.raises(ParseError, match="nested"):
            parse("graph TD\nsubgraph a\nsubgraph b\nend\nend")

    def test_unclosed_subgraph(self):
        with pytest.raises(ParseError, match="never closed"):
            parse("graph TD\nsubgraph a\nX")

    def test_stray_end(self):
        with pytest.raises(ParseError, match="line 2"):
            parse("graph TD\nend")

    def test_unterminated_bracket(self):
        with pytest.raises(ParseError, match="unterminated"):
            parse("graph TD\nA[oops --> B")

    def test_garbage(self):
        with pytest.raises(ParseError, match="line 2"):
            parse("graph TD\nA <=> B")

    def test_parsed_graph_is_valid(self):
        parse("graph LR\nA --> B & C\nC --> A").validate()


class TestStateDiagram:
    """Tests for state diagram parsing."""

    def test_transitions(self):
        graph = parse_state(
            "stateDiagram-v2\n"
            "  [*] --> Still\n"
            "  Still --> [*]\n"
            "  Still --> Moving : push\n"
            "  Moving --> Crash\n"
            "  Crash --> [*]\n"
        )
        assert graph.kind == "state"
        assert [n.id for n in graph.nodes] == ["[*]start", "Still", "[*]end", "Moving", "Crash"]
        assert graph.edges[2] == EdgeRecord("Still", "Moving", EdgeKind.ARROW, "push")
        assert graph.node("[*]start").label == ""
        graph.validate()

    def test_aliases_and_descriptions(self):
        graph = parse(
            "stateDiagram\n"
            '  state "Waiting for input" as Wait\n'
            "  Busy : Working hard\n"
            "  Wait --> Busy\n"
        )
        assert graph.node("Wait").label == "Waiting for input"
        assert graph.node("Busy").label == "Working hard"

    def test_direction(self):
        assert parse("stateDiagram-v2\ndirection LR\nA --> B").direction is Direction.LR

    def test_composite_state_becomes_group(self):
        graph = parse(
            "stateDiagram-v2\n"
            "  [*] --> Active\n"
            "  state Active {\n"
            "    [*] --> Working\n"
            "    Working --> Paused\n"
            "  }\n"
        )
        (group,) = graph.groups
        assert group.id == "Active"
        assert group.node_ids == ("[*]Active.start", "Working", "Paused")

    def test_notes_are_skipped(self):
        graph = parse(
            "stateDiagram\n"
            "  A --> B\n"
            "  note right of A : inline\n"
            "  note left of B\n"
            "    spans lines\n"
            "  end note\n"
        )
        assert [n.id for n in graph.nodes] == ["A", "B"]

    def test_unexpected_line(self):
        with pytest.raises(ParseError, match="line 2"):
            parse("stateDiagram\nA -> B -> C")


class TestClassDiagram:
    """Tests for class diagram parsing."""

    def test_members_stack_under_the_name(self):
        graph = parse_class(
            "classDiagram\n"
            "  class Animal {\n"
            "    +name: string\n"
            "    +eat()\n"
            "    -age: int\n"
            "  }\n"
            "  Animal : +sleep()\n"
        )
        assert graph.kind == "class"
        (animal,) = graph.nodes
        assert animal.label == "Animal\n+name: string\n-age: int\n+eat()\n+sleep()"
        assert animal.shape is NodeShape.RECTANGLE

    @pytest.mark.parametrize("line, edge", [
        ("Animal <|-- Duck", ("Duck", "Animal", EdgeKind.ARROW)),
        ("Duck --|> Animal", ("Duck", "Animal", EdgeKind.ARROW)),
        ("Shape <|.. Circle", ("Circle", "Shape", EdgeKind.DOTTED_ARROW)),
        ("Circle ..|> Shape", ("Circle", "Shape", EdgeKind.DOTTED_ARROW)),
        ("Car *-- Wheel", ("Car", "Wheel", EdgeKind.LINE)),
        ("Wheel --* Car", ("Car", "Wheel", EdgeKind.LINE)),
        ("Pond o-- Duck", ("Pond", "Duck", EdgeKind.LINE)),
        ("A --> B", ("A", "B", EdgeKind.ARROW)),
        ("B <-- A", ("A", "B", EdgeKind.ARROW)),
        ("A ..> B", ("A", "B", EdgeKind.DOTTED_ARROW)),
        ("A -- B", ("A", "B", EdgeKind.LINE)),
        ("A .. B", ("A", "B", EdgeKind.DOTTED)),
    ])
    def test_relations(self, line, edge):
        (e,) = parse(f"classDiagram\n{line}").edges
        assert (e.source, e.target, e.kind) == edge

    def test_cardinality_and_label(self):
        graph = parse('classDiagram\nCustomer "1" --> "*" Ticket : opens')
        assert graph.edges == (EdgeRecord("Customer", "Ticket", EdgeKind.ARROW, "opens"),)
        assert [n.label for n in graph.nodes] == [None, None]

    def test_annotation_and_generic(self):
        graph = parse("classDiagram\nclass Stack~T~\n<<interface>> Shape\nclass Box {\n<<service>>\n}")
        assert graph.node("Stack").label == "Stack<T>"
        assert graph.node("Shape").label == "<<interface>>\nShape"
        assert graph.node("Box").label == "<<service>>\nBox"

    def test_namespace_becomes_group(self):
        graph = parse(
            "classDiagram\n"
            "  namespace Shapes {\n"
            "    class Circle\n"
            "    class Square\n"
            "  }\n"
            "  Circle --> Square\n"
            "  Square --> Canvas\n"
        )
        assert graph.groups == (GroupRecord("Shapes", "Shapes", ("Circle", "Square")),)
        graph.validate()

    def test_direction(self):
        assert parse("classDiagram\ndirection LR\nA --> B").direction is Direction.LR

    def test_unclosed_body(self):
        with pytest.raises(ParseError, match="never closed"):
            parse("classDiagram\nclass A {\n+x")

    def test_unexpected_line(self):
        with pytest.raises(ParseError, match="line 2"):
            parse("classDiagram\nA <=> B")


class TestGitGraph:
    """Tests for git graph parsing."""

    def test_branch_and_merge(self):
        graph = parse_gitgraph(
            "gitGraph\n"
            "  commit\n"
            '  commit id: "feat"\n'
            "  branch develop\n"
            "  checkout develop\n"
            "  commit\n"
            "  checkout main\n"
            '  merge develop tag: "v1"\n'
        )
        assert graph.kind == "gitgraph"
        assert graph.direction is Direction.LR
        assert [n.id for n in graph.nodes] == ["c1", "feat", "c2", "c3"]
        assert [(e.source, e.target) for e in graph.edges] == [
            ("c1", "feat"), ("feat", "c2"), ("feat", "c3"), ("c2", "c3"),
        ]
        assert all(e.kind is EdgeKind.LINE for e in graph.edges)
        assert graph.node("c3").label == "c3\nv1"
        assert {n.shape for n in graph.nodes} == {NodeShape.CIRCLE}

    def test_header_direction(self):
        assert parse("gitGraph TB:\ncommit").direction is Direction.TD

    def test_highlight_commit(self):
        graph = parse('gitGraph\ncommit id: "hot" type: HIGHLIGHT')
        assert graph.node("hot").shape is NodeShape.HEXAGON

    def test_cherry_pick(self):
        graph = parse(
            "gitGraph\n"
            '  commit id: "a"\n'
            "  branch fix\n"
            '  commit id: "b"\n'
            "  switch main\n"
            '  cherry-pick id: "b"\n'
        )
        assert graph.edges == (
            EdgeRecord("a", "b", EdgeKind.LINE),
            EdgeRecord("a", "c1", EdgeKind.LINE),
            EdgeRecord("b", "c1", EdgeKind.DOTTED),
        )

    def test_automatic_ids_skip_taken_ones(self):
        graph = parse('gitGraph\ncommit id: "c1"\ncommit')
        assert [n.id for n in graph.nodes] == ["c1", "c2"]

    @pytest.mark.parametrize("body, message", [
        ("checkout nope", "unknown branch 'nope'"),
        ("branch main", "already exists"),
        ("commit\nmerge main", "into itself"),
        ("branch dev\ncheckout main\nmerge dev", "nothing to merge"),
        ('commit id: "a"\ncommit id: "a"', "duplicate commit id 'a'"),
        ('cherry-pick id: "zz"', "unknown commit 'zz'"),
        ("checkout", "needs a branch name"),
        ("push origin", "unexpected"),
    ])
    def test_errors(self, body, message):
        with pytest.raises(ParseError, match=message):
            parse(f"gitGraph\n{body}")
