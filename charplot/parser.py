"""Parser for a subset of Mermaid flowchart, state, class and git graph markup."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from .errors import ParseError
from .models import (
    Direction,
    EdgeKind,
    EdgeRecord,
    GraphModel,
    GroupRecord,
    NodeRecord,
    NodeShape,
)

logger = logging.getLogger(__name__)

_FLOWCHART_HEADER = re.compile(r"^(?:graph|flowchart)\b\s*(?P<dir>\w+)?\s*;?$", re.IGNORECASE)
_STATE_HEADER = re.compile(r"^stateDiagram(?:-v2)?\s*$", re.IGNORECASE)
_CLASS_HEADER = re.compile(r"^classDiagram(?:-v2)?\s*$", re.IGNORECASE)
_GITGRAPH_HEADER = re.compile(r"^gitGraph(?:\s+(?P<dir>\w+))?\s*:?\s*$", re.IGNORECASE)
_DIRECTION = re.compile(r"^direction\s+(?P<dir>\w+)$", re.IGNORECASE)
_SUBGRAPH = re.compile(r"^subgraph\s+(?P<id>[^\s\[]+)(?:\s*\[(?P<label>[^\]]*)\])?(?P<rest>.*)$")
_IGNORED = re.compile(r"^(?:classDef|class|style|linkStyle|click|accTitle|accDescr)\b")

_NODE_ID = re.compile(r"\s*(?P<id>\w+)")
_AMPERSAND = re.compile(r"\s*&")
_PIPE_LABEL = re.compile(r"\s*\|(?P<label>[^|]*)\|")

# Opening bracket -> (closing bracket, shape), longest openings first
_SHAPES = [
    ("([", "])", NodeShape.TERMINAL),
    ("((", "))", NodeShape.CIRCLE),
    ("[(", ")]", NodeShape.CYLINDER),
    ("[[", "]]", NodeShape.SUBROUTINE),
    ("{{", "}}", NodeShape.HEXAGON),
    ("[", "]", NodeShape.RECTANGLE),
    ("(", ")", NodeShape.ROUNDED),
    ("{", "}", NodeShape.DIAMOND),
]

_TEXT_EDGES = [
    (re.compile(r"\s*--\s*(?P<text>[^->|]+?)\s*-{2,}>"), EdgeKind.ARROW),
    (re.compile(r"\s*--\s*(?P<text>[^->|]+?)\s*-{3,}"), EdgeKind.LINE),
    (re.compile(r"\s*-\.\s*(?P<text>[^.>|]+?)\s*\.+->"), EdgeKind.DOTTED_ARROW),
    (re.compile(r"\s*==\s*(?P<text>[^=>|]+?)\s*={2,}>"), EdgeKind.THICK_ARROW),
]

_EDGES = [
    (re.compile(r"\s*-\.+->"), EdgeKind.DOTTED_ARROW),
    (re.compile(r"\s*-\.+-"), EdgeKind.DOTTED),
    (re.compile(r"\s*={2,}>"), EdgeKind.THICK_ARROW),
    (re.compile(r"\s*={3,}"), EdgeKind.THICK),
    (re.compile(r"\s*~{3,}"), EdgeKind.INVISIBLE),
    (re.compile(r"\s*-{2,}>"), EdgeKind.ARROW),
    (re.compile(r"\s*-{3,}"), EdgeKind.LINE),
]

_STATE_TRANSITION = re.compile(
    r"^(?P<src>\[\*\]|\w+)\s*-->\s*(?P<dst>\[\*\]|\w+)\s*(?::\s*(?P<label>.*))?$"
)
_STATE_ALIAS = re.compile(r'^state\s+"(?P<label>[^"]*)"\s+as\s+(?P<id>\w+)$')
_STATE_COMPOSITE = re.compile(r"^state\s+(?P<id>\w+)\s*\{$")
_STATE_DESCRIPTION = re.compile(r"^(?P<id>\w+)\s*:\s*(?P<label>.+)$")
_STATE_DECLARATION = re.compile(r"^(?P<id>\w+)$")

_CLASS_DECLARATION = re.compile(
    r'^class\s+(?P<id>\w+)(?:~(?P<generic>[^~]+)~)?\s*(?:\[\s*"(?P<label>[^"]*)"\s*\])?'
    r"\s*(?P<open>\{)?\s*(?P<close>\})?$"
)
_CLASS_NAMESPACE = re.compile(r"^namespace\s+(?P<id>[\w.]+)\s*\{$")
_CLASS_MEMBER = re.compile(r"^(?P<id>\w+)\s*:\s*(?P<member>.+)$")
_CLASS_ANNOTATION = re.compile(r"^<<(?P<annotation>[^>]+)>>(?:\s*(?P<id>\w+))?$")
_CLASS_RELATION = re.compile(
    r'^(?P<a>\w+)\s*(?:"[^"]*"\s*)?'
    r"(?P<op><\|--|--\|>|<\|\.\.|\.\.\|>|\*--|--\*|(?<=\s)o--|--o(?=\s)|<--|-->|<\.\.|\.\.>|--|\.\.)"
    r'\s*(?:"[^"]*"\s*)?(?P<b>\w+)\s*(?::\s*(?P<label>.+))?$'
)
_CLASS_IGNORED = re.compile(r"^(?:note|classDef|cssClass|style|click|link|callback)\b")

# Relation operator -> (edge kind, whether the edge runs from right to left)
_CLASS_RELATIONS = {
    "<|--": (EdgeKind.ARROW, True),
    "--|>": (EdgeKind.ARROW, False),
    "<|..": (EdgeKind.DOTTED_ARROW, True),
    "..|>": (EdgeKind.DOTTED_ARROW, False),
    "*--": (EdgeKind.LINE, False),
    "--*": (EdgeKind.LINE, True),
    "o--": (EdgeKind.LINE, False),
    "--o": (EdgeKind.LINE, True),
    "<--": (EdgeKind.ARROW, True),
    "-->": (EdgeKind.ARROW, False),
    "<..": (EdgeKind.DOTTED_ARROW, True),
    "..>": (EdgeKind.DOTTED_ARROW, False),
    "--": (EdgeKind.LINE, False),
    "..": (EdgeKind.DOTTED, False),
}

_GIT_COMMAND = re.compile(r"^(?P<command>commit|branch|checkout|switch|merge|cherry-pick)\b\s*(?P<rest>.*)$")
_GIT_BRANCH = re.compile(r'^"?(?P<name>[\w./-]+)"?')
_GIT_ATTRIBUTE = re.compile(r'(?P<key>\w+)\s*:\s*(?:"(?P<quoted>[^"]*)"|(?P<bare>\S+))')

_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)


def _clean_label(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] == '"':
        text = text[1:-1]
    return _BREAK.sub("\n", text)


def _meaningful_lines(text: str) -> list[tuple[int, str]]:
    """Non-empty, non-comment lines with their 1-based line numbers."""
    lines = []
    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("%%"):
            continue
        lines.append((number, line))
    return lines


def detect_kind(text: str) -> str:
    """Detect the diagram kind from the header line.

    Returns:
        "flowchart", "state", "class" or "gitgraph"

    Raises:
        ParseError: the text is empty or has an unknown header
    """
    lines = _meaningful_lines(text)
    if not lines:
        raise ParseError("empty diagram")
    number, first = lines[0]
    if _FLOWCHART_HEADER.match(first):
        return "flowchart"
    if _STATE_HEADER.match(first):
        return "state"
    if _CLASS_HEADER.match(first):
        return "class"
    if _GITGRAPH_HEADER.match(first):
        return "gitgraph"
    keyword = first.split()[0]
    raise ParseError(f"unknown diagram type '{keyword}'", number)


class _Builder:
    """Collects nodes, edges and groups while parsing."""

    def __init__(self, direction: Direction = Direction.TD):
        self.direction = direction
        self.nodes: dict[str, NodeRecord] = {}
        self.edges: list[EdgeRecord] = []
        self.groups: list[tuple[str, str | None, list[str]]] = []
        self.group: tuple[str, str | None, list[str]] | None = None
        self.owner: dict[str, str] = {}

    def touch(self, node_id: str, label: str | None = None, shape: NodeShape | None = None) -> None:
        current = self.nodes.get(node_id)
        if current is None:
            current = NodeRecord(node_id)
        if label is not None or shape is not None:
            current = NodeRecord(
                node_id,
                label if label is not None else current.label,
                shape if shape is not None else current.shape,
            )
        self.nodes[node_id] = current
        if self.group is not None and node_id not in self.owner:
            self.owner[node_id] = self.group[0]
            self.group[2].append(node_id)

    def open_group(self, group_id: str, label: str | None, number: int) -> None:
        if self.group is not None:
            raise ParseError("nested groups are not supported", number)
        self.group = (group_id, label, [])
        self.groups.append(self.group)

    def close_group(self, number: int) -> None:
        if self.group is None:
            raise ParseError("'end' without an open group", number)
        self.group = None

    def build(self, kind: str) -> GraphModel:
        if self.group is not None:
            raise ParseError(f"group '{self.group[0]}' is never closed")
        return GraphModel(
            nodes=tuple(self.nodes.values()),
            edges=tuple(self.edges),
            direction=self.direction,
            groups=tuple(
                GroupRecord(group_id, label, tuple(members))
                for group_id, label, members in self.groups
            ),
            kind=kind,
        )


def _parse_direction(token: str, number: int) -> Direction:
    try:
        return Direction.parse(token)
    except ValueError as e:
        raise ParseError(str(e), number) from None


def _parse_node(statement: str, pos: int, builder: _Builder, number: int) -> tuple[str, int]:
    match = _NODE_ID.match(statement, pos)
    if not match:
        raise ParseError(f"expected a node id at '{statement[pos:].strip()}'", number)
    node_id = match.group("id")
    pos = match.end()

    for opening, closing, shape in _SHAPES:
        if statement.startswith(opening, pos):
            end = statement.find(closing, pos + len(opening))
            if end < 0:
                raise ParseError(f"unterminated '{opening}' for node '{node_id}'", number)
            label = _clean_label(statement[pos + len(opening):end])
            builder.touch(node_id, label, shape)
            return node_id, end + len(closing)

    builder.touch(node_id)
    return node_id, pos


def _parse_node_list(statement: str, pos: int, builder: _Builder, number: int) -> tuple[list[str], int]:
    node_id, pos = _parse_node(statement, pos, builder, number)
    ids = [node_id]
    while match := _AMPERSAND.match(statement, pos):
        node_id, pos = _parse_node(statement, match.end(), builder, number)
        ids.append(node_id)
    return ids, pos


def _parse_edge(statement: str, pos: int) -> tuple[EdgeKind, str | None, int] | None:
    for pattern, kind in _TEXT_EDGES:
        match = pattern.match(statement, pos)
        if match:
            return kind, _clean_label(match.group("text")), match.end()
    for pattern, kind in _EDGES:
        match = pattern.match(statement, pos)
        if match:
            pos = match.end()
            label = None
            pipe = _PIPE_LABEL.match(statement, pos)
            if pipe:
                label = _clean_label(pipe.group("label"))
                pos = pipe.end()
            return kind, label, pos
    return None


def _parse_statement(statement: str, builder: _Builder, number: int) -> None:
    sources, pos = _parse_node_list(statement, 0, builder, number)
    while pos < len(statement) and statement[pos:].strip():
        edge = _parse_edge(statement, pos)
        if edge is None:
            raise ParseError(f"unexpected '{statement[pos:].strip()}'", number)
        kind, label, pos = edge
        targets, pos = _parse_node_list(statement, pos, builder, number)
        for s in sources:
            for t in targets:
                builder.edges.append(EdgeRecord(s, t, kind, label or None))
        sources = targets


def parse_flowchart(text: str) -> GraphModel:
    """Parse ``graph``/``flowchart`` markup into a graph model."""
    lines = _meaningful_lines(text)
    if not lines:
        raise ParseError("empty diagram")

    number, header = lines[0]
    match = _FLOWCHART_HEADER.match(header)
    if not match:
        raise ParseError("expected 'graph' or 'flowchart' header", number)
    builder = _Builder()
    if match.group("dir"):
        builder.direction = _parse_direction(match.group("dir"), number)

    for number, line in lines[1:]:
        for statement in (s.strip() for s in line.split(";")):
            if not statement:
                continue
            if statement == "end":
                builder.close_group(number)
                continue
            sub = _SUBGRAPH.match(statement)
            if sub:
                label = sub.group("label")
                rest = sub.group("rest").strip()
                if label is None and rest:
                    label = f"{sub.group('id')} {rest}"
                builder.open_group(
                    sub.group("id"),
                    _clean_label(label) if label is not None else None,
                    number,
                )
                continue
            direction = _DIRECTION.match(statement)
            if direction:
                # Groups share the diagram's direction
                if builder.group is None:
                    builder.direction = _parse_direction(direction.group("dir"), number)
                continue
            if _IGNORED.match(statement):
                logger.debug("Ignoring styling statement on line %d", number)
                continue
            _parse_statement(statement, builder, number)

    return builder.build("flowchart")


def parse_state(text: str) -> GraphModel:
    """Parse ``stateDiagram``/``stateDiagram-v2`` markup into a graph model.

    ``[*]`` becomes a start pseudo-state when used as a source and an end
    pseudo-state when used as a target; inside a composite state each
    composite gets its own pair.
    """
    lines = _meaningful_lines(text)
    if not lines:
        raise ParseError("empty diagram")
    number, header = lines[0]
    if not _STATE_HEADER.match(header):
        raise ParseError("expected 'stateDiagram' header", number)

    builder = _Builder()
    in_note = False

    def pseudo(role: str) -> str:
        scope = f"{builder.group[0]}." if builder.group else ""
        node_id = f"[*]{scope}{role}"
        builder.touch(node_id, "")
        return node_id

    for number, line in lines[1:]:
        if in_note:
            in_note = line != "end note"
            continue
        if line.startswith("note "):
            in_note = ":" not in line
            continue
        if line == "}":
            builder.close_group(number)
            continue
        if line == "--":
            continue

        match = _DIRECTION.match(line)
        if match:
            if builder.group is None:
                builder.direction = _parse_direction(match.group("dir"), number)
            continue
        match = _STATE_COMPOSITE.match(line)
        if match:
            builder.open_group(match.group("id"), match.group("id"), number)
            continue
        match = _STATE_TRANSITION.match(line)
        if match:
            src, dst = match.group("src"), match.group("dst")
            src = pseudo("start") if src == "[*]" else src
            dst = pseudo("end") if dst == "[*]" else dst
            builder.touch(src)
            builder.touch(dst)
            label = match.group("label")
            builder.edges.append(EdgeRecord(src, dst, EdgeKind.ARROW, label.strip() if label else None))
            continue
        match = _STATE_ALIAS.match(line)
        if match:
            builder.touch(match.group("id"), _clean_label(match.group("label")))
            continue
        match = _STATE_DESCRIPTION.match(line)
        if match:
            builder.touch(match.group("id"), _clean_label(match.group("label")))
            continue
        match = _STATE_DECLARATION.match(line)
        if match:
            builder.touch(match.group("id"))
            continue
        raise ParseError(f"unexpected '{line}'", number)

    return builder.build("state")


@dataclass
class _ClassBox:
    """Compartments of one class, joined into its label at the end."""

    title: str | None = None
    annotation: str | None = None
    attributes: list[str] = field(default_factory=list)
    methods: list[str] = field(default_factory=list)

    def add(self, member: str) -> None:
        member = member.strip()
        if member.startswith("<<") and member.endswith(">>"):
            self.annotation = member
        elif "(" in member:
            self.methods.append(member)
        else:
            self.attributes.append(member)

    def label(self, class_id: str) -> str | None:
        lines = [self.annotation] if self.annotation else []
        lines.append(self.title or class_id)
        lines.extend(self.attributes)
        lines.extend(self.methods)
        return "\n".join(lines) if len(lines) > 1 or self.title else None


def parse_class(text: str) -> GraphModel:
    """Parse ``classDiagram`` markup into a graph model.

    Each class becomes a rectangle whose label stacks its annotation, name,
    attributes and methods, one per line. Relations become edges running
    toward the arrowhead: ``Animal <|-- Duck`` is an edge from ``Duck`` to
    ``Animal``. A ``namespace`` block becomes a group.
    """
    lines = _meaningful_lines(text)
    if not lines:
        raise ParseError("empty diagram")
    number, header = lines[0]
    if not _CLASS_HEADER.match(header):
        raise ParseError("expected 'classDiagram' header", number)

    builder = _Builder()
    boxes: dict[str, _ClassBox] = {}
    body: str | None = None

    def declare(class_id: str) -> _ClassBox:
        builder.touch(class_id, shape=NodeShape.RECTANGLE)
        return boxes.setdefault(class_id, _ClassBox())

    for number, line in lines[1:]:
        if body is not None:
            if line == "}":
                body = None
            else:
                boxes[body].add(line)
            continue
        if line == "}":
            builder.close_group(number)
            continue
        if _CLASS_IGNORED.match(line):
            logger.debug("Ignoring class statement on line %d", number)
            continue

        match = _DIRECTION.match(line)
        if match:
            builder.direction = _parse_direction(match.group("dir"), number)
            continue
        match = _CLASS_NAMESPACE.match(line)
        if match:
            builder.open_group(match.group("id"), match.group("id"), number)
            continue
        match = _CLASS_DECLARATION.match(line)
        if match:
            box = declare(match.group("id"))
            if match.group("label") is not None:
                box.title = _clean_label(match.group("label"))
            elif match.group("generic"):
                box.title = f"{match.group('id')}<{match.group('generic')}>"
            if match.group("open") and not match.group("close"):
                body = match.group("id")
            continue
        match = _CLASS_ANNOTATION.match(line)
        if match and match.group("id"):
            declare(match.group("id")).annotation = f"<<{match.group('annotation').strip()}>>"
            continue
        match = _CLASS_RELATION.match(line)
        if match:
            kind, reverse = _CLASS_RELATIONS[match.group("op")]
            a, b = match.group("a"), match.group("b")
            declare(a)
            declare(b)
            source, target = (b, a) if reverse else (a, b)
            label = match.group("label")
            builder.edges.append(EdgeRecord(source, target, kind, _clean_label(label) if label else None))
            continue
        match = _CLASS_MEMBER.match(line)
        if match:
            declare(match.group("id")).add(match.group("member"))
            continue
        raise ParseError(f"unexpected '{line}'", number)

    if body is not None:
        raise ParseError(f"class '{body}' is never closed")
    for class_id, box in boxes.items():
        builder.nodes[class_id] = NodeRecord(class_id, box.label(class_id), NodeShape.RECTANGLE)
    return builder.build("class")


def parse_gitgraph(text: str) -> GraphModel:
    """Parse ``gitGraph`` markup into a graph model.

    Commits become circles joined to their parents by plain lines, so the
    history reads left to right unless the header names another direction.
    Work starts on ``main``; ``branch`` forks from the current tip and
    switches to the new branch, ``checkout``/``switch`` moves between
    branches, ``merge`` adds a commit with two parents and ``cherry-pick``
    copies a commit onto the current branch with a dotted line back to the
    original. ``HIGHLIGHT`` commits are drawn as hexagons and a ``tag``
    is shown under the commit id.
    """
    lines = _meaningful_lines(text)
    if not lines:
        raise ParseError("empty diagram")
    number, header = lines[0]
    match = _GITGRAPH_HEADER.match(header)
    if not match:
        raise ParseError("expected 'gitGraph' header", number)
    builder = _Builder(Direction.LR)
    if match.group("dir"):
        builder.direction = _parse_direction(match.group("dir"), number)

    tips: dict[str, str | None] = {"main": None}
    branch = "main"
    counter = 0

    def commit(attributes: dict[str, str], parents: list[tuple[str, EdgeKind]], number: int) -> None:
        nonlocal counter
        commit_id = attributes.get("id")
        if commit_id is None:
            counter += 1
            while f"c{counter}" in builder.nodes:
                counter += 1
            commit_id = f"c{counter}"
        elif commit_id in builder.nodes:
            raise ParseError(f"duplicate commit id '{commit_id}'", number)
        tag = attributes.get("tag")
        shape = NodeShape.HEXAGON if attributes.get("type", "").upper() == "HIGHLIGHT" else NodeShape.CIRCLE
        builder.touch(commit_id, f"{commit_id}\n{tag}" if tag else None, shape)
        for parent, kind in parents:
            builder.edges.append(EdgeRecord(parent, commit_id, kind))
        tips[branch] = commit_id

    def known(name: str, number: int) -> str:
        if name not in tips:
            raise ParseError(f"unknown branch '{name}'", number)
        return name

    for number, line in lines[1:]:
        match = _GIT_COMMAND.match(line)
        if not match:
            raise ParseError(f"unexpected '{line}'", number)
        command, rest = match.group("command"), match.group("rest")
        name_match = _GIT_BRANCH.match(rest)
        name = name_match.group("name") if name_match else None
        attributes = {
            m.group("key"): m.group("quoted") if m.group("quoted") is not None else m.group("bare")
            for m in _GIT_ATTRIBUTE.finditer(rest)
        }
        tip = tips[branch]
        parents = [(tip, EdgeKind.LINE)] if tip else []

        if command == "commit":
            commit(attributes, parents, number)
        elif command == "cherry-pick":
            picked = attributes.pop("id", None)
            if picked not in builder.nodes:
                raise ParseError(f"cannot cherry-pick unknown commit '{picked}'", number)
            commit(attributes, parents + [(picked, EdgeKind.DOTTED)], number)
        elif name is None:
            raise ParseError(f"'{command}' needs a branch name", number)
        elif command == "branch":
            if name in tips:
                raise ParseError(f"branch '{name}' already exists", number)
            tips[name] = tip
            branch = name
        elif command in ("checkout", "switch"):
            branch = known(name, number)
        elif command == "merge":
            if name == branch:
                raise ParseError(f"cannot merge branch '{name}' into itself", number)
            other = tips[known(name, number)]
            if other is None or other == tip:
                raise ParseError(f"nothing to merge from '{name}'", number)
            commit(attributes, parents + [(other, EdgeKind.LINE)], number)

    logger.debug("Parsed git graph with %d branches", len(tips))
    return builder.build("gitgraph")


_PARSERS = {
    "flowchart": parse_flowchart,
    "state": parse_state,
    "class": parse_class,
    "gitgraph": parse_gitgraph,
}


def parse(text: str) -> GraphModel:
    """Parse diagram markup of any supported kind.

    Raises:
        ParseError: the markup is not understood
    """
    return _PARSERS[detect_kind(text)](text)
