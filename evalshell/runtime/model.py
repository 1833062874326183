from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, TypeVar

N = TypeVar("N", bound="Node")


@dataclass(eq=False)
class Node:
    """A named node of the program tree handed over by a runtime plugin.

    Nodes compare by identity: two tests with the same name in different
    describes are different targets.
    """

    name: str
    children: List["Node"] = field(default_factory=list)
    parent: Optional["Node"] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        for child in self.children:
            child.parent = self

    def add_child(self, child: N) -> N:
        child.parent = self
        self.children.append(child)
        return child

    def descendants(self) -> Iterator["Node"]:
        # pre-order, declaration order
        for child in self.children:
            yield child
            yield from child.descendants()

    def descendants_of(self, kind: type[N]) -> Iterator[N]:
        for node in self.descendants():
            if isinstance(node, kind):
                yield node

    def ancestors(self) -> Iterator["Node"]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    @property
    def fully_qualified_name(self) -> str:
        names = [self.name]
        for ancestor in self.ancestors():
            if isinstance(ancestor, Environment):
                break
            names.append(ancestor.name)
        return ".".join(reversed(names))

    def contains(self, node: "Node") -> bool:
        return any(ancestor is self for ancestor in node.ancestors())


@dataclass(eq=False)
class Environment(Node):
    name: str = ""

    def get_node_by_fqn(self, fqn: str) -> Optional[Node]:
        for node in self.descendants():
            if node.fully_qualified_name == fqn:
                return node
        return None

    def packages(self) -> Sequence["Package"]:
        return list(self.descendants_of(Package))


@dataclass(eq=False)
class Entity(Node):
    """A node that groups other nodes: packages and describes."""


@dataclass(eq=False)
class Package(Entity):
    file_name: Optional[str] = None


@dataclass(eq=False)
class Describe(Entity):
    pass


@dataclass(eq=False)
class Test(Node):
    is_only: bool = False


def quoted(name: str) -> str:
    return f'"{name}"'


def unquote(value: str) -> str:
    return value.replace('"', "")


__all__ = [
    "Describe",
    "Entity",
    "Environment",
    "Node",
    "Package",
    "Test",
    "quoted",
    "unquote",
]
