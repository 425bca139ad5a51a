"""
Scene Graph Example
===================

A small 2D scene demonstrating:
- Serializable subclasses with constructor arguments
- Parent/child cycles and shared materials
- Round-tripping through JSON with identity preserved
"""

from datetime import UTC, datetime

from graphserial import Serializable, from_json, to_json


# ============================================================================
# Define Types
# ============================================================================

class Material(Serializable):
    """Fill color shared between shapes."""

    def __init__(self, color: str, opacity: float = 1.0) -> None:
        self.color = color
        self.opacity = opacity


class Shape(Serializable):
    """A named shape that knows its parent group."""

    def __init__(self, name: str, material: Material) -> None:
        self.name = name
        self.material = material
        self.parent: Group | None = None


class Circle(Shape):
    def __init__(self, name: str, material: Material, radius: float) -> None:
        super().__init__(name, material)
        self.radius = radius


class Group(Serializable):
    """Container that links children back to itself."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.children: list[Shape] = []
        self.tags: set[str] = set()
        self.created = datetime(2024, 1, 1, tzinfo=UTC)

    def add(self, shape: Shape) -> None:
        shape.parent = self
        self.children.append(shape)


# ============================================================================
# Build and round-trip
# ============================================================================

def build_scene() -> Group:
    """Two circles sharing one material inside a group."""
    red = Material("#ff0000", opacity=0.8)
    scene = Group("scene")
    scene.add(Circle("sun", red, radius=10.0))
    scene.add(Circle("dot", red, radius=0.5))
    scene.tags = {"demo", "2d"}
    return scene


def main() -> None:
    scene = build_scene()
    text = to_json(scene, indent=2)
    print(text)

    restored = from_json(text)
    sun, dot = restored.children
    print(f"Restored {restored.name!r} with {len(restored.children)} children")
    print(f"Children point back at the group: {sun.parent is restored}")
    print(f"Material shared: {sun.material is dot.material}")


if __name__ == "__main__":
    main()
