"""Tests for tree assembly, scope propagation and declared-dependency trees."""

from unittest.mock import Mock

import pytest

from depview.errors import BrokenHierarchy, InvalidPom
from depview.models import AnnotationKind, DependencyNode
from depview.pom import DeclaredDependency, PomDeclarations, parse_pom, resolve_property
from depview.tree_builder import DeclaredTreeBuilder, TreeAssembler, propagate_scope


def _node(artifact_id: str, scope: str = "compile", version: str = "1.0") -> DependencyNode:
    return DependencyNode("com.example", artifact_id, version, scope=scope)


def _chain(*scopes: str) -> DependencyNode:
    """Build a single-path tree a -> b -> c ... with the given scopes."""
    root = _node("n0", scopes[0])
    current = root
    for i, scope in enumerate(scopes[1:], start=1):
        child = _node(f"n{i}", scope)
        current.add_child(child)
        current = child
    return root


class TestTreeAssembler:
    """Tests for the depth-stack assembler."""

    def test_siblings_and_nesting(self):
        root = _node("root")
        assembler = TreeAssembler(root)
        a, b, c, d = _node("a"), _node("b"), _node("c"), _node("d")

        assert assembler.add(1, a) is root
        assert assembler.add(2, b) is a
        assert assembler.add(3, c) is b
        assert assembler.add(1, d) is root

        assert root.children == [a, d]
        assert c.parent is b
        assert assembler.node_count == 5
        assert assembler.current_depth == 1

    def test_depth_jump_attaches_to_deepest_shallower_ancestor(self):
        root = _node("root")
        assembler = TreeAssembler(root)
        a, b = _node("a"), _node("b")
        assembler.add(1, a)

        assert assembler.add(4, b) is a

    def test_depth_zero_breaks_hierarchy(self):
        assembler = TreeAssembler(_node("root"))
        assembler.add(1, _node("a"))

        with pytest.raises(BrokenHierarchy) as exc_info:
            assembler.add(0, _node("stray"), line_number=7, text="com.example:stray:jar:1.0")

        assert exc_info.value.line_number == 7
        assert exc_info.value.text == "com.example:stray:jar:1.0"

    def test_deep_tree_does_not_recurse(self):
        root = _node("root")
        assembler = TreeAssembler(root)
        for depth in range(1, 5001):
            assembler.add(depth, _node(f"n{depth}"))

        deepest = list(root.walk())[-1]
        assert deepest.depth == 5000
        assert len(root.to_dict()["children"]) == 1


class TestPropagateScope:
    """Tests for Maven scope inheritance."""

    def test_test_scope_overrides_everything(self):
        root = _chain("compile", "compile", "runtime", "provided")

        changed = propagate_scope(root, "test")

        assert [node.scope for node in root.walk()] == ["test"] * 4
        assert changed == 3

    def test_provided_scope_overrides_everything(self):
        root = _chain("compile", "runtime", "compile")

        propagate_scope(root, "provided")

        assert [node.scope for node in root.walk()] == ["provided"] * 3

    def test_runtime_replaces_compile_only(self):
        root = _chain("compile", "compile", "test", "compile")

        changed = propagate_scope(root, "runtime")

        assert [node.scope for node in root.walk()] == ["runtime", "runtime", "test", "compile"]
        assert changed == 1

    def test_runtime_replaces_unset_scope(self):
        root = _chain("compile", "compile")
        root.children[0].scope = None

        propagate_scope(root, "runtime")

        assert root.children[0].scope == "runtime"

    def test_compile_leaves_descendants(self):
        root = _chain("runtime", "runtime", "test")

        changed = propagate_scope(root, "compile")

        assert [node.scope for node in root.walk()] == ["compile", "runtime", "test"]
        assert changed == 0


class TestDeclaredTreeBuilder:
    """Tests for building a tree from individually resolved declarations."""

    def _declarations(self, *deps: DeclaredDependency, managed=None) -> PomDeclarations:
        return PomDeclarations(
            group_id="com.example",
            artifact_id="app",
            version="1.0.0",
            dependencies=list(deps),
            managed_versions=managed or {},
        )

    def test_resolves_each_declaration_under_root(self):
        def resolve(group_id, artifact_id, version, scope):
            node = DependencyNode(group_id, artifact_id, version)
            node.add_child(DependencyNode("org.transitive", "lib", "2.0"))
            return node

        builder = DeclaredTreeBuilder(resolve)
        root = builder.build(self._declarations(
            DeclaredDependency("org.a", "a", "1.0"),
            DeclaredDependency("org.b", "b", "2.0", scope="test"),
        ))

        assert root.coordinates == "com.example:app:1.0.0"
        assert [c.artifact_id for c in root.children] == ["a", "b"]
        assert root.children[0].scope == "compile"
        assert root.children[1].children[0].scope == "test"
        assert all(c.parent is root for c in root.children)

    def test_managed_version_fills_missing_version(self):
        resolver = Mock(side_effect=lambda g, a, v, s: DependencyNode(g, a, v))
        builder = DeclaredTreeBuilder(resolver)

        root = builder.build(self._declarations(
            DeclaredDependency("org.a", "a"),
            managed={"org.a:a": "3.1"},
        ))

        resolver.assert_called_once_with("org.a", "a", "3.1", "compile")
        child = root.children[0]
        assert child.version == "3.1"
        assert child.annotations[0].kind == AnnotationKind.VERSION_MANAGED
        assert child.notes == "version managed from 3.1"

    def test_notes_transitive_versions_that_differ_from_management(self):
        def resolve(group_id, artifact_id, version, scope):
            node = DependencyNode(group_id, artifact_id, version)
            node.add_child(DependencyNode("org.t", "same", "1.0"))
            node.add_child(DependencyNode("org.t", "other", "1.0"))
            return node

        builder = DeclaredTreeBuilder(resolve)
        builder.set_dependency_management({"org.t:same": "1.0", "org.t:other": "2.0"})
        root = builder.build(self._declarations(DeclaredDependency("org.a", "a", "1.0")))

        same, other = root.children[0].children
        assert same.notes is None
        assert other.notes == "version managed from 2.0"

    def test_each_build_uses_its_own_pom_management(self):
        resolver = Mock(side_effect=lambda g, a, v, s: DependencyNode(g, a, v))
        builder = DeclaredTreeBuilder(resolver)

        first = builder.build(self._declarations(DeclaredDependency("org", "lib"), managed={"org:lib": "1.0"}))
        second = builder.build(self._declarations(DeclaredDependency("org", "lib"), managed={"org:lib": "2.0"}))

        assert first.children[0].version == "1.0"
        assert second.children[0].version == "2.0"
        assert second.children[0].notes == "version managed from 2.0"
        assert builder.dependency_management == {}

    def test_explicit_management_overrides_pom(self):
        resolver = Mock(side_effect=lambda g, a, v, s: DependencyNode(g, a, v))
        builder = DeclaredTreeBuilder(resolver)
        builder.set_dependency_management({"org:lib": "3.0"})

        root = builder.build(self._declarations(DeclaredDependency("org", "lib"), managed={"org:lib": "1.0"}))

        assert root.children[0].version == "3.0"

    def test_failures_reset_between_builds(self):
        builder = DeclaredTreeBuilder(Mock(side_effect=RuntimeError("offline")))

        builder.build(self._declarations(DeclaredDependency("org.a", "a", "1.0")))
        builder.build(self._declarations(DeclaredDependency("org.b", "b", "1.0")))

        assert [dep.artifact_id for dep in builder.failures] == ["b"]

    def test_failed_resolution_becomes_leaf(self):
        resolver = Mock(side_effect=RuntimeError("repository unreachable"))
        builder = DeclaredTreeBuilder(resolver)

        root = builder.build(self._declarations(
            DeclaredDependency("org.a", "a", "1.0", scope="provided", optional=True),
            DeclaredDependency("org.b", "b"),
        ))

        failed, unversioned = root.children
        assert failed.children == []
        assert failed.scope == "provided"
        assert failed.optional is True
        assert unversioned.version == "UNKNOWN"
        assert len(builder.failures) == 2
        assert resolver.call_count == 1


POM = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <parent>
    <groupId>org.springframework.boot</groupId>
    <artifactId>spring-boot-starter-parent</artifactId>
    <version>3.1.0</version>
  </parent>
  <artifactId>petclinic</artifactId>
  <version>3.1.0-SNAPSHOT</version>
  <properties>
    <webjars-bootstrap.version>5.2.3</webjars-bootstrap.version>
  </properties>
  <dependencyManagement>
    <dependencies>
      <dependency>
        <groupId>com.h2database</groupId>
        <artifactId>h2</artifactId>
        <version>2.1.214</version>
      </dependency>
    </dependencies>
  </dependencyManagement>
  <dependencies>
    <dependency>
      <groupId>org.webjars.npm</groupId>
      <artifactId>bootstrap</artifactId>
      <version>${webjars-bootstrap.version}</version>
    </dependency>
    <dependency>
      <groupId>com.h2database</groupId>
      <artifactId>h2</artifactId>
      <scope>runtime</scope>
    </dependency>
    <dependency>
      <groupId>${project.groupId}</groupId>
      <artifactId>petclinic-api</artifactId>
      <version>${project.version}</version>
      <optional>true</optional>
    </dependency>
  </dependencies>
</project>
"""


class TestParsePom:
    """Tests for reading declarations from pom.xml."""

    def test_project_coordinates_inherit_from_parent(self):
        declarations = parse_pom(POM)

        assert declarations.group_id == "org.springframework.boot"
        assert declarations.artifact_id == "petclinic"
        assert declarations.version == "3.1.0-SNAPSHOT"
        assert declarations.packaging == "jar"

    def test_dependencies_and_management(self):
        declarations = parse_pom(POM)
        bootstrap, h2, api = declarations.dependencies

        assert bootstrap.version == "5.2.3"
        assert h2.version is None
        assert h2.scope == "runtime"
        assert api.group_id == "org.springframework.boot"
        assert api.version == "3.1.0-SNAPSHOT"
        assert api.optional is True
        assert declarations.managed_versions == {"com.h2database:h2": "2.1.214"}

    def test_pom_without_namespace(self):
        pom = "<project><groupId>g</groupId><artifactId>a</artifactId><version>1</version></project>"

        declarations = parse_pom(pom)

        assert (declarations.group_id, declarations.artifact_id, declarations.version) == ("g", "a", "1")

    def test_invalid_xml(self):
        with pytest.raises(InvalidPom):
            parse_pom("<project><artifactId>")

    def test_missing_artifact_id(self):
        with pytest.raises(InvalidPom):
            parse_pom("<project><groupId>g</groupId></project>")

    def test_resolve_property(self):
        props = {"a": "${b}", "b": "1.0"}

        assert resolve_property("${a}", props) == "1.0"
        assert resolve_property("${missing}", props) is None
        assert resolve_property("plain", props) == "plain"
