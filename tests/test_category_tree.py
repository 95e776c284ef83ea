"""Tests for category tree building and path computation."""

from backoffice.enrich.category_tree import build_tree, compute_paths, flatten_tree, split_path
from backoffice.upstream.models import Category


def flat(*pairs):
    return [Category(category_code=code, parent_category_code=parent) for code, parent in pairs]


def codes(categories):
    return [c.category_code for c in categories]


class TestBuildTree:
    """Test flat-to-tree building."""

    def test_orphan_promoted_to_root(self):
        roots = build_tree(flat(("A", None), ("B", "A"), ("C", "Z")))
        compute_paths(roots)

        assert codes(roots) == ["A", "C"]
        assert codes(roots[0].children) == ["B"]
        assert roots[1].children == []
        index = flatten_tree(roots)
        assert {code: c.path for code, c in index.items()} == {"A": "A", "B": "A > B", "C": "C"}

    def test_sibling_order_preserved(self):
        roots = build_tree(flat(("R", None), ("C3", "R"), ("C1", "R"), ("C2", "R")))
        assert codes(roots[0].children) == ["C3", "C1", "C2"]

    def test_child_before_parent(self):
        roots = build_tree(flat(("B", "A"), ("A", None)))
        assert codes(roots) == ["A"]
        assert codes(roots[0].children) == ["B"]

    def test_self_parent_is_root(self):
        roots = build_tree(flat(("A", "A"), ("B", "A")))
        assert codes(roots) == ["A"]
        assert codes(roots[0].children) == ["B"]

    def test_cycle_members_become_roots(self):
        roots = build_tree(flat(("A", "B"), ("B", "A"), ("C", "A")))
        compute_paths(roots)

        assert codes(roots) == ["A", "B"]
        assert codes(roots[0].children) == ["C"]
        assert roots[0].children[0].path == "A > C"

    def test_duplicate_code_first_wins(self):
        first = Category(category_code="A", category_name="First")
        second = Category(category_code="A", category_name="Second")
        child = Category(category_code="B", parent_category_code="A")

        roots = build_tree([first, second, child])

        assert roots == [first, second]
        assert first.children == [child]
        assert second.children == []

    def test_empty(self):
        assert build_tree([]) == []

    def test_nested_input_trusted(self):
        nested = [
            Category.model_validate({
                "CategoryCode": "A",
                "CategoryName": "Furniture",
                "Children": [{"CategoryCode": "B", "CategoryName": "Chairs", "ParentCategoryCode": "X"}],
            }),
        ]

        roots = build_tree(nested)
        compute_paths(roots)

        assert roots is nested
        assert roots[0].children[0].path == "Furniture > Chairs"


class TestPaths:
    """Test display path computation."""

    def test_names_then_codes_then_unknown(self):
        root = Category(category_code="T1", category_name="Home")
        child = Category(category_code="T2", parent_category_code="T1")
        grandchild = Category(parent_category_code="T2")
        # A record without a code can only be a leaf
        roots = build_tree([root, child, grandchild])
        compute_paths(roots)

        assert root.path == "Home"
        assert child.path == "Home > T2"
        assert grandchild.path == "Home > T2 > Unknown"

    def test_split_path(self):
        assert split_path("Home > Garden > Tools") == ["Home", "Garden", "Tools"]
        assert split_path(None) is None
        assert split_path("") is None
