"""
Unit tests for the hash tree engine.

Covers construction, padding, incremental appends and capacity growth.
"""

import pytest

from hashtree.crypto.errors import IndexOutOfRange
from hashtree.crypto.hashing import TreeHasher
from hashtree.crypto.tree import (
    HashTree,
    build,
    leaf_position,
    next_power_of_two,
    parent_position,
    push,
    root,
    sibling_position,
)


def assert_consistent(tree: HashTree) -> None:
    """Check every internal node hashes its two children."""
    hasher = tree.hasher
    for position in range(tree.capacity - 1):
        expected = hasher.hash_pair(
            tree.node_at(2 * position + 1),
            tree.node_at(2 * position + 2),
        )
        assert tree.node_at(position) == expected, f"Node {position} inconsistent"
    for index in range(tree.element_count, tree.capacity):
        assert tree.digest_at(index) == hasher.padding_digest


class TestIndexArithmetic:
    """Tests for layout helpers."""

    @pytest.mark.parametrize(
        "count,expected",
        [(0, 1), (1, 1), (2, 2), (3, 4), (4, 4), (5, 8), (13, 16), (32, 32), (33, 64)],
    )
    def test_next_power_of_two(self, count: int, expected: int) -> None:
        """Test capacity rounding."""
        assert next_power_of_two(count) == expected

    def test_positions(self) -> None:
        """Test parent/sibling relations in a capacity-4 layout."""
        assert leaf_position(4, 0) == 3
        assert leaf_position(4, 3) == 6
        assert parent_position(3) == 1
        assert parent_position(4) == 1
        assert parent_position(6) == 2
        assert sibling_position(3) == 4
        assert sibling_position(4) == 3
        assert sibling_position(1) == 2


class TestBuild:
    """Tests for HashTree construction."""

    def test_empty(self, empty_tree: HashTree, hasher: TreeHasher) -> None:
        """Test empty input yields a single padding leaf."""
        assert empty_tree.capacity == 1
        assert empty_tree.element_count == 0
        assert empty_tree.is_empty
        assert empty_tree.root == hasher.padding_digest
        assert empty_tree.digest_at(0) == hasher.padding_digest

    def test_single_element(self, hasher: TreeHasher) -> None:
        """Test tree with single element."""
        tree = HashTree.build([b"only"], hasher=hasher)

        assert tree.capacity == 1
        assert tree.height == 1
        assert tree.root == hasher.hash_leaf(b"only")

    def test_two_elements(self, hasher: TreeHasher) -> None:
        """Test tree with two elements."""
        tree = HashTree.build([b"a", b"b"], hasher=hasher)

        expected_root = hasher.hash_pair(hasher.hash_leaf(b"a"), hasher.hash_leaf(b"b"))
        assert tree.root_hash == expected_root
        assert tree.root_hash == tree.root

    def test_three_elements_padded(self, three_tree: HashTree, hasher: TreeHasher) -> None:
        """Test [1, 2, 3] pads the fourth leaf."""
        assert three_tree.capacity == 4
        assert three_tree.element_count == 3
        assert three_tree.padding == 1
        assert three_tree.leaves == (
            hasher.hash_leaf(1),
            hasher.hash_leaf(2),
            hasher.hash_leaf(3),
            hasher.padding_digest,
        )

        h01 = hasher.hash_pair(hasher.hash_leaf(1), hasher.hash_leaf(2))
        h23 = hasher.hash_pair(hasher.hash_leaf(3), hasher.padding_digest)
        assert three_tree.root == hasher.hash_pair(h01, h23)

    @pytest.mark.parametrize("count", [1, 2, 3, 4, 5, 7, 8, 13, 32])
    def test_capacity_and_leaves(self, count: int, hasher: TreeHasher) -> None:
        """Test capacity rounding and leaf digests for several sizes."""
        elements = list(range(count))
        tree = HashTree.build(elements, hasher=hasher)

        assert tree.capacity == next_power_of_two(count)
        assert len(tree) == count
        for i, element in enumerate(elements):
            assert tree.digest_at(i) == hasher.hash_leaf(element)
        assert_consistent(tree)

    @pytest.mark.parametrize("count,height", [(1, 1), (4, 3), (32, 6), (3, 3), (7, 4), (13, 5)])
    def test_height(self, count: int, height: int) -> None:
        """Test level count including leaves and root."""
        assert HashTree.build([1] * count).height == height

    def test_accepts_iterables(self, hasher: TreeHasher) -> None:
        """Test generators build the same tree as lists."""
        from_list = HashTree.build([1, 2, 3], hasher=hasher)
        from_gen = HashTree.build((i for i in [1, 2, 3]), hasher=hasher)

        assert from_list.root == from_gen.root

    def test_deterministic_root(self, sample_elements: list[bytes]) -> None:
        """Test that same elements produce same root."""
        assert HashTree.build(sample_elements).root == HashTree.build(sample_elements).root

    def test_different_order_different_root(self) -> None:
        """Test that different order produces different root."""
        assert HashTree.build([b"a", b"b"]).root != HashTree.build([b"b", b"a"]).root

    def test_padding_not_confused_with_empty_element(self, hasher: TreeHasher) -> None:
        """Test an empty element is distinct from a padding slot."""
        tree = HashTree.build([b""], hasher=hasher)

        assert tree.root != hasher.padding_digest

    def test_module_build_and_root(self) -> None:
        """Test functional aliases."""
        tree = build([1, 2, 3])
        assert root(tree) == tree.root


class TestDigestAt:
    """Tests for leaf reads."""

    def test_padding_slot_readable(self, three_tree: HashTree, hasher: TreeHasher) -> None:
        """Test slots past element_count return the padding digest."""
        assert three_tree.digest_at(3) == hasher.padding_digest

    def test_out_of_range(self, three_tree: HashTree) -> None:
        """Test indices at or past capacity raise."""
        with pytest.raises(IndexOutOfRange) as exc_info:
            three_tree.digest_at(4)

        assert exc_info.value.index == 4
        assert exc_info.value.capacity == 4

    def test_negative_index(self, three_tree: HashTree) -> None:
        """Test negative indices raise."""
        with pytest.raises(IndexOutOfRange):
            three_tree.digest_at(-1)

    def test_is_index_error(self, three_tree: HashTree) -> None:
        """Test the error is catchable as IndexError."""
        with pytest.raises(IndexError):
            three_tree.digest_at(10)

    def test_node_at_out_of_range(self, three_tree: HashTree) -> None:
        """Test raw slot reads are bounded by storage size."""
        assert three_tree.node_at(6) == three_tree.digest_at(3)
        with pytest.raises(IndexOutOfRange):
            three_tree.node_at(7)


class TestPush:
    """Tests for incremental appends."""

    def test_push_into_empty(self, empty_tree: HashTree, hasher: TreeHasher) -> None:
        """Test push on an empty tree keeps capacity 1."""
        empty_tree.push(4)

        assert empty_tree.capacity == 1
        assert empty_tree.element_count == 1
        assert empty_tree.digest_at(0) == hasher.hash_leaf(4)
        assert empty_tree.root == hasher.hash_leaf(4)

    def test_push_with_capacity(self, three_tree: HashTree, hasher: TreeHasher) -> None:
        """Test push into a free slot matches a fresh build."""
        root_before = three_tree.root

        three_tree.push(4)

        assert three_tree.capacity == 4
        assert three_tree.element_count == 4
        assert three_tree.is_full
        assert three_tree.root != root_before
        assert three_tree.root == HashTree.build([1, 2, 3, 4], hasher=hasher).root

    def test_push_grows_full_tree(self, hasher: TreeHasher) -> None:
        """Test push into a full tree doubles capacity."""
        tree = HashTree.build([1, 2], hasher=hasher)

        tree.push(3)

        assert tree.capacity == 4
        assert tree.element_count == 3
        assert tree.root == HashTree.build([1, 2, 3], hasher=hasher).root
        assert_consistent(tree)

    def test_push_matches_build(self, sample_elements: list[bytes], hasher: TreeHasher) -> None:
        """Test pushing one by one equals building at every step."""
        tree = HashTree.build([], hasher=hasher)

        for i, element in enumerate(sample_elements):
            count_before = tree.element_count
            root_before = tree.root

            tree.push(element)

            assert tree.element_count == count_before + 1
            assert tree.root != root_before
            expected = HashTree.build(sample_elements[: i + 1], hasher=hasher)
            assert tree.capacity == expected.capacity
            assert tree.root == expected.root
            assert_consistent(tree)

    def test_push_rehashes_single_path(self) -> None:
        """Test an in-capacity push hashes log2(capacity) pairs."""
        calls = {"pair": 0}

        class CountingHasher(TreeHasher):
            def hash_pair(self, left: str, right: str) -> str:
                calls["pair"] += 1
                return super().hash_pair(left, right)

        tree = HashTree.build(list(range(9)), hasher=CountingHasher())
        assert tree.capacity == 16
        calls["pair"] = 0

        tree.push(9)

        assert calls["pair"] == 4

    def test_growth_recomputes_internal_levels(self) -> None:
        """Test a growing push costs one full rebuild plus one path."""
        calls = {"pair": 0}

        class CountingHasher(TreeHasher):
            def hash_pair(self, left: str, right: str) -> str:
                calls["pair"] += 1
                return super().hash_pair(left, right)

        tree = HashTree.build(list(range(8)), hasher=CountingHasher())
        calls["pair"] = 0

        tree.push(8)

        assert tree.capacity == 16
        assert calls["pair"] == 15 + 4

    def test_push_duplicate_still_changes_root(self, hasher: TreeHasher) -> None:
        """Test appending an existing value still changes the root."""
        tree = HashTree.build([1, 1, 1], hasher=hasher)
        root_before = tree.root

        tree.push(1)

        assert tree.root != root_before

    def test_unencodable_element_leaves_tree_untouched(self, hasher: TreeHasher) -> None:
        """Test a failed encode does not grow or modify the tree."""
        tree = HashTree.build([1, 2], hasher=hasher)
        root_before = tree.root

        with pytest.raises(TypeError):
            tree.push(object())

        assert tree.capacity == 2
        assert tree.element_count == 2
        assert tree.root == root_before

    def test_extend(self, hasher: TreeHasher) -> None:
        """Test extend appends in order."""
        tree = HashTree.build([1], hasher=hasher)

        tree.extend([2, 3, 4, 5])

        assert tree.root == HashTree.build([1, 2, 3, 4, 5], hasher=hasher).root

    def test_module_push(self) -> None:
        """Test functional push alias."""
        tree = build([])
        push(tree, 4)
        assert len(tree) == 1


class TestReadsAndCopies:
    """Tests for side-effect-free reads and snapshots."""

    def test_reads_idempotent(self, three_tree: HashTree) -> None:
        """Test repeated reads return identical results without mutation."""
        first = (three_tree.root, three_tree.digest_at(1), three_tree.get_proof(1))
        second = (three_tree.root, three_tree.digest_at(1), three_tree.get_proof(1))

        assert first == second
        assert three_tree.element_count == 3
        assert three_tree.capacity == 4

    def test_copy_is_independent(self, three_tree: HashTree) -> None:
        """Test pushing into a copy leaves the original alone."""
        snapshot = three_tree.copy()
        root_before = three_tree.root

        snapshot.push(4)
        snapshot.push(5)

        assert three_tree.root == root_before
        assert three_tree.capacity == 4
        assert snapshot.capacity == 8

    def test_repr(self, three_tree: HashTree) -> None:
        """Test repr shows counters."""
        text = repr(three_tree)
        assert "element_count=3" in text
        assert "capacity=4" in text
